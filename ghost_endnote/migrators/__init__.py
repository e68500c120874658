"""
Ghost Admin API client.

This subpackage provides the store handle used by the migration: browsing
posts and editing them with an ``updated_at`` check.  It encapsulates JWT
authentication, automatic retries of transient failures and the mapping of
HTTP failures to the migration's error kinds.
"""

from .ghost_admin import GhostAdminClient, make_admin_token, with_retries

__all__ = ["GhostAdminClient", "make_admin_token", "with_retries"]
