"""
Discovery helpers for the Ghost Admin API.

Provides ``discover`` to walk every page of a browse query and
``fetch_posts_by_id`` to load the posts targeted by a run.
"""

from .ghost_discovery import discover, fetch_posts_by_id

__all__ = ["discover", "fetch_posts_by_id"]
