"""
Utility helpers used by the migration tool.

This subpackage exposes the error hierarchy, the JSON Lines run ledger and
the per-worker pacing helper.
"""

from .errors import (
    ERRORS,
    ConfigurationError,
    ConflictError,
    DiscoveryError,
    MalformedContentError,
    MigrationError,
    TransportError,
    error_code_for,
    report_error,
    report_ok,
)
from .pacing import Pacer

__all__ = [
    "ERRORS",
    "ConfigurationError",
    "ConflictError",
    "DiscoveryError",
    "MalformedContentError",
    "MigrationError",
    "TransportError",
    "error_code_for",
    "report_error",
    "report_ok",
    "Pacer",
]
