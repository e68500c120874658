"""
Error kinds and structured logging helpers for the endnote migration.

The exception classes below describe every way a run can go wrong.  They
all derive from :class:`MigrationError`, which can carry a ``resource``
dictionary identifying the post being processed when the error happened.

Fatal kinds (:class:`ConfigurationError`, :class:`DiscoveryError`) abort
the whole run.  Per-document kinds (:class:`MalformedContentError`,
:class:`ConflictError`, :class:`TransportError`) are recorded against the
offending post and the batch carries on.

Two public functions write a JSON Lines ledger of the run so that the
outcome can be reviewed after the fact:

``report_error``
    Record an error that occurred for a post.  An optional exception can be
    supplied and will be serialized to the log.

``report_ok``
    Record a successful step for a post.  Additional key/value information can
    be attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps error or event codes to human readable
messages.  Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class MigrationError(Exception):
    """Base class for every error raised by the migration."""

    def __init__(self, message: str, *, resource: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.resource: Optional[Dict[str, Any]] = resource


class ConfigurationError(MigrationError):
    """Missing or invalid run inputs.  Raised before any post is touched."""


class DiscoveryError(MigrationError):
    """Fetching the target posts failed.  Aborts the run."""


class MalformedContentError(MigrationError):
    """A post's existing content cannot be parsed into the expected shape."""


class ConflictError(MigrationError):
    """The post was modified since it was fetched (stale ``updated_at``)."""


class TransportError(MigrationError):
    """Network or authentication failure talking to the Admin API."""


# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "MALFORMED_CONTENT": "Post content could not be parsed",
    "UPDATE_COLLISION": "Post was modified since it was fetched",
    "GHOST_NETWORK": "Network error communicating with Ghost",
    "UNEXPECTED": "Unexpected error while updating post",
    "ENDNOTE_UPDATED": "Endnote block written",
}

# Error class -> ledger code used by :func:`error_code_for`.
_CODES_BY_KIND = {
    MalformedContentError: "MALFORMED_CONTENT",
    ConflictError: "UPDATE_COLLISION",
    TransportError: "GHOST_NETWORK",
}


def error_code_for(exc: BaseException) -> str:
    for kind, code in _CODES_BY_KIND.items():
        if isinstance(exc, kind):
            return code
    return "UNEXPECTED"


def _write_jsonl(report_dir: str, filename: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``report_dir/filename``."""
    os.makedirs(report_dir, exist_ok=True)
    with open(os.path.join(report_dir, filename), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def report_error(
    code: str,
    post: Dict[str, Any],
    exc: Optional[BaseException] = None,
    *,
    report_dir: str = os.path.join("reports", "migration"),
) -> None:
    """Log an error event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    post:
        The post dictionary associated with the error.  Only the ``id`` and
        ``title`` keys are referenced if present.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    report_dir:
        Directory holding ``errors.jsonl``.  Created if missing.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": post.get("id"),
        "title": post.get("title"),
    }
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {message} - {post.get('title') or post.get('id') or ''}")
    _write_jsonl(report_dir, "errors.jsonl", entry)


def report_ok(
    code: str,
    post: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    *,
    report_dir: str = os.path.join("reports", "migration"),
) -> None:
    """Log a successful event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    post:
        The post dictionary associated with the event.
    extra:
        Optional dictionary of additional fields to merge into the log entry.
    report_dir:
        Directory holding ``success.jsonl``.  Created if missing.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": post.get("id"),
        "title": post.get("title"),
    }
    if extra:
        entry.update(extra)
    print(f"[OK] {message} - {post.get('title') or post.get('id') or ''}")
    _write_jsonl(report_dir, "success.jsonl", entry)
