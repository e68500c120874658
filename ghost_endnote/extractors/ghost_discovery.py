"""
Post discovery against the Ghost Admin API.

:func:`discover` walks every page of a browse query and returns all the
records it yields.  :func:`fetch_posts_by_id` builds the query the endnote
migration needs (a membership filter over the requested ids, every content
format, and the ``updated_at`` stamp) and normalizes the result into
:class:`~ghost_endnote.models.PostRecord` objects.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ghost_endnote.models.ghost_post import PostRecord
from ghost_endnote.utils.errors import DiscoveryError, MigrationError

POST_FIELDS = "id,title,slug,url,html,updated_at"
POST_FORMATS = "html,lexical,mobiledoc"
PAGE_SIZE = 100

DiscoverFn = Callable[..., List[Dict[str, Any]]]


def discover(
    client: Any,
    resource: str = "posts",
    *,
    filter: Optional[str] = None,
    fields: Optional[str] = None,
    formats: Optional[str] = None,
    limit: int = PAGE_SIZE,
) -> List[Dict[str, Any]]:
    """Fetch every page of a browse query.

    Args:
        client: Anything with a ``browse(resource, **params)`` method
            returning the decoded Admin API response.
        resource: The resource to browse (``posts`` by default).
        filter: An NQL filter expression.
        fields: Comma separated list of fields to return.
        formats: Comma separated list of content formats to return.
        limit: Page size.

    Returns:
        list: All records of all pages, in the order Ghost returned them.
    """
    records: List[Dict[str, Any]] = []
    page: Optional[int] = 1
    while page:
        data = client.browse(
            resource,
            filter=filter,
            fields=fields,
            formats=formats,
            limit=limit,
            page=page,
        )
        records.extend(data.get(resource) or [])
        pagination = (data.get("meta") or {}).get("pagination") or {}
        next_page = pagination.get("next")
        # Guard against a server echoing the same page forever.
        page = next_page if next_page and next_page != page else None
    return records


def id_filter(post_ids: Iterable[str]) -> str:
    return f"id:[{','.join(post_ids)}]"


def fetch_posts_by_id(client: Any, post_ids: List[str], *, discover_fn: DiscoverFn = discover) -> List[PostRecord]:
    """Fetch the posts named in ``post_ids`` with all of their content formats.

    Args:
        client: The store handle passed through to ``discover_fn``.
        post_ids: The ids to fetch.  An empty list returns ``[]`` without a call.
        discover_fn: The paginated discovery capability (:func:`discover`).

    Returns:
        list: One :class:`PostRecord` per post found; order is not guaranteed.

    Raises:
        DiscoveryError: when the discovery call fails or returns unusable records.
    """
    if not post_ids:
        return []
    try:
        raw_posts = discover_fn(
            client,
            "posts",
            filter=id_filter(post_ids),
            fields=POST_FIELDS,
            formats=POST_FORMATS,
            limit=PAGE_SIZE,
        )
    except MigrationError as e:
        raise DiscoveryError(f"Could not fetch posts: {e}") from e
    try:
        return [PostRecord.model_validate(p) for p in raw_posts]
    except ValidationError as e:
        raise DiscoveryError(f"Ghost returned an unexpected post record: {e}") from e
