import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from ghost_endnote.extractors.ghost_discovery import discover, fetch_posts_by_id, id_filter
from ghost_endnote.utils.errors import DiscoveryError, TransportError


class PagedClient:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def browse(self, resource, **params):
        self.calls.append((resource, params))
        index = params["page"] - 1
        nxt = params["page"] + 1 if params["page"] < len(self.pages) else None
        return {resource: self.pages[index], "meta": {"pagination": {"page": params["page"], "next": nxt}}}


def test_discover_walks_every_page():
    client = PagedClient([[{"id": "a"}, {"id": "b"}], [{"id": "c"}]])
    records = discover(client, "posts", filter="id:[a,b,c]", limit=2)
    assert [r["id"] for r in records] == ["a", "b", "c"]
    assert [c[1]["page"] for c in client.calls] == [1, 2]
    assert client.calls[0][1]["filter"] == "id:[a,b,c]"


def test_discover_stops_without_pagination_meta():
    class OnePage:
        def browse(self, resource, **params):
            return {"posts": [{"id": "a"}]}

    assert discover(OnePage()) == [{"id": "a"}]


def test_id_filter():
    assert id_filter(["a", "b"]) == "id:[a,b]"


def test_fetch_posts_by_id_requests_all_formats():
    seen = {}

    def fake_discover(client, resource, **kwargs):
        seen.update(kwargs, resource=resource)
        return [{"id": "p1", "title": "One", "updated_at": "t1", "lexical": "{}", "html": ""}]

    posts = fetch_posts_by_id(object(), ["p1"], discover_fn=fake_discover)
    assert seen["resource"] == "posts"
    assert seen["filter"] == "id:[p1]"
    assert seen["formats"] == "html,lexical,mobiledoc"
    assert "updated_at" in seen["fields"].split(",")
    assert posts[0].id == "p1"
    assert posts[0].html is None


def test_fetch_posts_by_id_empty_list_makes_no_call():
    def boom(*args, **kwargs):
        raise AssertionError("discovery should not be called")

    assert fetch_posts_by_id(object(), [], discover_fn=boom) == []


def test_fetch_posts_by_id_wraps_transport_errors():
    def failing(*args, **kwargs):
        raise TransportError("connection refused")

    with pytest.raises(DiscoveryError):
        fetch_posts_by_id(object(), ["p1"], discover_fn=failing)


def test_fetch_posts_by_id_rejects_records_without_id():
    with pytest.raises(DiscoveryError):
        fetch_posts_by_id(object(), ["p1"], discover_fn=lambda *a, **k: [{"title": "no id"}])
