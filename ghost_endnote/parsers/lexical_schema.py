from __future__ import annotations

import json
from typing import Any, Dict, List

from ghost_endnote.utils.errors import MalformedContentError


HTML_CARD_TYPE = "html"


# --- Builders for Lexical nodes ---

def html_card(raw_html: str) -> Dict[str, Any]:
    return {"type": HTML_CARD_TYPE, "version": 1, "html": raw_html or ""}


def is_html_card_containing(node: Any, needle: str) -> bool:
    if not isinstance(node, dict) or node.get("type") != HTML_CARD_TYPE:
        return False
    html = node.get("html")
    return isinstance(html, str) and needle in html


# --- Loading / dumping ---

def load_document(raw: str) -> Dict[str, Any]:
    """
    Parse a Lexical JSON string and check the parts the endnote edit relies on.
    - The document is a JSON object with a ``root`` object.
    - ``root.children`` is a list.
    Anything else raises :class:`MalformedContentError`.
    """
    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedContentError(f"Lexical content is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise MalformedContentError("Lexical content is not a JSON object")
    root = document.get("root")
    if not isinstance(root, dict):
        raise MalformedContentError("Lexical content has no root node")
    if not isinstance(root.get("children"), list):
        raise MalformedContentError("Lexical root node has no children list")
    return document


def root_children(document: Dict[str, Any]) -> List[Any]:
    return document["root"]["children"]


def dump_document(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)
