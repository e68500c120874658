"""
Endnote upsert for the three post representations.

Nothing here performs I/O.  Given a post (or an already classified
representation) and the :class:`~ghost_endnote.models.EndnoteBlock` to
write, :func:`transform` returns a :class:`ContentUpdate` naming the single
field to send back to the Admin API and its new value.

Lexical posts get the endnote as an html card: an existing endnote card is
replaced where it stands, otherwise the card is appended as the last child.
Mobiledoc and html posts are edited as markup: an existing endnote ``div`` is
replaced, otherwise the endnote is appended after a blank line.  Only the
first endnote card of a Lexical post is replaced; later duplicate cards are
left as they are.  In markup every endnote ``div`` is replaced, each one
spanning to its matching ``</div>`` so nested ``div`` elements inside the
endnote stay part of it.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from ghost_endnote.models.ghost_post import (
    ENDNOTE_CLASS,
    ENDNOTE_DISCRIMINATOR,
    EndnoteBlock,
    FlatContent,
    LegacyContent,
    PostRecord,
    Representation,
    RichContent,
    classify,
)

from .lexical_schema import (
    dump_document,
    html_card,
    is_html_card_containing,
    load_document,
    root_children,
)

__all__ = [
    "ContentUpdate",
    "ENDNOTE_OPEN_TAG",
    "endnote_spans",
    "transform",
    "upsert_html",
    "upsert_lexical",
]

ENDNOTE_OPEN_TAG = re.compile(
    r'<div\s+class="' + re.escape(ENDNOTE_CLASS) + r'"[^>]*>',
    re.IGNORECASE,
)
DIV_TAG = re.compile(r"<(/?)div\b[^>]*>", re.IGNORECASE)

MARKUP_SEPARATOR = "\n\n"


class ContentUpdate(BaseModel):
    """The one content field to write back for a post."""

    model_config = ConfigDict(frozen=True)

    field: str
    value: str
    source: Optional[str] = None

    def payload(self) -> Dict[str, Any]:
        return {self.field: self.value}


def upsert_lexical(raw: str, endnote: EndnoteBlock) -> str:
    document = load_document(raw)
    children = root_children(document)
    card = html_card(endnote.html)
    for index, child in enumerate(children):
        if is_html_card_containing(child, ENDNOTE_DISCRIMINATOR):
            children[index] = card
            break
    else:
        children.append(card)
    return dump_document(document)


def _span_end(markup: str, start: int) -> int:
    """Index just past the ``</div>`` closing the div opened before ``start``."""
    depth = 1
    for tag in DIV_TAG.finditer(markup, start):
        depth += -1 if tag.group(1) else 1
        if depth == 0:
            return tag.end()
    # Unclosed endnote: it runs to the end of the markup.
    return len(markup)


def endnote_spans(markup: str) -> List[Tuple[int, int]]:
    """``(start, end)`` of every endnote div in ``markup``, in document order."""
    spans: List[Tuple[int, int]] = []
    pos = 0
    while True:
        opening = ENDNOTE_OPEN_TAG.search(markup, pos)
        if opening is None:
            return spans
        end = _span_end(markup, opening.end())
        spans.append((opening.start(), end))
        pos = end


def upsert_html(markup: str, endnote: EndnoteBlock) -> str:
    if not markup:
        return endnote.html
    spans = endnote_spans(markup)
    if not spans:
        return f"{markup}{MARKUP_SEPARATOR}{endnote.html}"
    parts: List[str] = []
    pos = 0
    for start, end in spans:
        parts.append(markup[pos:start])
        parts.append(endnote.html)
        pos = end
    parts.append(markup[pos:])
    return "".join(parts)


def transform(target: Union[PostRecord, Representation], endnote: EndnoteBlock) -> ContentUpdate:
    """
    Return the content update that puts ``endnote`` into ``target``.

    :param target: A fetched post, classified here, or a representation
        already picked by :func:`~ghost_endnote.models.classify`.
    :param endnote: The endnote block to insert or replace.
    :raises MalformedContentError: when a Lexical document cannot be parsed.
    """
    representation = classify(target) if isinstance(target, PostRecord) else target
    if isinstance(representation, RichContent):
        return ContentUpdate(field="lexical", value=upsert_lexical(representation.document, endnote))
    if isinstance(representation, (LegacyContent, FlatContent)):
        return ContentUpdate(field="html", value=upsert_html(representation.markup, endnote), source="html")
    raise TypeError(f"Unknown post representation: {type(representation).__name__}")
