from __future__ import annotations

from html import escape
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Attribute that identifies an endnote block inside any post body.
ENDNOTE_CLASS = "gh-content-endnote"
ENDNOTE_DISCRIMINATOR = f'class="{ENDNOTE_CLASS}"'


class EndnoteBlock(BaseModel):
    """The marker block written into every post.

    ``content`` is inserted as-is, so it may itself hold markup.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    data_type: str = "4"

    @property
    def html(self) -> str:
        return (
            f'<div {ENDNOTE_DISCRIMINATOR} data-type="{escape(self.data_type)}">'
            f"{self.content}</div>"
        )


class PostRecord(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
    )

    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    slug: Optional[str] = None
    url: Optional[str] = None
    updated_at: Optional[str] = None
    lexical: Optional[str] = None
    mobiledoc: Optional[str] = None
    html: Optional[str] = None

    @field_validator("lexical", "mobiledoc", "html", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any):
        # The Admin API returns "" or null interchangeably for absent formats.
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def label(self) -> str:
        return self.title or self.id

    def resource(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title}


class RichContent(BaseModel):
    """Lexical JSON document (``root.children`` holds the blocks)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["lexical"] = "lexical"
    document: str


class LegacyContent(BaseModel):
    """Mobiledoc post, edited through its rendered HTML."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["mobiledoc"] = "mobiledoc"
    markup: str = ""


class FlatContent(BaseModel):
    """Plain HTML post, or a post with no content at all."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["html"] = "html"
    markup: str = ""


Representation = Union[RichContent, LegacyContent, FlatContent]


def classify(post: PostRecord) -> Representation:
    """Pick the representation to edit: lexical, then mobiledoc, then html."""
    if post.lexical is not None:
        return RichContent(document=post.lexical)
    if post.mobiledoc is not None:
        return LegacyContent(markup=post.html or "")
    return FlatContent(markup=post.html or "")
