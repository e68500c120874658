"""
Content transformers used by the migration pipeline.

Currently this subpackage exposes ``transform`` and the per-format upsert
helpers from :mod:`ghost_endnote.parsers.endnote`.
"""

from .endnote import ContentUpdate, transform, upsert_html, upsert_lexical

__all__ = ["ContentUpdate", "transform", "upsert_html", "upsert_lexical"]
