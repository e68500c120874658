from .ghost_post import (
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

__all__ = [
    "ENDNOTE_CLASS",
    "ENDNOTE_DISCRIMINATOR",
    "EndnoteBlock",
    "FlatContent",
    "LegacyContent",
    "PostRecord",
    "Representation",
    "RichContent",
    "classify",
]
