#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Document model
==============
Immutable node types produced by the segmenter and the inline engine.

Blocks keep their raw text; inline parsing happens during the render pass so
footnote numbers are assigned in reading order.  Every node is a frozen
dataclass and nothing is mutated once built.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Cells and colors
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ColorAttributes:
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    border_color: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.background_color or self.text_color or self.border_color)

    def merged(self, other: "ColorAttributes") -> "ColorAttributes":
        """Return a copy where every color set on *other* wins."""
        return ColorAttributes(
            background_color=other.background_color or self.background_color,
            text_color=other.text_color or self.text_color,
            border_color=other.border_color or self.border_color,
        )


@dataclass(frozen=True)
class Cell:
    raw: str
    content: str
    colors: ColorAttributes = ColorAttributes()


@dataclass(frozen=True)
class TableStyle:
    align: Optional[str] = None
    background_color: Optional[str] = None
    border_color: Optional[str] = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Blocks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TemplateKind(str, Enum):
    INFOBOX = "infobox"
    PERSON_INFOBOX = "person-infobox"
    GROUP_INFOBOX = "group-infobox"
    CARD_GRID = "card-grid"
    NOTICE = "notice"


class DirectiveKind(str, Enum):
    TOC = "toc"
    CATEGORY_TAG = "category"
    ROLE_BANNER = "role"
    TAB_BAR = "tabs"
    IMAGE = "image"
    FILE = "file"


@dataclass(frozen=True)
class Block:
    line: int   # 0-based source line the block starts on


@dataclass(frozen=True)
class Heading(Block):
    level: int
    title: str
    anchor: str


@dataclass(frozen=True)
class ListItem(Block):
    level: int
    ordered: bool
    content: str


@dataclass(frozen=True)
class Quote(Block):
    content: str


@dataclass(frozen=True)
class CodeFence(Block):
    language: Optional[str]
    code: str


@dataclass(frozen=True)
class Table(Block):
    rows: tuple[tuple[Cell, ...], ...]
    header: bool = True
    alignments: tuple[Optional[str], ...] = ()
    row_colors: tuple[ColorAttributes, ...] = ()
    style: TableStyle = TableStyle()
    grammar: str = "namu"   # "namu" | "pipe"


@dataclass(frozen=True)
class CardItem:
    title: str = ""
    image: str = ""
    description: str = ""
    date: str = ""
    link: str = ""


@dataclass(frozen=True)
class TemplateBlock(Block):
    kind: TemplateKind
    name: str
    params: tuple[tuple[str, str], ...] = ()
    color_override: Optional[ColorAttributes] = None
    items: tuple[CardItem, ...] = ()


@dataclass(frozen=True)
class Directive(Block):
    kind: DirectiveKind
    value: str = ""
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class Paragraph(Block):
    lines: tuple[str, ...]


@dataclass(frozen=True)
class HorizontalRule(Block):
    pass


@dataclass(frozen=True)
class ErrorBlock(Block):
    """A clearly intended construct that could not be parsed; shown in place."""
    message: str
    source: str


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Inline nodes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class InlineNode:
    start: int   # source offsets, end exclusive
    end: int


@dataclass(frozen=True)
class Text(InlineNode):
    text: str


@dataclass(frozen=True)
class _Span(InlineNode):
    children: tuple[InlineNode, ...]


@dataclass(frozen=True)
class Bold(_Span):
    pass


@dataclass(frozen=True)
class Italic(_Span):
    pass


@dataclass(frozen=True)
class Strikethrough(_Span):
    pass


@dataclass(frozen=True)
class Underline(_Span):
    pass


@dataclass(frozen=True)
class Superscript(_Span):
    pass


@dataclass(frozen=True)
class Subscript(_Span):
    pass


@dataclass(frozen=True)
class ColoredText(_Span):
    color: str


@dataclass(frozen=True)
class SizedText(_Span):
    size: int   # relative step, -5..+5


@dataclass(frozen=True)
class InlineCode(InlineNode):
    code: str


@dataclass(frozen=True)
class FootnoteRef(InlineNode):
    key: str
    number: Optional[int] = None


@dataclass(frozen=True)
class InternalLink(InlineNode):
    target: str
    display: str


@dataclass(frozen=True)
class ExternalLink(InlineNode):
    url: str
    display: str


@dataclass(frozen=True)
class Icon(InlineNode):
    name: str
    size: int = 16
    color: Optional[str] = None
    css_class: str = ""


@dataclass(frozen=True)
class AutoUrl(InlineNode):
    url: str


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Document aggregates
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TocEntry:
    level: int
    title: str
    anchor: str


@dataclass(frozen=True)
class Footnote:
    number: int
    text: str


@dataclass(frozen=True)
class FootnoteTable:
    """Footnote texts keyed by definition key, in source order.

    ``anonymous`` lists the synthetic ``auto:<n>`` keys of ``[*]``
    definitions, also in source order.
    """
    definitions: Mapping[str, str] = field(default_factory=dict)
    anonymous: tuple[str, ...] = ()

    def get(self, key: str) -> Optional[str]:
        return self.definitions.get(key)


@dataclass(frozen=True)
class Document:
    blocks: tuple[Block, ...]
    toc: tuple[TocEntry, ...] = ()
    footnotes: FootnoteTable = FootnoteTable()
    source: str = ""


# -----------------------------------------------------------------------------
