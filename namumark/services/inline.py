#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Inline engine
=============
Resolves span-level markup inside a block or cell.

Every matcher in ``MATCHERS`` scans the whole text on its own.  The
candidates are sorted by start offset (registration order breaks ties) and a
greedy filter keeps a candidate only if it starts at or after the end of the
last kept one.  Gaps become ``Text`` nodes, so the top-level spans always
tile the input exactly.

Supported syntax, highest priority first
----------------------------------------
[text](url)                      — markdown link
[[page]]  /  [[page|display]]    — internal link  ([[https://...|x]] is external)
[https://url display]            — bracketed external link
^^sup^^  /  ,,sub,,              — superscript / subscript
[*key]  /  [*]                   — footnote reference
'''''x'''''                      — bold italic
'''x'''  /  **x**                — bold
''x''  /  *x*                    — italic
```x```                          — inline code
~~x~~                            — strikethrough
__x__                            — underline
{{{#RRGGBB x}}}  /  {{{#red x}}} — colored span
{{{+N x}}}  /  {{{-N x}}}        — sized span
`x`                              — code
!icon:{name, size:20, color:red} — icon
https://...                      — bare URL
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from namumark.core.config import get_settings
from .document import (
    AutoUrl, Bold, ColoredText, ExternalLink, FootnoteRef, Icon, InlineCode,
    InlineNode, InternalLink, Italic, SizedText, Strikethrough, Subscript,
    Superscript, Text, Underline,
)


# Asked for the display number of each footnote reference, in reading order.
FootnoteResolver = Callable[[str], int]


# -----------------------------------------------------------------------------
# Matcher table
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class _Scope:
    offset: int
    footnotes: Optional[FootnoteResolver]

    def span(self, m: re.Match) -> tuple[int, int]:
        return self.offset + m.start(), self.offset + m.end()

    def children(self, m: re.Match, group: int) -> tuple[InlineNode, ...]:
        return tuple(parse_inline(m.group(group), self.footnotes, self.offset + m.start(group)))


@dataclass(frozen=True)
class Matcher:
    name: str
    pattern: re.Pattern
    build: Callable[[re.Match, _Scope], InlineNode]


def _first_group(m: re.Match) -> int:
    """Index of the first participating group (for alternation patterns)."""
    return next(i for i in range(1, (m.re.groups or 0) + 1) if m.group(i) is not None)


def _span_builder(cls) -> Callable[[re.Match, _Scope], InlineNode]:
    def _build(m: re.Match, scope: _Scope) -> InlineNode:
        start, end = scope.span(m)
        return cls(start, end, scope.children(m, _first_group(m)))
    return _build


def _markdown_link(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    return ExternalLink(start, end, url=m.group(2).strip(), display=m.group(1).strip())


_SCHEME_RE = re.compile(r"^(?:https?:)?//", re.IGNORECASE)


def _wiki_link(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    target  = m.group(1).strip()
    display = (m.group(2) or target).strip()
    if _SCHEME_RE.match(target):
        return ExternalLink(start, end, url=target, display=display)
    return InternalLink(start, end, target=target, display=display)


def _bracket_url(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    url = m.group(1)
    return ExternalLink(start, end, url=url, display=(m.group(2) or url).strip())


def _footnote_ref(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    key = m.group(1)
    number = scope.footnotes(key) if scope.footnotes else None
    return FootnoteRef(start, end, key=key, number=number)


def _bold_italic(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    inner = Italic(start + 3, end - 3, scope.children(m, 1))
    return Bold(start, end, (inner,))


def _code(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    return InlineCode(start, end, code=m.group(1))


_HEX_COLOR_RE = re.compile(r"^(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


def _colored(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    raw = m.group(1)
    color = f"#{raw}" if _HEX_COLOR_RE.match(raw) else raw.lower()
    return ColoredText(start, end, scope.children(m, 2), color=color)


def _sized(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    return SizedText(start, end, scope.children(m, 2), size=int(m.group(1)))


def _icon(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    name, *options = [s.strip() for s in m.group(1).split(",")]
    size = get_settings().default_icon_size
    color: Optional[str] = None
    css_class = ""
    for option in options:
        key, _, value = option.partition(":")
        key, value = key.strip().lower(), value.strip()
        if key == "size" and value.isdigit():
            size = int(value)
        elif key == "color" and value:
            color = value
        elif key == "class":
            css_class = value
    return Icon(start, end, name=name, size=size, color=color, css_class=css_class)


def _auto_url(m: re.Match, scope: _Scope) -> InlineNode:
    start, end = scope.span(m)
    return AutoUrl(start, end, url=m.group(0))


MATCHERS: tuple[Matcher, ...] = (
    Matcher("markdown-link", re.compile(r"\[([^\[\]\n]+)\]\(([^()\s]+)\)"), _markdown_link),
    Matcher("wiki-link",     re.compile(r"\[\[([^\[\]|\n]+)(?:\|([^\[\]\n]+))?\]\]"), _wiki_link),
    Matcher("bracket-url",   re.compile(r"\[(https?://[^\s\[\]]+)(?:\s+([^\[\]\n]+))?\]"), _bracket_url),
    Matcher("superscript",   re.compile(r"\^\^(.+?)\^\^"), _span_builder(Superscript)),
    Matcher("subscript",     re.compile(r",,(.+?),,"), _span_builder(Subscript)),
    Matcher("footnote-ref",  re.compile(r"\[\*([\w-]*)\]"), _footnote_ref),
    Matcher("bold-italic",   re.compile(r"'''''(.+?)'''''"), _bold_italic),
    Matcher("bold",          re.compile(r"'''(.+?)'''|\*\*(.+?)\*\*"), _span_builder(Bold)),
    Matcher("italic",        re.compile(r"''(.+?)''|(?<![*\w])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?![*\w])"),
            _span_builder(Italic)),
    Matcher("inline-code",   re.compile(r"```(.+?)```"), _code),
    Matcher("strikethrough", re.compile(r"~~(.+?)~~"), _span_builder(Strikethrough)),
    Matcher("underline",     re.compile(r"__(.+?)__"), _span_builder(Underline)),
    Matcher("colored",       re.compile(r"\{\{\{#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3}|[A-Za-z]+)\s+(.+?)\}\}\}"), _colored),
    Matcher("sized",         re.compile(r"\{\{\{([+-][1-5])\s+(.+?)\}\}\}"), _sized),
    Matcher("code",          re.compile(r"`([^`\n]+)`"), _code),
    Matcher("icon",          re.compile(r"!icon:\{([^{}]+)\}"), _icon),
    Matcher("auto-url",      re.compile(r"https?://[^\s<>\[\]'\"]*[^\s<>\[\]'\".,;:!?)]"), _auto_url),
)


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------

def find_candidates(text: str, matchers: Iterable[Matcher] = MATCHERS) -> list[tuple[re.Match, Matcher]]:
    """Non-overlapping winners among all matcher hits, in source order."""
    hits: list[tuple[int, int, re.Match, Matcher]] = []
    for priority, matcher in enumerate(matchers):
        for m in matcher.pattern.finditer(text):
            if m.end() > m.start():
                hits.append((m.start(), priority, m, matcher))
    hits.sort(key=lambda h: (h[0], h[1]))

    kept: list[tuple[re.Match, Matcher]] = []
    cursor = 0
    for start, _priority, m, matcher in hits:
        if start >= cursor:
            kept.append((m, matcher))
            cursor = m.end()
    return kept


def parse_inline(
    text: str,
    footnotes: Optional[FootnoteResolver] = None,
    offset: int = 0,
) -> list[InlineNode]:
    """Parse *text* into inline nodes.

    Nodes are built only for winning candidates and strictly left to right,
    so *footnotes* is called once per visible reference in reading order.
    *offset* shifts the recorded source positions (used for nested spans).
    """
    if not text:
        return []
    scope = _Scope(offset=offset, footnotes=footnotes)
    nodes: list[InlineNode] = []
    cursor = 0
    for m, matcher in find_candidates(text):
        if m.start() > cursor:
            nodes.append(Text(offset + cursor, offset + m.start(), text[cursor:m.start()]))
        nodes.append(matcher.build(m, scope))
        cursor = m.end()
    if cursor < len(text):
        nodes.append(Text(offset + cursor, offset + len(text), text[cursor:]))
    return nodes


def plain_text(nodes: Iterable[InlineNode]) -> str:
    """Flatten inline nodes to their visible text; footnote refs and icons vanish."""
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.text)
        elif isinstance(node, InlineCode):
            parts.append(node.code)
        elif isinstance(node, (InternalLink, ExternalLink)):
            parts.append(node.display)
        elif isinstance(node, AutoUrl):
            parts.append(node.url)
        elif hasattr(node, "children"):
            parts.append(plain_text(node.children))
    return "".join(parts)


# -----------------------------------------------------------------------------
