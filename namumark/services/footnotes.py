#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Footnotes, anchors and table of contents
========================================
Footnotes are handled in two passes per render:

  1. ``extract_footnotes()`` scans the source for definitions before any
     inline parsing runs and builds ``key -> text``.
  2. During the render pass every ``[*key]`` reference asks the
     ``RenderContext`` for its display number.  The first reference to a key
     takes ``counter + 1``; later references reuse it.

Anonymous ``[*]`` definitions and references get synthetic keys
``auto:1``, ``auto:2``, ... in source order, so the n-th anonymous reference
pairs with the n-th anonymous definition.

All mutable state lives on the ``RenderContext`` created for one render
call; nothing here is module-global.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional

from namumark.core.config import get_settings
from .document import Block, Footnote, FootnoteTable, Heading, TocEntry
from .inline import parse_inline, plain_text


# -----------------------------------------------------------------------------
# Anchors
# -----------------------------------------------------------------------------

def slugify_anchor(text: str) -> str:
    """Convert heading text to an anchor ID.  ``\\w`` is Unicode-aware, so
    Hangul and other scripts survive."""
    text = text.strip().lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-") or "section"


class AnchorRegistry:
    """Hands out unique anchors: ``intro``, ``intro-1``, ``intro-2``, ..."""

    def __init__(self) -> None:
        self._next: dict[str, int] = {}
        self._taken: set[str] = set()

    def claim(self, title: str) -> str:
        base = slugify_anchor(title)
        n = self._next.get(base, 0)
        anchor = base if n == 0 else f"{base}-{n}"
        while anchor in self._taken:
            n += 1
            anchor = f"{base}-{n}"
        self._next[base] = n + 1
        self._taken.add(anchor)
        return anchor


# -----------------------------------------------------------------------------
# Extraction pass
# -----------------------------------------------------------------------------

AUTO_KEY_PREFIX = "auto:"

# Code fence delimiters, shared with the block segmenter.
FENCE_OPEN_RE  = re.compile(r"^\s*```\s*([\w+#.-]*)\s*$")
FENCE_CLOSE_RE = re.compile(r"^\s*```")

_STANDALONE_DEF_RE = re.compile(r"^\[\*([\w-]*)\]\s+(.+)$")
_INLINE_DEF_RE     = re.compile(r"\[\*([\w-]*)\]\s+(.+?)(?=\s*\[\*[\w-]*\]|$)")


def split_lines(text: str) -> list[str]:
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def unfenced_lines(text: str) -> Iterator[str]:
    """Lines of *text* outside code fences.  An unclosed fence runs to the end."""
    in_fence = False
    for line in split_lines(text):
        if in_fence:
            if FENCE_CLOSE_RE.match(line):
                in_fence = False
            continue
        if FENCE_OPEN_RE.match(line):
            in_fence = True
            continue
        yield line


def is_footnote_definition(line: str) -> bool:
    """True for a whole-line ``[*key] text`` definition (no surrounding whitespace)."""
    return line == line.strip() and bool(_STANDALONE_DEF_RE.match(line))


def extract_footnotes(text: str) -> FootnoteTable:
    """Collect footnote definitions from *text*.

    Standalone definitions take precedence over inline ones; within a kind
    the first definition of a key wins.  Code fences are skipped.
    """
    standalone: dict[str, str] = {}
    inline: dict[str, str] = {}
    order: list[str] = []
    anonymous: list[str] = []

    def _key(raw: str) -> str:
        if raw:
            return raw
        key = f"{AUTO_KEY_PREFIX}{len(anonymous) + 1}"
        anonymous.append(key)
        return key

    for line in unfenced_lines(text):
        if is_footnote_definition(line):
            m = _STANDALONE_DEF_RE.match(line)
            key = _key(m.group(1))
            if key not in standalone:
                standalone[key] = m.group(2).strip()
                order.append(key)
            continue

        for m in _INLINE_DEF_RE.finditer(line):
            if m.start() == 0:
                # a line that starts with a reference is not "after other text"
                continue
            content = m.group(2).strip()
            key = _key(m.group(1))
            if content and key not in inline:
                inline[key] = content
                order.append(key)

    definitions: dict[str, str] = {}
    for key in order:
        if key in definitions:
            continue
        definitions[key] = standalone.get(key, inline.get(key, ""))
    return FootnoteTable(definitions=definitions, anonymous=tuple(anonymous))


# -----------------------------------------------------------------------------
# Render-scoped state
# -----------------------------------------------------------------------------

class RenderContext:
    """Per-render state: footnote numbering and heading anchors.

    Create one per render call and discard it afterwards.
    """

    def __init__(self, footnotes: Optional[FootnoteTable] = None,
                 placeholder: Optional[str] = None) -> None:
        self.table = footnotes or FootnoteTable()
        self.anchors = AnchorRegistry()
        self.placeholder = placeholder or get_settings().footnote_placeholder
        self._numbers: dict[str, int] = {}
        self._keys: list[str] = []       # index n-1 -> key for display number n
        self._anonymous_refs = 0

    @property
    def counter(self) -> int:
        return len(self._keys)

    def footnote_number(self, key: str) -> int:
        """Display number for one reference occurrence of *key*."""
        if not key:
            self._anonymous_refs += 1
            key = f"{AUTO_KEY_PREFIX}{self._anonymous_refs}"
        number = self._numbers.get(key)
        if number is None:
            self._keys.append(key)
            number = len(self._keys)
            self._numbers[key] = number
        return number

    def known_text(self, number: int) -> Optional[str]:
        """Footnote text by explicit or numeric key match, without consuming
        anonymous definitions."""
        if not 1 <= number <= len(self._keys):
            return None
        key = self._keys[number - 1]
        text = self.table.get(key)
        if text is None:
            text = self.table.get(str(number))
        return text

    def footnotes(self) -> list[Footnote]:
        """Resolve entries ``1..counter``.

        Order of resolution: explicit key, numeric key, the next anonymous
        definition no reference claimed, then the placeholder.
        """
        claimed = set(self._numbers)
        spare = [k for k in self.table.anonymous if k not in claimed]
        result: list[Footnote] = []
        for number in range(1, len(self._keys) + 1):
            text = self.known_text(number)
            if text is None and spare:
                text = self.table.get(spare.pop(0))
            if not text:
                text = self.placeholder.format(number=number)
            result.append(Footnote(number=number, text=text))
        return result


# -----------------------------------------------------------------------------
# Table of contents
# -----------------------------------------------------------------------------

def build_toc(blocks: Iterable[Block]) -> tuple[TocEntry, ...]:
    """One entry per heading, in document order."""
    return tuple(
        TocEntry(level=b.level, title=plain_text(parse_inline(b.title)), anchor=b.anchor)
        for b in blocks
        if isinstance(b, Heading)
    )


# -----------------------------------------------------------------------------
