#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Block segmenter
===============
Splits raw markup into an ordered list of blocks in a single forward scan.
Multi-line constructs (code fences, tables, ``{{...}}`` templates, card
grids, quotes) are collected with explicit lookahead; the scan never
revisits a consumed line.

Supported syntax
----------------
= H1 =  /  == H2 ==  /  # H1  /  ## H2            — headings (level 1..6)
* item  /  - item  /  1. item                     — lists (2 spaces per level)
> text                                            — quote
```lang ... ```                                   — code fence
|| a || b ||                                      — namu table (row 0 = header)
| a | b |  +  | --- | :-: |                       — pipe table
{{인물정보상자<bgcolor:#E8F4FD> ... }}              — template block
{{안내|text}}                                     — single-line template
[[인포박스: 이름=X | 직업=Y]]                       — simple infobox
[[카드그리드: items=[...]]]                        — card grid (may span lines)
[[목차]]  /  {{toc}}  /  __TOC__                   — table of contents
{{role:key}}                                      — role banner
[[탭: A | B]]                                     — tab bar
[이미지:url]  /  [[파일:path|caption]]             — images
분류: A | B  /  [[분류:A]]                          — categories
----                                              — horizontal rule
[*key] text                                       — footnote definition (hidden)

Anything else is folded into paragraphs; blank lines end a paragraph.
Nothing here raises for malformed input.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from typing import Optional

from .document import (
    Block, Cell, CodeFence, ColorAttributes, Directive, DirectiveKind,
    ErrorBlock, Heading, HorizontalRule, ListItem, Paragraph, Quote, Table,
    TableStyle, TemplateBlock, TemplateKind,
)
from .footnotes import (
    FENCE_CLOSE_RE, FENCE_OPEN_RE, RenderContext, is_footnote_definition,
    split_lines, unfenced_lines,
)
from .inline import parse_inline, plain_text
from .templates import (
    CardGridError, parse_card_grid, parse_color_attributes, parse_inline_params,
    parse_params, parse_table_attributes, split_inline_params, template_kind,
)

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Line patterns
# -----------------------------------------------------------------------------

_CARD_GRID_RE    = re.compile(r"^\s*\[\[카드그리드\s*:(.*)$")
_SIMPLE_INFO_RE  = re.compile(r"^\s*\[\[인포박스\s*:(.*)\]\]\s*$")
_TOC_RE          = re.compile(r"^\s*(?:\[\[목차\]\]|\{\{\s*toc\s*\}\}|__TOC__)\s*$", re.IGNORECASE)
_ROLE_RE         = re.compile(r"^\s*\{\{\s*role\s*:\s*([^{}]*?)\s*\}\}\s*$", re.IGNORECASE)
_TEMPLATE_RE     = re.compile(r"^\s*\{\{(?!\{)\s*([^\s<|{}]+)\s*((?:<[^<>]*>\s*)*)(.*)$")
_TAB_BAR_RE      = re.compile(r"^\s*\[\[탭\s*:(.*)\]\]\s*$")
_IMAGE_RE        = re.compile(r"^\s*\[이미지\s*:\s*([^\]]+?)\s*\]\s*$")
_FILE_RE         = re.compile(r"^\s*\[\[파일\s*:\s*([^\]|]+?)\s*(?:\|([^\]]*))?\]\]\s*$")
_CATEGORY_LINE_RE = re.compile(r"^\s*분류\s*:\s*(.+)$")
_CATEGORY_TAG_RE = re.compile(r"\[\[(?:분류|카테고리)\s*:\s*([^\]|]+?)\s*(?:\|[^\]]*)?\]\]")
_CATEGORY_ONLY_RE = re.compile(r"^\s*(?:\[\[(?:분류|카테고리)\s*:[^\]]+\]\]\s*)+$")
_NAMU_HEADING_RE = re.compile(r"^(=+)\s*(.+?)\s*=+$")
_MD_HEADING_RE   = re.compile(r"^(#+)\s*(.+)$")
_HR_RE           = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")
_QUOTE_RE        = re.compile(r"^\s*>\s?(.*)$")
_LIST_RE         = re.compile(r"^(\s*)([*-]|\d+\.)\s+(.*\S)\s*$")
_NAMU_ROW_RE     = re.compile(r"^\s*\|\|.*\|\|\s*$")
_PIPE_ROW_RE     = re.compile(r"^\s*\|.*\|\s*$")
_SEPARATOR_RE    = re.compile(r"^\s*:?-+:?\s*$")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _heading(line: str) -> Optional[tuple[int, str]]:
    stripped = line.strip()
    m = _NAMU_HEADING_RE.match(stripped) or _MD_HEADING_RE.match(stripped)
    if not m:
        return None
    title = m.group(2).strip().strip("=").strip()
    if not title:
        return None
    return min(len(m.group(1)), 6), title


def _cell(raw: str) -> Cell:
    parsed = parse_color_attributes(raw)
    return Cell(raw=raw, content=parsed.content, colors=parsed.colors)


def _namu_table(lines: list[str], start: int) -> Table:
    rows: list[tuple[Cell, ...]] = []
    row_colors: list[ColorAttributes] = []
    style = TableStyle()
    for line in lines:
        parts = line.strip().split("||")
        if parts and not parts[0].strip():
            parts = parts[1:]
        if parts and not parts[-1].strip():
            parts = parts[:-1]
        cells: list[Cell] = []
        row_attrs = ColorAttributes()
        for part in parts:
            attrs = parse_table_attributes(part, style)
            style = attrs.style
            row_attrs = row_attrs.merged(attrs.row)
            parsed = parse_color_attributes(attrs.content)
            cells.append(Cell(raw=part, content=parsed.content, colors=parsed.colors))
        rows.append(tuple(cells))
        row_colors.append(row_attrs)
    return Table(line=start, rows=tuple(rows), header=True,
                 row_colors=tuple(row_colors), style=style, grammar="namu")


def _pipe_cells(line: str) -> list[str]:
    inner = line.strip()
    if inner.startswith("|"):
        inner = inner[1:]
    if inner.endswith("|"):
        inner = inner[:-1]
    return [c.strip() for c in inner.split("|")]


def _alignment(separator: str) -> Optional[str]:
    sep = separator.strip()
    if sep.startswith(":") and sep.endswith(":") and len(sep) > 1:
        return "center"
    if sep.endswith(":"):
        return "right"
    if sep.startswith(":"):
        return "left"
    return None


def _pipe_table(lines: list[str], start: int) -> Optional[Table]:
    """Pipe table, or None when row 1 is not a separator row."""
    if len(lines) < 2:
        return None
    separators = _pipe_cells(lines[1])
    if not separators or not all(_SEPARATOR_RE.match(s) for s in separators):
        return None
    rows = [tuple(_cell(c) for c in _pipe_cells(line)) for line in [lines[0], *lines[2:]]]
    return Table(
        line=start,
        rows=tuple(rows),
        header=True,
        alignments=tuple(_alignment(s) for s in separators),
        grammar="pipe",
    )


def _split_args(payload: str) -> tuple[str, ...]:
    return tuple(split_inline_params(payload))


def _card_grid(payload: str, source: str, start: int) -> Block:
    try:
        items = parse_card_grid(payload)
    except CardGridError as exc:
        log.debug("card grid at line %d rejected: %s", start + 1, exc)
        return ErrorBlock(line=start, message=f"카드그리드 오류: {exc}", source=source)
    return TemplateBlock(line=start, kind=TemplateKind.CARD_GRID, name="카드그리드", items=tuple(items))


# -----------------------------------------------------------------------------
# Segmenter
# -----------------------------------------------------------------------------

def segment(text: str, context: Optional[RenderContext] = None) -> list[Block]:
    """Split *text* into blocks.

    Heading anchors are claimed from *context*'s anchor registry so they stay
    unique within one render; a fresh context is used when none is given.
    """
    context = context or RenderContext()
    lines = split_lines(text)
    blocks: list[Block] = []
    para: list[str] = []
    para_start = 0
    list_stack: list[tuple[int, int]] = []   # (indent depth, list level)

    def flush() -> None:
        nonlocal para
        if para:
            blocks.append(Paragraph(line=para_start, lines=tuple(para)))
            para = []

    def emit(block: Block) -> None:
        flush()
        blocks.append(block)

    def add_para(idx: int, line: str) -> None:
        nonlocal para_start
        if not para:
            para_start = idx
        para.append(line)

    n = len(lines)
    i = 0
    while i < n:
        line = lines[i]
        stripped = line.strip()

        if not _LIST_RE.match(line):
            list_stack.clear()

        # ── blank ─────────────────────────────────────────────────────────
        if not stripped:
            flush()
            i += 1
            continue

        # ── code fence ────────────────────────────────────────────────────
        m = FENCE_OPEN_RE.match(line)
        if m:
            j = i + 1
            while j < n and not FENCE_CLOSE_RE.match(lines[j]):
                j += 1
            emit(CodeFence(line=i, language=m.group(1) or None, code="\n".join(lines[i + 1:j])))
            i = j + 1
            continue

        # ── card grid ─────────────────────────────────────────────────────
        m = _CARD_GRID_RE.match(line)
        if m:
            j = i
            while j < n and not lines[j].rstrip().endswith("]]"):
                if j > i and not lines[j].strip():
                    break
                j += 1
            if j < n and lines[j].rstrip().endswith("]]"):
                source = "\n".join(lines[i:j + 1])
                body = "\n".join([m.group(1), *lines[i + 1:j + 1]]).rstrip()[:-2]
                emit(_card_grid(body, source, i))
                i = j + 1
            else:
                source = "\n".join(lines[i:j])
                emit(ErrorBlock(line=i, message="카드그리드 오류: 닫는 ]] 가 없습니다", source=source))
                i = j
            continue

        # ── simple infobox ────────────────────────────────────────────────
        m = _SIMPLE_INFO_RE.match(line)
        if m:
            emit(TemplateBlock(line=i, kind=TemplateKind.INFOBOX, name="인포박스",
                               params=tuple(parse_inline_params(m.group(1)))))
            i += 1
            continue

        # ── toc / role banner ─────────────────────────────────────────────
        if _TOC_RE.match(line):
            emit(Directive(line=i, kind=DirectiveKind.TOC))
            i += 1
            continue
        m = _ROLE_RE.match(line)
        if m:
            emit(Directive(line=i, kind=DirectiveKind.ROLE_BANNER, value=m.group(1)))
            i += 1
            continue

        # ── template block ────────────────────────────────────────────────
        m = _TEMPLATE_RE.match(line)
        if m:
            block, consumed = _template(lines, i, m)
            if block is not None:
                emit(block)
                i += consumed
                continue
            log.debug("unterminated template at line %d", i + 1)
            add_para(i, line)
            i += 1
            continue

        # ── single-line directives ────────────────────────────────────────
        m = _TAB_BAR_RE.match(line)
        if m:
            emit(Directive(line=i, kind=DirectiveKind.TAB_BAR, args=_split_args(m.group(1))))
            i += 1
            continue
        m = _IMAGE_RE.match(line)
        if m:
            emit(Directive(line=i, kind=DirectiveKind.IMAGE, value=m.group(1)))
            i += 1
            continue
        m = _FILE_RE.match(line)
        if m:
            caption = (m.group(2) or "").strip()
            emit(Directive(line=i, kind=DirectiveKind.FILE, value=m.group(1),
                           args=(caption,) if caption else ()))
            i += 1
            continue
        m = _CATEGORY_LINE_RE.match(line)
        if m:
            emit(Directive(line=i, kind=DirectiveKind.CATEGORY_TAG, args=_split_args(m.group(1))))
            i += 1
            continue
        if _CATEGORY_ONLY_RE.match(line):
            emit(Directive(line=i, kind=DirectiveKind.CATEGORY_TAG,
                           args=tuple(_CATEGORY_TAG_RE.findall(line))))
            i += 1
            continue

        # ── heading ───────────────────────────────────────────────────────
        heading = _heading(line)
        if heading:
            level, title = heading
            anchor = context.anchors.claim(plain_text(parse_inline(title)))
            emit(Heading(line=i, level=level, title=title, anchor=anchor))
            i += 1
            continue

        # ── horizontal rule ───────────────────────────────────────────────
        if _HR_RE.match(line):
            emit(HorizontalRule(line=i))
            i += 1
            continue

        # ── footnote definition ───────────────────────────────────────────
        if is_footnote_definition(line):
            i += 1
            continue

        # ── quote ─────────────────────────────────────────────────────────
        if _QUOTE_RE.match(line):
            j = i
            quoted: list[str] = []
            while j < n and lines[j].strip() and _QUOTE_RE.match(lines[j]):
                quoted.append(_QUOTE_RE.match(lines[j]).group(1))
                j += 1
            emit(Quote(line=i, content="\n".join(quoted)))
            i = j
            continue

        # ── list item ─────────────────────────────────────────────────────
        m = _LIST_RE.match(line)
        if m:
            depth = len(m.group(1).expandtabs(4)) // 2
            while list_stack and list_stack[-1][0] > depth:
                list_stack.pop()
            if not list_stack:
                level = 0
                list_stack.append((depth, level))
            elif depth > list_stack[-1][0]:
                level = list_stack[-1][1] + 1
                list_stack.append((depth, level))
            else:
                level = list_stack[-1][1]
            emit(ListItem(line=i, level=level, ordered=m.group(2) not in ("*", "-"),
                          content=m.group(3).strip()))
            i += 1
            continue

        # ── tables ────────────────────────────────────────────────────────
        if _NAMU_ROW_RE.match(line):
            j = i
            while j < n and _NAMU_ROW_RE.match(lines[j]):
                j += 1
            emit(_namu_table(lines[i:j], i))
            i = j
            continue
        if _PIPE_ROW_RE.match(line):
            j = i
            while j < n and _PIPE_ROW_RE.match(lines[j]) and not _NAMU_ROW_RE.match(lines[j]):
                j += 1
            table = _pipe_table(lines[i:j], i)
            if table is not None:
                emit(table)
            else:
                for k in range(i, j):
                    add_para(k, lines[k])
            i = j
            continue

        # ── paragraph ─────────────────────────────────────────────────────
        add_para(i, line)
        i += 1

    flush()
    return blocks


def _template(lines: list[str], start: int, m: re.Match) -> tuple[Optional[Block], int]:
    """Parse a ``{{name ...`` block opened at *start*.

    Returns ``(block, lines_consumed)``, or ``(None, 0)`` when the block is
    never closed.
    """
    name = m.group(1)
    attrs = parse_color_attributes(m.group(2) or "")
    override = None if attrs.colors.is_empty else attrs.colors
    rest = m.group(3).rstrip()
    kind = template_kind(name)

    if rest.endswith("}}"):
        payload = rest[:-2].strip()
        source = lines[start]
        if kind == TemplateKind.CARD_GRID:
            return _card_grid(payload.lstrip("|").strip(), source, start), 1
        params = parse_inline_params(payload.lstrip("|"))
        return TemplateBlock(line=start, kind=kind, name=name, params=tuple(params),
                             color_override=override), 1

    j = start + 1
    while j < len(lines) and lines[j].strip() != "}}":
        j += 1
    if j >= len(lines):
        return None, 0

    body = lines[start + 1:j]
    if rest.strip():
        body = [rest, *body]
    if kind == TemplateKind.CARD_GRID:
        return _card_grid("\n".join(body), "\n".join(lines[start:j + 1]), start), j - start + 1
    params = parse_params("\n".join(body))
    return TemplateBlock(line=start, kind=kind, name=name, params=tuple(params),
                         color_override=override), j - start + 1


def extract_categories(text: str) -> list[str]:
    """Category names from ``분류: A | B`` lines and ``[[분류:A]]`` tags,
    deduplicated, in source order.  Code fences are skipped."""
    found: list[str] = []
    for line in unfenced_lines(text):
        m = _CATEGORY_LINE_RE.match(line)
        names = split_inline_params(m.group(1)) if m else _CATEGORY_TAG_RE.findall(line)
        for name in names:
            name = name.strip()
            if name and name not in found:
                found.append(name)
    return found


# -----------------------------------------------------------------------------
