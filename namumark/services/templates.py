#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Template and table semantics
============================
Parameter extraction for ``{{...}}`` template blocks and per-cell color
directives for tables and template values.

  key = value            — starts a new parameter
  | key = value          — same, with the optional leading pipe
  continuation line      — appended to the current value (newline-joined)
  <bgcolor:#E8F4FD>      — cell/value background color
  <color:red>            — text color
  <border:#333>          — border color
  <table align=center>   — table-level attributes (first cell only)
  <rowbgcolor=#ddd>      — row background color
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .document import CardItem, ColorAttributes, TableStyle, TemplateKind

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Color normalisation
# -----------------------------------------------------------------------------

COLOR_PRESETS: dict[str, str] = {
    # Header colors
    "blue-header":   "#4472C4",
    "red-header":    "#C65856",
    "green-header":  "#70AD47",
    "orange-header": "#ED7D31",
    "purple-header": "#8E44AD",
    "gray-header":   "#7B8FA1",
    # Background colors
    "light-blue":    "#D4E6F1",
    "light-red":     "#F8D7DA",
    "light-green":   "#D4F7DC",
    "light-orange":  "#FFE5CC",
    "light-purple":  "#E8D5F4",
    "light-gray":    "#F2F3F4",
    # Dark theme alternatives
    "dark-blue":     "#2C3E50",
    "dark-red":      "#8B0000",
    "dark-green":    "#2D5016",
    "dark-orange":   "#B8610A",
    "dark-purple":   "#4A148C",
    "dark-gray":     "#424242",
}

_HEX_RE       = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")
_CSS_FUNC_RE  = re.compile(r"^(?:rgb|rgba|hsl|hsla)\([\d\s.,%]+\)$", re.IGNORECASE)
_CSS_NAME_RE  = re.compile(r"^[A-Za-z]+$")


def normalize_color(value: str) -> str:
    """Return a CSS color for *value*, or ``""`` when it is not a color.

    ``a,b`` light/dark pairs resolve to the light value.
    """
    value = (value or "").strip()
    if _CSS_FUNC_RE.match(value):
        return value
    value = value.split(",", 1)[0].strip()
    if not value:
        return ""
    preset = COLOR_PRESETS.get(value.lower())
    if preset:
        return preset
    m = _HEX_RE.match(value)
    if m:
        return f"#{m.group(1)}"
    if _CSS_NAME_RE.match(value):
        return value
    return ""


def _expand_hex(color: str) -> str:
    hex_ = color.lstrip("#")
    if len(hex_) == 3:
        hex_ = "".join(ch * 2 for ch in hex_)
    return hex_


def is_color_dark(color: str) -> bool:
    """Luminance test for hex colors; named and functional colors count as light."""
    normalized = normalize_color(color)
    if not normalized.startswith("#"):
        return False
    hex_ = _expand_hex(normalized)
    r, g, b = (int(hex_[i:i + 2], 16) for i in (0, 2, 4))
    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return luminance < 0.5


def contrast_color(background: str) -> str:
    return "#FFFFFF" if is_color_dark(background) else "#000000"


# -----------------------------------------------------------------------------
# Color directives
# -----------------------------------------------------------------------------

_COLOR_ATTR_RE = re.compile(r"<\s*(bgcolor|color|border)\s*[:=]\s*([^>]*)>", re.IGNORECASE)

_COLOR_FIELDS = {
    "bgcolor": "background_color",
    "color":   "text_color",
    "border":  "border_color",
}


@dataclass(frozen=True)
class ColorParse:
    colors: ColorAttributes
    content: str


def parse_color_attributes(value: str) -> ColorParse:
    """Strip color directives out of *value*.

    Directives may appear anywhere and in any combination; the last one of
    each kind wins.  A directive with an unusable color is still removed from
    the content.
    """
    found: dict[str, str] = {}
    for m in _COLOR_ATTR_RE.finditer(value):
        color = normalize_color(m.group(2).strip())
        if color:
            found[_COLOR_FIELDS[m.group(1).lower()]] = color
    content = _COLOR_ATTR_RE.sub("", value).strip()
    return ColorParse(colors=ColorAttributes(**found), content=content)


_TABLE_ATTR_RE = re.compile(
    r"<\s*table\s+(align|bgcolor|bordercolor)\s*[:=]\s*([^>]*)>", re.IGNORECASE
)
_ROW_ATTR_RE = re.compile(r"<\s*(rowbgcolor|rowcolor)\s*[:=]\s*([^>]*)>", re.IGNORECASE)


@dataclass(frozen=True)
class TableAttributes:
    style: TableStyle
    row: ColorAttributes
    content: str


def parse_table_attributes(cell: str, style: Optional[TableStyle] = None) -> TableAttributes:
    """Pull ``<table ...>`` and ``<rowbgcolor=...>`` tokens out of a cell.

    *style* carries table attributes collected from earlier rows.
    """
    style = style or TableStyle()
    align, bg, border = style.align, style.background_color, style.border_color
    for m in _TABLE_ATTR_RE.finditer(cell):
        name, raw = m.group(1).lower(), m.group(2).strip()
        if name == "align":
            if raw.lower() in ("left", "center", "right"):
                align = raw.lower()
        elif name == "bgcolor":
            bg = normalize_color(raw) or bg
        else:
            border = normalize_color(raw) or border
    row: dict[str, str] = {}
    for m in _ROW_ATTR_RE.finditer(cell):
        color = normalize_color(m.group(2).strip())
        if color:
            key = "background_color" if m.group(1).lower() == "rowbgcolor" else "text_color"
            row[key] = color
    content = _ROW_ATTR_RE.sub("", _TABLE_ATTR_RE.sub("", cell))
    return TableAttributes(
        style=TableStyle(align=align, background_color=bg, border_color=border),
        row=ColorAttributes(**row),
        content=content,
    )


# -----------------------------------------------------------------------------
# Template parameters
# -----------------------------------------------------------------------------

_PARAM_RE = re.compile(r"^\s*\|?\s*([^=|<>\[\]{}:/]+?)\s*=\s*(.*?)\s*$")


def parse_params(block_text: str) -> list[tuple[str, str]]:
    """Parse ``key = value`` lines into ordered pairs.

    A non-matching, non-blank line continues the current value.  Lines seen
    before the first pair become positional parameters ``1``, ``2``, ...
    """
    pairs: list[tuple[str, str]] = []
    positional = 0
    current: Optional[int] = None   # index of the pair continuation lines extend
    for line in block_text.splitlines():
        if not line.strip():
            continue
        m = _PARAM_RE.match(line)
        if m:
            pairs.append((m.group(1).strip(), m.group(2)))
            current = len(pairs) - 1
            continue
        text = line.strip().lstrip("|").strip()
        if current is not None:
            key, value = pairs[current]
            pairs[current] = (key, f"{value}\n{text}" if value else text)
        elif text:
            positional += 1
            pairs.append((str(positional), text))
    log.debug("template params: %r", pairs)
    return pairs


def split_inline_params(payload: str) -> list[str]:
    """Split a single-line ``a=1 | b=2`` payload on pipes outside ``[[...]]``."""
    segments: list[str] = []
    depth = 0
    buf: list[str] = []
    i = 0
    while i < len(payload):
        two = payload[i:i + 2]
        if two == "[[":
            depth += 1
            buf.append(two)
            i += 2
            continue
        if two == "]]" and depth:
            depth -= 1
            buf.append(two)
            i += 2
            continue
        ch = payload[i]
        if ch == "|" and depth == 0:
            segments.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    segments.append("".join(buf))
    return [s.strip() for s in segments if s.strip()]


def parse_inline_params(payload: str) -> list[tuple[str, str]]:
    """Single-line variant of :func:`parse_params` (``{{안내|text}}``)."""
    return parse_params("\n".join(split_inline_params(payload)))


def param_map(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Named-field lookup over ordered pairs; the last occurrence wins."""
    return {k: v for k, v in pairs}


# -----------------------------------------------------------------------------
# Template kinds and reserved header fields
# -----------------------------------------------------------------------------

TEMPLATE_NAMES: dict[str, TemplateKind] = {
    "인물정보상자": TemplateKind.PERSON_INFOBOX,
    "그룹정보상자": TemplateKind.GROUP_INFOBOX,
    "정보상자":     TemplateKind.INFOBOX,
    "인포박스":     TemplateKind.INFOBOX,
    "카드그리드":   TemplateKind.CARD_GRID,
    "안내":         TemplateKind.NOTICE,
    "주의":         TemplateKind.NOTICE,
    "공사중":       TemplateKind.NOTICE,
}

NOTICE_STYLES: dict[str, str] = {
    "안내":   "info",
    "주의":   "warning",
    "공사중": "construction",
}


def template_kind(name: str) -> TemplateKind:
    """Unknown template names are shown as generic infoboxes."""
    return TEMPLATE_NAMES.get(name.strip(), TemplateKind.INFOBOX)


# Header role -> accepted field names, first present wins.
HEADER_FIELDS: dict[str, tuple[str, ...]] = {
    "name":            ("이름", "본명", "제목"),
    "english_name":    ("영문명", "영문 이름", "영문이름"),
    "image":           ("이미지",),
    "caption":         ("이미지설명", "이미지 설명"),
    "top_logo":        ("상단로고",),
    "top_title":       ("상단제목",),
    "top_subtitle":    ("상단부제목",),
    "top_description": ("상단설명",),
}

_INFOBOX_HEADER_ROLES = ("name", "image")


@dataclass(frozen=True)
class TemplateHeader:
    name: str = ""
    english_name: str = ""
    image: str = ""
    caption: str = ""
    top_logo: str = ""
    top_title: str = ""
    top_subtitle: str = ""
    top_description: str = ""


def _header_roles(kind: TemplateKind) -> tuple[str, ...]:
    if kind in (TemplateKind.PERSON_INFOBOX, TemplateKind.GROUP_INFOBOX):
        return tuple(HEADER_FIELDS)
    if kind == TemplateKind.INFOBOX:
        return _INFOBOX_HEADER_ROLES
    return ()


def reserved_fields(kind: TemplateKind) -> frozenset[str]:
    return frozenset(name for role in _header_roles(kind) for name in HEADER_FIELDS[role])


def template_header(kind: TemplateKind, pairs: Iterable[tuple[str, str]]) -> TemplateHeader:
    lookup = param_map(pairs)
    values: dict[str, str] = {}
    for role in _header_roles(kind):
        for name in HEADER_FIELDS[role]:
            if lookup.get(name):
                values[role] = lookup[name]
                break
    return TemplateHeader(**values)


def body_fields(kind: TemplateKind, pairs: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Non-reserved fields in declaration order, empty values dropped."""
    reserved = reserved_fields(kind)
    return [(k, v) for k, v in pairs if k not in reserved and v.strip()]


# -----------------------------------------------------------------------------
# Card grid
# -----------------------------------------------------------------------------

class CardGridError(ValueError):
    """The card grid payload is not a JSON array of objects."""


_ITEMS_PREFIX_RE = re.compile(r"^\s*items\s*=\s*", re.IGNORECASE)


def parse_card_grid(payload: str) -> list[CardItem]:
    body = _ITEMS_PREFIX_RE.sub("", payload, count=1).strip()
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise CardGridError(f"invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})") from exc
    except RecursionError as exc:
        raise CardGridError("invalid JSON: nesting too deep") from exc
    if not isinstance(data, list):
        raise CardGridError("items must be a JSON array")
    items: list[CardItem] = []
    for idx, entry in enumerate(data, 1):
        if not isinstance(entry, dict):
            raise CardGridError(f"item {idx} is not an object")
        items.append(CardItem(
            title=str(entry.get("title") or ""),
            image=str(entry.get("image") or ""),
            description=str(entry.get("description") or ""),
            date=str(entry.get("date") or ""),
            link=str(entry.get("link") or ""),
        ))
    return items


# -----------------------------------------------------------------------------
