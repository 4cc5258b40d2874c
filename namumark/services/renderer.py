#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup renderer
===============
Turns a compiled ``Document`` into a generic output tree of ``Element``
nodes, plus the table of contents, footnote list and categories.

Pipeline::

    compile_markup(text)  -> Document      (extraction pass + segmenter)
    render(document)      -> RenderResult  (tree walk + footnote numbering)
    to_html(tree)         -> str

The renderer holds no parsing logic beyond asking the inline engine for the
spans of each block.  Host callbacks (link clicks, image fallback, code
highlighting) come in through ``RenderHooks``; a raising hook is caught and
degraded for that one node only.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union
from urllib.parse import quote

from namumark.core.config import Settings, get_settings
from .document import (
    AutoUrl, Block, Bold, CardItem, Cell, CodeFence, ColoredText, Directive,
    DirectiveKind, Document, ErrorBlock, ExternalLink, Footnote, FootnoteRef,
    Heading, HorizontalRule, Icon, InlineCode, InlineNode, InternalLink,
    Italic, ListItem, Paragraph, Quote, SizedText, Strikethrough, Subscript,
    Superscript, Table, TemplateBlock, TemplateKind, Text, TocEntry,
    Underline,
)
from .footnotes import RenderContext, build_toc, extract_footnotes, slugify_anchor
from .highlight import highlight_code, plain_code
from .inline import parse_inline
from .segmenter import extract_categories, segment
from .templates import (
    NOTICE_STYLES, body_fields, contrast_color, param_map,
    parse_color_attributes, template_header,
)

log = logging.getLogger(__name__)


# Bump this whenever the output tree changes shape so cached HTML held by a
# host can be discarded and re-rendered.
RENDERER_VERSION = 1

_CATEGORY_PREFIXES = ("분류:", "카테고리:")


# -----------------------------------------------------------------------------
# Output tree
# -----------------------------------------------------------------------------

@dataclass
class RawHtml:
    """Pre-rendered markup (highlighter output) passed through unescaped."""
    html: str


@dataclass
class Element:
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list["Node"] = field(default_factory=list)
    # event name -> zero-argument callback; not part of structural equality
    handlers: dict[str, Callable[[], None]] = field(default_factory=dict, compare=False)


Node = Union[Element, RawHtml, str]

_VOID_TAGS = frozenset({"img", "br", "hr"})


def to_html(node: Node) -> str:
    """Serialise an output node.  Strings and attribute values are escaped."""
    if isinstance(node, str):
        return _html.escape(node, quote=False)
    if isinstance(node, RawHtml):
        return node.html
    attrs = "".join(
        f' {name}="{_html.escape(str(value), quote=True)}"'
        for name, value in node.attrs.items()
        if value is not None
    )
    if node.tag in _VOID_TAGS:
        return f"<{node.tag}{attrs}>"
    inner = "".join(to_html(child) for child in node.children)
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"


def _style(**props: Optional[str]) -> dict[str, str]:
    css = "; ".join(f"{k.replace('_', '-')}: {v}" for k, v in props.items() if v)
    return {"style": css} if css else {}


# -----------------------------------------------------------------------------
# Hooks and results
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderHooks:
    on_link_click: Optional[Callable[[str], None]] = None
    resolve_image: Optional[Callable[[str], str]] = None
    highlight: Optional[Callable[[str, Optional[str]], str]] = None


@dataclass
class RenderResult:
    tree: Element
    toc: list[TocEntry]
    footnotes: list[Footnote]
    categories: list[str]

    @property
    def html(self) -> str:
        return to_html(self.tree)


# -----------------------------------------------------------------------------
# Tree walk
# -----------------------------------------------------------------------------

class _Renderer:

    def __init__(self, document: Document, hooks: RenderHooks, settings: Settings) -> None:
        self.document = document
        self.hooks = hooks
        self.settings = settings
        self.context = RenderContext(document.footnotes)
        self._seen_refs: set[int] = set()

    # ── entry point ──────────────────────────────────────────────────────────

    def run(self) -> RenderResult:
        body: list[Node] = []
        blocks = list(self.document.blocks)
        i = 0
        while i < len(blocks):
            if isinstance(blocks[i], ListItem):
                j = i
                while j < len(blocks) and isinstance(blocks[j], ListItem):
                    j += 1
                body.extend(self._guarded(self._lists, blocks[i:j], blocks[i].line))
                i = j
                continue
            body.extend(self._guarded(self._block, blocks[i], blocks[i].line))
            i += 1

        footnotes = self.context.footnotes()
        if footnotes:
            body.append(self._footnote_section(footnotes))

        categories = self._categories()
        if categories:
            body.append(self._category_footer(categories))

        tree = Element("div", {"class": "wiki-content"}, body)
        return RenderResult(tree=tree, toc=list(self.document.toc),
                            footnotes=footnotes, categories=categories)

    def _guarded(self, fn, arg, line: int) -> list[Node]:
        try:
            return fn(arg)
        except Exception:
            log.warning("render failed for block at line %d", line + 1, exc_info=True)
            return [Element("div", {"class": "wiki-error"},
                            [f"line {line + 1}: this block could not be rendered"])]

    # ── blocks ───────────────────────────────────────────────────────────────

    def _block(self, block: Block) -> list[Node]:
        if isinstance(block, Heading):
            return [Element(f"h{min(max(block.level, 1), 6)}",
                            {"id": block.anchor, "class": "wiki-heading"},
                            self._inline(block.title))]
        if isinstance(block, Paragraph):
            return [Element("p", children=self._lines(block.lines))]
        if isinstance(block, Quote):
            return [Element("blockquote", {"class": "wiki-quote"},
                            self._lines(block.content.split("\n")))]
        if isinstance(block, CodeFence):
            return [Element("div", {"class": "wiki-code"}, [RawHtml(self._highlight(block))])]
        if isinstance(block, Table):
            return [self._table(block)]
        if isinstance(block, TemplateBlock):
            return [self._template(block)]
        if isinstance(block, Directive):
            return self._directive(block)
        if isinstance(block, HorizontalRule):
            return [Element("hr")]
        if isinstance(block, ErrorBlock):
            return [Element("div", {"class": "wiki-error", "role": "alert"}, [
                Element("strong", children=[block.message]),
                Element("pre", children=[block.source]),
            ])]
        if isinstance(block, ListItem):
            return self._lists([block])
        return [Element("pre", {"class": "wiki-unknown"}, [repr(block)])]

    def _lines(self, lines) -> list[Node]:
        out: list[Node] = []
        for idx, line in enumerate(lines):
            if idx:
                out.append(Element("br"))
            out.extend(self._inline(line))
        return out

    def _lists(self, items: list[ListItem]) -> list[Node]:
        """Nest consecutive list items into ``<ul>``/``<ol>`` by level."""
        roots: list[Node] = []
        stack: list[tuple[int, Element]] = []   # (level, open list element)

        def _open(tag: str) -> Element:
            lst = Element(tag, {"class": "wiki-list"})
            if stack and stack[-1][1].children:
                parent_li = stack[-1][1].children[-1]
                parent_li.children.append(lst)
            elif stack:
                stack[-1][1].children.append(lst)
            else:
                roots.append(lst)
            return lst

        for item in items:
            tag = "ol" if item.ordered else "ul"
            while stack and stack[-1][0] > item.level:
                stack.pop()
            if not stack or stack[-1][0] < item.level:
                stack.append((item.level, _open(tag)))
            elif stack[-1][1].tag != tag:
                level = stack.pop()[0]
                stack.append((level, _open(tag)))
            li = Element("li", children=self._inline(item.content))
            stack[-1][1].children.append(li)
        return roots

    def _highlight(self, block: CodeFence) -> str:
        if self.hooks.highlight is not None:
            try:
                return self.hooks.highlight(block.code, block.language)
            except Exception:
                log.warning("highlight hook failed (language=%r); showing plain code",
                            block.language, exc_info=True)
                return plain_code(block.code, block.language)
        try:
            return highlight_code(block.code, block.language)
        except Exception:
            log.warning("pygments failed (language=%r)", block.language, exc_info=True)
            return plain_code(block.code, block.language)

    # ── tables ───────────────────────────────────────────────────────────────

    def _cell(self, tag: str, cell: Cell, align: Optional[str]) -> Element:
        c = cell.colors
        attrs = _style(background_color=c.background_color, color=c.text_color,
                       border_color=c.border_color, text_align=align)
        return Element(tag, attrs, self._lines(cell.content.split("\n")))

    def _table(self, table: Table) -> Element:
        s = table.style
        margin = {"center": "0 auto", "right": "0 0 0 auto"}.get(s.align or "")
        attrs = {"class": f"wiki-table wiki-table-{table.grammar}"}
        attrs.update(_style(background_color=s.background_color,
                            border_color=s.border_color, margin=margin))

        rows: list[Element] = []
        for r, row in enumerate(table.rows):
            colors = table.row_colors[r] if r < len(table.row_colors) else None
            tr_attrs = _style(background_color=colors.background_color,
                              color=colors.text_color) if colors else {}
            header = table.header and r == 0
            cells = [
                self._cell("th" if header else "td", cell,
                           table.alignments[k] if k < len(table.alignments) else None)
                for k, cell in enumerate(row)
            ]
            rows.append(Element("tr", tr_attrs, cells))

        children: list[Node] = []
        if table.header and rows:
            children.append(Element("thead", children=rows[:1]))
            rows = rows[1:]
        children.append(Element("tbody", children=rows))
        return Element("table", attrs, children)

    # ── templates ────────────────────────────────────────────────────────────

    def _template(self, block: TemplateBlock) -> Element:
        if block.kind == TemplateKind.NOTICE:
            return self._notice(block)
        if block.kind == TemplateKind.CARD_GRID:
            return self._card_grid(block.items)
        return self._infobox(block)

    def _value(self, raw: str, tag: str = "td") -> Element:
        parsed = parse_color_attributes(raw)
        c = parsed.colors
        attrs = _style(background_color=c.background_color, color=c.text_color,
                       border_color=c.border_color)
        return Element(tag, attrs, self._lines(parsed.content.split("\n")))

    def _infobox(self, block: TemplateBlock) -> Element:
        pairs = list(block.params)
        header = template_header(block.kind, pairs)
        override = block.color_override
        bg = override.background_color if override else None
        fg = (override.text_color if override else None) or (contrast_color(bg) if bg else None)
        border = override.border_color if override else None
        head_style = _style(background_color=bg, color=fg)

        children: list[Node] = []
        if header.top_logo or header.top_title or header.top_subtitle or header.top_description:
            top: list[Node] = []
            if header.top_logo:
                top.append(Element("img", {"class": "infobox-logo",
                                           "src": self._image_url(header.top_logo), "alt": ""}))
            for cls, text in (("infobox-top-title", header.top_title),
                              ("infobox-top-subtitle", header.top_subtitle),
                              ("infobox-top-description", header.top_description)):
                if text:
                    top.append(Element("div", {"class": cls}, self._lines(text.split("\n"))))
            children.append(Element("div", {"class": "infobox-top", **head_style}, top))

        if header.name:
            title: list[Node] = [Element("div", {"class": "infobox-name"}, self._inline(header.name))]
            if header.english_name:
                title.append(Element("div", {"class": "infobox-english-name"},
                                     self._inline(header.english_name)))
            children.append(Element("div", {"class": "infobox-title", **head_style}, title))

        if header.image:
            figure: list[Node] = [Element("img", {"src": self._image_url(header.image),
                                                  "alt": header.name or block.name})]
            if header.caption:
                figure.append(Element("figcaption", children=self._inline(header.caption)))
            children.append(Element("figure", {"class": "infobox-image"}, figure))

        rows = [
            Element("tr", children=[Element("th", children=self._inline(key)), self._value(value)])
            for key, value in body_fields(block.kind, pairs)
        ]
        if rows:
            children.append(Element("table", {"class": "infobox-fields"}, [Element("tbody", children=rows)]))

        attrs = {"class": f"wiki-infobox infobox-{block.kind.value}", "data-template": block.name}
        attrs.update(_style(border_color=border))
        return Element("div", attrs, children)

    def _notice(self, block: TemplateBlock) -> Element:
        style = NOTICE_STYLES.get(block.name, "info")
        lookup = param_map(block.params)
        text = lookup.get("내용") or "\n".join(v for k, v in block.params if k != "제목")
        title = lookup.get("제목") or block.name
        attrs = {"class": f"wiki-notice notice-{style}", "role": "note"}
        if block.color_override:
            c = block.color_override
            attrs.update(_style(background_color=c.background_color, color=c.text_color,
                                border_color=c.border_color))
        return Element("div", attrs, [
            Element("div", {"class": "notice-title"}, self._inline(title)),
            Element("div", {"class": "notice-body"}, self._lines(text.split("\n")) if text else []),
        ])

    def _card_grid(self, items) -> Element:
        cards: list[Node] = []
        for item in items:
            cards.append(self._card(item))
        return Element("div", {"class": "wiki-card-grid"}, cards)

    def _card(self, item: CardItem) -> Element:
        children: list[Node] = []
        if item.image:
            children.append(Element("img", {"class": "card-image",
                                            "src": self._image_url(item.image), "alt": item.title}))
        body: list[Node] = []
        if item.title:
            title = Element("div", {"class": "card-title"}, self._inline(item.title))
            if item.link:
                title = Element("a", {"href": item.link, "class": "card-link"}, [title],
                                handlers=self._click(item.link))
            body.append(title)
        if item.date:
            body.append(Element("div", {"class": "card-date"}, [item.date]))
        if item.description:
            body.append(Element("div", {"class": "card-description"},
                                self._lines(item.description.split("\n"))))
        children.append(Element("div", {"class": "card-body"}, body))
        return Element("div", {"class": "wiki-card"}, children)

    # ── directives ───────────────────────────────────────────────────────────

    def _directive(self, block: Directive) -> list[Node]:
        kind = block.kind
        if kind == DirectiveKind.TOC:
            return [self._toc()] if self.document.toc else []
        if kind == DirectiveKind.CATEGORY_TAG:
            return []   # collected into the category footer
        if kind == DirectiveKind.ROLE_BANNER:
            key = block.value or "member"
            return [Element("div", {"class": f"wiki-role-banner role-{slugify_anchor(key)}",
                                    "data-role": key}, [key])]
        if kind == DirectiveKind.TAB_BAR:
            tabs = [
                Element("button", {"type": "button", "role": "tab",
                                   "class": "wiki-tab active" if idx == 0 else "wiki-tab",
                                   "data-tab": slugify_anchor(label)},
                        self._inline(label))
                for idx, label in enumerate(block.args)
            ]
            return [Element("div", {"class": "wiki-tabs", "role": "tablist"}, tabs)]
        if kind in (DirectiveKind.IMAGE, DirectiveKind.FILE):
            caption = block.args[0] if block.args else ""
            figure: list[Node] = [Element("img", {"src": self._image_url(block.value),
                                                  "alt": caption or block.value})]
            if caption:
                figure.append(Element("figcaption", children=self._inline(caption)))
            return [Element("figure", {"class": f"wiki-{kind.value}"}, figure)]
        return [Element("p", {"class": "wiki-unknown"}, [block.value])]

    def _toc(self) -> Element:
        toc = self.document.toc
        base = min(entry.level for entry in toc)
        root = Element("ol", {"class": "toc-list"})
        stack: list[tuple[int, Element]] = [(0, root)]
        for entry in toc:
            rel = entry.level - base
            while stack[-1][0] < rel:
                parent = stack[-1][1]
                nested = Element("ol")
                (parent.children[-1].children if parent.children else parent.children).append(nested)
                stack.append((stack[-1][0] + 1, nested))
            while stack[-1][0] > rel:
                stack.pop()
            link = Element("a", {"href": f"#{entry.anchor}"}, [entry.title])
            stack[-1][1].children.append(Element("li", children=[link]))
        return Element("nav", {"class": "wiki-toc"}, [
            Element("div", {"class": "toc-title"}, [self.settings.toc_title]),
            root,
        ])

    # ── footer ───────────────────────────────────────────────────────────────

    def _footnote_section(self, footnotes: list[Footnote]) -> Element:
        entries = [
            Element("li", {"id": f"fn-{fn.number}"}, [
                Element("a", {"href": f"#fnref-{fn.number}", "class": "footnote-backref"},
                        [f"[{fn.number}]"]),
                " ",
                *self._inline(fn.text, numbering=False),
            ])
            for fn in footnotes
        ]
        return Element("div", {"class": "footnotes"}, [
            Element("div", {"class": "footnotes-title"}, [self.settings.footnote_title]),
            Element("ol", children=entries),
        ])

    def _categories(self) -> list[str]:
        names = extract_categories(self.document.source)
        for block in self.document.blocks:
            if isinstance(block, Directive) and block.kind == DirectiveKind.CATEGORY_TAG:
                names.extend(a for a in block.args if a and a not in names)
        return names

    def _category_footer(self, categories: list[str]) -> Element:
        base = self.settings.category_base_path.rstrip("/")
        links = [
            Element("li", children=[Element("a", {"href": f"{base}/{quote(name)}",
                                                  "class": "category-link"}, [name],
                                            handlers=self._click(f"분류:{name}"))])
            for name in categories
        ]
        return Element("div", {"class": "wiki-categories"}, [
            Element("span", {"class": "categories-title"}, ["분류"]),
            Element("ul", children=links),
        ])

    # ── inline ───────────────────────────────────────────────────────────────

    def _inline(self, text: str, numbering: bool = True) -> list[Node]:
        resolver = self.context.footnote_number if numbering else None
        out: list[Node] = []
        for node in parse_inline(text, resolver):
            rendered = self._node(node)
            if rendered is not None:
                out.append(rendered)
        return out

    def _children(self, node) -> list[Node]:
        return [r for r in (self._node(child) for child in node.children) if r is not None]

    def _node(self, node: InlineNode) -> Optional[Node]:
        if isinstance(node, Text):
            return node.text
        if isinstance(node, (Bold, Italic, Strikethrough, Underline, Superscript, Subscript)):
            return Element(_SPAN_TAGS[type(node)], children=self._children(node))
        if isinstance(node, ColoredText):
            return Element("span", {"class": "wiki-color", **_style(color=node.color)},
                           self._children(node))
        if isinstance(node, SizedText):
            step = "up" if node.size > 0 else "down"
            size = f"{max(0.5, 1 + node.size * 0.2):.1f}em"
            return Element("span", {"class": f"wiki-size-{step}-{abs(node.size)}",
                                    **_style(font_size=size)}, self._children(node))
        if isinstance(node, InlineCode):
            return Element("code", children=[node.code])
        if isinstance(node, FootnoteRef):
            return self._footnote_ref(node)
        if isinstance(node, InternalLink):
            return self._internal_link(node)
        if isinstance(node, (ExternalLink, AutoUrl)):
            url = node.url
            display = node.display if isinstance(node, ExternalLink) else node.url
            return Element("a", {"href": url, "class": "external", "target": "_blank",
                                 "rel": "noopener noreferrer"}, [display],
                           handlers=self._click(url))
        if isinstance(node, Icon):
            base = self.settings.icon_base_path.rstrip("/")
            cls = " ".join(filter(None, ("wiki-icon", f"icon-{node.name}", node.css_class)))
            return Element("img", {"src": f"{base}/{quote(node.name)}.svg", "alt": node.name,
                                   "class": cls, "width": str(node.size), "height": str(node.size),
                                   **_style(color=node.color)})
        text = getattr(node, "text", None)
        return text if isinstance(text, str) and text else repr(node)

    def _footnote_ref(self, node: FootnoteRef) -> Node:
        if node.number is None:
            return f"[*{node.key}]"
        number = node.number
        attrs = {"href": f"#fn-{number}"}
        if number not in self._seen_refs:
            self._seen_refs.add(number)
            attrs["id"] = f"fnref-{number}"
        title = self.context.known_text(number)
        if title:
            attrs["title"] = title
        return Element("sup", {"class": "footnote-ref"}, [Element("a", attrs, [f"[{number}]"])])

    def _internal_link(self, node: InternalLink) -> Optional[Node]:
        target = node.target
        if target.startswith(_CATEGORY_PREFIXES):
            return None
        if target.startswith("#"):
            href = f"#{slugify_anchor(target[1:])}"
        else:
            page, _, section = target.partition("#")
            href = f"{self.settings.wiki_base_path.rstrip('/')}/{quote(page.strip())}"
            if section:
                href += f"#{slugify_anchor(section)}"
        return Element("a", {"href": href, "class": "wikilink", "data-target": target},
                       [node.display], handlers=self._click(target))

    # ── hooks ────────────────────────────────────────────────────────────────

    def _click(self, target: str) -> dict[str, Callable[[], None]]:
        hook = self.hooks.on_link_click
        if hook is None:
            return {}

        def _fire() -> None:
            try:
                hook(target)
            except Exception:
                log.warning("link click hook failed for %r", target, exc_info=True)

        return {"click": _fire}

    def _image_url(self, url: str) -> str:
        if self.hooks.resolve_image is None:
            return url
        try:
            return self.hooks.resolve_image(url) or url
        except Exception:
            log.warning("image hook failed for %r; using original URL", url, exc_info=True)
            return url


_SPAN_TAGS = {
    Bold: "strong",
    Italic: "em",
    Strikethrough: "del",
    Underline: "u",
    Superscript: "sup",
    Subscript: "sub",
}


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------

def compile_markup(text: str) -> Document:
    """Run the extraction pass and the segmenter over *text*."""
    text = text or ""
    footnotes = extract_footnotes(text)
    context = RenderContext(footnotes)
    try:
        blocks = tuple(segment(text, context))
    except Exception:
        log.exception("segmenter failed; rendering source as plain paragraphs")
        blocks = tuple(Paragraph(line=0, lines=(line,)) for line in text.splitlines() if line.strip())
    return Document(blocks=blocks, toc=build_toc(blocks), footnotes=footnotes, source=text)


def render(document: Document, hooks: Optional[RenderHooks] = None) -> RenderResult:
    """Walk *document* into an output tree.

    Footnote numbers are assigned here, in reading order, and are scoped to
    this call; rendering the same document twice gives equal results.
    """
    return _Renderer(document, hooks or RenderHooks(), get_settings()).run()


def render_markup(text: str, hooks: Optional[RenderHooks] = None) -> RenderResult:
    return render(compile_markup(text), hooks)


def render_html(text: str, hooks: Optional[RenderHooks] = None) -> str:
    return render_markup(text, hooks).html


# -----------------------------------------------------------------------------
