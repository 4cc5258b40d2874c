#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for the inline engine: matcher priority, overlap resolution, nested
spans, links, icons and footnote reference resolution.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from namumark.services.document import (
    AutoUrl, Bold, ColoredText, ExternalLink, FootnoteRef, Icon, InlineCode,
    InternalLink, Italic, SizedText, Strikethrough, Subscript, Superscript,
    Text, Underline,
)
from namumark.services.inline import MATCHERS, parse_inline, plain_text


def types(nodes) -> list[type]:
    return [type(n) for n in nodes]


# ── Emphasis ──────────────────────────────────────────────────────────────────

def test_bold_and_italic_are_not_merged():
    nodes = parse_inline("'''bold''' and ''italic''")
    assert types(nodes) == [Bold, Text, Italic]
    assert nodes[0].children == (Text(3, 7, "bold"),)
    assert nodes[1].text == " and "
    assert plain_text(nodes[2].children) == "italic"


def test_bold_italic():
    [node] = parse_inline("'''''강조'''''")
    assert isinstance(node, Bold)
    [inner] = node.children
    assert isinstance(inner, Italic)
    assert plain_text(inner.children) == "강조"


def test_markdown_bold_and_italic():
    assert types(parse_inline("**굵게**")) == [Bold]
    assert types(parse_inline("*기울임*")) == [Italic]


def test_lone_asterisk_is_text():
    assert types(parse_inline("2 * 3 = 6")) == [Text]


def test_strikethrough_underline():
    assert types(parse_inline("~~취소~~ __밑줄__")) == [Strikethrough, Text, Underline]


def test_superscript_and_subscript():
    assert types(parse_inline("E=mc^^2^^")) == [Text, Superscript]
    assert types(parse_inline("H,,2,,O")) == [Text, Subscript, Text]


def test_nested_spans_keep_source_offsets():
    [bold] = parse_inline("'''굵게 [[링크]]'''")
    assert types(bold.children) == [Text, InternalLink]
    link = bold.children[1]
    assert (link.start, link.end) == (6, 12)


# ── Colored and sized spans ───────────────────────────────────────────────────

def test_colored_span_hex():
    [node] = parse_inline("{{{#ff0000 빨강}}}")
    assert isinstance(node, ColoredText)
    assert node.color == "#ff0000"
    assert plain_text(node.children) == "빨강"


def test_colored_span_name():
    [node] = parse_inline("{{{#Red 빨강}}}")
    assert node.color == "red"


def test_sized_span():
    up, _, down = parse_inline("{{{+2 크게}}} {{{-1 작게}}}")
    assert isinstance(up, SizedText) and up.size == 2
    assert isinstance(down, SizedText) and down.size == -1


def test_colored_span_contains_markup():
    [node] = parse_inline("{{{#blue '''굵게'''}}}")
    assert types(node.children) == [Bold]


# ── Code ──────────────────────────────────────────────────────────────────────

def test_backtick_code():
    [node] = parse_inline("`x`")
    assert node == InlineCode(0, 3, "x")


def test_triple_backtick_code_wins_over_single():
    [node] = parse_inline("```a `b` c```")
    assert isinstance(node, InlineCode)
    assert node.code == "a `b` c"


def test_markup_inside_code_is_literal():
    [node] = parse_inline("`'''not bold'''`")
    assert node.code == "'''not bold'''"


# ── Links ─────────────────────────────────────────────────────────────────────

def test_internal_link():
    [node] = parse_inline("[[대문]]")
    assert node == InternalLink(0, 6, target="대문", display="대문")


def test_internal_link_with_display():
    [node] = parse_inline("[[대문|홈]]")
    assert node.target == "대문"
    assert node.display == "홈"


def test_wiki_link_to_url_is_external():
    [node] = parse_inline("[[https://example.com|예시]]")
    assert isinstance(node, ExternalLink)
    assert node.url == "https://example.com"
    assert node.display == "예시"


def test_markdown_link():
    [node] = parse_inline("[docs](https://example.com/docs)")
    assert node == ExternalLink(0, 32, url="https://example.com/docs", display="docs")


def test_bracketed_external_link():
    [node] = parse_inline("[https://example.com 예시]")
    assert isinstance(node, ExternalLink)
    assert node.display == "예시"


def test_bare_url_excludes_trailing_punctuation():
    nodes = parse_inline("see https://example.com/a.")
    assert types(nodes) == [Text, AutoUrl, Text]
    assert nodes[1].url == "https://example.com/a"
    assert nodes[2].text == "."


# ── Icons ─────────────────────────────────────────────────────────────────────

def test_icon_with_options():
    [node] = parse_inline("!icon:{star, size:20, color:gold, class:spin}")
    assert isinstance(node, Icon)
    assert (node.name, node.size, node.color, node.css_class) == ("star", 20, "gold", "spin")


def test_icon_default_size():
    [node] = parse_inline("!icon:{home}")
    assert node.size == 16
    assert node.color is None


# ── Footnote references ───────────────────────────────────────────────────────

def test_footnote_refs_resolved_in_reading_order():
    calls: list[str] = []

    def resolver(key: str) -> int:
        calls.append(key)
        return len(calls)

    nodes = parse_inline("a[*x] b[*] c'''[*x]'''", footnotes=resolver)
    assert calls == ["x", "", "x"]
    refs = [n for n in nodes if isinstance(n, FootnoteRef)]
    assert [r.number for r in refs] == [1, 2]
    assert nodes[-1].children[0].number == 3


def test_footnote_ref_without_resolver_has_no_number():
    [_, ref] = parse_inline("a[*1]")
    assert ref == FootnoteRef(1, 5, key="1", number=None)


def test_plain_text_drops_footnote_refs():
    assert plain_text(parse_inline("제목[*1]")) == "제목"


def test_plain_text_uses_link_display():
    assert plain_text(parse_inline("[[대문|홈]]으로")) == "홈으로"


# ── Matcher table ─────────────────────────────────────────────────────────────

def test_matcher_priority_order():
    names = [m.name for m in MATCHERS]
    assert names.index("markdown-link") < names.index("wiki-link")
    assert names.index("wiki-link") < names.index("footnote-ref")
    assert names.index("bold") < names.index("italic")
    assert names.index("underline") < names.index("colored")
    assert names.index("code") < names.index("icon") < names.index("auto-url")
    assert names[-1] == "auto-url"


def test_empty_text():
    assert parse_inline("") == []


# -----------------------------------------------------------------------------
