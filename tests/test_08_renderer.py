#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for the output tree: block rendering, templates, directives, host
hooks and per-block failure isolation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from namumark.core.config import get_settings
from namumark.services import renderer
from namumark.services.document import Block, Document, InlineNode
from namumark.services.renderer import (
    Element, RawHtml, RenderHooks, render, render_html, render_markup, to_html,
)
from tests.conftest import find_elements


# ── Serialisation ─────────────────────────────────────────────────────────────

def test_text_is_escaped():
    assert to_html(Element("p", children=["<script>"])) == "<p>&lt;script&gt;</p>"


def test_attributes_are_escaped():
    assert to_html(Element("img", {"src": 'a"b'})) == '<img src="a&quot;b">'


def test_raw_html_passes_through():
    assert to_html(Element("div", children=[RawHtml("<b>x</b>")])) == "<div><b>x</b></div>"


def test_root_wrapper():
    assert render_html("안녕") == '<div class="wiki-content"><p>안녕</p></div>'


# ── Simple blocks ─────────────────────────────────────────────────────────────

def test_paragraph_lines_joined_with_br():
    assert "<p>줄1<br>줄2</p>" in render_html("줄1\n줄2")


def test_quote():
    assert '<blockquote class="wiki-quote">a<br>b</blockquote>' in render_html("> a\n> b")


def test_horizontal_rule():
    assert "<hr>" in render_html("위\n----\n아래")


def test_nested_lists():
    html = render_html("* a\n  * b\n* c")
    assert html == (
        '<div class="wiki-content">'
        '<ul class="wiki-list"><li>a<ul class="wiki-list"><li>b</li></ul></li><li>c</li></ul>'
        "</div>"
    )


def test_list_type_switch_starts_sibling_list():
    html = render_html("1. a\n* b")
    assert '<ol class="wiki-list"><li>a</li></ol><ul class="wiki-list"><li>b</li></ul>' in html


# ── Inline ────────────────────────────────────────────────────────────────────

def test_internal_link_href():
    html = render_html("[[대문 페이지]]")
    assert f'href="/wiki/{quote("대문 페이지")}"' in html
    assert 'class="wikilink"' in html
    assert 'data-target="대문 페이지"' in html


def test_internal_link_with_section():
    html = render_html("[[역사#초기|초기 역사]]")
    assert f'href="/wiki/{quote("역사")}#초기"' in html
    assert ">초기 역사</a>" in html


def test_in_page_link():
    assert 'href="#개요"' in render_html("[[#개요]]")


def test_external_link_attributes():
    html = render_html("[https://example.com 예시]")
    assert ('<a href="https://example.com" class="external" target="_blank" '
            'rel="noopener noreferrer">예시</a>') in html


def test_auto_url():
    html = render_html("보기: https://example.com/a")
    assert '<a href="https://example.com/a" class="external"' in html


def test_icon():
    html = render_html("!icon:{star, size:20, color:red}")
    assert ('<img src="/images/icons/star.svg" alt="star" class="wiki-icon icon-star" '
            'width="20" height="20" style="color: red">') in html


def test_colored_span():
    html = render_html("{{{#ff0000 빨강}}}")
    assert '<span class="wiki-color" style="color: #ff0000">빨강</span>' in html


def test_sized_span():
    html = render_html("{{{+2 크게}}}")
    assert '<span class="wiki-size-up-2" style="font-size: 1.4em">크게</span>' in html


# ── Hooks ─────────────────────────────────────────────────────────────────────

def test_link_click_hook():
    clicked = []
    result = render_markup("[[대문]]", RenderHooks(on_link_click=clicked.append))
    [link] = list(find_elements(result.tree, "a"))
    link.handlers["click"]()
    assert clicked == ["대문"]


def test_no_click_handler_without_hook():
    result = render_markup("[[대문]]")
    [link] = list(find_elements(result.tree, "a"))
    assert link.handlers == {}


def test_failing_click_hook_is_contained():
    def hook(target):
        raise RuntimeError(target)

    result = render_markup("[[대문]]", RenderHooks(on_link_click=hook))
    [link] = list(find_elements(result.tree, "a"))
    link.handlers["click"]()


def test_image_hook():
    html = render_html("[이미지:cat.png]", RenderHooks(resolve_image=lambda url: f"/media/{url}"))
    assert '<figure class="wiki-image"><img src="/media/cat.png" alt="cat.png"></figure>' in html


def test_failing_image_hook_keeps_url():
    def hook(url):
        raise OSError(url)

    html = render_html("[이미지:cat.png]", RenderHooks(resolve_image=hook))
    assert '<img src="cat.png" alt="cat.png">' in html


def test_file_directive_caption():
    html = render_html("[[파일:docs/a.png|설명]]")
    assert '<figure class="wiki-file">' in html
    assert "<figcaption>설명</figcaption>" in html


# ── Templates ─────────────────────────────────────────────────────────────────

PERSON = """{{인물정보상자<bgcolor:blue-header>
이름 = 홍길동
직업 = 의적
}}"""


def test_person_infobox():
    html = render_html(PERSON)
    assert 'class="wiki-infobox infobox-person-infobox"' in html
    assert 'data-template="인물정보상자"' in html
    assert 'style="background-color: #4472C4; color: #FFFFFF"' in html
    assert "<th>직업</th><td>의적</td>" in html
    assert "<th>이름</th>" not in html
    assert '<div class="infobox-name">홍길동</div>' in html


def test_simple_infobox():
    html = render_html("[[인포박스: 이름=서울 | 인구=940만]]")
    assert '<div class="infobox-name">서울</div>' in html
    assert "<th>인구</th><td>940만</td>" in html


def test_notice():
    html = render_html("{{주의|조심하세요}}")
    assert 'class="wiki-notice notice-warning"' in html
    assert '<div class="notice-title">주의</div>' in html
    assert '<div class="notice-body">조심하세요</div>' in html


def test_card_grid():
    html = render_html('[[카드그리드: items=[{"title": "A", "link": "/a", "date": "2024"}]]]')
    assert '<div class="wiki-card-grid">' in html
    assert '<a href="/a" class="card-link"><div class="card-title">A</div></a>' in html
    assert '<div class="card-date">2024</div>' in html


def test_malformed_card_grid_does_not_stop_document():
    html = render_html("[[카드그리드: items=[{bad}]]]\n== 다음 ==\n본문")
    assert 'class="wiki-error"' in html
    assert "카드그리드 오류" in html
    assert '<h2 id="다음" class="wiki-heading">다음</h2>' in html
    assert "<p>본문</p>" in html


# ── Directives ────────────────────────────────────────────────────────────────

def test_role_banner():
    html = render_html("{{role:admin}}")
    assert '<div class="wiki-role-banner role-admin" data-role="admin">admin</div>' in html


def test_tab_bar():
    html = render_html("[[탭: 개요 | 역사]]")
    assert ('<button type="button" role="tab" class="wiki-tab active" data-tab="개요">개요</button>'
            in html)
    assert 'class="wiki-tab" data-tab="역사"' in html


def test_category_footer():
    result = render_markup("본문\n분류: 인물 | 역사")
    assert result.categories == ["인물", "역사"]
    assert f'<a href="/wiki/category/{quote("인물")}" class="category-link">인물</a>' in result.html


def test_inline_category_link_is_hidden():
    result = render_markup("글 [[분류:숨김]] 끝")
    assert "<p>글  끝</p>" in result.html
    assert result.categories == ["숨김"]


# ── Failure isolation ─────────────────────────────────────────────────────────

def test_block_failure_is_contained(monkeypatch):
    def boom(self, table):
        raise RuntimeError("table renderer broke")

    monkeypatch.setattr(renderer._Renderer, "_table", boom)
    html = render_html("앞\n\n|| a ||\n\n뒤")
    assert "<p>앞</p>" in html
    assert 'class="wiki-error"' in html
    assert "<p>뒤</p>" in html


@dataclass(frozen=True)
class Mystery(Block):
    pass


def test_unknown_block_kind():
    html = render(Document(blocks=(Mystery(line=0),))).html
    assert '<pre class="wiki-unknown">Mystery(line=0)</pre>' in html


@dataclass(frozen=True)
class Sparkle(InlineNode):
    label: str = "<b>"


def test_unknown_inline_kind_renders_as_escaped_text():
    walker = renderer._Renderer(Document(blocks=()), RenderHooks(), get_settings())
    node = walker._node(Sparkle(0, 1))
    assert node == "Sparkle(start=0, end=1, label='<b>')"
    assert to_html(node) == "Sparkle(start=0, end=1, label='&lt;b&gt;')"


# -----------------------------------------------------------------------------
