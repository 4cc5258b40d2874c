#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for template parameter parsing, color directives and card grid payloads.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from namumark.services.document import TemplateKind
from namumark.services.templates import (
    CardGridError, body_fields, contrast_color, is_color_dark, normalize_color,
    param_map, parse_card_grid, parse_color_attributes, parse_inline_params,
    parse_params, parse_table_attributes, split_inline_params, template_header,
    template_kind,
)


# ── Colors ────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw, expected", [
    ("E8F4FD", "#E8F4FD"),
    ("#abc", "#abc"),
    ("red", "red"),
    ("blue-header", "#4472C4"),
    ("BLUE-HEADER", "#4472C4"),
    ("rgb(1, 2, 3)", "rgb(1, 2, 3)"),
    ("#fff,#000", "#fff"),
    ("not a color!", ""),
    ("", ""),
])
def test_normalize_color(raw, expected):
    assert normalize_color(raw) == expected


def test_is_color_dark():
    assert is_color_dark("#000000")
    assert not is_color_dark("#FFFFFF")
    assert not is_color_dark("red")


def test_contrast_color():
    assert contrast_color("#4472C4") == "#FFFFFF"
    assert contrast_color("#F2F3F4") == "#000000"
    assert contrast_color("dark-blue") == "#FFFFFF"


def test_parse_color_attributes_strips_directives():
    parsed = parse_color_attributes("<bgcolor:#E8F4FD><color:red>텍스트")
    assert parsed.colors.background_color == "#E8F4FD"
    assert parsed.colors.text_color == "red"
    assert parsed.colors.border_color is None
    assert parsed.content == "텍스트"


def test_parse_color_attributes_last_wins():
    parsed = parse_color_attributes("<color:red>a<color=blue>")
    assert parsed.colors.text_color == "blue"
    assert parsed.content == "a"


def test_parse_color_attributes_invalid_color_is_still_stripped():
    parsed = parse_color_attributes("<bgcolor:???>값")
    assert parsed.colors.is_empty
    assert parsed.content == "값"


def test_parse_color_attributes_border_hex_without_hash():
    parsed = parse_color_attributes("<border:333>x")
    assert parsed.colors.border_color == "#333"


def test_parse_table_attributes():
    attrs = parse_table_attributes("<table align=center><table bgcolor=#eee>A<rowbgcolor=#ddd>")
    assert attrs.style.align == "center"
    assert attrs.style.background_color == "#eee"
    assert attrs.row.background_color == "#ddd"
    assert attrs.content == "A"


# ── Parameters ────────────────────────────────────────────────────────────────

def test_parse_params_continuation_lines():
    pairs = parse_params("이름 = 홍길동\n설명 = 첫 줄\n둘째 줄\n셋째 줄\n직업 = 의적")
    assert pairs == [
        ("이름", "홍길동"),
        ("설명", "첫 줄\n둘째 줄\n셋째 줄"),
        ("직업", "의적"),
    ]


def test_parse_params_leading_pipe():
    assert parse_params("| 이름 = A\n| 나이 = 3") == [("이름", "A"), ("나이", "3")]


def test_parse_params_positional_before_first_pair():
    assert parse_params("첫 줄\n이름 = A") == [("1", "첫 줄"), ("이름", "A")]


def test_parse_params_blank_lines_are_skipped():
    assert parse_params("설명 = a\n\nb") == [("설명", "a\nb")]


def test_parse_params_empty_value_then_continuation():
    assert parse_params("설명 =\n본문") == [("설명", "본문")]


def test_param_map_last_wins():
    assert param_map([("a", "1"), ("b", "2"), ("a", "3")]) == {"a": "3", "b": "2"}


def test_split_inline_params_respects_links():
    assert split_inline_params("a=[[링크|표시]] | b=2") == ["a=[[링크|표시]]", "b=2"]


def test_parse_inline_params():
    assert parse_inline_params("a=[[링크|표시]] | b=2") == [("a", "[[링크|표시]]"), ("b", "2")]


# ── Template kinds and header fields ──────────────────────────────────────────

def test_template_kind():
    assert template_kind("인물정보상자") == TemplateKind.PERSON_INFOBOX
    assert template_kind("그룹정보상자") == TemplateKind.GROUP_INFOBOX
    assert template_kind("주의") == TemplateKind.NOTICE
    assert template_kind("모르는틀") == TemplateKind.INFOBOX


PAIRS = [
    ("이름", "홍길동"),
    ("영문명", "Hong"),
    ("이미지", "a.png"),
    ("직업", "의적"),
    ("상단제목", "T"),
    ("빈칸", ""),
]


def test_person_header_fields():
    header = template_header(TemplateKind.PERSON_INFOBOX, PAIRS)
    assert header.name == "홍길동"
    assert header.english_name == "Hong"
    assert header.image == "a.png"
    assert header.top_title == "T"


def test_person_body_fields_exclude_reserved_and_empty():
    assert body_fields(TemplateKind.PERSON_INFOBOX, PAIRS) == [("직업", "의적")]


def test_generic_infobox_reserves_only_name_and_image():
    assert body_fields(TemplateKind.INFOBOX, PAIRS) == [
        ("영문명", "Hong"), ("직업", "의적"), ("상단제목", "T"),
    ]


def test_header_falls_back_to_alternate_names():
    header = template_header(TemplateKind.PERSON_INFOBOX, [("본명", "김철수")])
    assert header.name == "김철수"


# ── Card grid ─────────────────────────────────────────────────────────────────

def test_parse_card_grid():
    items = parse_card_grid('items=[{"title": "A", "image": "a.png", "description": "d"}]')
    assert len(items) == 1
    assert items[0].title == "A"
    assert items[0].image == "a.png"
    assert items[0].date == ""


def test_parse_card_grid_without_prefix():
    assert [i.title for i in parse_card_grid('[{"title": "A"}, {"title": "B"}]')] == ["A", "B"]


@pytest.mark.parametrize("payload", ["items=[{bad json", "{}", "[1]", "items="])
def test_parse_card_grid_rejects(payload):
    with pytest.raises(CardGridError):
        parse_card_grid(payload)


def test_card_grid_error_is_value_error():
    assert issubclass(CardGridError, ValueError)


def test_parse_card_grid_rejects_deep_nesting():
    with pytest.raises(CardGridError, match="nesting too deep"):
        parse_card_grid("items=" + "[" * 50000 + "]" * 50000)


# -----------------------------------------------------------------------------
