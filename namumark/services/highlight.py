#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Syntax highlighting
===================
Default highlighter for code fences, backed by Pygments.

Lexer lookup order: the fence's language tag, then Pygments' content-based
guess, then plain escaped ``<pre><code>``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import logging
from typing import Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from namumark.core.config import get_settings

log = logging.getLogger(__name__)


def plain_code(code: str, language: Optional[str] = None) -> str:
    """Escaped ``<pre><code>`` without highlighting."""
    cls = f' class="language-{_html.escape(language, quote=True)}"' if language else ""
    return f"<pre><code{cls}>{_html.escape(code)}</code></pre>"


def highlight_code(code: str, language: Optional[str] = None) -> str:
    """Highlight *code* using Pygments.  Falls back to plain <pre><code> when
    no lexer fits."""
    lang = (language or "").strip()
    lexer = None
    if lang:
        try:
            lexer = get_lexer_by_name(lang, stripall=True)
        except ClassNotFound:
            log.debug("no lexer named %r, guessing", lang)
    if lexer is None:
        try:
            lexer = guess_lexer(code)
        except ClassNotFound:
            return plain_code(code, lang or None)
    formatter = HtmlFormatter(nowrap=False, cssclass=get_settings().highlight_css_class)
    return highlight(code, lexer, formatter)


def stylesheet(style: Optional[str] = None) -> str:
    """CSS rules for highlighted blocks in *style* (defaults to the configured one)."""
    settings = get_settings()
    formatter = HtmlFormatter(style=style or settings.highlight_style)
    return formatter.get_style_defs(f".{settings.highlight_css_class}")


# -----------------------------------------------------------------------------
