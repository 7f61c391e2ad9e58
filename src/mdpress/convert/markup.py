"""Markdown to HTML rendering with Pygments highlighting."""

from __future__ import annotations

import logging
from html import escape
from typing import Optional

from markdown_it import MarkdownIt
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .errors import GrammarEngineError

logger = logging.getLogger(__name__)

DIAGRAM_LANGUAGE = "mermaid"

_FORMATTER = HtmlFormatter(nowrap=True)


def highlight_code(code: str, lang: str, _attrs: str = "") -> str:
    """Highlight a fenced block body; never raises.

    Returns an empty string when there is nothing to highlight, which makes
    markdown-it fall back to escaped text inside
    ``<pre><code class="language-...">``.
    """

    name = (lang or "").strip().lower()
    if not name or name == DIAGRAM_LANGUAGE:
        return ""
    try:
        lexer = get_lexer_by_name(name, stripnl=False)
    except ClassNotFound:
        return ""
    try:
        return highlight(code, lexer, _FORMATTER)
    except Exception as exc:
        logger.warning(
            "Highlighting failed, using plain text",
            extra={"language": name, "error": str(exc)},
        )
        return escape(code)


def highlight_css(style: str = "default") -> str:
    """Pygments rules for highlighted spans inside ``pre code``."""

    return HtmlFormatter(style=style).get_style_defs("pre code")


def build_markdown_it() -> MarkdownIt:
    """Return a parser with raw HTML, linkify and typographer enabled."""

    return MarkdownIt(
        "js-default",
        options_update={
            "html": True,
            "linkify": True,
            "typographer": True,
            "highlight": highlight_code,
        },
    )


def render_markup(text: str, md: Optional[MarkdownIt] = None) -> str:
    """Render Markdown ``text`` to an HTML fragment."""

    engine = md or build_markdown_it()
    try:
        return engine.render(text)
    except Exception as exc:
        raise GrammarEngineError(
            f"Failed to render Markdown: {exc}"
        ) from exc


__all__ = [
    "DIAGRAM_LANGUAGE",
    "build_markdown_it",
    "highlight_code",
    "highlight_css",
    "render_markup",
]
