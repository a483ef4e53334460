"""Markdown-to-HTML conversion and themed page rendering"""

import logging
from collections.abc import Callable

from markdown_it import MarkdownIt

from mdsite.config import Settings
from mdsite.core.models import Document, Page
from mdsite.core.publish import summary_of
from mdsite.core.theme import Theme
from mdsite.crud.cache import RenderCache


logger = logging.getLogger(__name__)

MarkdownRenderer = Callable[[str], str]


def make_markdown(preset: str = "commonmark") -> MarkdownRenderer:
    """Build a markdown-to-HTML function for the given MarkdownIt preset name."""
    try:
        return MarkdownIt(preset, options_update={"linkify": False}).render
    except KeyError as e:
        raise ValueError(f"Unknown parser preset: {preset}") from e


def render_body(
    document: Document,
    preset: str,
    markdown: MarkdownRenderer,
    cache: RenderCache | None = None,
    ) -> tuple[str, bool]:
    """Return (html, cached) for the document body, consulting the cache when given."""
    if cache is not None:
        html = cache.get(document.path, document.hash, preset)
        if html is not None:
            logger.debug("Cache hit for %s", document.path)
            return html, True
    html = markdown(document.body)
    if cache is not None:
        cache.put(document.path, document.hash, preset, html)
    return html, False


def render(
    document: Document,
    settings: Settings,
    markdown: MarkdownRenderer | None = None,
    theme: Theme | None = None,
    cache: RenderCache | None = None,
    ) -> Page:
    """Render a document's body and wrap it in the theme's post template."""
    markdown = markdown or make_markdown(settings.parser_config)
    theme = theme or Theme(settings)
    html, cached = render_body(document, settings.parser_config, markdown, cache)
    summary = summary_of(document, settings.summary_words, html)
    content = theme.render_post(document, html, summary)
    return Page(document=document, html=html, content=content, summary=summary, cached=cached)
