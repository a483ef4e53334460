"""Jinja2 theme: bundled templates, user overrides, and date/slug filters"""

from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, StrictUndefined, select_autoescape
from markupsafe import Markup

from mdsite.config import Settings
from mdsite.core.utils.slug import slugify


BUNDLED_TEMPLATES = Path(__file__).resolve().parent.parent / "templates"


def format_date(value: datetime, format_str: str = "%B %d, %Y") -> str:
    """Format a datetime for display; non-datetimes pass through as strings."""
    if not isinstance(value, datetime):
        return str(value)
    return value.strftime(format_str)


def isoformat(value: datetime) -> str:
    if not isinstance(value, datetime):
        return str(value)
    return value.isoformat()


class Theme:
    """Renders posts, listings, and the feed from named templates.

    Templates found in settings.template_dir take precedence over the bundled
    ones, so a site can override a single template without copying the rest.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        loaders = [FileSystemLoader(BUNDLED_TEMPLATES)]
        if settings.template_dir:
            loaders.insert(0, FileSystemLoader(settings.template_dir))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["format_date"] = format_date
        self.env.filters["isoformat"] = isoformat
        self.env.filters["slugify"] = slugify
        self.env.globals["site"] = settings

    def render_template(self, name: str, **context: Any) -> str:
        return self.env.get_template(name).render(**context)

    def render_post(self, document, html: str, summary: str) -> str:
        return self.render_template(
            "post.html",
            post=document,
            content=Markup(html),
            summary=summary,
            author=document.metadata.author or self.settings.author,
        )

    def render_index(self, entries: list[dict]) -> str:
        return self.render_template("index.html", entries=entries)

    def render_tag(self, tag: str, label: str, entries: list[dict]) -> str:
        return self.render_template("tag.html", tag=tag, label=label, entries=entries)

    def render_feed(self, entries: list[dict], updated: datetime | None) -> str:
        return self.render_template("feed.xml", entries=entries, updated=updated)
