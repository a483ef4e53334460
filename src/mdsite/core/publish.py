"""Published listing: draft filtering, ordering, tag grouping, and summaries"""

import html
import re
from collections.abc import Iterable

from markdown_it import MarkdownIt

from mdsite.core.models import Document
from mdsite.core.utils.slug import slugify
from mdsite.errors import ParseError


_WS_RE = re.compile(r'\s+')
_TAG_RE = re.compile(r'<[^>]+>')
_SUMMARY_MD = MarkdownIt('commonmark', options_update={"linkify": False})


def publish(documents: Iterable[Document], include_drafts: bool = False) -> list[Document]:
    """Drop drafts (unless include_drafts) and order newest first; equal dates fall back to path ascending."""
    published = [d for d in documents if include_drafts or not d.draft]
    # Two stable sorts: path ascending, then date descending.
    published.sort(key=lambda d: d.path)
    published.sort(key=lambda d: d.date, reverse=True)
    return published


def check_unique_slugs(documents: Iterable[Document]) -> tuple[list[Document], list[ParseError]]:
    """Keep the first document per slug (in the given order); report the rest on field 'slug'."""
    seen: dict[str, Document] = {}
    unique, errors = [], []
    for doc in documents:
        first = seen.get(doc.slug)
        if first is not None:
            errors.append(ParseError(doc.path, 'slug', f"'{doc.slug}' already used by {first.path}"))
            continue
        seen[doc.slug] = doc
        unique.append(doc)
    return unique, errors


def group_by_tag(documents: Iterable[Document]) -> dict[str, list[Document]]:
    """Map tag slug -> documents carrying that tag, keeping input order; keys sorted."""
    groups: dict[str, list[Document]] = {}
    for doc in documents:
        for tag in doc.metadata.tags:
            key = slugify(tag)
            if key:
                groups.setdefault(key, []).append(doc)
    return dict(sorted(groups.items()))


def tag_labels(documents: Iterable[Document]) -> dict[str, str]:
    """Map tag slug -> the first spelling seen for it."""
    labels: dict[str, str] = {}
    for doc in documents:
        for tag in doc.metadata.tags:
            labels.setdefault(slugify(tag), tag)
    return labels


def summary_of(document: Document, words: int = 50, body_html: str | None = None) -> str:
    """Frontmatter summary if present, else the first `words` words of the body as plain text.

    Pass the body HTML from the configured renderer as `body_html`; without it
    the body is rendered as plain CommonMark.
    """
    if document.metadata.summary:
        return document.metadata.summary.strip()
    if body_html is None:
        body_html = _SUMMARY_MD.render(document.body)
    text = html.unescape(_TAG_RE.sub(' ', body_html))
    tokens = _WS_RE.sub(' ', text).strip().split(' ')
    if tokens == ['']:
        return ''
    summary = ' '.join(tokens[:words])
    return summary + ' …' if len(tokens) > words else summary
