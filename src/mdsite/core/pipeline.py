"""Publish pass orchestration: load, publish, render, and write the site"""

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from mdsite.config import Settings
from mdsite.core.models import Document, LoadResult
from mdsite.core.parse import load
from mdsite.core.publish import check_unique_slugs, group_by_tag, publish, tag_labels
from mdsite.core.render import make_markdown, render
from mdsite.core.theme import Theme
from mdsite.crud.cache import RenderCache
from mdsite.errors import AggregateError, MdsiteError


logger = logging.getLogger(__name__)

MANIFEST = ".mdsite-manifest.json"


@dataclass
class BuildReport:
    """What one publish pass wrote, and which documents failed along the way."""
    output_dir: Path
    pages:      list[tuple[str, Path]] = field(default_factory=list)    # (document path, output file)
    listings:   list[Path] = field(default_factory=list)               # index, tag pages, feed
    removed:    list[Path] = field(default_factory=list)               # stale outputs from the previous pass
    drafts:     int = 0
    cache_hits: int = 0
    errors:     list[MdsiteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def written(self) -> list[Path]:
        return [p for _, p in self.pages] + self.listings

    def raise_for_errors(self) -> None:
        """Raise AggregateError if any document failed during the pass."""
        if self.errors:
            raise AggregateError(self.errors)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    return path


def _entries(docs: list[Document], summaries: dict[str, str]) -> list[dict]:
    return [{"post": d, "summary": summaries[d.path]} for d in docs]


def _read_manifest(output_dir: Path) -> list[str]:
    """Relative paths written by the previous pass; empty if there is no usable manifest."""
    path = output_dir / MANIFEST
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable manifest %s: %s", path, e)
        return []
    files = data.get("files") if isinstance(data, dict) else None
    if not isinstance(files, list):
        logger.warning("Ignoring malformed manifest %s", path)
        return []
    return [f for f in files if isinstance(f, str)]


def _remove_stale(output_dir: Path, previous: list[str], current: set[str]) -> list[Path]:
    """Delete files listed in the previous manifest that this pass did not write."""
    removed = []
    for rel in previous:
        if rel in current:
            continue
        pure = PurePosixPath(rel)
        if pure.is_absolute() or '..' in pure.parts:
            logger.warning("Ignoring manifest entry outside %s: %s", output_dir, rel)
            continue
        target = output_dir / pure
        if not target.is_file():
            continue
        target.unlink()
        removed.append(target)
        logger.debug("Removed stale %s", target)
        parent = target.parent
        while parent != output_dir and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
    return removed


def collect(settings: Settings, content_dir: str | Path | None = None) -> tuple[LoadResult, list[Document]]:
    """Load the content directory and return (load_result, published documents with unique slugs)."""
    result = load(content_dir or settings.content_dir, settings)
    published, slug_errors = check_unique_slugs(publish(result.documents))
    for e in slug_errors:
        logger.warning("Skipping %s", e)
    result.errors.extend(slug_errors)
    return result, published


def run_build(
    settings: Settings,
    cache: RenderCache | None = None,
    clean: bool = False,
    ) -> BuildReport:
    """Run one publish pass into settings.output_dir.

    Per-file failures are collected on the report; pages for every document
    that loaded are still written. Callers decide whether errors fail the build.
    Files the previous pass wrote that this pass did not (drafted, deleted, or
    renamed posts, emptied tags) are removed; other files in output_dir are left alone.
    """
    output_dir = Path(settings.output_dir)
    if clean and output_dir.exists():
        shutil.rmtree(output_dir)
    report = BuildReport(output_dir=output_dir)
    previous = _read_manifest(output_dir)

    result, published = collect(settings)
    report.errors.extend(result.errors)
    report.drafts = sum(1 for d in result.documents if d.draft)

    markdown = make_markdown(settings.parser_config)
    theme = Theme(settings)

    summaries: dict[str, str] = {}
    for doc in published:
        page = render(doc, settings, markdown=markdown, theme=theme, cache=cache)
        if page.cached:
            report.cache_hits += 1
        summaries[doc.path] = page.summary
        out_file = _write(output_dir / doc.slug / "index.html", page.content)
        report.pages.append((doc.path, out_file))

    entries = _entries(published, summaries)
    report.listings.append(_write(output_dir / "index.html", theme.render_index(entries)))

    labels = tag_labels(published)
    for tag, docs in group_by_tag(published).items():
        html = theme.render_tag(tag, labels[tag], _entries(docs, summaries))
        report.listings.append(_write(output_dir / "tags" / tag / "index.html", html))

    feed_docs = published[:settings.feed_limit] if settings.feed_limit else published
    updated = published[0].date if published else None
    report.listings.append(_write(output_dir / "feed.xml", theme.render_feed(_entries(feed_docs, summaries), updated)))

    current = sorted(p.relative_to(output_dir).as_posix() for p in report.written)
    report.removed = _remove_stale(output_dir, previous, set(current))
    _write(output_dir / MANIFEST, json.dumps({"files": current}, indent=2) + "\n")

    logger.info(
        "Built %d page(s) into %s (%d cached, %d draft(s) skipped, %d stale removed, %d error(s))",
        len(report.pages), output_dir, report.cache_hits, report.drafts, len(report.removed), len(report.errors),
    )
    return report
