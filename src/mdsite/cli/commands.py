"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.parse import load, parse_file
from mdsite.core.pipeline import collect, run_build
from mdsite.core.publish import publish
from mdsite.core.render import render
from mdsite.crud.cache import SqlRenderCache
from mdsite.crud.database import init_db, make_engine, reset_db
from mdsite.errors import MdsiteError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _echo_errors(errors: list) -> None:
    """Print each per-document failure to stderr."""
    for e in errors:
        typer.echo(f"  {e}", err=True)


def build_cmd(
    content: Annotated[Optional[str], typer.Argument(help="Content directory (default: content_dir setting)")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    templates: Annotated[Optional[str], typer.Option("--template-dir", help="Directory of template overrides")] = None,
    strict: Annotated[Optional[bool], typer.Option("--strict/--no-strict", help="Exit 1 if any document fails")] = None,
    clean: Annotated[bool, typer.Option("--clean", help="Remove the output directory first")] = False,
    no_cache: Annotated[bool, typer.Option("--no-cache", help="Render every document from scratch")] = False,
    ):
    """Run a full publish pass: load -> publish -> render -> write."""
    settings = _settings(overrides={
        "content_dir": content, "output_dir": out, "parser_config": parser,
        "template_dir": templates, "strict": strict,
    })

    cache = None
    if not no_cache:
        try:
            engine = make_engine(settings.db_url)
            init_db(engine)
            cache = SqlRenderCache(engine)
        except Exception as e:
            _fail("Could not open render cache", e)

    try:
        report = run_build(settings, cache=cache, clean=clean)
        if cache is not None:
            cache.prune({path for path, _ in report.pages})
    except Exception as e:
        _fail("Build failed", e)
    finally:
        if cache is not None:
            cache.close()

    for src, out_file in report.pages:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(
        f"Built {len(report.pages)} page(s) to {report.output_dir}/ - "
        f"{report.cache_hits} cached, {report.drafts} draft(s) skipped, {len(report.errors)} error(s)"
    )
    if report.errors:
        typer.echo(f"{len(report.errors)} document(s) failed:", err=True)
        _echo_errors(report.errors)
        if settings.strict:
            raise typer.Exit(1)


def list_cmd(
    content: Annotated[Optional[str], typer.Argument(help="Content directory (default: content_dir setting)")] = None,
    drafts: Annotated[bool, typer.Option("--drafts", help="Include drafts, marked with [draft]")] = False,
    ):
    """List published documents newest first."""
    settings = _settings(overrides={"content_dir": content})
    if drafts:
        result = load(settings.content_dir, settings)
        docs = publish(result.documents, include_drafts=True)
    else:
        result, docs = collect(settings)
    if not docs:
        typer.echo("No documents found.")
    for d in docs:
        marker = " [draft]" if d.draft else ""
        typer.echo(f"{d.date:%Y-%m-%d}  {d.path}  {d.title}{marker}")
    if result.errors:
        typer.echo(f"{len(result.errors)} document(s) failed to load; run 'mdsite check' for details.", err=True)
        raise typer.Exit(1)


def check_cmd(
    content: Annotated[Optional[str], typer.Argument(help="Content directory (default: content_dir setting)")] = None,
    ):
    """Validate every document's metadata without writing anything. Exits 1 on any failure."""
    settings = _settings(overrides={"content_dir": content})
    result, published = collect(settings)
    drafts = sum(1 for d in result.documents if d.draft)
    typer.echo(f"{len(result.documents)} loaded, {len(published)} published, {drafts} draft(s)")
    if result.errors:
        typer.echo(f"{len(result.errors)} document(s) failed:", err=True)
        _echo_errors(result.errors)
        raise typer.Exit(1)


def show_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file to preview (drafts included)")],
    html_only: Annotated[bool, typer.Option("--html-only", help="Print only the body HTML")] = False,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Render a single document to stdout."""
    settings = _settings(overrides={"parser_config": parser})
    try:
        doc = parse_file(Path(path), settings)
        page = render(doc, settings)
    except (MdsiteError, ValueError) as e:
        _fail(str(e))
    typer.echo(page.html if html_only else page.content)


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate the render cache")] = False,
    ):
    """Initialize the render cache database. Use --reset to clear it."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Render cache cleared.")
    else:
        init_db(engine)
    typer.echo(f"Render cache initialized at: {settings.db_url}")
