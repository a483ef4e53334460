"""Root test configuration: shared post writer and settings, session-level cleanup of runtime artifacts"""

import os
import shutil
from pathlib import Path

import pytest

from mdsite.config import Settings


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_DIRS = [".mdsite"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove render cache databases created during the test session."""
    yield
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)


@pytest.fixture(autouse=True)
def clear_mdsite_env(monkeypatch):
    """Keep MDSITE_* variables from the outer shell out of every test."""
    for key in list(os.environ):
        if key.startswith("MDSITE_"):
            monkeypatch.delenv(key)


def _make_post(
    title: str = "Hello",
    date: str = "2017-01-15",
    draft: bool | None = None,
    body: str = "# Hello\n\nWorld.\n",
    **extra: str,
    ) -> str:
    """Return post source text with a YAML metadata block built from the given fields."""
    lines = ["---"]
    if title is not None:
        lines.append(f"title: {title}")
    if date is not None:
        lines.append(f"date: {date}")
    if draft is not None:
        lines.append(f"draft: {'true' if draft else 'false'}")
    lines += [f"{k}: {v}" for k, v in extra.items()]
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture(name="make_post")
def make_post_fixture():
    return _make_post


@pytest.fixture(name="content_dir")
def content_dir_fixture(tmp_path):
    d = tmp_path / "content"
    d.mkdir()
    return d


@pytest.fixture(name="write_post")
def write_post_fixture(content_dir):
    """Write a post under content_dir; returns its path."""
    def _write(rel: str, text: str | None = None, **fields) -> Path:
        p = content_dir / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text if text is not None else _make_post(**fields), encoding="utf-8")
        return p
    return _write


@pytest.fixture(name="settings")
def settings_fixture(tmp_path, content_dir):
    return Settings(
        content_dir=str(content_dir),
        output_dir=str(tmp_path / "public"),
        db_url=f"sqlite:///{tmp_path}/cache.db",
        site_url="https://blog.example.com/",
    )
