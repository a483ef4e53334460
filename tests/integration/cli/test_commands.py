"""Integration tests for list, check, show, and init"""

import pytest
from typer.testing import CliRunner

from mdsite.cli.cli import app


@pytest.fixture(autouse=True)
def project(tmp_path, monkeypatch, clear_mdsite_env):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MDSITE_DB_URL", f"sqlite:///{tmp_path}/cache.db")
    return tmp_path


@pytest.fixture(name="runner")
def runner_fixture():
    return CliRunner()


def test_list_newest_first(runner, write_post):
    write_post("old.md", title="Old Post", date="2015-03-28")
    write_post("new.md", title="New Post", date="2017-01-15")
    write_post("wip.md", title="Work In Progress", draft=True)

    result = runner.invoke(app, ["list", "content"])

    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines == ["2017-01-15  new.md  New Post", "2015-03-28  old.md  Old Post"]


def test_list_with_drafts(runner, write_post):
    write_post("wip.md", title="Work In Progress", date="2018-01-01", draft=True)
    write_post("new.md", title="New Post", date="2017-01-15")
    result = runner.invoke(app, ["list", "content", "--drafts"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[0] == "2018-01-01  wip.md  Work In Progress [draft]"


def test_list_empty(runner, content_dir):
    """An empty site is not an error."""
    result = runner.invoke(app, ["list", "content"])
    assert result.exit_code == 0, result.output
    assert "No documents found." in result.output


def test_list_only_drafts(runner, write_post):
    write_post("wip.md", draft=True)
    result = runner.invoke(app, ["list", "content"])
    assert result.exit_code == 0, result.output
    assert "No documents found." in result.output


def test_list_fails_on_load_errors(runner, write_post):
    """Documents that loaded are still listed, but a failed file sets the exit code."""
    write_post("good.md", title="Good Post")
    write_post("untitled.md", title=None)
    result = runner.invoke(app, ["list", "content"])
    assert result.exit_code == 1
    assert "2017-01-15  good.md  Good Post" in result.stdout


def test_check_passes(runner, write_post):
    write_post("a.md")
    write_post("b.md", draft=True)
    result = runner.invoke(app, ["check", "content"])
    assert result.exit_code == 0, result.output
    assert "2 loaded, 1 published, 1 draft(s)" in result.output


def test_check_reports_every_failure(runner, write_post):
    write_post("a.md", title=None)
    write_post("b.md", text="no metadata here\n")
    write_post("c.md")
    result = runner.invoke(app, ["check", "content"])
    assert result.exit_code == 1
    assert "2 document(s) failed" in result.output
    assert "a.md: title" in result.output
    assert "b.md: frontmatter" in result.output


def test_check_missing_directory(runner):
    result = runner.invoke(app, ["check", "does-not-exist"])
    assert result.exit_code == 1
    assert "does-not-exist" in result.output


def test_show_renders_draft(runner, write_post):
    path = write_post("wip.md", title="Preview Me", draft=True, body="Some *text*.\n")
    result = runner.invoke(app, ["show", str(path)])
    assert result.exit_code == 0, result.output
    assert "<h1>Preview Me</h1>" in result.output
    assert "<em>text</em>" in result.output


def test_show_html_only(runner, write_post):
    path = write_post("a.md", body="Some *text*.\n")
    result = runner.invoke(app, ["show", str(path), "--html-only"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "<p>Some <em>text</em>.</p>"


def test_show_parse_error(runner, write_post):
    path = write_post("a.md", date=None)
    result = runner.invoke(app, ["show", str(path)])
    assert result.exit_code == 1
    assert "date" in result.output


def test_init_creates_cache(tmp_path, runner):
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "cache.db").exists()


def test_init_reset(runner):
    result = runner.invoke(app, ["init", "--reset"])
    assert result.exit_code == 0, result.output
    assert "Render cache cleared." in result.output
