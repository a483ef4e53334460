"""Integration tests for the build command (load -> publish -> render -> write)"""

import pytest
from typer.testing import CliRunner

from mdsite.cli.cli import app


@pytest.fixture(autouse=True)
def project(tmp_path, monkeypatch, clear_mdsite_env):
    """Run from tmp_path with the render cache inside it."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MDSITE_DB_URL", f"sqlite:///{tmp_path}/cache.db")
    return tmp_path


@pytest.fixture(name="runner")
def runner_fixture():
    return CliRunner()


def test_build_cmd_writes_site(tmp_path, runner, write_post):
    """build produces a page per published post plus index and feed."""
    write_post("hello.md", title="Hello", date="2017-01-15")
    write_post("draft.md", title="Draft", draft=True)

    result = runner.invoke(app, ["build", "content", "--out-dir", "site"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "site" / "hello" / "index.html").exists()
    assert (tmp_path / "site" / "index.html").exists()
    assert (tmp_path / "site" / "feed.xml").exists()
    assert not (tmp_path / "site" / "draft").exists()
    assert "Built 1 page(s)" in result.output
    assert "1 draft(s) skipped" in result.output


def test_build_cmd_reuses_render_cache(runner, write_post):
    write_post("hello.md")
    runner.invoke(app, ["build", "content"])
    result = runner.invoke(app, ["build", "content"])
    assert result.exit_code == 0, result.output
    assert "1 cached" in result.output


def test_build_cmd_no_cache(tmp_path, runner, write_post):
    write_post("hello.md")
    result = runner.invoke(app, ["build", "content", "--no-cache"])
    assert result.exit_code == 0, result.output
    assert not (tmp_path / "cache.db").exists()


def test_build_cmd_reports_failures_without_failing(tmp_path, runner, write_post):
    """Per-document errors are reported but do not fail the build by default."""
    write_post("good.md", title="Good")
    write_post("bad.md", date="not a date")

    result = runner.invoke(app, ["build", "content"])

    assert result.exit_code == 0, result.output
    assert "bad.md: date" in result.output
    assert (tmp_path / "public" / "good" / "index.html").exists()


def test_build_cmd_strict_fails_on_errors(tmp_path, runner, write_post):
    write_post("good.md", title="Good")
    write_post("bad.md", title=None)

    result = runner.invoke(app, ["build", "content", "--strict"])

    assert result.exit_code == 1
    assert "bad.md: title" in result.output
    # Pages for successful documents are still emitted.
    assert (tmp_path / "public" / "good" / "index.html").exists()


def test_build_cmd_strict_from_config_yaml(tmp_path, runner, write_post):
    (tmp_path / "config.yaml").write_text("strict: true\n")
    write_post("bad.md", title=None)
    assert runner.invoke(app, ["build", "content"]).exit_code == 1
    assert runner.invoke(app, ["build", "content", "--no-strict"]).exit_code == 0


def test_build_cmd_unknown_preset(runner, write_post):
    write_post("hello.md")
    result = runner.invoke(app, ["build", "content", "--parser-config", "nope"])
    assert result.exit_code == 1
    assert "Unknown parser preset" in result.output


def test_build_cmd_invalid_config(tmp_path, runner):
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    result = runner.invoke(app, ["build", "content"])
    assert result.exit_code == 1
    assert "Invalid config.yaml" in result.output
