"""命令行端到端测试（内存 git + 本地目录平台）"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from pipehub import __version__
from pipehub.cli import main
from pipehub.utils.logger import reset_logging


@pytest.fixture()
def runner(container, hello_remote, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PIPEHUB_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("PIPEHUB_CONFIG", raising=False)
    yield CliRunner()
    reset_logging()


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_list_empty(runner: CliRunner) -> None:
    result = runner.invoke(main, ["list"])
    assert result.exit_code == 0
    assert "没有已缓存的项目。" in result.output


def test_pull_then_list(runner: CliRunner, hello_remote) -> None:
    result = runner.invoke(main, ["pull", "local/hello"])
    assert result.exit_code == 0, result.output
    assert "Checking local/hello ..." in result.output
    assert f"downloaded from local mirror - revision: {hello_remote.refs['refs/heads/master']}" in result.output

    again = runner.invoke(main, ["pull", "local/hello"])
    assert "already available" in again.output

    listed = runner.invoke(main, ["list"])
    assert listed.output.splitlines() == ["local/hello"]


def test_pull_revision_option(runner: CliRunner, hello_remote) -> None:
    result = runner.invoke(main, ["pull", "local/hello", "-r", "v1.0"])
    assert hello_remote.refs["refs/tags/v1.0"] in result.output


def test_pull_revision_conflict(runner: CliRunner) -> None:
    result = runner.invoke(main, ["pull", "local/hello:dev", "-r", "master"])
    assert result.exit_code == 1
    assert "版本冲突" in result.output


def test_unknown_hub(runner: CliRunner) -> None:
    result = runner.invoke(main, ["pull", "local/hello", "--hub", "gitlub"])
    assert result.exit_code == 1
    assert "gitlab" in result.output


def test_revisions(runner: CliRunner, hello_remote) -> None:
    assert "没有已下载的版本。" in runner.invoke(main, ["revisions", "local/hello"]).output
    runner.invoke(main, ["pull", "local/hello"])
    result = runner.invoke(main, ["revisions", "hello"])
    assert result.output.strip() == f"local/hello:{hello_remote.refs['refs/heads/master']}"


def test_info(runner: CliRunner) -> None:
    runner.invoke(main, ["pull", "local/hello"])
    result = runner.invoke(main, ["info", "local/hello"])
    assert result.exit_code == 0, result.output
    assert " project name: local/hello" in result.output
    assert " description : hello world pipeline" in result.output
    assert "P master (default)" in result.output


def test_info_reports_updates(runner: CliRunner, hello_remote) -> None:
    runner.invoke(main, ["pull", "local/hello"])
    new = hello_remote.commit({"main.nf": "println 'v3'"})
    result = runner.invoke(main, ["info", "local/hello", "--check-updates"])
    assert f" update      : master -> {new[:10]}" in result.output


def test_status(runner: CliRunner, hello_remote) -> None:
    assert "尚未下载" in runner.invoke(main, ["status", "local/hello"]).output
    runner.invoke(main, ["pull", "local/hello"])
    result = runner.invoke(main, ["status", "local/hello"])
    assert "local/hello: master (clean)" in result.output
    hello_remote.commit({"main.nf": "println 'v3'"})
    result = runner.invoke(main, ["status", "local/hello"])
    assert "NOTE: Your local project version looks outdated" in result.output


def test_updates(runner: CliRunner, hello_remote) -> None:
    runner.invoke(main, ["pull", "local/hello"])
    assert "没有可用的更新。" in runner.invoke(main, ["updates", "local/hello"]).output
    new = hello_remote.commit({"main.nf": "println 'dev2'"}, branch="dev")
    result = runner.invoke(main, ["updates", "local/hello", "-l", "2"])
    assert result.output.splitlines() == [f"  {new} dev"]


def test_clone(runner: CliRunner, tmp_path: Path) -> None:
    dest = tmp_path / "exported"
    result = runner.invoke(main, ["clone", "local/hello", str(dest), "-r", "dev"])
    assert result.exit_code == 0, result.output
    assert f"local/hello cloned to: {dest}" in result.output
    assert (dest / "main.nf").read_text() == "println 'dev'"


def test_config_option(runner: CliRunner, tmp_path: Path) -> None:
    cfg = tmp_path / "custom.yml"
    cfg.write_text(f"assets_root: {tmp_path / 'other'}\n", encoding="utf-8")
    result = runner.invoke(main, ["-c", str(cfg), "list"])
    assert result.exit_code == 0
    assert "没有已缓存的项目。" in result.output
