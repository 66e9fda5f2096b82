"""CLI — 流水线项目命令（拉取 / 导出 / 版本 / 状态）"""

from __future__ import annotations

from typing import Any, Callable

import click

from pipehub.cli import _call, _svc


def register(group: click.Group) -> None:
    for cmd in (
        list_cmd, info_cmd, pull_cmd, clone_cmd,
        revisions_cmd, status_cmd, updates_cmd, dashboard_cmd,
    ):
        group.add_command(cmd)


def _hub_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """平台选择与凭据覆盖选项"""
    options = [
        click.option("--hub", default=None, help="托管平台名称（github / gitlab / ... 或 scm 配置中的自定义名称）"),
        click.option("--user", default=None, help="托管平台用户名"),
        click.option("--password", default=None, help="托管平台密码或访问令牌"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _access(kwargs: dict[str, Any]) -> dict[str, Any]:
    return {k: kwargs.pop(k, None) for k in ("hub", "user", "password")}


@click.command(name="list")
def list_cmd() -> None:
    """列出本地已缓存的项目"""
    projects = _call(_svc().projects.list_projects)
    if not projects:
        click.echo("没有已缓存的项目。")
        return
    for name in projects:
        click.echo(name)


@click.command(name="info")
@click.argument("project")
@click.option("-d", "--detail", "level", default=0, type=int, help="commit id 显示级别 (0/1/2)")
@click.option("--check-updates", is_flag=True, help="比对远程分支 / tag")
@_hub_options
def info_cmd(**kwargs: Any) -> None:
    """显示项目信息"""
    access = _access(kwargs)
    info = _call(
        _svc().projects.info, kwargs["project"],
        level=kwargs["level"], check_updates=kwargs["check_updates"], **access,
    )
    click.echo(f" project name: {info['project']}")
    click.echo(f" repository  : {info['repository']}")
    click.echo(f" local path  : {info['local_path'] or '-'}")
    click.echo(f" main script : {info['main_script']}")
    if info.get("description"):
        click.echo(f" description : {info['description']}")
    if info.get("author"):
        click.echo(f" author      : {info['author']}")
    if info.get("revisions"):
        click.echo(" revisions   : ")
        for line in info["revisions"]:
            click.echo(f" {line}")
    refs = info.get("refs") or {}
    for entry in refs.get("branches", []) + refs.get("tags", []):
        if "latest_id" in entry:
            click.echo(f" update      : {entry['name']} -> {entry['latest_id'][:10]}")


@click.command(name="pull")
@click.argument("project")
@click.option("-r", "--revision", default=None, help="分支 / tag / commit")
@click.option("--depth", default=None, type=int, help="浅克隆深度")
@_hub_options
def pull_cmd(**kwargs: Any) -> None:
    """下载项目到本地缓存"""
    access = _access(kwargs)
    click.echo(f"Checking {kwargs['project']} ...")
    result = _call(
        _svc().projects.pull, kwargs["project"],
        revision=kwargs["revision"], depth=kwargs["depth"], **access,
    )
    click.echo(f" {result['status']} - revision: {result['commit']}")


@click.command(name="clone")
@click.argument("project")
@click.argument("dest", required=False)
@click.option("-r", "--revision", default=None, help="分支 / tag")
@click.option("--depth", default=None, type=int, help="浅克隆深度（默认 1）")
@_hub_options
def clone_cmd(**kwargs: Any) -> None:
    """将项目导出到指定目录"""
    access = _access(kwargs)
    path = _call(
        _svc().projects.clone, kwargs["project"], kwargs["dest"],
        revision=kwargs["revision"], depth=kwargs["depth"], **access,
    )
    click.echo(f"{kwargs['project']} cloned to: {path}")


@click.command(name="revisions")
@click.argument("project")
@_hub_options
def revisions_cmd(**kwargs: Any) -> None:
    """列出项目已下载的版本"""
    access = _access(kwargs)
    revisions = _call(_svc().projects.revisions, kwargs["project"], **access)
    if not revisions:
        click.echo("没有已下载的版本。")
        return
    for rev in revisions:
        click.echo(rev)


@click.command(name="status")
@click.argument("project")
@click.option("-r", "--revision", default=None, help="分支 / tag / commit")
@_hub_options
def status_cmd(**kwargs: Any) -> None:
    """显示项目工作目录状态及远程更新提示"""
    access = _access(kwargs)
    status = _call(
        _svc().projects.status, kwargs["project"], revision=kwargs["revision"], **access,
    )
    if not status["local"]:
        click.echo(f"{status['project']}: 尚未下载")
        return
    state = "clean" if status["clean"] else "modified"
    click.echo(f"{status['project']}: {status['revision']} ({state})")
    if status["notice"]:
        click.echo(status["notice"])


@click.command(name="updates")
@click.argument("project")
@click.option("-l", "--level", default=0, type=int, help="commit id 显示级别 (0/1/2)")
@_hub_options
def updates_cmd(**kwargs: Any) -> None:
    """列出远程有更新的分支 / tag 并刷新镜像"""
    access = _access(kwargs)
    lines = _call(_svc().projects.updates, kwargs["project"], level=kwargs["level"], **access)
    if not lines:
        click.echo("没有可用的更新。")
        return
    for line in lines:
        click.echo(line)


@click.command(name="dashboard")
@click.option("--port", default=8888, help="监听端口")
@click.option("--host", default="127.0.0.1", help="监听地址")
def dashboard_cmd(port: int, host: str) -> None:
    """启动 Web API"""
    from pipehub.web.app import run_server
    run_server(port=port, host=host)
