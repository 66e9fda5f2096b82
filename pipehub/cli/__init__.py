"""pipehub 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from typing import Any, Callable, TypeVar

import click

from pipehub import __version__
from pipehub.core.exceptions import PipeHubError
from pipehub.core.config import init_config
from pipehub.services.container import get_container, reset_container
from pipehub.utils.logger import setup_logging

T = TypeVar("T")


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _call(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """调用服务方法，业务异常转为 click 错误输出"""
    try:
        return fn(*args, **kwargs)
    except PipeHubError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__)
@click.option(
    "-c", "--config", "config_path", default=None, envvar="PIPEHUB_CONFIG",
    help="全局配置文件（如 configs/default.yml）",
)
def main(config_path: str | None) -> None:
    """pipehub - 流水线项目仓库解析与本地缓存管理"""
    setup_logging(
        level=os.getenv("PIPEHUB_LOG_LEVEL", "INFO"),
        json_output=os.getenv("PIPEHUB_LOG_JSON", "") == "1",
    )
    if config_path:
        init_config(config_path)
        reset_container()


# 注册各领域子命令
from pipehub.cli.cmd_projects import register as _reg_projects  # noqa: E402

_reg_projects(main)
