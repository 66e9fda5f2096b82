"""YAML 配置文件读取

全局配置与平台配置（scm.yml）共用的入口。格式错误、文件过大、
顶层不是字典统一报告为 ConfigError，由 CLI / Web 层按业务异常处理。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from pipehub.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# 配置文件最大大小 (1MB)
MAX_YAML_SIZE = 1024 * 1024


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 配置文件

    参数:
        path: 文件路径（支持 ~ 展开）

    返回:
        dict: 解析结果；文件不存在或为空时返回空字典

    异常:
        ConfigError: 文件过大、YAML 格式错误或顶层不是字典
        OSError: 读取失败
    """
    p = Path(path).expanduser()
    if not p.exists():
        logger.debug("配置文件不存在，使用默认值: %s", p)
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ConfigError(f"配置文件过大: {p} ({size} 字节，上限 {MAX_YAML_SIZE})")

    with open(p, encoding="utf-8") as f:
        try:
            result = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"配置文件格式错误: {p}\n{e}") from e

    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ConfigError(f"配置文件顶层应为字典: {p} (实际类型: {type(result).__name__})")
    return result
