"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + 编程式覆盖。
缓存根目录和平台配置文件可通过环境变量 PIPEHUB_ASSETS / PIPEHUB_SCM_FILE 覆盖。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from pipehub.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_HOME = Path("~/.pipehub")


def _default_assets_root() -> str:
    return os.environ.get("PIPEHUB_ASSETS") or str(DEFAULT_HOME / "assets")


def _default_scm_file() -> str:
    return os.environ.get("PIPEHUB_SCM_FILE") or str(DEFAULT_HOME / "scm.yml")


@dataclass
class Config:
    """全局配置"""

    # 目录
    assets_root: str = field(default_factory=_default_assets_root)
    scm_file: str = field(default_factory=_default_scm_file)

    # 解析
    default_hub: str = "github"
    default_organization: str = "pipehub-io"

    # 网络 (None 表示不设超时，由调用方控制)
    http_timeout: float | None = None

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @property
    def assets_path(self) -> Path:
        return Path(self.assets_root).expanduser()

    @property
    def scm_path(self) -> Path:
        return Path(self.scm_file).expanduser()

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        from dataclasses import asdict
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/default.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
