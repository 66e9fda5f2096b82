"""服务容器 — 统一依赖注入

CLI 和 Web 层均通过 get_container() 获取服务，而非直接构造。

用法:
    container = ServiceContainer()
    svc = container.projects          # 懒加载

    cfg = Config.from_file("configs/default.yml")
    container = ServiceContainer(config=cfg)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipehub.core.config import Config
    from pipehub.core.protocols import VcsClient
    from pipehub.services.project_service import ProjectService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from pipehub.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def vcs(self) -> VcsClient:
        if "vcs" not in self._instances:
            from pipehub.scm.git import GitClient
            self._instances["vcs"] = GitClient()
        return self._instances["vcs"]  # type: ignore[return-value]

    @property
    def projects(self) -> ProjectService:
        if "projects" not in self._instances:
            from pipehub.services.project_service import ProjectService
            self._instances["projects"] = ProjectService(self._config, self.vcs)
        return self._instances["projects"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
