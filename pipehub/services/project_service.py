"""项目服务 — CLI / Web 共用的项目操作入口

每次操作构造一个新的 AssetManager 和平台注册表副本：
注册表在解析过程中会被追加配置，不在请求之间共享。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pipehub.core.config import Config
from pipehub.core.protocols import VcsClient
from pipehub.scm.asset_manager import AssetManager
from pipehub.scm.providers.config import ProviderRegistry
from pipehub.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


class ProjectService:
    """流水线项目的拉取、导出与状态查询"""

    def __init__(self, config: Config, vcs: VcsClient) -> None:
        self.config = config
        self.vcs = vcs
        self._scm_data: dict[str, Any] | None = None

    @property
    def root(self) -> Path:
        return self.config.assets_path

    def registry(self) -> ProviderRegistry:
        """由 scm 配置文件构造新的平台注册表"""
        if self._scm_data is None:
            self._scm_data = load_yaml(self.config.scm_path)
        return ProviderRegistry.from_dict(self._scm_data)

    def manager(
        self,
        name: str,
        *,
        revision: str | None = None,
        hub: str | None = None,
        user: str | None = None,
        password: str | None = None,
    ) -> AssetManager:
        return AssetManager(
            name,
            root=self.root,
            registry=self.registry(),
            vcs=self.vcs,
            revision=revision,
            hub=hub or None,
            user=user,
            password=password,
            default_hub=self.config.default_hub,
            default_organization=self.config.default_organization,
            timeout=self.config.http_timeout,
        )

    # ---- 查询 ----

    def list_projects(self) -> list[str]:
        return AssetManager.list_projects(self.root)

    def revisions(self, name: str, **kwargs: Any) -> list[str]:
        return self.manager(name, **kwargs).list_revisions()

    def info(
        self, name: str, *, level: int = 0, check_updates: bool = False, **kwargs: Any,
    ) -> dict[str, Any]:
        """项目概要，本地已有镜像时附带分支 / tag"""
        mgr = self.manager(name, **kwargs)
        manifest = mgr.manifest
        result: dict[str, Any] = {
            "project": mgr.project_name,
            "repository": mgr.repository_url,
            "local_path": str(mgr.local_path) if mgr.is_local() else None,
            "main_script": mgr.main_script_name,
            "description": manifest.description,
            "author": manifest.author,
            "home_page": mgr.home_page,
            "default_branch": mgr.default_branch,
        }
        if mgr.mirrors.exists(mgr.project):
            result["revisions"] = mgr.get_revisions(level)
            result["refs"] = mgr.get_branches_and_tags(check_updates)
        return result

    def status(self, name: str, **kwargs: Any) -> dict[str, Any]:
        """工作目录当前版本与远程更新提示"""
        mgr = self.manager(name, **kwargs)
        local = mgr.is_local()
        return {
            "project": mgr.project_with_revision,
            "local": local,
            "revision": mgr.current_revision(),
            "commit": mgr.commit_id,
            "clean": mgr.is_clean(),
            "notice": mgr.check_remote_status() if local else None,
        }

    def updates(self, name: str, *, level: int = 0, **kwargs: Any) -> list[str]:
        """列出远程已变化的分支 / tag，有变化时随后刷新镜像"""
        mgr = self.manager(name, **kwargs)
        if not mgr.mirrors.exists(mgr.project):
            mgr.update_local_mirror()
            return []
        lines = mgr.get_updates(level)
        if lines:
            mgr.update_local_mirror()
        return lines

    def dashboard(self) -> list[dict[str, Any]]:
        """本地缓存的全部项目及其已物化版本数"""
        rows = []
        for project in self.list_projects():
            try:
                count = len(self.revisions(project))
            except Exception as e:
                logger.warning("读取项目 %s 失败: %s", project, e)
                count = 0
            rows.append({"project": project, "revisions": count})
        return rows

    # ---- 拉取 / 导出 ----

    def pull(self, name: str, *, depth: int | None = None, **kwargs: Any) -> dict[str, Any]:
        mgr = self.manager(name, **kwargs)
        status = mgr.download(depth)
        logger.info("%s: %s", mgr.project_with_revision, status)
        return {
            "project": mgr.project_with_revision,
            "commit": mgr.commit_id,
            "path": str(mgr.local_path),
            "status": status,
        }

    def clone(
        self, name: str, destination: str | Path | None = None, *,
        depth: int | None = None, **kwargs: Any,
    ) -> Path:
        mgr = self.manager(name, **kwargs)
        target = Path(destination) if destination else Path.cwd() / mgr.project.repository
        return mgr.clone(target, depth)
