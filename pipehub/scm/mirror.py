"""共享历史镜像缓存

每个项目一个只含历史的 git 镜像，位于 <root>/<org>/<repo>，
是把版本解析为 commit 的唯一依据。

生命周期:
  - 首次访问时 clone（先校验远程主脚本存在）
  - 版本无法解析或显式刷新时 fetch
  - 本组件从不删除镜像
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

from pipehub.core.exceptions import RevisionNotFoundError
from pipehub.core.models import Credentials, MirrorHandle, ProjectIdentifier
from pipehub.core.protocols import VcsClient
from pipehub.scm.git_url import GitUrl
from pipehub.scm.providers.base import RepositoryProvider

logger = logging.getLogger(__name__)


def list_projects(root: Path) -> list[str]:
    """列出缓存根目录下的全部项目 (org/repo)，忽略以 . 开头的目录"""
    root = Path(root)
    logger.debug("列出缓存目录中的项目: %s", root)
    result: list[str] = []
    if not root.is_dir():
        return result
    for org in sorted(root.iterdir()):
        if not org.is_dir() or org.name.startswith("."):
            continue
        for repo in sorted(org.iterdir()):
            if repo.is_dir() and not repo.name.startswith("."):
                result.append(f"{org.name}/{repo.name}")
    return result


class BareRepositoryCache:
    """镜像缓存管理器"""

    def __init__(self, root: Path, vcs: VcsClient) -> None:
        self.root = Path(root)
        self.vcs = vcs

    def path_for(self, project: ProjectIdentifier) -> Path:
        return self.root / project.organization / project.repository

    def exists(self, project: ProjectIdentifier) -> bool:
        return self.path_for(project).exists()

    def handle(self, project: ProjectIdentifier) -> MirrorHandle:
        return MirrorHandle(project=project, path=self.path_for(project))

    def list_projects(self) -> list[str]:
        return list_projects(self.root)

    def ensure(
        self,
        project: ProjectIdentifier,
        provider: RepositoryProvider,
        main_script: str,
    ) -> MirrorHandle:
        """镜像不存在时校验远程并 clone，返回镜像句柄"""
        handle = self.handle(project)
        if handle.path.exists():
            return handle

        provider.validate_for(main_script)

        clone_url = provider.clone_url()
        logger.info("拉取 %s 的镜像仓库 -- 远程地址: %s", project, clone_url)
        handle.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = handle.path.parent / f".{handle.path.name}.tmp-{uuid.uuid4().hex[:8]}"
        try:
            self.vcs.clone(clone_url, tmp, mirror=True, credentials=provider.credentials())
            os.rename(tmp, handle.path)
        except OSError:
            if not handle.path.exists():
                raise
            logger.info("镜像已由其他进程创建，复用: %s", handle.path)
        finally:
            if tmp.exists():
                shutil.rmtree(tmp, ignore_errors=True)
        return handle

    def update(self, handle: MirrorHandle, credentials: Credentials | None = None) -> None:
        """从远程 fetch 到已有镜像"""
        logger.info("更新 %s 的镜像仓库", handle.project)
        self.vcs.fetch(handle.path, credentials=credentials)

    def resolve_commit(
        self,
        handle: MirrorHandle,
        revision: str | None,
        credentials: Credentials | None = None,
    ) -> str:
        """将版本解析为 commit id，首次失败时 fetch 一次后重试"""
        rev = revision or "HEAD"
        commit = self.vcs.resolve(handle.path, rev)
        if commit is None:
            logger.info("镜像中未找到版本 `%s`，尝试从远程更新", rev)
            self.update(handle, credentials)
            commit = self.vcs.resolve(handle.path, rev)
            if commit is None:
                raise RevisionNotFoundError(f"无法解析版本: {rev} (项目 {handle.project})")
        logger.debug("版本 %s@%s -> %s", handle.project, rev, commit)
        return commit

    def recorded_remote_url(self, project: ProjectIdentifier) -> str | None:
        """镜像配置中记录的 origin 地址"""
        path = self.path_for(project)
        if not path.exists():
            return None
        url = self.vcs.remote_url(path)
        logger.debug("镜像 %s 的远程地址: %s", path, url)
        return url

    def recorded_git_url(self, project: ProjectIdentifier) -> GitUrl | None:
        """解析镜像记录的远程地址，无法解析时返回 None"""
        url = self.recorded_remote_url(project)
        if not url:
            return None
        try:
            return GitUrl.parse(url)
        except ValueError as e:
            logger.debug("无法解析镜像的远程地址: %s -- %s", url, e)
            return None
