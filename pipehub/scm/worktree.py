"""按 commit 物化的工作目录

目录布局:
    <root>/<org>/<repo>/.pipehub/commits/<commit>

同一 commit 的工作目录一经创建即视为可运行，后续直接复用，不做校验。
创建过程: 从本地镜像 clone 到临时兄弟目录 → checkout 目标 commit → rename 到位。
多个进程并发创建同一 commit 时，rename 失败的一方丢弃临时目录并复用胜者。
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

from pipehub.core.manifest import Manifest
from pipehub.core.models import Credentials, MirrorHandle, ProjectIdentifier, Worktree
from pipehub.core.protocols import VcsClient

logger = logging.getLogger(__name__)

CACHE_SUBDIR = ".pipehub"
COMMITS_DIR = "commits"


class WorktreeManager:
    """工作目录管理器"""

    def __init__(self, root: Path, vcs: VcsClient) -> None:
        self.root = Path(root)
        self.vcs = vcs

    def commits_dir(self, project: ProjectIdentifier) -> Path:
        return self.root / project.organization / project.repository / CACHE_SUBDIR / COMMITS_DIR

    def path_for(self, project: ProjectIdentifier, commit_id: str) -> Path:
        return self.commits_dir(project) / commit_id

    def list_commits(self, project: ProjectIdentifier) -> list[str]:
        """已物化的 commit 列表（忽略临时目录）"""
        base = self.commits_dir(project)
        if not base.is_dir():
            return []
        return sorted(
            p.name for p in base.iterdir() if p.is_dir() and not p.name.startswith(".")
        )

    def materialize(
        self,
        handle: MirrorHandle,
        commit_id: str,
        *,
        depth: int | None = None,
    ) -> Worktree:
        """确保 commit 对应的工作目录存在"""
        project = handle.project
        target = self.path_for(project, commit_id)
        if target.exists():
            logger.debug("工作目录已存在，直接复用: %s", target)
            return Worktree(project=project, commit_id=commit_id, path=target, created=False)

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.parent / f".{commit_id}.tmp-{uuid.uuid4().hex[:8]}"
        source = handle.path.resolve().as_uri()
        logger.info("从本地镜像检出 %s@%s", project, commit_id[:10])
        try:
            self.vcs.clone(source, tmp, depth=depth, no_checkout=True)
            if depth:
                # 浅克隆只包含分支顶端，任意 commit 需要单独拉取
                self.vcs.fetch(tmp, refspec=commit_id, depth=depth)
            self.vcs.checkout(tmp, commit_id)
            try:
                os.rename(tmp, target)
            except OSError:
                if not target.exists():
                    raise
                logger.info("工作目录已由其他进程创建，丢弃临时副本: %s", tmp)
                return Worktree(project=project, commit_id=commit_id, path=target, created=False)
        finally:
            if tmp.exists():
                shutil.rmtree(tmp, ignore_errors=True)

        return Worktree(project=project, commit_id=commit_id, path=target, created=True)

    def clone(
        self,
        project: ProjectIdentifier,
        destination: Path,
        clone_url: str,
        *,
        revision: str | None = None,
        depth: int | None = None,
        recurse_submodules: bool = False,
        credentials: Credentials | None = None,
    ) -> Path:
        """将远程仓库导出到任意目录（不经过本地镜像）"""
        logger.info("克隆 %s 到 %s -- 远程地址: %s", project, destination, clone_url)
        self.vcs.clone(
            clone_url,
            Path(destination),
            depth=depth or 1,
            branch=revision,
            recurse_submodules=recurse_submodules,
            credentials=credentials,
        )
        return Path(destination)

    def update_submodules(
        self,
        path: Path,
        manifest: Manifest,
        credentials: Credentials | None = None,
    ) -> list[str]:
        """按清单的 gitmodules 策略初始化并更新子模块，返回已更新的路径"""
        marker = Path(path) / ".gitmodules"
        if not marker.is_file() or marker.stat().st_size == 0:
            return []

        paths = manifest.submodule_filter()
        if paths is None:
            logger.debug("清单禁用了子模块更新: %s", path)
            return []

        self.vcs.submodule_init(path, paths)
        updated = self.vcs.submodule_update(
            path, paths, recursive=manifest.recurse_submodules, credentials=credentials,
        )
        logger.debug("已更新子模块: %s", updated)
        return updated
