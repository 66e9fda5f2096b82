"""版本查询与远程状态比对

RevisionResolver 读取工作目录的当前版本、枚举已物化的 commit；
StatusReporter 基于镜像中的分支 / tag 与远程 ls-remote 结果比对，
生成更新提示和版本列表。远程状态检查是建议性的，任何失败只记 debug 日志。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pipehub.core.exceptions import RemoteStatusCheckError
from pipehub.core.models import (
    Credentials,
    GitRef,
    MirrorHandle,
    ProjectIdentifier,
    RevisionInfo,
    RevisionType,
)
from pipehub.core.protocols import VcsClient
from pipehub.scm.worktree import WorktreeManager

logger = logging.getLogger(__name__)

UNKNOWN_REVISION = "(unknown)"
SHORT_ID_LEN = 10

_REF_PREFIXES = ("refs/heads/", "refs/tags/", "refs/remotes/origin/")


def shorten_ref_name(name: str) -> str:
    for prefix in _REF_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


class RevisionResolver:
    """工作目录版本解析"""

    def __init__(self, vcs: VcsClient, worktrees: WorktreeManager) -> None:
        self.vcs = vcs
        self.worktrees = worktrees

    def current_revision(self, path: Path) -> str:
        """当前分支名 / tag 名 / commit id"""
        info = self.current_revision_and_name(path)
        if info is None:
            return UNKNOWN_REVISION
        return info.name or info.commit_id or UNKNOWN_REVISION

    def current_revision_and_name(self, path: Path) -> RevisionInfo | None:
        commit = self.vcs.head_commit(path)
        if not commit:
            return None
        head = self.vcs.symbolic_head(path)
        if head:
            return RevisionInfo(commit, shorten_ref_name(head), RevisionType.BRANCH)
        tag = self.vcs.tag_for_commit(path, commit)
        if tag:
            return RevisionInfo(commit, tag, RevisionType.TAG)
        return RevisionInfo(commit, None, RevisionType.COMMIT)

    def list_local_revisions(self, project: ProjectIdentifier) -> list[str]:
        return self.worktrees.list_commits(project)


class StatusReporter:
    """镜像与远程仓库的版本比对

    Args:
        vcs: 版本控制客户端
        handle: 项目镜像
        remote_url: 用于 ls-remote 的远程地址
        credentials: 远程访问凭据
    """

    def __init__(
        self,
        vcs: VcsClient,
        handle: MirrorHandle,
        remote_url: str,
        credentials: Credentials | None = None,
    ) -> None:
        self.vcs = vcs
        self.handle = handle
        self.remote_url = remote_url
        self.credentials = credentials

    # ---- 远程状态 ----

    def remote_refs(self, *, tags: bool) -> dict[str, str]:
        return self.vcs.ls_remote(
            self.remote_url, heads=not tags, tags=tags, credentials=self.credentials,
        )

    def remote_commit_id(self, info: RevisionInfo) -> str | None:
        refs = self.remote_refs(tags=info.type is RevisionType.TAG)
        for name, commit_id in refs.items():
            if shorten_ref_name(name) == info.name:
                return commit_id
        logger.debug("远程仓库中找不到版本: %s; ls-remote: %s", info.name, list(refs))
        return None

    def check_remote_status(self, info: RevisionInfo | None) -> str | None:
        """本地版本落后于远程时返回提示信息，从不抛异常"""
        try:
            return self._check_remote_status(info)
        except Exception as e:
            logger.debug("远程版本检查失败: %s", e, exc_info=True)
            return None

    def _check_remote_status(self, info: RevisionInfo | None) -> str | None:
        if info is None or not info.commit_id or not info.name:
            return None
        remote_id = self.remote_commit_id(info)
        if remote_id is None:
            raise RemoteStatusCheckError(f"远程仓库中找不到版本: {info.name}")
        if remote_id == info.commit_id:
            return None

        local = info.commit_id[:SHORT_ID_LEN]
        remote = remote_id[:SHORT_ID_LEN]
        if local == remote:
            remote = remote_id
        notice = (
            "NOTE: Your local project version looks outdated - "
            f"a different revision is available in the remote repository [{remote}]"
        )
        logger.info(notice)
        return notice

    # ---- 本地引用 ----

    def branches(self) -> list[GitRef]:
        return self.vcs.list_refs(self.handle.path, "refs/heads")

    def tags(self) -> list[GitRef]:
        return self.vcs.list_refs(self.handle.path, "refs/tags")

    def diff_local_and_remote(self, level: int = 0) -> list[str]:
        """远程已变化的分支和 tag，按 level 控制 commit id 的显示"""
        result: list[str] = []
        for refs, tags in ((self.branches(), False), (self.tags(), True)):
            remote = self.remote_refs(tags=tags)
            for ref in refs:
                latest = remote.get(ref.name)
                if latest is None or latest == ref.commit_id:
                    continue
                name = shorten_ref_name(ref.name)
                if level <= 0:
                    result.append(f"  {name}")
                else:
                    result.append(f"  {_format_id(latest, level == 1)} {name}")
        return result

    def branches_and_tags(
        self,
        check_for_updates: bool,
        *,
        default_branch: str,
        pulled: list[str],
    ) -> dict[str, Any]:
        """分支 / tag 的结构化描述，远程有更新时附带 latest_id"""

        def entries(refs: list[GitRef], tags: bool) -> list[dict[str, str]]:
            remote = self.remote_refs(tags=tags) if check_for_updates else {}
            items = []
            for ref in refs:
                entry = {"name": shorten_ref_name(ref.name), "commit_id": ref.commit_id}
                latest = remote.get(ref.name)
                if latest and latest != ref.commit_id:
                    entry["latest_id"] = latest
                items.append(entry)
            return items

        return {
            "default": default_branch,
            "pulled": pulled,
            "branches": entries(self.branches(), False),
            "tags": entries(self.tags(), True),
        }

    def revisions(self, level: int, *, default_branch: str, pulled: list[str]) -> list[str]:
        """版本列表

            P master (default)
              dev
              v1.0 [t]

        P 表示该版本对应的 commit 已在本地物化。
        """
        pulled_ids = set(pulled)
        result: list[str] = []
        for refs, tag in ((self.branches(), False), (self.tags(), True)):
            for ref in refs:
                name = shorten_ref_name(ref.name)
                line = "P" if ref.commit_id in pulled_ids else " "
                if level:
                    line += " " + _format_id(ref.commit_id, level == 1)
                line += " " + name
                if tag:
                    line += " [t]"
                elif name == default_branch:
                    line += " (default)"
                result.append(line)
        return result


def _format_id(commit_id: str, short: bool) -> str:
    return commit_id[:SHORT_ID_LEN] if short else commit_id
