"""核心数据模型

项目标识、版本信息、引用条目等领域实体集中定义，
scm 各组件与服务层统一从此处导入。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pipehub.core.exceptions import InvalidProjectNameError

REVISION_DELIM = ":"


# =========================================================================
# 项目标识
# =========================================================================


@dataclass(frozen=True)
class ProjectIdentifier:
    """项目标识 org/repo，可附带版本和主脚本路径"""

    organization: str
    repository: str
    revision: str | None = None
    main_script: str | None = None

    @property
    def name(self) -> str:
        return f"{self.organization}/{self.repository}"

    @property
    def with_revision(self) -> str:
        if self.revision:
            return f"{self.name}{REVISION_DELIM}{self.revision}"
        return self.name

    @classmethod
    def parse(
        cls, name: str, *, revision: str | None = None, main_script: str | None = None,
    ) -> ProjectIdentifier:
        """解析 org/repo 形式的名称，段数不为 2 时抛 InvalidProjectNameError"""
        parts = name.split("/")
        if len(parts) != 2 or not all(parts):
            raise InvalidProjectNameError(f"项目名称不合法: {name}")
        return cls(
            organization=parts[0], repository=parts[1],
            revision=revision, main_script=main_script,
        )

    def __str__(self) -> str:
        return self.name


# =========================================================================
# 版本信息
# =========================================================================


class RevisionType(Enum):
    TAG = "tag"
    BRANCH = "branch"
    COMMIT = "commit"


@dataclass(frozen=True)
class RevisionInfo:
    """项目版本信息（按需计算，不持久化）"""

    commit_id: str | None
    name: str | None = None
    type: RevisionType = RevisionType.COMMIT

    def __str__(self) -> str:
        if not self.commit_id:
            return "(unknown)"
        if self.name:
            return f"{self.commit_id[:10]} [{self.name}]"
        return self.commit_id


@dataclass(frozen=True)
class RemoteRef:
    """托管平台返回的分支 / tag 条目"""

    name: str
    commit_id: str


@dataclass(frozen=True)
class GitRef:
    """本地仓库引用，annotated tag 的 peeled_id 指向实际 commit"""

    name: str
    object_id: str
    peeled_id: str | None = None

    @property
    def commit_id(self) -> str:
        return self.peeled_id or self.object_id


@dataclass(frozen=True)
class Credentials:
    user: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, password='***')"


# =========================================================================
# 本地缓存实体
# =========================================================================


@dataclass(frozen=True)
class MirrorHandle:
    """项目共享裸镜像"""

    project: ProjectIdentifier
    path: Path


@dataclass(frozen=True)
class Worktree:
    """按 commit 物化的工作目录"""

    project: ProjectIdentifier
    commit_id: str
    path: Path
    created: bool = False
