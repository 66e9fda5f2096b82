"""流水线项目资产管理门面

串联 名称解析 → 平台选择 → 镜像一致性校验 → 镜像 / commit 解析 → 工作目录物化，
并对外提供 CLI / Web 所需的查询与状态操作。

用法:
    manager = AssetManager("pipehub-io/hello:dev", root=Path("~/.pipehub/assets"),
                           registry=ProviderRegistry.from_file("scm.yml"), vcs=GitClient())
    manager.download()
    script = manager.main_script_file()

注册表由调用方持有，解析 URL / 推断本地平台时会向其中追加配置。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pipehub.core.exceptions import (
    ConfigError,
    MissingRemoteArtifactError,
    ProviderMismatchError,
    RemoteAccessError,
)
from pipehub.core.manifest import MANIFEST_FILE_NAME, Manifest
from pipehub.core.models import (
    REVISION_DELIM,
    MirrorHandle,
    ProjectIdentifier,
    RevisionInfo,
    RevisionType,
)
from pipehub.core.protocols import VcsClient
from pipehub.scm.mirror import BareRepositoryCache
from pipehub.scm.mirror import list_projects as list_cached_projects
from pipehub.scm.providers import create_provider
from pipehub.scm.providers.base import RepositoryProvider
from pipehub.scm.providers.config import ProviderConfig, ProviderRegistry
from pipehub.scm.resolver import NameResolver
from pipehub.scm.revision import (
    UNKNOWN_REVISION,
    RevisionResolver,
    StatusReporter,
    shorten_ref_name,
)
from pipehub.scm.worktree import WorktreeManager

logger = logging.getLogger(__name__)

DOWNLOADED = "downloaded from local mirror"
ALREADY_AVAILABLE = "already available"


class AssetManager:
    """单个流水线项目的资产管理

    Args:
        name: 项目名称、org/repo 或仓库 URL，可带 :revision
        root: 缓存根目录
        registry: 托管平台注册表（调用方持有）
        vcs: 版本控制客户端
        revision: 显式指定的版本，优先于名称中的 :revision
        hub: 命令行指定的平台名称
        user / password: 命令行凭据，覆盖平台配置
    """

    def __init__(
        self,
        name: str,
        *,
        root: Path,
        registry: ProviderRegistry,
        vcs: VcsClient,
        revision: str | None = None,
        hub: str | None = None,
        user: str | None = None,
        password: str | None = None,
        default_hub: str = "github",
        default_organization: str = "pipehub-io",
        timeout: float | None = None,
    ) -> None:
        self.root = Path(root).expanduser()
        self.registry = registry
        self.vcs = vcs
        self.mirrors = BareRepositoryCache(self.root, vcs)
        self.worktrees = WorktreeManager(self.root, vcs)
        self.revision_resolver = RevisionResolver(vcs, self.worktrees)

        resolver = NameResolver(registry, self.mirrors, default_organization=default_organization)
        self.project: ProjectIdentifier = resolver.resolve(name, revision)

        local_hint = self.guess_provider_from_mirror() if self.mirrors.exists(self.project) else None
        self.hub = registry.select_provider(
            resolver.selected_provider, hub, local_hint, default_hub,
        )
        config = registry.get(self.hub)
        if config is None:
            raise ConfigError(f"托管平台未配置: {self.hub}")
        self.provider: RepositoryProvider = create_provider(
            config, self.project.name, vcs=vcs, revision=self.project.revision, timeout=timeout,
        )
        if user and password:
            self.provider.set_credentials(user, password)

        self.validate_mirror_provider()

        self._commit_id: str | None = None
        self._manifest: Manifest | None = None
        logger.debug("项目 %s 使用平台 %s", self.project.with_revision, self.hub)

    # =====================================================================
    # 平台推断 / 一致性
    # =====================================================================

    def guess_provider_from_mirror(self, fail_fast: bool = False) -> str | None:
        """根据镜像记录的远程地址推断平台名称"""
        url = self.mirrors.recorded_git_url(self.project)
        if url is None:
            if fail_fast:
                raise ConfigError(
                    f"无法读取镜像仓库的远程地址 -- 仓库可能已损坏: "
                    f"{self.mirrors.path_for(self.project)}"
                )
            return None

        config = self.registry.match_url(url)
        if config is None and url.protocol == "file":
            config = self.registry.add(ProviderConfig.for_local_path(url.domain))
        if config is None:
            if fail_fast:
                raise ConfigError(
                    f"找不到 git 服务器 `{url.domain}` 对应的托管平台 -- "
                    "请在 scm 配置文件的 providers 段中声明"
                )
            return None
        return config.name

    def validate_mirror_provider(self) -> None:
        """已有镜像的平台必须与当前选择的平台一致"""
        if not self.mirrors.exists(self.project):
            return
        recorded = self.guess_provider_from_mirror(fail_fast=True)
        if recorded != self.hub:
            raise ProviderMismatchError(
                f"项目 `{self.project}` 的本地镜像来自平台 `{recorded}`，"
                f"与当前选择的平台 `{self.hub}` 不一致 -- "
                f"请删除 {self.mirrors.path_for(self.project)} 后重新拉取"
            )

    # =====================================================================
    # 基本属性
    # =====================================================================

    @property
    def project_name(self) -> str:
        return self.project.name

    @property
    def project_with_revision(self) -> str:
        return self.project.with_revision

    @property
    def base_name_with_revision(self) -> str:
        base = self.project.repository
        if self.project.revision:
            return f"{base}{REVISION_DELIM}{self.project.revision}"
        return base

    @property
    def mirror(self) -> MirrorHandle:
        return self.mirrors.handle(self.project)

    @property
    def commit_id(self) -> str | None:
        """当前版本解析出的 commit，镜像不存在时为 None"""
        if self._commit_id is None and self.mirrors.exists(self.project):
            self._commit_id = self.mirrors.resolve_commit(
                self.mirror, self.project.revision, self.provider.credentials(),
            )
        return self._commit_id

    @property
    def local_path(self) -> Path | None:
        commit = self.commit_id
        if commit is None:
            return None
        return self.worktrees.path_for(self.project, commit)

    @property
    def repository_url(self) -> str:
        return self.provider.repository_url()

    @property
    def clone_url(self) -> str:
        return self.provider.clone_url()

    @property
    def home_page(self) -> str:
        return self.manifest.home_page or self.provider.repository_url()

    @property
    def default_branch(self) -> str:
        return self.manifest.default_branch

    # =====================================================================
    # 清单 / 主脚本
    # =====================================================================

    @property
    def manifest(self) -> Manifest:
        """项目清单，优先读取本地工作目录，否则从远程平台读取"""
        if self._manifest is None:
            self._manifest = Manifest.parse(self._read_manifest_text())
        return self._manifest

    def _read_manifest_text(self) -> str:
        if self.is_local():
            path = self.local_path / MANIFEST_FILE_NAME  # type: ignore[operator]
            return path.read_text(encoding="utf-8") if path.is_file() else ""
        try:
            return self.provider.read_text(MANIFEST_FILE_NAME)
        except MissingRemoteArtifactError:
            logger.debug("项目 %s 没有清单文件", self.project)
            return ""
        except RemoteAccessError as e:
            logger.warning("无法读取项目 %s 的清单文件: %s", self.project, e)
            return ""

    @property
    def main_script_name(self) -> str:
        return self.project.main_script or self.manifest.main_script

    def main_script_file(self) -> Path:
        """工作目录中的主脚本路径"""
        if not self.is_local():
            raise MissingRemoteArtifactError(f"项目 {self.project_with_revision} 尚未下载到本地")
        script = self.local_path / self.main_script_name  # type: ignore[operator]
        if not script.is_file():
            raise MissingRemoteArtifactError(
                f"项目 {self.project_with_revision} 缺少主脚本: {self.main_script_name}"
            )
        return script

    def is_local(self) -> bool:
        path = self.local_path
        return path is not None and path.exists()

    def is_runnable(self) -> bool:
        try:
            return self.main_script_file().is_file()
        except MissingRemoteArtifactError:
            return False

    def is_clean(self) -> bool:
        if not self.is_local():
            return True
        return self.vcs.is_clean(self.local_path)  # type: ignore[arg-type]

    # =====================================================================
    # 下载 / 克隆
    # =====================================================================

    def download(self, depth: int | None = None) -> str:
        """确保当前版本的工作目录存在，返回状态描述"""
        handle = self.mirrors.ensure(self.project, self.provider, self.main_script_name)
        commit = self.mirrors.resolve_commit(
            handle, self.project.revision, self.provider.credentials(),
        )
        self._commit_id = commit
        worktree = self.worktrees.materialize(handle, commit, depth=depth)
        if not worktree.created:
            return ALREADY_AVAILABLE

        # 清单以本地工作目录为准
        self._manifest = None
        self.worktrees.update_submodules(
            worktree.path, self.manifest, self.provider.credentials(),
        )
        return DOWNLOADED

    def clone(self, destination: Path, depth: int | None = None) -> Path:
        """将当前版本从远程导出到任意目录"""
        return self.worktrees.clone(
            self.project,
            Path(destination),
            self.provider.clone_url(),
            revision=self.project.revision,
            depth=depth,
            recurse_submodules=self.manifest.recurse_submodules,
            credentials=self.provider.credentials(),
        )

    def update_local_mirror(self) -> None:
        """从远程刷新镜像，镜像不存在时先创建"""
        handle = self.mirrors.ensure(self.project, self.provider, self.main_script_name)
        self.mirrors.update(handle, self.provider.credentials())
        self._commit_id = None

    # =====================================================================
    # 版本 / 状态
    # =====================================================================

    @staticmethod
    def list_projects(root: Path) -> list[str]:
        """缓存根目录下的全部项目"""
        return list_cached_projects(Path(root).expanduser())

    def list_revisions(self) -> list[str]:
        """本项目已物化的版本，形如 org/repo:<commit>"""
        return [
            f"{self.project.name}{REVISION_DELIM}{commit}"
            for commit in self.revision_resolver.list_local_revisions(self.project)
        ]

    @property
    def status_reporter(self) -> StatusReporter:
        return StatusReporter(
            self.vcs, self.mirror, self.provider.clone_url(), self.provider.credentials(),
        )

    def current_revision(self) -> str:
        info = self.current_revision_and_name()
        if info is None:
            return UNKNOWN_REVISION
        return info.name or info.commit_id or UNKNOWN_REVISION

    def current_revision_and_name(self) -> RevisionInfo | None:
        """工作目录的当前版本

        工作目录总是处于分离 HEAD，请求的版本是镜像中的分支时按分支报告。
        未指定版本时按镜像 HEAD 指向的分支比对，与检出时解析 commit 的方式一致。
        """
        if not self.is_local():
            return None
        info = self.revision_resolver.current_revision_and_name(self.local_path)  # type: ignore[arg-type]
        if info is None or info.type is not RevisionType.COMMIT:
            return info
        requested = self.project.revision
        if not requested:
            head = self.vcs.symbolic_head(self.mirror.path)
            requested = shorten_ref_name(head) if head else self.default_branch
        for ref in self.status_reporter.branches():
            if shorten_ref_name(ref.name) == requested and ref.commit_id == info.commit_id:
                return RevisionInfo(info.commit_id, requested, RevisionType.BRANCH)
        return info

    def check_remote_status(self) -> str | None:
        return self.status_reporter.check_remote_status(self.current_revision_and_name())

    def get_updates(self, level: int = 0) -> list[str]:
        return self.status_reporter.diff_local_and_remote(level)

    def get_branches_and_tags(self, check_for_updates: bool = False) -> dict[str, Any]:
        return self.status_reporter.branches_and_tags(
            check_for_updates,
            default_branch=self.default_branch,
            pulled=self.revision_resolver.list_local_revisions(self.project),
        )

    def get_revisions(self, level: int = 0) -> list[str]:
        return self.status_reporter.revisions(
            level,
            default_branch=self.default_branch,
            pulled=self.revision_resolver.list_local_revisions(self.project),
        )

    def get_remote_revisions(self) -> list[RevisionInfo]:
        """托管平台上的分支和 tag（不经过本地镜像）"""
        result = [
            RevisionInfo(ref.commit_id, ref.name, RevisionType.BRANCH)
            for ref in self.provider.list_branches()
        ]
        result.extend(
            RevisionInfo(ref.commit_id, ref.name, RevisionType.TAG)
            for ref in self.provider.list_tags()
        )
        return result

    def __repr__(self) -> str:
        return f"AssetManager(project={self.project.with_revision!r}, hub={self.hub!r})"
