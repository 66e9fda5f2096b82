"""本地目录平台适配器

用于 file: 协议地址，平台 path 为一组 git 仓库所在目录，
项目 local/<repo> 对应 <path>/<repo>（或 <path>/<repo>.git）。
远程读取与引用列表直接通过 VcsClient 访问该仓库。
"""

from __future__ import annotations

from pathlib import Path

from pipehub.core.exceptions import MissingRemoteArtifactError
from pipehub.core.models import RemoteRef
from pipehub.core.protocols import VcsClient
from pipehub.scm.providers.base import RepositoryProvider
from pipehub.scm.providers.config import ProviderConfig


class LocalRepositoryProvider(RepositoryProvider):

    def __init__(
        self,
        config: ProviderConfig,
        project: str,
        *,
        vcs: VcsClient,
        revision: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(config, project, revision=revision, timeout=timeout)
        self.vcs = vcs

    @property
    def repo_path(self) -> Path:
        base = Path(self.config.path or "")
        name = self.project.split("/", 1)[-1]
        plain = base / name
        if not plain.exists() and (base / f"{name}.git").exists():
            return base / f"{name}.git"
        return plain

    @property
    def endpoint_url(self) -> str:
        return self.repo_path.as_uri()

    def clone_url(self) -> str:
        return self.repo_path.as_uri()

    def repository_url(self) -> str:
        return self.repo_path.as_uri()

    def validate_repo(self) -> None:
        if not self.repo_path.exists():
            raise MissingRemoteArtifactError(f"本地仓库不存在: {self.repo_path}")

    def read_bytes(self, path: str) -> bytes:
        self.validate_repo()
        try:
            return self.vcs.show_file(self.repo_path, self.revision or "HEAD", path.lstrip("/"))
        except FileNotFoundError as e:
            raise MissingRemoteArtifactError(f"远程资源不存在: {self.repo_path}/{path}") from e

    def list_branches(self) -> list[RemoteRef]:
        refs = self.vcs.ls_remote(str(self.repo_path), heads=True)
        return [RemoteRef(name=k[len("refs/heads/"):], commit_id=v) for k, v in refs.items()]

    def list_tags(self) -> list[RemoteRef]:
        refs = self.vcs.ls_remote(str(self.repo_path), tags=True)
        return [RemoteRef(name=k[len("refs/tags/"):], commit_id=v) for k, v in refs.items()]
