"""托管平台适配器

- config.py: 平台配置与注册表
- base.py: 适配器基类
- github.py / gitlab.py / gitea.py / bitbucket.py: REST API 实现
- local.py: file 协议本地目录实现

create_provider() 按 platform 选择实现类，调用方无需区分平台。
"""

from __future__ import annotations

from pipehub.core.exceptions import ConfigError
from pipehub.core.protocols import VcsClient
from pipehub.scm.providers.base import RepositoryProvider
from pipehub.scm.providers.bitbucket import BitbucketRepositoryProvider
from pipehub.scm.providers.config import ProviderConfig, ProviderRegistry
from pipehub.scm.providers.gitea import GiteaRepositoryProvider
from pipehub.scm.providers.github import GithubRepositoryProvider
from pipehub.scm.providers.gitlab import GitlabRepositoryProvider
from pipehub.scm.providers.local import LocalRepositoryProvider

_REMOTE_PROVIDERS: dict[str, type[RepositoryProvider]] = {
    "github": GithubRepositoryProvider,
    "gitlab": GitlabRepositoryProvider,
    "gitea": GiteaRepositoryProvider,
    "bitbucket": BitbucketRepositoryProvider,
}


def create_provider(
    config: ProviderConfig,
    project: str,
    *,
    vcs: VcsClient,
    revision: str | None = None,
    timeout: float | None = None,
) -> RepositoryProvider:
    """按平台类型创建适配器实例"""
    if config.platform == "file":
        return LocalRepositoryProvider(
            config, project, vcs=vcs, revision=revision, timeout=timeout,
        )
    cls = _REMOTE_PROVIDERS.get(config.platform)
    if cls is None:
        raise ConfigError(f"不支持的平台类型: {config.platform}")
    return cls(config, project, revision=revision, timeout=timeout)


__all__ = [
    "ProviderConfig",
    "ProviderRegistry",
    "RepositoryProvider",
    "GithubRepositoryProvider",
    "GitlabRepositoryProvider",
    "GiteaRepositoryProvider",
    "BitbucketRepositoryProvider",
    "LocalRepositoryProvider",
    "create_provider",
]
