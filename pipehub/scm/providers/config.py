"""托管平台配置与注册表

职责:
- 内置 github / gitlab / bitbucket / gitea 默认配置
- 从 scm.yml 的 providers 段加载自定义平台（覆盖默认值）
- 按 URL / 域名匹配平台，按名称选择平台

scm.yml 示例:
    providers:
      github:
        user: me
        password: ghp_xxx
      corp:
        platform: gitlab
        server: https://git.corp.com/gitlab
        token_env: CORP_GITLAB_TOKEN

注册表是调用方持有的可变对象，只允许通过 add() 追加运行期推断出的配置
（file 协议的本地平台等），不存在全局注册表。
"""

from __future__ import annotations

import difflib
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Iterator
from urllib.parse import urlparse

from pipehub.core.exceptions import ConfigError, UnknownProviderError
from pipehub.core.models import Credentials
from pipehub.scm.git_url import GitUrl
from pipehub.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

PLATFORMS = ("github", "gitlab", "bitbucket", "gitea", "file")

_DEFAULTS: dict[str, dict[str, str]] = {
    "github": {"server": "https://github.com", "endpoint": "https://api.github.com"},
    "gitlab": {"server": "https://gitlab.com", "endpoint": "https://gitlab.com"},
    "bitbucket": {"server": "https://bitbucket.org", "endpoint": "https://api.bitbucket.org"},
    "gitea": {"server": "https://gitea.com", "endpoint": "https://gitea.com/api/v1"},
}

# (user, password, token) 环境变量
_CREDENTIAL_ENV: dict[str, tuple[str, str, str]] = {
    "github": ("GITHUB_USERNAME", "GITHUB_PASSWORD", "GITHUB_TOKEN"),
    "gitlab": ("GITLAB_USER", "GITLAB_PASSWORD", "GITLAB_TOKEN"),
    "bitbucket": ("BITBUCKET_USER", "BITBUCKET_APP_PASSWORD", "BITBUCKET_TOKEN"),
    "gitea": ("GITEA_USER", "GITEA_PASSWORD", "GITEA_TOKEN"),
}


@dataclass(frozen=True)
class ProviderConfig:
    """单个托管平台的描述（加载后不可变）"""

    name: str
    platform: str
    server: str = ""
    endpoint: str = ""
    user: str | None = None
    password: str | None = None
    token: str | None = None
    path: str | None = None
    clone_url_template: str = "{server}/{project}.git"

    @property
    def domain(self) -> str:
        """host[:port][/前缀]，本地平台为仓库根目录"""
        if self.platform == "file":
            return self.path or ""
        parsed = urlparse(self.server)
        host = parsed.hostname or ""
        if parsed.port:
            host = f"{host}:{parsed.port}"
        prefix = parsed.path.strip("/")
        return f"{host}/{prefix}" if prefix else host

    @property
    def server_prefix(self) -> str:
        if self.platform == "file":
            return ""
        return urlparse(self.server).path.strip("/")

    def resolve_project_name(self, url_path: str) -> str:
        """去掉服务端路径前缀，得到 org/repo"""
        path = url_path.strip("/")
        prefix = self.server_prefix
        if prefix and path.startswith(prefix + "/"):
            path = path[len(prefix) + 1:]
        return path

    def clone_url(self, project: str) -> str:
        return self.clone_url_template.format(server=self.server.rstrip("/"), project=project)

    def credentials(self) -> Credentials | None:
        """git 传输使用的 Basic 凭据（token 作为密码）"""
        if self.user and self.password:
            return Credentials(self.user, self.password)
        if self.token:
            user = self.user or ("oauth2" if self.platform == "gitlab" else "x-access-token")
            return Credentials(user, self.token)
        return None

    def with_credentials(self, user: str, password: str) -> ProviderConfig:
        return replace(self, user=user, password=password)

    @classmethod
    def for_local_path(cls, path: str) -> ProviderConfig:
        """file 协议仓库目录对应的本地平台，名称形如 file:/data/repos"""
        path = _local_path(path)
        return cls(name=f"file:{path}", platform="file", path=path)

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any] | None) -> ProviderConfig:
        data = dict(data or {})
        platform = data.get("platform") or name
        if platform not in PLATFORMS:
            raise ConfigError(
                f"平台 '{name}' 的 platform 无效: {platform}，可选: {', '.join(PLATFORMS)}"
            )
        if platform == "file":
            if not data.get("path"):
                raise ConfigError(f"本地平台 '{name}' 必须指定 path")
            return cls(name=name, platform="file", path=_local_path(data["path"]))

        defaults = _DEFAULTS[platform]
        server = (data.get("server") or defaults["server"]).rstrip("/")
        endpoint = data.get("endpoint") or _default_endpoint(platform, server, defaults)

        user_env, pwd_env, token_env = _CREDENTIAL_ENV[platform]
        user = data.get("user") or os.environ.get(data.get("user_env") or user_env)
        password = data.get("password") or os.environ.get(data.get("password_env") or pwd_env)
        token = data.get("token") or os.environ.get(data.get("token_env") or token_env)

        kwargs: dict[str, Any] = {}
        if data.get("clone_url_template"):
            kwargs["clone_url_template"] = data["clone_url_template"]
        return cls(
            name=name, platform=platform, server=server, endpoint=endpoint.rstrip("/"),
            user=user or None, password=password or None, token=token or None,
            **kwargs,
        )


def _local_path(path: str) -> str:
    """本地平台目录统一为绝对路径，file URI 只接受绝对路径"""
    return str(Path(path).expanduser().resolve())


def _default_endpoint(platform: str, server: str, defaults: dict[str, str]) -> str:
    if server == defaults["server"]:
        return defaults["endpoint"]
    # 私有部署的 API 地址跟随 server
    if platform == "github":
        return f"{server}/api/v3"
    if platform == "gitea":
        return f"{server}/api/v1"
    return server


class ProviderRegistry:
    """托管平台注册表（按插入顺序）"""

    def __init__(self, configs: Iterable[ProviderConfig] = ()) -> None:
        self._configs: list[ProviderConfig] = []
        for cfg in configs:
            self.add(cfg)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ProviderRegistry:
        """内置默认平台 + providers 段中的自定义平台（同名覆盖）"""
        entries: dict[str, dict[str, Any]] = {name: {} for name in _DEFAULTS}
        for name, info in ((data or {}).get("providers") or {}).items():
            entries[name] = info or {}
        registry = cls(ProviderConfig.from_dict(n, e) for n, e in entries.items())
        logger.debug("已加载 %d 个托管平台: %s", len(registry), ", ".join(registry.names()))
        return registry

    @classmethod
    def from_file(cls, path: str | Path) -> ProviderRegistry:
        return cls.from_dict(load_yaml(path))

    def __iter__(self) -> Iterator[ProviderConfig]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, name: object) -> bool:
        return any(c.name == name for c in self._configs)

    def names(self) -> list[str]:
        return [c.name for c in self._configs]

    def get(self, name: str) -> ProviderConfig | None:
        return next((c for c in self._configs if c.name == name), None)

    def add(self, config: ProviderConfig) -> ProviderConfig:
        """追加配置；同名配置已存在时保留原配置"""
        existing = self.get(config.name)
        if existing is not None:
            return existing
        self._configs.append(config)
        return config

    def find_by_domain(self, domain: str) -> ProviderConfig | None:
        return next((c for c in self._configs if c.domain == domain), None)

    def match_url(self, url: GitUrl) -> ProviderConfig | None:
        """按域名匹配平台，带路径前缀的私有部署优先"""
        full = f"{url.domain}/{url.path}"
        best: ProviderConfig | None = None
        for cfg in self._configs:
            if cfg.platform == "file":
                if url.protocol == "file" and cfg.path == _local_path(url.domain):
                    return cfg
                continue
            domain = cfg.domain
            if url.domain == domain or full.startswith(domain + "/"):
                if best is None or len(domain) > len(best.domain):
                    best = cfg
        return best

    def select_provider(
        self,
        explicit: str | None = None,
        cli_hint: str | None = None,
        local_hint: str | None = None,
        default: str = "github",
    ) -> str:
        """按 显式指定 → 命令行 → 本地镜像推断 → 默认值 的顺序选择平台"""
        result = explicit or cli_hint or local_hint or default
        names = self.names()
        if result not in names:
            matches = difflib.get_close_matches(result, names, n=5, cutoff=0.6) or names
            message = f"未知的托管平台: `{result}`，是否指的是:\n" + "\n".join(
                f"  {m}" for m in matches
            )
            raise UnknownProviderError(message, suggestions=matches)
        return result
