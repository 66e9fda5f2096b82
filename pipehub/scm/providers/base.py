"""托管平台适配器基类

每个平台实现同一组能力: clone 地址、仓库主页、凭据、远程文件存在性校验、
分支 / tag 列表、免 clone 读取单个文件。新平台通过继承实现，而非按类型分支。
"""

from __future__ import annotations

import base64
import json
import logging
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from typing import Any

from pipehub.core.exceptions import MissingRemoteArtifactError, RemoteAccessError
from pipehub.core.models import Credentials, RemoteRef
from pipehub.scm.providers.config import ProviderConfig
from pipehub.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)


class RepositoryProvider(ABC):
    """托管平台适配器"""

    def __init__(
        self,
        config: ProviderConfig,
        project: str,
        *,
        revision: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.config = config
        self.project = project
        self.revision = revision
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.config.name

    # ---- 凭据 ----

    def set_credentials(self, user: str, password: str) -> None:
        self.config = self.config.with_credentials(user, password)

    def credentials(self) -> Credentials | None:
        return self.config.credentials()

    def has_credentials(self) -> bool:
        return self.credentials() is not None

    # ---- 地址 ----

    def clone_url(self) -> str:
        return self.config.clone_url(self.project)

    def repository_url(self) -> str:
        return f"{self.config.server.rstrip('/')}/{self.project}"

    @property
    @abstractmethod
    def endpoint_url(self) -> str:
        """仓库对应的 API 根地址"""

    # ---- 校验 ----

    def validate_repo(self) -> None:
        """校验远程仓库存在，不存在抛 MissingRemoteArtifactError"""
        try:
            self._get(self.endpoint_url)
        except MissingRemoteArtifactError as e:
            raise MissingRemoteArtifactError(
                f"远程仓库不存在: {self.repository_url()}"
            ) from e

    def validate_for(self, path: str) -> None:
        """校验远程仓库包含指定文件（通常为主脚本）"""
        try:
            self.read_bytes(path)
        except MissingRemoteArtifactError as e:
            raise MissingRemoteArtifactError(
                f"远程仓库 {self.repository_url()} 不是有效的流水线项目 -- 缺少文件: {path}"
            ) from e

    # ---- 远程读取 ----

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """免 clone 读取单个文件，不存在抛 MissingRemoteArtifactError"""

    def read_text(self, path: str) -> str:
        return self.read_bytes(path).decode("utf-8")

    @abstractmethod
    def list_branches(self) -> list[RemoteRef]:
        ...

    @abstractmethod
    def list_tags(self) -> list[RemoteRef]:
        ...

    # ---- HTTP ----

    def auth_headers(self) -> dict[str, str]:
        cfg = self.config
        if cfg.user and cfg.password:
            token = base64.b64encode(f"{cfg.user}:{cfg.password}".encode()).decode("ascii")
            return {"Authorization": f"Basic {token}"}
        if cfg.token:
            return {"Authorization": f"token {cfg.token}"}
        return {}

    def _get(self, url: str) -> bytes:
        validate_url_scheme(url, context=f"{self.name} api")
        req = urllib.request.Request(url, headers={"User-Agent": "pipehub", **self.auth_headers()})
        kwargs: dict[str, Any] = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        logger.debug("%s API 请求: %s", self.name, url)
        try:
            with urllib.request.urlopen(req, **kwargs) as resp:  # nosec B310
                return resp.read()
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise MissingRemoteArtifactError(f"远程资源不存在: {url}") from e
            raise RemoteAccessError(f"{self.name} API 错误 {e.code}: {e.reason} ({url})") from e
        except (urllib.error.URLError, OSError) as e:
            raise RemoteAccessError(f"{self.name} API 访问失败: {url} - {e}") from e

    def _get_json(self, url: str) -> Any:
        data = self._get(url)
        try:
            return json.loads(data)
        except ValueError as e:
            raise RemoteAccessError(f"{self.name} API 返回了无效的 JSON: {url}") from e

    @staticmethod
    def _decode_content(payload: Any, path: str) -> bytes:
        """解析 contents 类接口的 base64 内容"""
        if not isinstance(payload, dict) or "content" not in payload:
            raise MissingRemoteArtifactError(f"远程路径不是文件: {path}")
        return base64.b64decode(payload["content"])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, project={self.project!r})"
