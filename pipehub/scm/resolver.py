"""项目名称解析

将用户输入（短名称 / org/repo / 仓库 URL，可带 :revision）解析为 ProjectIdentifier。

规则:
  - http/https/file URL: 按注册表匹配平台，file 协议临时合成本地平台
  - ./ ../ / 开头: 不是仓库引用，拒绝
  - 末段以 .nf / .nxf 结尾: 视为主脚本路径并剥离
  - 剩余两段: 直接作为 org/repo
  - 剩余一段: 短名称，在本地缓存中查找（精确匹配优先于前缀匹配）
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipehub.scm.mirror import BareRepositoryCache

from pipehub.core.exceptions import AmbiguousProjectNameError, InvalidProjectNameError
from pipehub.core.models import REVISION_DELIM, ProjectIdentifier
from pipehub.scm.git_url import GitUrl
from pipehub.scm.providers.config import ProviderConfig, ProviderRegistry

logger = logging.getLogger(__name__)

SCRIPT_SUFFIXES = (".nf", ".nxf")
_INVALID_PREFIXES = ("./", "../", "/")


class NameResolver:
    """项目名称解析器

    解析 URL 时会向传入的注册表追加平台配置，并记录 selected_provider。
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        cache: BareRepositoryCache,
        *,
        default_organization: str,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.default_organization = default_organization
        self.selected_provider: str | None = None

    def resolve(self, raw_name: str, revision: str | None = None) -> ProjectIdentifier:
        if not raw_name:
            raise InvalidProjectNameError("项目名称不能为空")

        project = self.resolve_url(raw_name)
        if project:
            return ProjectIdentifier.parse(project, revision=revision)

        if raw_name.startswith(_INVALID_PREFIXES):
            raise InvalidProjectNameError(f"不是有效的项目名称: {raw_name}")

        name, revision = self._split_revision(raw_name, revision)

        parts = name.split("/")
        if not all(parts):
            raise InvalidProjectNameError(f"不是有效的项目名称: {raw_name}")

        main_script: str | None = None
        if parts[-1].endswith(SCRIPT_SUFFIXES):
            if len(parts) == 1:
                raise InvalidProjectNameError(f"不是有效的项目名称: {raw_name}")
            if len(parts) == 2:
                main_script = parts[1]
                parts = parts[:1]
            else:
                main_script = "/".join(parts[2:])
                parts = parts[:2]

        if len(parts) == 2:
            return ProjectIdentifier(parts[0], parts[1], revision, main_script)
        if len(parts) > 2:
            raise InvalidProjectNameError(f"不是有效的项目名称: {raw_name}")

        qualified = self.find(parts[0])
        if qualified is None:
            return ProjectIdentifier(self.default_organization, parts[0], revision, main_script)
        if isinstance(qualified, list):
            raise AmbiguousProjectNameError(
                "是指哪一个?\n" + "\n".join(qualified), candidates=qualified,
            )
        return ProjectIdentifier.parse(qualified, revision=revision, main_script=main_script)

    def resolve_url(self, raw_name: str) -> str | None:
        """URL 输入返回 org/repo，非 URL 或无法解析时返回 None"""
        if not GitUrl.is_url(raw_name):
            return None
        try:
            url = GitUrl.parse(raw_name)
        except ValueError as e:
            logger.debug("无法解析仓库地址: %s -- %s", raw_name, e)
            return None

        if url.protocol == "file":
            config = self.registry.match_url(url) or self.registry.add(
                ProviderConfig.for_local_path(url.domain)
            )
            self.selected_provider = config.name
            result = f"local/{url.path}"
        else:
            config = self.registry.match_url(url)
            if config is not None:
                self.selected_provider = config.name
                result = config.resolve_project_name(url.path)
            else:
                result = url.path
        logger.debug(
            "仓库地址: %s; 项目: %s; 平台: %s", raw_name, result, self.selected_provider,
        )
        return result

    def find(self, name: str) -> str | list[str] | None:
        """在本地缓存中查找短名称

        返回唯一匹配的 org/repo、多个候选的列表，或无匹配时 None。
        """
        exact: list[str] = []
        partial: list[str] = []
        for qualified in self.cache.list_projects():
            repo = qualified.split("/", 1)[-1]
            if repo == name:
                exact.append(qualified)
            elif repo.startswith(name):
                partial.append(qualified)

        matches = exact or partial
        if not matches:
            return None
        return matches[0] if len(matches) == 1 else matches

    @staticmethod
    def _split_revision(name: str, revision: str | None) -> tuple[str, str | None]:
        """拆分末段的 :revision，显式参数优先，两者冲突时报错"""
        head, sep, tail = name.rpartition("/")
        if REVISION_DELIM not in tail:
            return name, revision
        base, _, embedded = tail.partition(REVISION_DELIM)
        if not base or not embedded:
            raise InvalidProjectNameError(f"不是有效的项目名称: {name}")
        if revision and revision != embedded:
            raise InvalidProjectNameError(
                f"版本冲突: 名称中为 `{embedded}`，参数指定为 `{revision}`"
            )
        return f"{head}{sep}{base}", embedded
