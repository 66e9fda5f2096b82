"""项目清单（pipehub.yml）解析

清单只在需要时从工作目录或远程平台读取，不做持久化。
文件不存在时返回空清单（全部取默认值）；存在但格式错误时抛 ManifestError。

清单格式:
    manifest:
      name: hello
      mainScript: main.nf
      defaultBranch: master
      homePage: https://github.com/pipehub-io/hello
      recurseSubmodules: false
      gitmodules: [modules/a, modules/b]   # 或 "modules/a, modules/b" 或 true/false
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import yaml

from pipehub.core.exceptions import ManifestError

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "pipehub.yml"
DEFAULT_MAIN_FILE_NAME = "main.nf"
DEFAULT_BRANCH = "master"


@dataclass(frozen=True)
class Manifest:
    """项目清单"""

    name: str | None = None
    description: str | None = None
    author: str | None = None
    home_page: str | None = None
    version: str | None = None
    main_script: str = DEFAULT_MAIN_FILE_NAME
    default_branch: str = DEFAULT_BRANCH
    recurse_submodules: bool = False
    gitmodules: bool | list[str] | str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Manifest:
        if not data:
            return cls()
        known = {
            "name", "description", "author", "homePage", "version",
            "mainScript", "defaultBranch", "recurseSubmodules", "gitmodules",
        }
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            author=data.get("author"),
            home_page=data.get("homePage"),
            version=_as_str(data.get("version")),
            main_script=data.get("mainScript") or DEFAULT_MAIN_FILE_NAME,
            default_branch=data.get("defaultBranch") or DEFAULT_BRANCH,
            recurse_submodules=_as_bool(data.get("recurseSubmodules"), "recurseSubmodules"),
            gitmodules=data.get("gitmodules"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    @classmethod
    def parse(cls, text: str | None) -> Manifest:
        """解析清单文本，空文本返回默认清单"""
        if not text:
            return cls()
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ManifestError(f"项目清单格式错误: {e}") from e
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ManifestError(
                f"项目清单格式错误: 顶层应为字典 (实际类型: {type(data).__name__})"
            )
        section = data.get("manifest")
        if section is None:
            return cls()
        if not isinstance(section, dict):
            raise ManifestError("项目清单格式错误: manifest 段应为字典")
        return cls.from_dict(section)

    def submodule_filter(self) -> list[str] | None:
        """submodule 路径过滤

        返回 None 表示禁用更新，空列表表示更新全部。
        """
        modules = self.gitmodules
        if modules is False:
            return None
        if isinstance(modules, list):
            return [str(m) for m in modules]
        if isinstance(modules, str):
            return [m for m in modules.replace(",", " ").split() if m]
        return []


def _as_str(value: Any) -> str | None:
    return None if value is None else str(value)


_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0", "")


def _as_bool(value: Any, key: str) -> bool:
    """布尔字段，兼容加引号的 "true" / "false" 写法"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ManifestError(f"项目清单格式错误: {key} 应为布尔值 (实际值: {value!r})")
