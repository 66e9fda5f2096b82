"""仓库地址解析

支持的格式:
    https://github.com/org/repo(.git)
    http://host:8080/prefix/org/repo
    ssh://git@host/org/repo.git
    git@host:org/repo.git
    file:/path/to/repo  或  file:///path/to/repo

file 协议下 domain 为仓库所在目录，path 为仓库目录名。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

_SCP_LIKE_RE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>[^/].*)$")


def _strip_git_suffix(path: str) -> str:
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    return path


@dataclass(frozen=True)
class GitUrl:
    """解析后的仓库地址"""

    protocol: str
    domain: str
    path: str
    user: str | None = None

    @classmethod
    def parse(cls, url: str) -> GitUrl:
        """解析仓库地址，无法识别时抛 ValueError"""
        if not url:
            raise ValueError("仓库地址为空")

        if url.startswith("file:"):
            raw = url[len("file:"):]
            # file:///a/b 与 file:/a/b 等价
            raw = "/" + unquote(raw).lstrip("/")
            repo = PurePosixPath(raw.rstrip("/"))
            if not repo.name:
                raise ValueError(f"无法解析 file 地址: {url}")
            return cls(
                protocol="file",
                domain=str(repo.parent),
                path=_strip_git_suffix(repo.name),
            )

        if "://" in url:
            parsed = urlparse(url)
            if not parsed.scheme or not parsed.hostname:
                raise ValueError(f"无法解析仓库地址: {url}")
            domain = parsed.hostname
            if parsed.port:
                domain = f"{domain}:{parsed.port}"
            path = _strip_git_suffix(parsed.path)
            if not path:
                raise ValueError(f"仓库地址缺少路径: {url}")
            return cls(
                protocol=parsed.scheme, domain=domain,
                path=path, user=parsed.username,
            )

        m = _SCP_LIKE_RE.match(url)
        if m:
            path = _strip_git_suffix(m.group("path"))
            if not path:
                raise ValueError(f"仓库地址缺少路径: {url}")
            return cls(
                protocol="ssh", domain=m.group("host"),
                path=path, user=m.group("user"),
            )

        raise ValueError(f"无法识别的仓库地址: {url}")

    @staticmethod
    def is_url(name: str) -> bool:
        """判断输入是否按 URL 处理（http/https/file）"""
        return name.startswith(("http://", "https://", "file:/"))
