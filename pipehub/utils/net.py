"""网络工具 — 托管平台 API 地址校验"""

from __future__ import annotations

from urllib.parse import urlparse

from pipehub.core.exceptions import ConfigError

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 API 地址仅使用 http/https

    Raises:
        ConfigError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ConfigError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )
