"""网络工具 — URL 判定、拼接与协议校验"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlparse

from pkgsize.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("http", "https"))

_SOURCE_FILE_RE = re.compile(r"\.(js|mjs|cjs|ts)$")


def is_remote(location: str) -> bool:
    """位置是否为 http(s) URL（否则视为本地路径）"""
    return location.startswith(("http://", "https://"))


def looks_like_source_file(location: str) -> bool:
    """URL 路径是否已带 JS/TS 源文件扩展名"""
    return bool(_SOURCE_FILE_RE.search(urlparse(location).path))


def join_url(base: str, ref: str) -> str:
    """按浏览器 URL 语义把 ref 拼接到 base 上"""
    return urljoin(base, ref)


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )
