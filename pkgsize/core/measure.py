"""体积测量

压缩打包文本后统计字节数与 gzip 字节数。gzip 固定 mtime=0，
同一输入的结果确定。压缩失败时回退为原始文本体积。

压缩前把 process.env.NODE_ENV 替换为 "production"；rjsmin 只去除空白和注释，
不做标识符混淆，报告里以 mangled=False 标明。
"""

from __future__ import annotations

import gzip
import logging
import re
from dataclasses import dataclass

import rjsmin

from pkgsize.core.dep.bundle import Bundle
from pkgsize.core.exceptions import EmptyBundleError, MinifyFailedError

logger = logging.getLogger(__name__)

_NODE_ENV_RE = re.compile(r"(?<![\w$.])process\.env\.NODE_ENV\b")


@dataclass
class SizeReport:
    file_count: int
    minified_bytes: int
    gzip_bytes: int
    minified: bool = True
    mangled: bool = False

    @property
    def minified_kib(self) -> str:
        return f"{self.minified_bytes / 1024:.2f}"

    @property
    def gzip_kib(self) -> str:
        return f"{self.gzip_bytes / 1024:.2f}"

    def to_dict(self) -> dict:
        return {
            "files": self.file_count,
            "minified_bytes": self.minified_bytes,
            "minified_kib": self.minified_kib,
            "gzip_bytes": self.gzip_bytes,
            "gzip_kib": self.gzip_kib,
            "minified": self.minified,
            "mangled": self.mangled,
        }


def define_node_env(code: str) -> str:
    """把 process.env.NODE_ENV 替换为生产构建的字面量"""
    return _NODE_ENV_RE.sub('"production"', code)


def minify(code: str) -> str:
    try:
        return rjsmin.jsmin(code)
    except Exception as e:  # noqa: BLE001 - 第三方压缩器的任何失败都走回退
        raise MinifyFailedError(f"压缩失败: {e}") from e


def gzip_size(data: bytes) -> int:
    return len(gzip.compress(data, compresslevel=9, mtime=0))


def measure(bundle: Bundle) -> SizeReport:
    """压缩并测量打包体积；空打包抛 EmptyBundleError"""
    if not bundle:
        raise EmptyBundleError("没有任何文件下载成功")

    combined = define_node_env(bundle.text())
    minified = True
    try:
        code = minify(combined) or combined
    except MinifyFailedError as e:
        logger.warning("%s，使用原始体积", e)
        code = combined
        minified = False

    data = code.encode("utf-8")
    return SizeReport(
        file_count=len(bundle),
        minified_bytes=len(data),
        gzip_bytes=gzip_size(data),
        minified=minified,
    )
