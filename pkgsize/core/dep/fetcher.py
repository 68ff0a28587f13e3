"""模块内容拉取器

职责:
- 按候选顺序拉取模块源码，首个成功者胜出
- 本地候选: 依次尝试后缀，接受第一个存在的普通文件
- 远程候选: 先直连；失败且 URL 不像源文件时依次尝试后缀
- 任何非 2xx 响应或传输错误都只是"该候选不可用"
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Sequence

import httpx

from pkgsize.core.dep.models import FetchedModule, Origin
from pkgsize.core.exceptions import FetchNotFoundError
from pkgsize.utils.net import is_remote, looks_like_source_file

logger = logging.getLogger(__name__)


def _read_local(path: Path) -> str:
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


def find_local_file(location: str, suffixes: Sequence[str]) -> Path | None:
    """按后缀顺序查找第一个存在的普通文件，返回其绝对路径"""
    for suffix in suffixes:
        path = Path(f"{location}{suffix}")
        if path.is_file():
            return path.resolve()
    return None


class ContentFetcher:
    """模块内容拉取器 - 本地读取 + 远程下载"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        local_suffixes: Sequence[str],
        remote_suffixes: Sequence[str],
    ) -> None:
        self.client = client
        self.local_suffixes = tuple(local_suffixes)
        self.remote_suffixes = tuple(remote_suffixes)

    async def fetch(self, candidates: Sequence[str]) -> FetchedModule:
        """依次尝试候选位置，全部失败时抛 FetchNotFoundError"""
        for candidate in candidates:
            if is_remote(candidate):
                module = await self._fetch_remote(candidate)
            else:
                module = await self._fetch_local(candidate)
            if module is not None:
                return module
        raise FetchNotFoundError(list(candidates))

    async def _fetch_local(self, location: str) -> FetchedModule | None:
        path = await asyncio.to_thread(find_local_file, location, self.local_suffixes)
        if path is None:
            return None
        try:
            content = await asyncio.to_thread(_read_local, path)
        except OSError as e:
            logger.debug("读取失败: %s (%s)", path, e)
            return None
        return FetchedModule(content=content, location=str(path), origin=Origin.LOCAL)

    async def _fetch_remote(self, url: str) -> FetchedModule | None:
        response = await self._try_get(url)
        if response is None and not looks_like_source_file(url):
            for suffix in self.remote_suffixes:
                response = await self._try_get(f"{url}{suffix}")
                if response is not None:
                    break
        if response is None:
            return None
        return FetchedModule(content=response.text, location=str(response.url), origin=Origin.REMOTE)

    async def _try_get(self, url: str) -> httpx.Response | None:
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            logger.debug("请求失败: %s (%s)", url, e)
            return None
        if not response.is_success:
            logger.debug("候选不可用: %s -> %d", url, response.status_code)
            return None
        return response
