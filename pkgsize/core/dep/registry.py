"""包清单注册表

职责:
- 从 CDN 拉取 <cdn>/<package>/package.json
- 按包名缓存，同一次运行内并发请求共享同一个进行中的拉取
"""

from __future__ import annotations

import asyncio
import json
import logging

import httpx

from pkgsize.core.dep.models import PackageManifest

logger = logging.getLogger(__name__)


class ManifestRegistry:
    """包清单注册表 - 生命周期与一次解析运行相同"""

    def __init__(self, client: httpx.AsyncClient, cdn_base: str) -> None:
        self.client = client
        self.cdn_base = cdn_base
        self._cache: dict[str, asyncio.Task[PackageManifest]] = {}

    async def get(self, package: str) -> PackageManifest:
        """获取包清单。拉取失败不视为错误，返回未解析的清单"""
        task = self._cache.get(package)
        if task is None:
            task = asyncio.ensure_future(self._load(package))
            self._cache[package] = task
        return await task

    @property
    def cached(self) -> list[str]:
        return list(self._cache)

    async def _load(self, package: str) -> PackageManifest:
        url = f"{self.cdn_base}{package}/package.json"
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            logger.debug("清单请求失败: %s (%s)", url, e)
            return PackageManifest.unresolved(package, self.cdn_base)

        if not response.is_success:
            logger.debug("清单不可用: %s -> %d", url, response.status_code)
            return PackageManifest.unresolved(package, self.cdn_base)

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("清单不是合法 JSON: %s", url)
            return PackageManifest.unresolved(package, self.cdn_base)
        if not isinstance(data, dict):
            return PackageManifest.unresolved(package, self.cdn_base)

        manifest = PackageManifest.from_json(package, data, self.cdn_base)
        logger.debug("清单已加载: %s -> %s", package, manifest.base_url)
        return manifest
