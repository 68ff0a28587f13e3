"""说明符解析器

职责:
- 说明符分类（内置 / URL / 路径 / 裸包名）
- 相对路径按基准位置拼接（本地走文件系统，远程走 URL 语义）
- 裸包名通过 package.json 的 exports / main / module 计算候选入口

解析结果是有序、非空的候选位置列表，最优先的在前；内置模块返回 None。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable

from pkgsize.core.dep.models import PackageManifest, SpecifierKind
from pkgsize.core.dep.registry import ManifestRegistry
from pkgsize.core.exceptions import SpecifierUnresolvable
from pkgsize.utils.net import is_remote, join_url

logger = logging.getLogger(__name__)

# exports 条件对象的固定优先级，先出现者胜出
EXPORT_CONDITIONS = ("production", "node", "require", "default", "import", "browser")


def parse_bare_specifier(specifier: str) -> tuple[str, str]:
    """拆分包名与子路径，支持 @scope/name 形式

    >>> parse_bare_specifier("@babel/core/lib/index")
    ('@babel/core', 'lib/index')
    >>> parse_bare_specifier("lodash@4.17.21/fp")
    ('lodash@4.17.21', 'fp')
    """
    parts = specifier.split("/")
    if specifier.startswith("@"):
        scope_name = parts[1] if len(parts) > 1 else ""
        return f"{parts[0]}/{scope_name}", "/".join(parts[2:])
    return parts[0], "/".join(parts[1:])


def resolve_exports(target: Any) -> str | None:
    """沿条件对象逐层解析 exports 目标，返回相对入口或 None"""
    while isinstance(target, dict):
        for condition in EXPORT_CONDITIONS:
            if condition in target:
                target = target[condition]
                break
        else:
            return None
    return target if isinstance(target, str) else None


def package_entries(manifest: PackageManifest, subpath: str) -> list[str]:
    """按优先级列出包内入口（尚未拼接基准位置），去重保序"""
    exports = manifest.exports
    entries: list[str | None] = []
    if subpath:
        if isinstance(exports, dict):
            key = f"./{subpath}"
            target = exports.get(key) or exports.get(f"{key}.js")
            if target:
                entries.append(resolve_exports(target))
        entries.append(subpath)
    else:
        if exports:
            root = (exports.get(".") or exports) if isinstance(exports, dict) else exports
            entries.append(resolve_exports(root))
        entries.extend((manifest.main, manifest.module, "index.js"))
    return list(dict.fromkeys(e for e in entries if e))


def _strip_dot_slash(entry: str) -> str:
    return entry[2:] if entry.startswith("./") else entry


def join_entries(base: str, entries: Iterable[str]) -> list[str]:
    """把包内入口拼接到基准位置（URL 或本地目录），去重保序"""
    if is_remote(base):
        joined = (join_url(base, _strip_dot_slash(e)) for e in entries)
    else:
        joined = (os.path.normpath(os.path.join(base, _strip_dot_slash(e))) for e in entries)
    return list(dict.fromkeys(joined))


class SpecifierResolver:
    """说明符解析器 - 同一 (specifier, base) 的解析结果是确定的"""

    def __init__(self, registry: ManifestRegistry, builtins: Iterable[str]) -> None:
        self.registry = registry
        self.builtins = frozenset(builtins)

    def classify(self, specifier: str) -> SpecifierKind:
        if specifier.startswith("node:") or self._is_builtin_path(specifier):
            return SpecifierKind.BUILTIN
        if is_remote(specifier):
            return SpecifierKind.URL
        if specifier.startswith((".", "/")):
            return SpecifierKind.PATH
        return SpecifierKind.BARE

    def _is_builtin_path(self, specifier: str) -> bool:
        """内置模块本身或其子路径（fs/promises、stream/web）"""
        return specifier.split("/", 1)[0] in self.builtins

    async def resolve(self, specifier: str, base: str | None = None) -> list[str] | None:
        """解析为候选位置列表；内置模块返回 None（不是依赖）"""
        kind = self.classify(specifier)
        if kind is SpecifierKind.BUILTIN:
            logger.debug("跳过内置模块: %s", specifier)
            return None
        if kind is SpecifierKind.URL:
            return [specifier]
        if kind is SpecifierKind.PATH:
            return [self._resolve_path(specifier, base)]
        return await self._resolve_package(specifier)

    @staticmethod
    def _resolve_path(specifier: str, base: str | None) -> str:
        if base is None:
            return specifier
        if is_remote(base):
            return join_url(base, specifier)
        parent = Path(base).parent
        return os.path.normpath(os.path.join(os.path.abspath(parent), specifier))

    async def _resolve_package(self, specifier: str) -> list[str]:
        package, subpath = parse_bare_specifier(specifier)
        if not package or package.endswith("/"):
            raise SpecifierUnresolvable(specifier, "缺少包名")
        manifest = await self.registry.get(package)
        candidates = join_entries(manifest.base_url, package_entries(manifest, subpath))
        logger.debug("解析 %s -> %s", specifier, candidates)
        return candidates
