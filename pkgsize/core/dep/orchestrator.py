"""解析编排器 - 从一个入口说明符驱动依赖图的并发遍历

每个说明符一个独立任务:

    Pending → Resolving → (Fetched → Parsed → Expanded) | Failed

新发现的说明符立即在同一个 TaskGroup 中调度（不限并发）。活跃任务计数在
任务启动前加一、在 finally 中减一，归零时触发一次完成回调；TaskGroup
退出即表示所有传递调度的任务都已结束。

去重以 visited 集合为唯一依据：拉取前先预占首选候选，拉取后对规范位置
做"检查并插入"（两步之间没有挂起点），同一规范位置最多进入打包一次。
单个模块的失败只记录日志，不影响兄弟任务，也不重试。
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable

import httpx

from pkgsize.core.config import Config
from pkgsize.core.dep.bundle import Bundle
from pkgsize.core.dep.extractor import DependencyExtractor
from pkgsize.core.dep.fetcher import ContentFetcher
from pkgsize.core.dep.models import ModuleFailure
from pkgsize.core.dep.registry import ManifestRegistry
from pkgsize.core.dep.resolver import SpecifierResolver
from pkgsize.core.exceptions import PkgSizeError, SpecifierUnresolvable

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    entry: str
    bundle: Bundle
    failures: list[ModuleFailure] = field(default_factory=list)
    settled: int = 0


@dataclass
class _RunState:
    """一次运行独占的可变状态，传给该运行的每个任务"""

    entry: str
    visited: set[str] = field(default_factory=set)
    bundle: Bundle = field(default_factory=Bundle)
    failures: list[ModuleFailure] = field(default_factory=list)
    live: int = 0
    settled: int = 0
    completed: bool = False

    def reserve(self, location: str) -> bool:
        """插入 visited；已存在时返回 False"""
        if location in self.visited:
            return False
        self.visited.add(location)
        return True

    def result(self) -> ResolutionResult:
        return ResolutionResult(
            entry=self.entry,
            bundle=self.bundle,
            failures=list(self.failures),
            settled=self.settled,
        )


class ResolutionOrchestrator:
    """解析编排器

    同一实例可多次 run()，各次运行的状态互相独立；清单缓存属于传入的
    resolver，需要隔离缓存时为每次运行构造新的 resolver。
    """

    def __init__(
        self,
        resolver: SpecifierResolver,
        fetcher: ContentFetcher,
        extractor: DependencyExtractor | None = None,
        on_complete: Callable[[ResolutionResult], None] | None = None,
    ) -> None:
        self.resolver = resolver
        self.fetcher = fetcher
        self.extractor = extractor or DependencyExtractor()
        self.on_complete = on_complete

    async def run(self, entry: str) -> ResolutionResult:
        state = _RunState(entry=entry)
        logger.info("开始分析: %s", entry)
        async with asyncio.TaskGroup() as tg:
            self._schedule(tg, state, entry, None)
        logger.info(
            "依赖解析完成: %d 个模块, %d 个失败", len(state.bundle), len(state.failures),
        )
        return state.result()

    def _schedule(
        self, tg: asyncio.TaskGroup, state: _RunState, specifier: str, base: str | None,
    ) -> None:
        state.live += 1
        tg.create_task(self._task(tg, state, specifier, base))

    async def _task(
        self, tg: asyncio.TaskGroup, state: _RunState, specifier: str, base: str | None,
    ) -> None:
        context = {"specifier": specifier}
        try:
            await self._process(tg, state, specifier, base)
        except SpecifierUnresolvable as e:
            # 无包名的说明符不是依赖，不计入失败
            logger.debug("忽略: %s", e, extra=context)
        except PkgSizeError as e:
            logger.warning("%s: %s", specifier, e, extra={**context, "error_code": e.code})
            state.failures.append(ModuleFailure(specifier, e.code, str(e)))
        except Exception as e:  # noqa: BLE001 - 单模块的意外错误不能取消兄弟任务
            logger.exception("意外错误 (%s)", specifier, extra=context)
            state.failures.append(ModuleFailure(specifier, "UNEXPECTED", str(e)))
        finally:
            state.live -= 1
            state.settled += 1
            if state.live == 0:
                self._complete(state)

    async def _process(
        self, tg: asyncio.TaskGroup, state: _RunState, specifier: str, base: str | None,
    ) -> None:
        candidates = await self.resolver.resolve(specifier, base)
        if not candidates:
            return

        primary = candidates[0]
        if not state.reserve(primary):
            return

        module = await self.fetcher.fetch(candidates)
        if module.location != primary and not state.reserve(module.location):
            logger.debug("重复位置，跳过: %s", module.location)
            return

        logger.info("已下载: %s", module.location, extra={"location": module.location})
        state.bundle.append(module.content, module.location)

        # 解析失败时模块已入包，异常交给任务边界记录
        deps = self.extractor.extract_source(module.content)
        if deps:
            logger.debug("依赖 %s: %s", module.location, ", ".join(sorted(deps)))
        for dep in sorted(deps):
            self._schedule(tg, state, dep, module.location)

    def _complete(self, state: _RunState) -> None:
        if state.completed:
            return
        state.completed = True
        if self.on_complete is not None:
            self.on_complete(state.result())


def build_orchestrator(client: httpx.AsyncClient, config: Config) -> ResolutionOrchestrator:
    """用同一个 HTTP 客户端组装一次运行所需的全部组件"""
    registry = ManifestRegistry(client, config.cdn_base)
    resolver = SpecifierResolver(registry, config.builtins)
    fetcher = ContentFetcher(client, config.local_suffixes, config.remote_suffixes)
    return ResolutionOrchestrator(resolver, fetcher)


async def collect(
    entry: str,
    config: Config,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ResolutionResult:
    """解析入口并收集打包内容（每次调用使用独立的清单缓存）"""
    async with httpx.AsyncClient(
        timeout=config.http_timeout, follow_redirects=True, transport=transport,
    ) as client:
        return await build_orchestrator(client, config).run(entry)
