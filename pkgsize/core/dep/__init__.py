"""依赖解析引擎

模块划分:
- models.py: 数据模型
- registry.py: 包清单拉取与缓存
- resolver.py: 说明符解析
- fetcher.py: 内容拉取
- extractor.py: 依赖提取与环境分支裁剪
- bundle.py: 打包累加
- orchestrator.py: 并发遍历编排
"""

from pkgsize.core.dep.bundle import Bundle
from pkgsize.core.dep.extractor import DependencyExtractor
from pkgsize.core.dep.fetcher import ContentFetcher
from pkgsize.core.dep.models import FetchedModule, ModuleFailure, Origin, PackageManifest, SpecifierKind
from pkgsize.core.dep.orchestrator import ResolutionOrchestrator, ResolutionResult, collect
from pkgsize.core.dep.registry import ManifestRegistry
from pkgsize.core.dep.resolver import SpecifierResolver

__all__ = [
    "Bundle",
    "ContentFetcher",
    "DependencyExtractor",
    "FetchedModule",
    "ManifestRegistry",
    "ModuleFailure",
    "Origin",
    "PackageManifest",
    "ResolutionOrchestrator",
    "ResolutionResult",
    "SpecifierKind",
    "SpecifierResolver",
    "collect",
]
