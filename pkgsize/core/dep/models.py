"""依赖解析数据模型

数据类:
- SpecifierKind: 说明符分类
- PackageManifest: package.json 元信息
- FetchedModule: 已拉取模块
- ModuleFailure: 单模块失败记录
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SpecifierKind(str, Enum):
    BUILTIN = "builtin"
    URL = "url"
    PATH = "path"
    BARE = "bare"


class Origin(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class PackageManifest:
    """单个包的清单元信息

    base_url 是候选入口拼接的基准：清单拉取成功时为 <cdn>/<name>@<version>/，
    否则为 <cdn>/<原始包名>/。
    """

    name: str
    base_url: str
    version: str = ""
    main: str = ""
    module: str = ""
    exports: Any = None
    resolved: bool = False

    @classmethod
    def from_json(cls, requested: str, data: dict[str, Any], cdn_base: str) -> PackageManifest:
        name = data.get("name") or requested
        version = data.get("version") or ""
        base = f"{cdn_base}{name}@{version}/" if version else f"{cdn_base}{name}/"
        return cls(
            name=name,
            base_url=base,
            version=version,
            main=data["main"] if isinstance(data.get("main"), str) else "",
            module=data["module"] if isinstance(data.get("module"), str) else "",
            exports=data.get("exports"),
            resolved=True,
        )

    @classmethod
    def unresolved(cls, requested: str, cdn_base: str) -> PackageManifest:
        return cls(name=requested, base_url=f"{cdn_base}{requested}/")


@dataclass
class FetchedModule:
    content: str
    location: str  # 规范位置：跳转后的 URL 或解析后的绝对路径
    origin: Origin


@dataclass
class ModuleFailure:
    specifier: str
    code: str
    message: str
