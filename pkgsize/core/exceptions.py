"""统一异常体系

所有业务异常继承 PkgSizeError，替代散落的 ValueError / RuntimeError。
编排器在任务边界捕获单模块异常并记录，CLI 层据此输出友好提示和退出码。
"""

from __future__ import annotations


class PkgSizeError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PkgSizeError):
    """配置文件内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(PkgSizeError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class SpecifierUnresolvable(PkgSizeError):
    """说明符无法解析为任何候选位置（内置模块或清单字段缺失）"""

    code = "SPECIFIER_UNRESOLVABLE"

    def __init__(self, specifier: str, reason: str = "") -> None:
        suffix = f": {reason}" if reason else ""
        super().__init__(f"无法解析 '{specifier}'{suffix}")
        self.specifier = specifier


class FetchNotFoundError(PkgSizeError):
    """所有候选位置及后缀均已尝试，仍未取到内容"""

    code = "FETCH_NOT_FOUND"

    def __init__(self, candidates: list[str]) -> None:
        first = candidates[0] if candidates else "<empty>"
        super().__init__(f"拉取失败: {first} (共尝试 {len(candidates)} 个候选)")
        self.candidates = list(candidates)


class ParseFailedError(PkgSizeError):
    """源码语法错误，模块原样打包但不贡献依赖边"""

    code = "PARSE_FAILED"


class MinifyFailedError(PkgSizeError):
    """压缩失败，调用方回退为原始体积"""

    code = "MINIFY_FAILED"


class EmptyBundleError(PkgSizeError):
    """没有任何模块被成功拉取"""

    code = "EMPTY_BUNDLE"
