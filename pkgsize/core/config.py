"""集中配置管理

CDN 地址、内置模块表、后缀回退列表等统一在此定义，
支持从 YAML 文件加载 + 编程式覆盖。引擎组件显式接收 Config 实例，
全局单例只供 CLI 入口使用。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

import yaml

from pkgsize.core.exceptions import ConfigError, ValidationError
from pkgsize.utils.net import validate_url_scheme
from pkgsize.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/default.yml"

NODE_BUILTINS = (
    "fs", "path", "os", "crypto", "stream", "http", "https", "zlib", "url",
    "util", "buffer", "events", "assert", "child_process", "process", "net",
    "tls", "dgram", "dns", "perf_hooks", "worker_threads",
)


@dataclass
class Config:
    """全局配置"""

    # 远程
    cdn_base: str = "https://cdn.jsdelivr.net/npm/"
    http_timeout: float = 30.0

    # 解析
    builtins: list[str] = field(default_factory=lambda: list(NODE_BUILTINS))
    local_suffixes: list[str] = field(
        default_factory=lambda: ["", ".js", ".mjs", ".cjs", ".ts", "/index.js"],
    )
    remote_suffixes: list[str] = field(
        default_factory=lambda: [".js", ".mjs", "/index.js"],
    )

    # 放不到字段里的配置项
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.cdn_base, str):
            raise ConfigError(f"cdn_base 必须是字符串: {self.cdn_base!r}")
        if not self.cdn_base.endswith("/"):
            self.cdn_base += "/"
        try:
            validate_url_scheme(self.cdn_base, context="cdn_base")
        except ValidationError as e:
            raise ConfigError(str(e)) from e
        try:
            self.http_timeout = float(self.http_timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"http_timeout 不是数字: {self.http_timeout!r}") from e
        for name in ("builtins", "local_suffixes", "remote_suffixes"):
            if not isinstance(getattr(self, name), list):
                raise ConfigError(f"{name} 必须是列表")

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无法读取: {path} ({e})") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current
