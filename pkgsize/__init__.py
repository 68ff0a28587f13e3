"""pkgsize - JavaScript 模块安装体积估算工具"""

__version__ = "0.3.0"
