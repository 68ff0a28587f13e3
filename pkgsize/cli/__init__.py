"""pkgsize 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from pkgsize import __version__
from pkgsize.core.config import DEFAULT_CONFIG_PATH, init_config
from pkgsize.core.exceptions import PkgSizeError
from pkgsize.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="配置文件路径")
def main(config: str) -> None:
    """pkgsize - 估算 JavaScript 模块的安装体积"""
    setup_logging(
        level=os.getenv("PKGSIZE_LOG_LEVEL", "INFO"),
        json_output=os.getenv("PKGSIZE_LOG_JSON", "") == "1",
    )
    try:
        init_config(config)
    except PkgSizeError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e


# 注册各领域子命令
from pkgsize.cli.cmd_size import register as _reg_size  # noqa: E402
from pkgsize.cli.cmd_deps import register as _reg_deps  # noqa: E402

_reg_size(main)
_reg_deps(main)
