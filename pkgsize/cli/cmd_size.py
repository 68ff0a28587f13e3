"""CLI — 体积分析命令"""

from __future__ import annotations

import asyncio

import click

from pkgsize.core.config import get_config
from pkgsize.core.dep.orchestrator import collect
from pkgsize.core.entry import detect_entry
from pkgsize.core.exceptions import PkgSizeError
from pkgsize.core.measure import measure
from pkgsize.core.reporter import available_formats, render_report


def register(group: click.Group) -> None:
    group.add_command(size)


@click.command()
@click.argument("target")
@click.option(
    "--format", "-f", "fmt", default="text",
    type=click.Choice(available_formats()), help="报告格式",
)
@click.option("--list", "list_files", is_flag=True, help="列出打包的全部文件")
def size(target: str, fmt: str, list_files: bool) -> None:
    """分析包名、URL 或本地路径的生产构建体积"""
    cfg = get_config()
    try:
        entry = detect_entry(target, cfg.local_suffixes)
        result = asyncio.run(collect(entry, cfg))
        report = measure(result.bundle)
    except PkgSizeError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    click.echo(render_report(result, report, fmt, list_files=list_files))
