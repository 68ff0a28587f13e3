"""CLI — 说明符解析与依赖提取命令"""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
import httpx

from pkgsize.core.config import Config, get_config
from pkgsize.core.dep.extractor import DependencyExtractor
from pkgsize.core.dep.registry import ManifestRegistry
from pkgsize.core.dep.resolver import SpecifierResolver
from pkgsize.core.exceptions import PkgSizeError


def register(group: click.Group) -> None:
    group.add_command(resolve_specifier)
    group.add_command(list_deps)


async def _resolve(specifier: str, base: str | None, cfg: Config) -> list[str] | None:
    async with httpx.AsyncClient(timeout=cfg.http_timeout, follow_redirects=True) as client:
        resolver = SpecifierResolver(ManifestRegistry(client, cfg.cdn_base), cfg.builtins)
        return await resolver.resolve(specifier, base)


@click.command(name="resolve")
@click.argument("specifier")
@click.option("--base", default=None, help="基准位置（URL 或本地文件路径）")
def resolve_specifier(specifier: str, base: str | None) -> None:
    """按优先级列出说明符的候选位置（不下载模块内容）"""
    try:
        candidates = asyncio.run(_resolve(specifier, base, get_config()))
    except PkgSizeError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    if candidates is None:
        click.echo(f"内置模块，不解析: {specifier}")
        return
    for candidate in candidates:
        click.echo(candidate)


@click.command(name="deps")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def list_deps(file: Path) -> None:
    """列出本地文件在生产构建下可达的依赖说明符"""
    source = file.read_text(encoding="utf-8", errors="replace")
    try:
        deps = DependencyExtractor().extract_source(source)
    except PkgSizeError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    if not deps:
        click.echo("没有依赖。")
        return
    for dep in sorted(deps):
        click.echo(f"  {dep}")
