"""体积报告生成器 - Strategy 模式

每种报告格式实现 ReportFormatter 接口，通过注册制工厂调用。
新增格式只需继承 ReportFormatter 并注册即可。
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict

import click

from pkgsize.core.dep.orchestrator import ResolutionResult
from pkgsize.core.measure import SizeReport

_RULE = "=" * 40


class ReportFormatter(ABC):
    """报告格式化策略基类"""

    @abstractmethod
    def format(self, result: ResolutionResult, report: SizeReport, *, list_files: bool = False) -> str:
        """将解析结果与体积统计格式化为字符串"""


class TextFormatter(ReportFormatter):
    def format(self, result: ResolutionResult, report: SizeReport, *, list_files: bool = False) -> str:
        lines = []
        if list_files:
            lines.append("")
            lines.extend(f"  {loc}" for loc in result.bundle.locations)
        if not report.minified:
            minified_label = "Raw size"
        elif report.mangled:
            minified_label = "Minified size"
        else:
            minified_label = "Minified size*"
        lines += [
            "",
            _RULE,
            f" Result for {click.style(repr(result.entry), bold=True)}",
            _RULE,
            f" Files count     : {click.style(str(report.file_count), fg='green')}",
            f" {minified_label:<16}: {click.style(report.minified_kib, fg='yellow')} KB"
            f" ({report.minified_bytes:,} bytes)",
            f" Gzipped size    : {click.style(report.gzip_kib, fg='green', bold=True)} KB"
            f" ({report.gzip_bytes:,} bytes)",
            _RULE,
        ]
        if report.minified and not report.mangled:
            lines.append(" * whitespace and comments stripped, identifiers not mangled")
        if result.failures:
            lines.append(f" {click.style(str(len(result.failures)), fg='red')} module(s) skipped")
        return "\n".join(lines)


class JSONFormatter(ReportFormatter):
    def format(self, result: ResolutionResult, report: SizeReport, *, list_files: bool = False) -> str:
        payload: dict = {
            "entry": result.entry,
            **report.to_dict(),
            "failures": [asdict(f) for f in result.failures],
        }
        if list_files:
            payload["locations"] = list(result.bundle.locations)
        return json.dumps(payload, indent=2, ensure_ascii=False)


# =========================================================================
# 注册制工厂
# =========================================================================

_formatters: dict[str, type[ReportFormatter]] = {
    "text": TextFormatter,
    "json": JSONFormatter,
}


def register_formatter(name: str, cls: type[ReportFormatter]) -> None:
    """注册自定义报告格式"""
    _formatters[name] = cls


def available_formats() -> list[str]:
    return list(_formatters)


def render_report(
    result: ResolutionResult, report: SizeReport, fmt: str = "text", *, list_files: bool = False,
) -> str:
    formatter_cls = _formatters.get(fmt)
    if formatter_cls is None:
        raise ValueError(f"不支持的格式: {fmt}（可用: {list(_formatters)}）")
    return formatter_cls().format(result, report, list_files=list_files)
