"""pkgsize 日志配置

诊断信息统一走标准库 logging，输出到 stderr；最终报告由 CLI 写 stdout，
两者互不干扰。支持人类可读文本和结构化 JSON（CI 使用）两种格式。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

_TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# 编排器通过 extra= 附带的上下文字段，JSON 格式下原样输出
_CONTEXT_FIELDS = ("specifier", "location", "error_code")


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "WARNING",
            "logger": "pkgsize.core.dep.orchestrator",
            "message": "...",
            "specifier": "lodash" (仅在记录携带时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 为 True 时每行一个 JSON 对象

    说明:
        - 输出到 stderr
        - 清理已有 handlers，重复调用不会导致重复输出
        - httpx 自身的请求日志压到 WARNING，避免与下载日志重复
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)


def reset_logging() -> None:
    """清理根日志器的所有 handlers，恢复到未配置状态"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
