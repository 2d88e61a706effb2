"""
日志配置模块

使用 structlog 输出诊断日志到 stderr。
stdout 只用于 JSON Lines 结果流，两者互不干扰。

导入包时若 structlog 尚未配置，会应用 configure_default_logging()：
只输出 WARNING 以上，经由标准库 logging 写入 stderr。
命令行或调用方可以随时用 configure_logging() 覆盖。
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=False),
    ]


def configure_logging(debug: bool = False, stream: TextIO | None = None) -> None:
    """
    配置 structlog

    Args:
        debug: True 时输出 DEBUG 级别日志（参数、连接进度、每页扫描数量）
        stream: 日志输出流，默认 sys.stderr
    """
    level = logging.DEBUG if debug else logging.WARNING

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(stream if stream is not None else sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_default_logging() -> None:
    """
    作为库使用时的默认配置

    structlog 未配置时默认把所有级别打印到 stdout，会混入结果流。
    这里改为 WARNING 以上交给标准库 logging，已配置时不做任何修改。
    """
    if structlog.is_configured():
        return

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


__all__ = ["configure_logging", "configure_default_logging"]
