"""
Redis Key Scanner - 非破坏性的 Redis 键扫描工具

按条件扫描 Redis 中的键，不读取任何键值，因此不会影响 IDLETIME。
选中的键和最终汇总以 JSON Lines 格式输出。

主要特性：
- SCAN 游标分页，每页一次管道往返查询 OBJECT IDLETIME / TTL
- 按空闲时间、TTL、键名模式过滤
- 扫描上限与选中上限，提前结束
- 支持直连或通过哨兵连接从节点
- 全异步（asyncio），事件流式输出，汇总恰好一次且总在最后

示例：
    >>> from redis_key_scanner import ScanOptions, JsonLinesEmitter, scan_keys
    >>>
    >>> options = ScanOptions(host="localhost", min_idle="1w", limit=100)
    >>> summary = scan_keys(options, JsonLinesEmitter())
    >>> summary.keys_selected
"""

from __future__ import annotations

from .__version__ import __version__
from .backends import (
    BaseKeySource,
    MemoryKeySource,
    create_source,
    register_source,
    source_from_options,
)
from .config import ScanOptions
from .emitter import BaseEmitter, CallbackEmitter, CollectingEmitter, JsonLinesEmitter
from .exceptions import ScanConnectionError, ScanError, ScanFetchError, ScanValidationError
from .fetcher import BatchMetadataFetcher
from .filters import select
from .log import configure_default_logging, configure_logging
from .scanner import KeyScanner, ascan_keys, scan_keys
from .timeframe import parse_timeframe
from .types import KeyRecord, ScanPhase, SelectedKeyEvent, SummaryEvent

configure_default_logging()

# 导出核心类和版本号
__all__ = [
    "__version__",
    # 扫描
    "KeyScanner",
    "scan_keys",
    "ascan_keys",
    "BatchMetadataFetcher",
    "select",
    # 配置
    "ScanOptions",
    "parse_timeframe",
    "configure_logging",
    "configure_default_logging",
    # 数据源
    "BaseKeySource",
    "MemoryKeySource",
    "create_source",
    "register_source",
    "source_from_options",
    # 输出
    "BaseEmitter",
    "JsonLinesEmitter",
    "CallbackEmitter",
    "CollectingEmitter",
    # 类型
    "KeyRecord",
    "SelectedKeyEvent",
    "SummaryEvent",
    "ScanPhase",
    # 异常
    "ScanError",
    "ScanValidationError",
    "ScanConnectionError",
    "ScanFetchError",
]
