"""
类型定义模块

本模块定义了扫描器的核心数据类型、枚举和类型别名。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import ScanOptions

# ========== 类型别名定义 ==========

RawKey = bytes | str
"""SCAN 返回的原始键名：redis-py 默认返回字节"""

KeyMetadata = tuple[int | None, int | None]
"""单个键的原始元数据：(idletime, ttl)，键已消失时 idletime 为 None"""


def decode_key(key: RawKey) -> str:
    """把原始键名解码为字符串，非 UTF-8 字节以转义形式保留"""
    if isinstance(key, bytes):
        return key.decode("utf-8", errors="backslashreplace")
    return key


# ========== 数据类定义 ==========


@dataclass(frozen=True)
class KeyRecord:
    """
    单个键的元数据

    每个被扫描的键生成一个，过滤后即丢弃。

    Attributes:
        key: 键名
        idletime: 空闲时间（秒）
        ttl: 剩余生存时间（秒），-1 表示永不过期，未请求 TTL 时为 None
    """

    key: str
    idletime: int
    ttl: int | None = None


@dataclass(frozen=True)
class SelectedKeyEvent:
    """
    选中键事件

    Attributes:
        name: 数据源标识（host:port 或哨兵主节点名）
        key: 键名
        idletime: 空闲时间（秒）
        ttl: 剩余生存时间，仅在配置了 TTL 相关条件时存在
    """

    name: str
    key: str
    idletime: int
    ttl: int | None = None

    def to_record(self) -> dict[str, Any]:
        """转换为输出记录：{name, key, idletime, ttl?}"""
        record: dict[str, Any] = {
            "name": self.name,
            "key": self.key,
            "idletime": self.idletime,
        }
        if self.ttl is not None:
            record["ttl"] = self.ttl
        return record


@dataclass(frozen=True)
class SummaryEvent:
    """
    扫描汇总事件

    每次扫描恰好发出一次，且总在所有选中键事件之后。

    Attributes:
        keys_scanned: 已扫描的键总数
        keys_selected: 已选中的键总数
        options: 生效的扫描参数（用于审计和复现）
    """

    keys_scanned: int
    keys_selected: int
    options: ScanOptions

    def to_record(self) -> dict[str, Any]:
        """转换为输出记录：{keysScanned, keysSelected, ...options}"""
        return {
            "keysScanned": self.keys_scanned,
            "keysSelected": self.keys_selected,
            **self.options.summary_fields(),
        }


ScanEvent = SelectedKeyEvent | SummaryEvent
"""扫描流中的事件类型"""


# ========== 枚举定义 ==========


class ScanPhase(str, Enum):
    """
    扫描控制器状态

    - IDLE: 尚未请求第一页
    - SCANNING: 正在逐页枚举并派发批量查询
    - DRAINING: 不再请求新页，等待未完成的批量查询
    - FINISHED: 汇总已发出
    - FAILED: 扫描因错误终止，不发出汇总
    """

    IDLE = "idle"
    SCANNING = "scanning"
    DRAINING = "draining"
    FINISHED = "finished"
    FAILED = "failed"


__all__ = [
    "RawKey",
    "KeyMetadata",
    "decode_key",
    "KeyRecord",
    "SelectedKeyEvent",
    "SummaryEvent",
    "ScanEvent",
    "ScanPhase",
]
