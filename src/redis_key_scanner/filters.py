"""
过滤条件模块

判断一个键的元数据是否满足扫描参数中配置的条件。
纯函数，不修改输入，便于单独测试。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import ScanOptions
    from .types import KeyRecord

NO_EXPIRY_TTL = -1
"""TTL 哨兵值：键永不过期"""


def select(record: KeyRecord, options: ScanOptions) -> bool:
    """
    判断键是否被选中

    所有已配置的条件按 AND 组合，未配置的条件视为满足：
    - idletime <= max_idle
    - ttl <= max_ttl
    - idletime >= min_idle
    - ttl >= min_ttl
    - no_expiry 时 ttl == -1

    TTL 为 -1 不是时长，不参与 max_ttl / min_ttl 的数值比较，
    配置了这两个条件时永不过期的键不会被选中。

    Args:
        record: 键的元数据
        options: 扫描参数

    Returns:
        是否选中
    """
    idletime = record.idletime
    ttl = record.ttl

    if options.max_idle is not None and idletime > options.max_idle:
        return False
    if options.min_idle is not None and idletime < options.min_idle:
        return False

    if options.max_ttl is not None and not _is_duration(ttl, options.max_ttl, upper=True):
        return False
    if options.min_ttl is not None and not _is_duration(ttl, options.min_ttl, upper=False):
        return False

    return not options.no_expiry or ttl == NO_EXPIRY_TTL


def _is_duration(ttl: int | None, bound: int, *, upper: bool) -> bool:
    """ttl 是否为有效时长且落在边界内"""
    if ttl is None or ttl < 0:
        return False
    return ttl <= bound if upper else ttl >= bound


__all__ = ["NO_EXPIRY_TTL", "select"]
