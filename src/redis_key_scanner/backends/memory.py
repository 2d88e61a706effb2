"""
内存键数据源模块

在进程内模拟 Redis 的 SCAN 与元数据查询，不需要真实服务器。
适用于测试、示例和离线分析导出的键元数据。

使用示例：
    >>> source = MemoryKeySource({"user:1": (10, -1), "user:2": (700000, 3600)})
    >>> scanner = KeyScanner(ScanOptions(host="memory", min_idle="1w"), source)
"""

from __future__ import annotations

import asyncio
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

from ..filters import NO_EXPIRY_TTL
from ..types import decode_key
from .base import BaseKeySource

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Mapping, Sequence

    from ..types import KeyMetadata, RawKey


class MemoryKeySource(BaseKeySource):
    """
    内存键数据源

    键按插入顺序分页，每页大小即 count 提示值。
    每次分页和查询之间都会让出事件循环，模拟网络往返。

    属性：
        pages_served: 已产出的页数
        fetch_calls: 已执行的批量查询次数
    """

    def __init__(
        self,
        keys: Mapping[str, tuple[int, int]] | None = None,
        name: str = "memory",
    ) -> None:
        """
        初始化内存数据源

        Args:
            keys: 键名到 (idletime, ttl) 的映射，ttl 为 -1 表示永不过期
            name: 数据源标识
        """
        self._keys: dict[str, tuple[int, int]] = dict(keys or {})
        self._name = name
        self.pages_served = 0
        self.fetch_calls = 0

    @property
    def description(self) -> str:
        return self._name

    # ========== 数据维护 ==========

    def set(self, key: str, idletime: int, ttl: int = NO_EXPIRY_TTL) -> None:
        """添加或更新一个键"""
        self._keys[key] = (idletime, ttl)

    def delete(self, key: str) -> bool:
        """删除一个键，返回键是否存在"""
        return self._keys.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._keys)

    # ========== 枚举与查询 ==========

    async def scan_pages(self, pattern: str, count: int) -> AsyncGenerator[list[RawKey], None]:
        """按插入顺序分页产出匹配的键"""
        # 先取快照，枚举期间的增删不影响分页
        matched = [key for key in self._keys if fnmatchcase(key, pattern)]
        for start in range(0, len(matched), max(count, 1)):
            await asyncio.sleep(0)
            self.pages_served += 1
            yield list(matched[start : start + count])

    async def fetch_metadata(self, keys: Sequence[RawKey], with_ttl: bool) -> list[KeyMetadata]:
        """查询一页键的元数据，已删除的键返回 (None, None)"""
        self.fetch_calls += 1
        await asyncio.sleep(0)

        results: list[KeyMetadata] = []
        for key in keys:
            entry = self._keys.get(decode_key(key))
            if entry is None:
                results.append((None, None))
                continue
            idletime, ttl = entry
            results.append((idletime, ttl if with_ttl else None))
        return results

    def __repr__(self) -> str:
        """字符串表示"""
        return f"MemoryKeySource(name={self._name!r}, keys={len(self._keys)})"
