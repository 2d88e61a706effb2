"""
批量元数据查询模块

为一页键名发出一次批量请求，返回与输入位置对齐的 KeyRecord 列表。
IDLETIME 总是查询，TTL 只在配置了 TTL 相关条件时查询。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import ScanError, ScanFetchError
from .types import KeyRecord, decode_key

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .backends import BaseKeySource
    from .types import RawKey


class BatchMetadataFetcher:
    """
    批量元数据查询器

    不持有也不修改扫描状态，可被多个并发任务共享。

    使用示例：
        >>> fetcher = BatchMetadataFetcher(source, needs_ttl=options.needs_ttl)
        >>> records = await fetcher.fetch([b"user:1", b"user:2"])
    """

    def __init__(self, source: BaseKeySource, needs_ttl: bool) -> None:
        """
        初始化查询器

        Args:
            source: 键数据源
            needs_ttl: 是否同时查询 TTL
        """
        self.source = source
        self.needs_ttl = needs_ttl

    async def fetch(self, page: Sequence[RawKey]) -> list[KeyRecord | None]:
        """
        查询一页键的元数据

        Args:
            page: 一页键名（SCAN 原始返回）

        Returns:
            与 page 位置对齐的列表；查询时键已不存在的位置为 None

        Raises:
            ScanFetchError: 批量请求失败或返回结果与输入不对齐
        """
        try:
            metadata = await self.source.fetch_metadata(page, self.needs_ttl)
        except ScanError:
            raise
        except Exception as e:
            msg = f"批量查询元数据失败: {e}"
            raise ScanFetchError(msg) from e

        if len(metadata) != len(page):
            msg = f"批量查询结果数量不匹配: 期望 {len(page)}, 实际 {len(metadata)}"
            raise ScanFetchError(msg)

        records: list[KeyRecord | None] = []
        for key, (idletime, ttl) in zip(page, metadata, strict=True):
            if idletime is None:
                records.append(None)
            else:
                records.append(KeyRecord(key=decode_key(key), idletime=idletime, ttl=ttl))
        return records


__all__ = ["BatchMetadataFetcher"]
