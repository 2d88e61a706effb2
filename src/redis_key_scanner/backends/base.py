"""
键数据源抽象基类模块

本模块定义了扫描器依赖的两个外部能力：
- 基于游标的分页枚举（SCAN）
- 可批量执行的元数据查询（OBJECT IDLETIME / TTL）

扫描控制器只依赖这里的接口，Redis 和内存实现可以无缝替换。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

    from ..types import KeyMetadata, RawKey


class BaseKeySource(ABC):
    """
    键数据源抽象基类

    生命周期：connect() → scan_pages() / fetch_metadata() → aclose()。
    也可以作为异步上下文管理器使用。

    使用示例：
        >>> async with MemoryKeySource({"a": (10, -1)}) as source:
        ...     async for page in source.scan_pages("*", 100):
        ...         print(await source.fetch_metadata(page, with_ttl=True))
    """

    @property
    @abstractmethod
    def description(self) -> str:
        """数据源标识，写入每条选中记录的 name 字段"""
        raise NotImplementedError

    async def connect(self) -> None:
        """
        建立并验证连接

        Raises:
            ScanConnectionError: 无法连接
        """

    @abstractmethod
    def scan_pages(self, pattern: str, count: int) -> AsyncGenerator[list[RawKey], None]:
        """
        逐页枚举匹配的键

        返回异步生成器，每次产出一页键名。停止迭代（或调用 aclose()）即暂停枚举，
        不会再请求新页。

        Args:
            pattern: 键名匹配模式（glob）
            count: 每页大小提示值

        Raises:
            ScanConnectionError: 枚举失败
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_metadata(self, keys: Sequence[RawKey], with_ttl: bool) -> list[KeyMetadata]:
        """
        一次往返批量查询元数据

        Args:
            keys: 一页键名
            with_ttl: 是否同时查询 TTL

        Returns:
            与 keys 位置对齐的 (idletime, ttl) 列表；with_ttl 为 False 时 ttl 为 None，
            键已不存在时 idletime 为 None

        Raises:
            ScanFetchError: 批量请求失败
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """关闭连接"""

    async def __aenter__(self) -> BaseKeySource:
        """异步上下文管理器：进入时建立连接"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """异步上下文管理器：退出时关闭连接"""
        await self.aclose()
