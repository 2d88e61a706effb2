"""
Redis 键数据源模块

基于 redis-py 的异步客户端（redis.asyncio）实现。
支持直连单机 Redis，或通过哨兵连接主节点对应的从节点。

特性：
- SCAN 游标分页，不读取任何键值，不影响 IDLETIME
- 每页一次管道往返（OBJECT IDLETIME，按需附带 TTL）
- 哨兵模式下扫描从节点，不给主节点增加负担

使用示例：
    >>> source = RedisKeySource(host="localhost", port=6379, db=0)
    >>> await source.connect()
    >>> async for page in source.scan_pages("session:*", 1000):
    ...     metadata = await source.fetch_metadata(page, with_ttl=True)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from ..exceptions import ScanConnectionError, ScanFetchError
from .base import BaseKeySource

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

    from ..types import KeyMetadata, RawKey

logger = structlog.get_logger(__name__)

MISSING_KEY_TTL = -2
"""TTL 返回 -2 表示键不存在"""


class RedisKeySource(BaseKeySource):
    """
    Redis 键数据源

    架构设计：
    - 连接：redis.asyncio.Redis，哨兵模式使用 Sentinel.slave_for()
    - 枚举：SCAN cursor MATCH pattern COUNT n，直到游标归零
    - 元数据：非事务管道，一页一次往返

    使用示例：
        >>> # 单机模式
        >>> source = RedisKeySource(host="localhost", port=6379)
        >>>
        >>> # 哨兵模式（连接 mymaster 的从节点）
        >>> source = RedisKeySource(host="sentinel1", port=26379, master_name="mymaster")
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
        master_name: str | None = None,
        socket_timeout: float = 30.0,
        socket_connect_timeout: float = 5.0,
        **kwargs: Any,
    ) -> None:
        """
        初始化 Redis 数据源

        Args:
            host: Redis 服务器（或哨兵）主机地址
            port: 端口
            db: 逻辑数据库编号
            password: Redis 密码
            master_name: 哨兵主节点名，设置后 host/port 被视为哨兵地址
            socket_timeout: 套接字超时（秒）
            socket_connect_timeout: 连接超时（秒）
            **kwargs: 其他 redis.asyncio.Redis 参数
        """
        try:
            import redis.asyncio as aioredis
            from redis.asyncio.sentinel import Sentinel
        except ImportError as e:
            msg = "Redis 数据源需要安装 redis: pip install redis"
            raise ImportError(msg) from e

        self.host = host
        self.port = port
        self.db = db
        self.master_name = master_name
        self._sentinel: Any = None

        connection_kwargs: dict[str, Any] = {
            "db": db,
            "password": password,
            "socket_timeout": socket_timeout,
            "socket_connect_timeout": socket_connect_timeout,
            **kwargs,
        }

        if master_name:
            self._sentinel = Sentinel(
                [(host, port)],
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_connect_timeout,
            )
            self._client = self._sentinel.slave_for(master_name, **connection_kwargs)
        else:
            self._client = aioredis.Redis(host=host, port=port, **connection_kwargs)

    @property
    def description(self) -> str:
        if self.master_name:
            return self.master_name
        return f"{self.host}:{self.port}"

    # ========== 连接管理 ==========

    async def connect(self) -> None:
        """验证连接（哨兵模式下会先解析从节点地址）"""
        logger.debug("waiting to connect", target=self.description, db=self.db)
        try:
            await self._client.ping()
        except Exception as e:
            msg = f"无法连接到 Redis 服务器 {self.description}: {e}"
            raise ScanConnectionError(msg) from e
        logger.debug("redis ready", target=self.description)

    async def aclose(self) -> None:
        """关闭客户端及哨兵连接"""
        await self._client.aclose()
        if self._sentinel is not None:
            for sentinel in self._sentinel.sentinels:
                await sentinel.aclose()

    # ========== 枚举与查询 ==========

    async def scan_pages(self, pattern: str, count: int) -> AsyncGenerator[list[RawKey], None]:
        """
        使用 SCAN 逐页枚举键

        空页（SCAN 在稀疏键空间中常见）不会产出。
        """
        cursor = 0
        while True:
            try:
                cursor, keys = await self._client.scan(cursor=cursor, match=pattern, count=count)
            except Exception as e:
                msg = f"Redis SCAN 失败: {e}"
                raise ScanConnectionError(msg) from e

            if keys:
                yield list(keys)

            if cursor == 0:
                break

    async def fetch_metadata(self, keys: Sequence[RawKey], with_ttl: bool) -> list[KeyMetadata]:
        """
        使用管道批量查询 OBJECT IDLETIME（以及 TTL）

        每个键占用一条或两条命令，结果按键顺序两两对应。
        """
        if not keys:
            return []

        pipe = self._client.pipeline(transaction=False)
        for key in keys:
            pipe.object("idletime", key)
            if with_ttl:
                pipe.ttl(key)

        try:
            results = await pipe.execute()
        except Exception as e:
            msg = f"Redis 管道查询失败: {e}"
            raise ScanFetchError(msg) from e

        step = 2 if with_ttl else 1
        metadata: list[KeyMetadata] = []
        for i in range(len(keys)):
            idletime = results[i * step]
            ttl = results[i * step + 1] if with_ttl else None
            if idletime is None or ttl == MISSING_KEY_TTL:
                # 键在 SCAN 与查询之间被删除或过期
                metadata.append((None, None))
            else:
                metadata.append((int(idletime), None if ttl is None else int(ttl)))
        return metadata

    def __repr__(self) -> str:
        """字符串表示"""
        return f"RedisKeySource(target={self.description}, db={self.db})"
