"""
内存数据源测试
"""

from __future__ import annotations

import pytest

from redis_key_scanner.backends import (
    BaseKeySource,
    MemoryKeySource,
    create_source,
    get_registered_sources,
    register_source,
)


async def collect_pages(source: MemoryKeySource, pattern: str = "*", count: int = 10) -> list:
    return [page async for page in source.scan_pages(pattern, count)]


class TestMemoryKeySource:
    """测试 MemoryKeySource"""

    @pytest.mark.asyncio
    async def test_pages_in_insertion_order(self) -> None:
        """测试按插入顺序分页"""
        source = MemoryKeySource({f"k{i}": (i, -1) for i in range(5)})

        pages = await collect_pages(source, count=2)

        assert pages == [["k0", "k1"], ["k2", "k3"], ["k4"]]
        assert source.pages_served == 3

    @pytest.mark.asyncio
    async def test_pattern(self) -> None:
        """测试 glob 匹配"""
        source = MemoryKeySource({"user:1": (1, -1), "session:1": (1, -1), "user:2": (1, -1)})

        assert await collect_pages(source, "user:*") == [["user:1", "user:2"]]

    @pytest.mark.asyncio
    async def test_fetch_metadata(self) -> None:
        """测试元数据查询"""
        source = MemoryKeySource({"a": (10, -1), "b": (20, 30)})

        assert await source.fetch_metadata(["a", b"b", "missing"], with_ttl=True) == [
            (10, -1),
            (20, 30),
            (None, None),
        ]
        assert await source.fetch_metadata(["a"], with_ttl=False) == [(10, None)]
        assert source.fetch_calls == 2

    @pytest.mark.asyncio
    async def test_snapshot_during_scan(self) -> None:
        """测试枚举期间删除键不影响分页，查询时返回空"""
        source = MemoryKeySource({"a": (1, -1), "b": (2, -1)})
        pages = source.scan_pages("*", 1)

        first = await pages.__anext__()
        assert source.delete("b") is True
        second = await pages.__anext__()

        assert (first, second) == (["a"], ["b"])
        assert await source.fetch_metadata(second, with_ttl=False) == [(None, None)]

    def test_set_and_delete(self) -> None:
        """测试数据维护"""
        source = MemoryKeySource(name="offline")
        source.set("a", 5)
        source.set("b", 6, ttl=100)

        assert len(source) == 2
        assert source.delete("missing") is False
        assert source.description == "offline"
        assert "offline" in repr(source)

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """测试异步上下文管理器"""
        async with MemoryKeySource({"a": (1, -1)}) as source:
            assert await collect_pages(source) == [["a"]]


class TestSourceRegistry:
    """测试数据源注册表"""

    def test_builtin_sources(self) -> None:
        """测试内置数据源"""
        assert {"memory", "redis"} <= set(get_registered_sources())

    def test_create_memory_source(self) -> None:
        """测试按名称创建（不区分大小写）"""
        source = create_source("Memory", keys={"a": (1, -1)}, name="m")

        assert isinstance(source, MemoryKeySource)
        assert len(source) == 1
        assert source.description == "m"

    def test_unknown_source(self) -> None:
        """测试未注册的名称"""
        with pytest.raises(ValueError, match="未注册"):
            create_source("memcached")

    def test_register_duplicate(self) -> None:
        """测试重复注册"""
        with pytest.raises(ValueError, match="已注册"):
            register_source("memory", MemoryKeySource)

    def test_register_empty_name(self) -> None:
        """测试空名称"""
        with pytest.raises(ValueError):
            register_source("  ", MemoryKeySource)

    def test_register_custom(self) -> None:
        """测试注册自定义数据源"""

        class StaticSource(MemoryKeySource):
            pass

        register_source("static-test", StaticSource, override=True)

        assert isinstance(create_source("static-test"), StaticSource)
        assert isinstance(create_source("static-test"), BaseKeySource)
