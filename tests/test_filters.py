"""
过滤条件测试

测试 select() 的各个条件及其组合。
"""

from __future__ import annotations

import pytest

from redis_key_scanner.filters import NO_EXPIRY_TTL, select
from redis_key_scanner.types import KeyRecord


class TestSelectBasics:
    """测试基础行为"""

    def test_no_bounds_selects_everything(self, make_options) -> None:
        """测试未配置任何条件时全部选中"""
        options = make_options()
        for record in [
            KeyRecord("a", 0),
            KeyRecord("b", 10_000_000),
            KeyRecord("c", 5, ttl=-1),
            KeyRecord("d", 5, ttl=30),
        ]:
            assert select(record, options) is True

    def test_select_is_pure(self, make_options) -> None:
        """测试相同输入得到相同结果且不修改输入"""
        options = make_options(max_idle=100, min_ttl=10)
        record = KeyRecord("a", 50, ttl=20)
        before = (record, options.model_dump())

        first = select(record, options)
        second = select(record, options)

        assert first == second is True
        assert (record, options.model_dump()) == before


class TestIdleBounds:
    """测试空闲时间条件"""

    @pytest.mark.parametrize(
        ("idletime", "expected"),
        [(99, True), (100, True), (101, False)],
    )
    def test_max_idle(self, make_options, idletime: int, expected: bool) -> None:
        """测试 max_idle 包含边界"""
        assert select(KeyRecord("k", idletime), make_options(max_idle=100)) is expected

    @pytest.mark.parametrize(
        ("idletime", "expected"),
        [(99, False), (100, True), (101, True)],
    )
    def test_min_idle(self, make_options, idletime: int, expected: bool) -> None:
        """测试 min_idle 包含边界"""
        assert select(KeyRecord("k", idletime), make_options(min_idle=100)) is expected

    def test_idle_range(self, make_options) -> None:
        """测试上下界同时配置"""
        options = make_options(min_idle="1h", max_idle="1d")

        assert select(KeyRecord("k", 1800), options) is False
        assert select(KeyRecord("k", 7200), options) is True
        assert select(KeyRecord("k", 100_000), options) is False


class TestTTLBounds:
    """测试 TTL 条件"""

    def test_max_ttl(self, make_options) -> None:
        """测试 max_ttl"""
        options = make_options(max_ttl=60)

        assert select(KeyRecord("k", 0, ttl=60), options) is True
        assert select(KeyRecord("k", 0, ttl=61), options) is False

    def test_min_ttl(self, make_options) -> None:
        """测试 min_ttl"""
        options = make_options(min_ttl=60)

        assert select(KeyRecord("k", 0, ttl=59), options) is False
        assert select(KeyRecord("k", 0, ttl=60), options) is True

    @pytest.mark.parametrize("field", ["max_ttl", "min_ttl"])
    def test_no_expiry_sentinel_is_not_a_duration(self, make_options, field: str) -> None:
        """测试 TTL 为 -1 时不参与时长比较"""
        options = make_options(**{field: 0 if field == "min_ttl" else 1000})
        assert select(KeyRecord("k", 0, ttl=NO_EXPIRY_TTL), options) is False


class TestNoExpiry:
    """测试 no_expiry 条件"""

    @pytest.mark.parametrize(("ttl", "expected"), [(-1, True), (120, False), (0, False)])
    def test_no_expiry(self, make_options, ttl: int, expected: bool) -> None:
        """测试 no_expiry 只选中 TTL 为 -1 的键"""
        assert select(KeyRecord("k", 10, ttl=ttl), make_options(no_expiry=True)) is expected

    def test_no_expiry_combined_with_idle(self, make_options) -> None:
        """测试 no_expiry 与空闲时间条件按 AND 组合"""
        options = make_options(no_expiry=True, min_idle=100)

        assert select(KeyRecord("k", 200, ttl=-1), options) is True
        assert select(KeyRecord("k", 50, ttl=-1), options) is False
        assert select(KeyRecord("k", 200, ttl=30), options) is False
