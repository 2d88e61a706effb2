"""
Pytest 配置和全局 fixtures

本模块提供测试所需的公共 fixtures、可编排的测试数据源和配置。
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import Sequence
from typing import Any

import pytest

from redis_key_scanner.backends import MemoryKeySource
from redis_key_scanner.config import ScanOptions
from redis_key_scanner.emitter import CollectingEmitter
from redis_key_scanner.exceptions import ScanConnectionError
from redis_key_scanner.log import configure_logging
from redis_key_scanner.scanner import KeyScanner
from redis_key_scanner.types import KeyMetadata, RawKey, ScanEvent

DAY = 24 * 60 * 60
WEEK = 7 * DAY


class ScriptedKeySource(MemoryKeySource):
    """
    可编排的内存数据源

    - gates: 第 N 次查询（从 1 开始）在对应 Event 被 set 之前挂起，用于制造乱序完成
    - fail_on_fetch: 第 N 次查询抛出异常
    - fail_scan_after: 产出 N 页后 SCAN 抛出 ScanConnectionError
    """

    def __init__(
        self,
        keys: dict[str, tuple[int, int]] | None = None,
        *,
        gates: dict[int, asyncio.Event] | None = None,
        fail_on_fetch: int | None = None,
        fetch_error: Exception | None = None,
        fail_scan_after: int | None = None,
    ) -> None:
        super().__init__(keys)
        self.gates = gates or {}
        self.fail_on_fetch = fail_on_fetch
        self.fetch_error = fetch_error or ConnectionError("pipeline broken")
        self.fail_scan_after = fail_scan_after
        self.fetch_started = 0
        self.max_concurrent = 0
        self._concurrent = 0
        self.closed = False

    async def scan_pages(self, pattern: str, count: int):
        async for page in super().scan_pages(pattern, count):
            if self.fail_scan_after is not None and self.pages_served > self.fail_scan_after:
                raise ScanConnectionError("scan interrupted")
            yield page

    async def fetch_metadata(self, keys: Sequence[RawKey], with_ttl: bool) -> list[KeyMetadata]:
        self.fetch_started += 1
        call = self.fetch_started
        self._concurrent += 1
        self.max_concurrent = max(self.max_concurrent, self._concurrent)
        try:
            gate = self.gates.get(call)
            if gate is not None:
                await gate.wait()
            if call == self.fail_on_fetch:
                raise self.fetch_error
            return await super().fetch_metadata(keys, with_ttl)
        finally:
            self._concurrent -= 1

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def quiet_logging() -> None:
    """测试期间只输出 WARNING 以上的日志，且不写入 stdout"""
    configure_logging(debug=False, stream=io.StringIO())


@pytest.fixture
def make_options():
    """创建扫描参数的工厂 fixture"""

    def _make(**overrides: Any) -> ScanOptions:
        data: dict[str, Any] = {"host": "localhost", "scan_batch": 2}
        data.update(overrides)
        return ScanOptions(**data)

    return _make


async def collect(scanner: KeyScanner) -> list[ScanEvent]:
    """运行扫描并收集所有事件"""
    return [event async for event in scanner.events()]


async def run_scan(options: ScanOptions, source: MemoryKeySource, **kwargs: Any) -> CollectingEmitter:
    """运行扫描并返回收集输出器"""
    emitter = CollectingEmitter()
    await KeyScanner(options, source, **kwargs).run(emitter)
    return emitter
