"""
扫描控制器模块

驱动基于游标的分页枚举，为每页派发并发的批量元数据查询，
应用过滤条件，并在所有查询完成后恰好发出一次汇总。

状态机：
    IDLE → SCANNING → DRAINING → FINISHED
                 ↘         ↘
                   FAILED（任何错误，跳过 DRAINING，不发出汇总）

并发模型：
- 单个 asyncio 事件循环，所有状态只在事件循环上修改，检查与更新之间没有 await，不需要锁
- 枚举是顺序的：决定继续之后才请求下一页
- 每页的查询与过滤作为独立任务运行，可以乱序完成
- keys_scanned 在派发时累加，keys_selected 在查询完成时累加

使用示例：
    >>> scanner = KeyScanner(options, source)
    >>> async for event in scanner.events():
    ...     print(event.to_record())
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from .backends import source_from_options
from .fetcher import BatchMetadataFetcher
from .filters import select
from .types import ScanPhase, SelectedKeyEvent, SummaryEvent

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .backends import BaseKeySource
    from .config import ScanOptions
    from .emitter import BaseEmitter
    from .types import RawKey, ScanEvent

logger = structlog.get_logger(__name__)


class KeyScanner:
    """
    键扫描控制器

    每个实例只运行一次扫描。事件以流的形式交给调用方：
    选中键事件按所属批次完成的顺序产出，汇总事件总在最后；
    扫描出错时抛出异常而不产出汇总。

    结束判定：
    - 每派发一页后检查：已达到选中上限，或 keys_scanned >= scan_limit 时停止请求新页
    - 枚举自然结束时同样进入 DRAINING
    - DRAINING 中最后一个未完成的批次结束时发出汇总

    汇总和错误共用一个单次触发的 Future，保证恰好一个终止信号。

    使用示例：
        >>> scanner = KeyScanner(options, source, max_in_flight=8)
        >>> summary = await scanner.run(JsonLinesEmitter())
        >>> print(summary.keys_selected)
    """

    def __init__(
        self,
        options: ScanOptions,
        source: BaseKeySource,
        *,
        max_in_flight: int | None = None,
        queue_size: int = 16,
    ) -> None:
        """
        初始化扫描控制器

        Args:
            options: 扫描参数
            source: 已连接的键数据源
            max_in_flight: 同时进行的批量查询上限，None 表示不限
            queue_size: 等待消费的批次数上限，满时查询任务等待消费方
        """
        if max_in_flight is not None and max_in_flight < 1:
            raise ValueError("max_in_flight 必须大于 0")
        if queue_size < 1:
            raise ValueError("queue_size 必须大于 0")

        self.options = options
        self.source = source
        self.fetcher = BatchMetadataFetcher(source, needs_ttl=options.needs_ttl)
        self.max_in_flight = max_in_flight
        self.queue_size = queue_size

        # 扫描状态
        self.phase = ScanPhase.IDLE
        self.keys_scanned = 0
        self.keys_selected = 0
        self.at_select_limit = False

        self._outstanding: set[asyncio.Task[None]] = set()
        self._driver: asyncio.Task[None] | None = None
        self._queue: asyncio.Queue[list[SelectedKeyEvent]] = asyncio.Queue(maxsize=queue_size)
        self._terminal: asyncio.Future[SummaryEvent] | None = None
        self._slots = asyncio.Semaphore(max_in_flight) if max_in_flight is not None else None

    @property
    def in_flight(self) -> int:
        """未完成的批量查询数量"""
        return len(self._outstanding)

    # ========== 事件流 ==========

    async def events(self) -> AsyncIterator[ScanEvent]:
        """
        运行扫描并以异步迭代器产出事件

        Yields:
            SelectedKeyEvent，最后是一个 SummaryEvent

        Raises:
            ScanConnectionError: 枚举失败
            ScanFetchError: 批量查询失败
            RuntimeError: 扫描器已运行过
        """
        if self.phase is not ScanPhase.IDLE:
            raise RuntimeError("每个 KeyScanner 只能运行一次扫描")

        terminal = self._terminal = asyncio.get_running_loop().create_future()

        self.phase = ScanPhase.SCANNING
        self._driver = asyncio.create_task(self._drive())

        getter: asyncio.Future[list[SelectedKeyEvent]] | None = None
        try:
            while True:
                if getter is None:
                    getter = asyncio.create_task(self._queue.get())

                done, _ = await asyncio.wait(
                    {getter, terminal},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if getter in done:
                    batch = getter.result()
                    getter = None
                    for event in batch:
                        yield event
                    continue

                # 终止信号：错误直接抛出，汇总前先交付队列中剩余的批次
                getter.cancel()
                getter = None
                summary = terminal.result()
                while not self._queue.empty():
                    for event in self._queue.get_nowait():
                        yield event
                yield summary
                return
        finally:
            if getter is not None:
                getter.cancel()
            await self._shutdown()

    async def run(self, emitter: BaseEmitter) -> SummaryEvent:
        """
        运行扫描，把每个事件交给 emitter

        Args:
            emitter: 结果输出器

        Returns:
            汇总事件
        """
        summary: SummaryEvent | None = None
        async for event in self.events():
            emitter.emit(event)
            if isinstance(event, SummaryEvent):
                summary = event

        if summary is None:
            raise RuntimeError("扫描结束但未产出汇总")
        return summary

    # ========== 枚举驱动 ==========

    async def _drive(self) -> None:
        """逐页枚举并派发批量查询，满足停止条件或枚举结束后进入 DRAINING"""
        options = self.options
        pages = self.source.scan_pages(options.pattern, options.scan_batch)
        try:
            async for page in pages:
                if self._slots is not None:
                    await self._slots.acquire()
                self._dispatch(page)

                if self.at_select_limit or (
                    options.scan_limit is not None and self.keys_scanned >= options.scan_limit
                ):
                    logger.debug(
                        "scan stopped at limit",
                        keys_scanned=self.keys_scanned,
                        keys_selected=self.keys_selected,
                    )
                    break
        except Exception as e:
            self._fail(e)
            return
        finally:
            await pages.aclose()

        if self.phase is ScanPhase.SCANNING:
            self.phase = ScanPhase.DRAINING
            self._maybe_finish()

    def _dispatch(self, page: list[RawKey]) -> None:
        """累加扫描计数并为一页创建查询任务"""
        self.keys_scanned += len(page)
        logger.debug(f"scanned {len(page)} keys", keys_scanned=self.keys_scanned)

        task = asyncio.create_task(self._process(page))
        self._outstanding.add(task)
        task.add_done_callback(self._on_batch_done)

    async def _process(self, page: list[RawKey]) -> None:
        """查询一页元数据，过滤并把选中的事件作为一个批次放入队列"""
        try:
            records = await self.fetcher.fetch(page)
        finally:
            if self._slots is not None:
                self._slots.release()

        selected: list[SelectedKeyEvent] = []
        limit = self.options.limit
        name = self.source.description

        for record in records:
            # 之前的批次已达到上限后不再选中新键
            if self.at_select_limit:
                break
            if record is None or not select(record, self.options):
                continue

            self.keys_selected += 1
            self.at_select_limit = limit is not None and self.keys_selected >= limit
            selected.append(
                SelectedKeyEvent(
                    name=name,
                    key=record.key,
                    idletime=record.idletime,
                    ttl=record.ttl,
                )
            )

        if selected:
            await self._queue.put(selected)

    # ========== 终止处理 ==========

    def _on_batch_done(self, task: asyncio.Task[None]) -> None:
        """批次任务完成回调：移出未完成集合，失败时终止扫描"""
        self._outstanding.discard(task)
        if task.cancelled():
            return

        exc = task.exception()
        if exc is not None:
            self._fail(exc)
            return

        self._maybe_finish()

    def _latch(self) -> asyncio.Future[SummaryEvent]:
        """终止信号 Future,只在 events() 启动后存在"""
        if self._terminal is None:
            raise RuntimeError("扫描尚未开始")
        return self._terminal

    def _maybe_finish(self) -> None:
        """DRAINING 且没有未完成批次时发出汇总"""
        if self.phase is ScanPhase.DRAINING and not self._outstanding:
            self._finish()

    def _finish(self) -> None:
        """触发完成信号（单次）"""
        terminal = self._latch()
        if terminal.done():
            return

        self.phase = ScanPhase.FINISHED
        summary = SummaryEvent(
            keys_scanned=self.keys_scanned,
            keys_selected=self.keys_selected,
            options=self.options,
        )
        logger.debug(
            "scan finished",
            keys_scanned=self.keys_scanned,
            keys_selected=self.keys_selected,
        )
        terminal.set_result(summary)

    def _fail(self, exc: BaseException) -> None:
        """触发错误信号（单次），取消枚举和所有未完成批次"""
        terminal = self._latch()
        if terminal.done():
            return

        self.phase = ScanPhase.FAILED
        logger.debug("scan failed", error=str(exc), in_flight=len(self._outstanding))
        terminal.set_exception(exc)

        if self._driver is not None and self._driver is not asyncio.current_task():
            self._driver.cancel()
        for task in self._outstanding:
            task.cancel()

    async def _shutdown(self) -> None:
        """取消并等待所有剩余任务（消费方提前退出或扫描失败时）"""
        pending: list[asyncio.Task[Any]] = [t for t in self._outstanding if not t.done()]
        if self._driver is not None and not self._driver.done():
            pending.append(self._driver)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        # 消费方提前退出时不会再有终止信号
        if self._terminal is not None and not self._terminal.done():
            self.phase = ScanPhase.FAILED
            self._terminal.cancel()


async def ascan_keys(
    options: ScanOptions,
    emitter: BaseEmitter,
    source: BaseKeySource | None = None,
    **kwargs: Any,
) -> SummaryEvent:
    """
    连接数据源、运行扫描、关闭连接

    Args:
        options: 扫描参数
        emitter: 结果输出器
        source: 键数据源，None 时根据 options 创建 Redis 数据源
        **kwargs: 传递给 KeyScanner 的参数

    Returns:
        汇总事件

    Raises:
        ScanConnectionError: 无法连接或枚举失败
        ScanFetchError: 批量查询失败
    """
    if source is None:
        source = source_from_options(options)

    try:
        await source.connect()
        scanner = KeyScanner(options, source, **kwargs)
        return await scanner.run(emitter)
    finally:
        await source.aclose()


def scan_keys(
    options: ScanOptions,
    emitter: BaseEmitter,
    source: BaseKeySource | None = None,
    **kwargs: Any,
) -> SummaryEvent:
    """ascan_keys() 的同步版本"""
    return asyncio.run(ascan_keys(options, emitter, source, **kwargs))


__all__ = ["KeyScanner", "ascan_keys", "scan_keys"]
