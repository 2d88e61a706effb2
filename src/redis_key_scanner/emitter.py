"""
结果输出模块

把扫描事件交给使用方：
- JSON Lines：每个事件一行 JSON，写入 stdout 或任意文本流
- 回调：每个事件调用一次函数
- 收集：保存在内存列表中（测试、嵌入使用）

输出器逐个接收事件，不做缓冲；汇总事件总是最后一个。

使用示例：
    >>> emitter = JsonLinesEmitter(sys.stdout)
    >>> await KeyScanner(options, source).run(emitter)
    {"name":"localhost:6379","key":"session:1","idletime":700000}
    {"keysScanned":1,"keysSelected":1,"host":"localhost",...}
"""

from __future__ import annotations

import json
import sys
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TextIO

from .types import SelectedKeyEvent, SummaryEvent

if TYPE_CHECKING:
    from collections.abc import Callable

    from .types import ScanEvent


class BaseEmitter(ABC):
    """
    输出器抽象基类

    定义事件输出接口。
    """

    @abstractmethod
    def emit(self, event: ScanEvent) -> None:
        """
        输出一个事件

        Args:
            event: 选中键事件或汇总事件
        """
        raise NotImplementedError


class JsonLinesEmitter(BaseEmitter):
    """
    JSON Lines 输出器

    每个事件序列化为紧凑 JSON 并单独占一行，写完立即 flush，
    便于管道下游逐行处理。
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        """
        Args:
            stream: 文本输出流，默认 sys.stdout
        """
        self.stream = stream if stream is not None else sys.stdout

    def emit(self, event: ScanEvent) -> None:
        """写出一行 JSON"""
        line = json.dumps(event.to_record(), ensure_ascii=False, separators=(",", ":"))
        self.stream.write(line + "\n")
        self.stream.flush()


class CallbackEmitter(BaseEmitter):
    """回调输出器：每个事件的输出记录交给回调函数"""

    def __init__(self, callback: Callable[[dict[str, Any]], Any]) -> None:
        self.callback = callback

    def emit(self, event: ScanEvent) -> None:
        self.callback(event.to_record())


class CollectingEmitter(BaseEmitter):
    """
    收集输出器

    按到达顺序保存所有事件。

    示例：
        >>> emitter = CollectingEmitter()
        >>> await scanner.run(emitter)
        >>> [event.key for event in emitter.selected]
    """

    def __init__(self) -> None:
        self.events: list[ScanEvent] = []

    def emit(self, event: ScanEvent) -> None:
        self.events.append(event)

    @property
    def selected(self) -> list[SelectedKeyEvent]:
        """所有选中键事件"""
        return [event for event in self.events if isinstance(event, SelectedKeyEvent)]

    @property
    def summary(self) -> SummaryEvent | None:
        """汇总事件，扫描未完成时为 None"""
        for event in reversed(self.events):
            if isinstance(event, SummaryEvent):
                return event
        return None

    def records(self) -> list[dict[str, Any]]:
        """所有事件的输出记录"""
        return [event.to_record() for event in self.events]


__all__ = [
    "BaseEmitter",
    "JsonLinesEmitter",
    "CallbackEmitter",
    "CollectingEmitter",
]
