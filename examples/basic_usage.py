"""
基础使用示例

演示 Redis Key Scanner 的基本功能，使用内存数据源，不需要 Redis。
"""

import asyncio
import sys

from redis_key_scanner import (
    CallbackEmitter,
    CollectingEmitter,
    JsonLinesEmitter,
    KeyScanner,
    ScanOptions,
    scan_keys,
)
from redis_key_scanner.backends import MemoryKeySource

DAY = 24 * 60 * 60


def make_source() -> MemoryKeySource:
    """构造一个模拟的键空间：(idletime, ttl)"""
    source = MemoryKeySource(name="demo")
    source.set("session:1", idletime=10 * DAY)
    source.set("session:2", idletime=60, ttl=3600)
    source.set("session:3", idletime=30 * DAY, ttl=120)
    source.set("user:1", idletime=2 * DAY)
    source.set("user:2", idletime=5)
    return source


def main() -> None:
    """基础使用示例"""
    source = make_source()

    # 1. 找出一周以上未访问的会话键，JSON Lines 输出到 stdout
    print("=== 长期闲置的会话 ===")
    options = ScanOptions(host="demo", pattern="session:*", min_idle="1w")
    scan_keys(options, JsonLinesEmitter(sys.stdout), source)

    # 2. 找出永不过期的键
    print("\n=== 永不过期的键 ===")
    emitter = CollectingEmitter()
    summary = scan_keys(ScanOptions(host="demo", no_expiry=True), emitter, source)
    for event in emitter.selected:
        print(f"{event.key}: 闲置 {event.idletime} 秒")
    print(f"扫描 {summary.keys_scanned} 个，选中 {summary.keys_selected} 个")

    # 3. 回调输出，最多选中 2 个
    print("\n=== 回调输出 ===")
    scan_keys(ScanOptions(host="demo", limit=2), CallbackEmitter(print), source)

    # 4. 以异步迭代器消费事件
    print("\n=== 异步迭代 ===")

    async def stream() -> None:
        scanner = KeyScanner(ScanOptions(host="demo", scan_batch=2, max_ttl="1h"), source)
        async for event in scanner.events():
            print(event.to_record())

    asyncio.run(stream())


if __name__ == "__main__":
    main()
