"""
键数据源模块 - 提供 SCAN 枚举和元数据查询能力

本模块提供了可插拔的数据源注册系统,扫描控制器只依赖 ``BaseKeySource`` 接口。

核心功能:
- 数据源工厂注册机制: 通过 `register_source` 注册自定义数据源
- 数据源实例化: 通过 `create_source` 根据名称创建实例
- 延迟加载可选依赖: Redis 数据源仅在实际使用时才导入 redis

内置数据源:
- memory: 进程内数据源,适用于测试和离线分析
- redis: Redis 单机或哨兵从节点

使用示例:
    ```python
    from redis_key_scanner.backends import create_source, source_from_options

    source = create_source("memory", keys={"a": (10, -1)})
    source = source_from_options(ScanOptions(host="localhost"))
    ```
"""

from __future__ import annotations

import importlib.util
from collections.abc import Callable
from importlib import import_module
from typing import TYPE_CHECKING, Any

from .base import BaseKeySource
from .memory import MemoryKeySource

if TYPE_CHECKING:
    from ..config import ScanOptions

SourceFactory = Callable[..., BaseKeySource]
"""数据源工厂类型,接收关键字参数并返回 BaseKeySource 实例的可调用对象"""

_SOURCE_REGISTRY: dict[str, SourceFactory] = {}
"""全局数据源注册表,存储名称到工厂函数的映射"""


def register_source(name: str, factory: SourceFactory, /, *, override: bool = False) -> None:
    """
    注册新的数据源工厂到全局注册表

    Args:
        name: 数据源唯一标识符,会被转换为小写
        factory: 工厂函数,签名为 ``(**kwargs) -> BaseKeySource``
        override: 是否允许覆盖已存在的名称(默认 False)

    Raises:
        ValueError: 名称为空,或名称已存在且 override=False
    """
    key = name.strip().lower()
    if not key:
        raise ValueError("数据源名称不能为空")

    if key in _SOURCE_REGISTRY and not override:
        msg = f"数据源 '{name}' 已注册,如需覆盖请显式传入 override=True"
        raise ValueError(msg)

    _SOURCE_REGISTRY[key] = factory


def create_source(name: str, /, **options: Any) -> BaseKeySource:
    """
    根据注册名称创建数据源实例

    Args:
        name: 已注册的数据源名称(不区分大小写)
        **options: 传递给工厂的关键字参数

    Returns:
        BaseKeySource 实例

    Raises:
        ValueError: 名称未注册
    """
    key = name.strip().lower()
    try:
        factory = _SOURCE_REGISTRY[key]
    except KeyError as exc:
        msg = f"未注册的数据源 '{name}'"
        raise ValueError(msg) from exc
    return factory(**options)


def get_registered_sources() -> list[str]:
    """返回所有已注册的数据源名称,按字母顺序排序"""
    return sorted(_SOURCE_REGISTRY.keys())


def source_from_options(options: ScanOptions, **kwargs: Any) -> BaseKeySource:
    """
    根据扫描参数创建 Redis 数据源

    host/port/db/password/redis_master 都取自 options。
    """
    password = options.password.get_secret_value() if options.password else None
    return create_source(
        "redis",
        host=options.host,
        port=options.port,
        db=options.db,
        password=password,
        master_name=options.redis_master,
        **kwargs,
    )


def _lazy_source(module_path: str, attr: str) -> SourceFactory:
    """
    创建延迟导入的数据源工厂

    首次调用时才导入目标模块,未安装可选依赖时错误在创建实例时抛出。
    """

    def _factory(**options: Any) -> BaseKeySource:
        module = import_module(module_path)
        source_cls = getattr(module, attr)
        return source_cls(**options)

    return _factory


# 注册内置数据源
register_source("memory", lambda **opts: MemoryKeySource(**opts))

# 仅在创建实例时才导入 redis
register_source("redis", _lazy_source("redis_key_scanner.backends.redis", "RedisKeySource"))

__all__ = [
    "BaseKeySource",
    "MemoryKeySource",
    "SourceFactory",
    "register_source",
    "create_source",
    "get_registered_sources",
    "source_from_options",
]

# 可选导出具体实现(若依赖可用)
if importlib.util.find_spec("redis") is not None:  # pragma: no cover
    from .redis import RedisKeySource  # noqa: F401

    __all__.append("RedisKeySource")
