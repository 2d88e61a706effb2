"""
异常定义模块

本模块定义了扫描器的所有自定义异常类。
所有异常都继承自 ScanError 基类，便于统一捕获。

错误分为三类，分别对应扫描生命周期的不同阶段：
- 参数校验（连接之前）
- 连接/枚举（扫描过程中）
- 批量元数据查询（扫描过程中）
"""

from __future__ import annotations


class ScanError(Exception):
    """
    扫描基础异常

    所有扫描相关的异常都继承自此类。

    示例:
        >>> try:
        ...     scan_keys(options, emitter)
        ... except ScanError as e:
        ...     print(f"扫描失败: {e}")
    """

    pass


class ScanValidationError(ScanError, ValueError):
    """
    参数校验错误

    当主机、端口、时间范围或未知选项不合法时抛出。
    在建立任何连接之前同步抛出，不会重试。

    示例:
        >>> raise ScanValidationError("Expected maxIdle to be a timeframe.")
    """

    pass


class ScanConnectionError(ScanError):
    """
    连接错误

    Redis 不可达、认证失败、哨兵无法解析主节点，或 SCAN 执行失败时抛出。
    扫描立即终止，不会重试。

    示例:
        >>> raise ScanConnectionError("无法连接到 Redis 服务器 localhost:6379")
    """

    pass


class ScanFetchError(ScanError):
    """
    批量元数据查询错误

    某一页的管道请求（OBJECT IDLETIME / TTL）失败时抛出。
    对整个扫描是致命的：不保留部分结果，也不重试该批次。
    """

    pass
