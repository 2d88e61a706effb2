"""
时间范围解析模块

把 "30m"、"1w" 之类的人类可读时间范围转换为整数秒。

支持的单位：
- s: 秒
- m: 分钟
- h: 小时
- d: 天
- w: 周

不带单位的数字按秒处理。
"""

from __future__ import annotations

import math
import re

from .exceptions import ScanValidationError

UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}
"""单位到秒数的映射"""

_TIMEFRAME_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)


def parse_timeframe(value: str | int | float) -> int:
    """
    解析时间范围为秒数

    Args:
        value: 时间范围，整数（秒）或 "<number><unit>" 形式的字符串

    Returns:
        秒数（四舍五入为整数）

    Raises:
        ScanValidationError: 格式错误或为负数

    示例:
        >>> parse_timeframe("1w")
        604800
        >>> parse_timeframe("90")
        90
        >>> parse_timeframe("1.5h")
        5400
    """
    # bool 是 int 的子类，需要单独排除
    if isinstance(value, bool):
        msg = f"无效的时间范围: {value!r}"
        raise ScanValidationError(msg)

    if isinstance(value, int | float):
        if isinstance(value, float) and not math.isfinite(value):
            msg = f"时间范围必须是有限值: {value!r}"
            raise ScanValidationError(msg)
        if value < 0:
            msg = f"时间范围不能为负数: {value!r}"
            raise ScanValidationError(msg)
        return round(value)

    if not isinstance(value, str):
        msg = f"无效的时间范围: {value!r}"
        raise ScanValidationError(msg)

    match = _TIMEFRAME_RE.match(value)
    if match is None:
        msg = f"无效的时间范围: {value!r}"
        raise ScanValidationError(msg)

    number, unit = match.groups()
    seconds = float(number) * UNIT_SECONDS[unit.lower() or "s"]
    if not math.isfinite(seconds):
        msg = f"时间范围必须是有限值: {value!r}"
        raise ScanValidationError(msg)
    return round(seconds)


__all__ = ["UNIT_SECONDS", "parse_timeframe"]
