"""
配置管理模块

使用 Pydantic 进行扫描参数验证和管理,支持从字典、配置文件、环境变量加载。

使用示例:
    >>> # 从字典创建
    >>> options = ScanOptions(host="localhost", max_idle="1w")
    >>>
    >>> # 从 YAML 文件创建
    >>> options = ScanOptions.from_file("scan.yaml")
    >>>
    >>> # 从环境变量创建
    >>> options = ScanOptions.from_env()
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    Field,
    SecretStr,
    StringConstraints,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .exceptions import ScanValidationError
from .timeframe import parse_timeframe

REDIS_PORT = 6379
"""Redis 默认端口"""

SENTINEL_PORT = 26379
"""哨兵默认端口"""

DEFAULT_PATTERN = "*"
DEFAULT_SCAN_BATCH = 1000

_UNBOUNDED_LIMITS = frozenset({"scanLimit", "limit"})
"""不限时仍写入汇总记录的字段"""

# 主机名和主节点名去除首尾空白；pattern 等其他字符串保持原样
_Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ScanOptions(BaseModel):
    """
    扫描参数

    构造一次、验证一次，之后不可变。所有字段都有 camelCase 别名，
    汇总记录按别名输出，输入时两种名称都接受。

    配置示例:
        ```python
        # 直连 Redis
        options = ScanOptions(host="localhost", port=6379, min_idle="1w")

        # 通过哨兵连接主节点对应的从节点
        options = ScanOptions(host="sentinel", redis_master="mymaster")

        # 使用别名
        options = ScanOptions.from_mapping({"host": "localhost", "scanBatch": 500})
        ```

    属性:
        host: Redis 服务器或哨兵的主机名/IP
        port: 端口,未指定时直连为 6379,哨兵为 26379
        redis_master: 哨兵主节点名,设置后 host/port 指向哨兵
        password: Redis 密码,不会出现在汇总记录中
        db: 逻辑数据库编号
        pattern: 键名匹配模式(glob)
        scan_batch: SCAN 的 COUNT 提示值
        scan_limit: 最多扫描的键数量,None 表示不限
        limit: 最多选中的键数量,None 表示不限
        max_idle / min_idle: 空闲时间上下界(秒)
        max_ttl / min_ttl: TTL 上下界(秒)
        no_expiry: 只选中永不过期(TTL 为 -1)的键
        debug: 调试模式
    """

    debug: bool = Field(default=False, description="调试模式")

    host: _Name = Field(description="Redis 服务器或哨兵地址")

    port: int = Field(default=REDIS_PORT, ge=1, le=65535, description="端口号")

    redis_master: _Name | None = Field(
        default=None,
        alias="redisMaster",
        description="哨兵主节点名",
    )

    password: SecretStr | None = Field(default=None, exclude=True, description="Redis 密码")

    db: int = Field(default=0, ge=0, description="逻辑数据库编号")

    scan_batch: int = Field(
        default=DEFAULT_SCAN_BATCH,
        ge=1,
        alias="scanBatch",
        description="SCAN 每批的 COUNT 提示值",
    )

    scan_limit: int | None = Field(
        default=None,
        ge=1,
        alias="scanLimit",
        description="最多扫描的键数量",
    )

    limit: int | None = Field(default=None, ge=1, description="最多选中的键数量")

    max_idle: int | None = Field(default=None, ge=0, alias="maxIdle")

    max_ttl: int | None = Field(default=None, ge=0, alias="maxTTL")

    min_idle: int | None = Field(default=None, ge=0, alias="minIdle")

    min_ttl: int | None = Field(default=None, ge=0, alias="minTTL")

    no_expiry: bool = Field(default=False, alias="noExpiry")

    pattern: str = Field(default=DEFAULT_PATTERN, min_length=1, description="键名匹配模式")

    # ========== Pydantic 配置 ==========

    model_config = {
        "frozen": True,
        "extra": "forbid",  # 禁止额外字段
        "populate_by_name": True,
    }

    # ========== 验证器 ==========

    @model_validator(mode="before")
    @classmethod
    def default_port(cls, data: Any) -> Any:
        """未指定端口时按连接方式选择默认端口"""
        if isinstance(data, dict) and data.get("port") is None:
            master = data.get("redis_master", data.get("redisMaster"))
            data = {**data, "port": SENTINEL_PORT if master else REDIS_PORT}
        return data

    @field_validator("max_idle", "max_ttl", "min_idle", "min_ttl", mode="before")
    @classmethod
    def parse_timeframes(cls, value: Any, info: ValidationInfo) -> Any:
        """把 "1w"、"30m" 之类的时间范围转换为秒"""
        if value is None:
            return None
        try:
            return parse_timeframe(value)
        except ScanValidationError as e:
            alias = cls.model_fields[info.field_name].alias or info.field_name
            msg = f"Expected {alias} to be a timeframe: {value!r}"
            raise ValueError(msg) from e

    # ========== 派生属性 ==========

    @property
    def needs_ttl(self) -> bool:
        """是否需要查询 TTL(配置了任一 TTL 相关条件)"""
        return self.no_expiry or self.max_ttl is not None or self.min_ttl is not None

    @property
    def description(self) -> str:
        """数据源标识:哨兵模式下为主节点名,否则为 host:port"""
        if self.redis_master:
            return self.redis_master
        return f"{self.host}:{self.port}"

    def summary_fields(self) -> dict[str, Any]:
        """
        汇总记录中的参数部分

        按别名输出,省略未设置的过滤条件和为 False 的开关,密码不输出。
        scanLimit 和 limit 不限时输出为 null,记录完整的扫描范围。
        """
        dumped = self.model_dump(by_alias=True)
        return {
            key: value
            for key, value in dumped.items()
            if value is not False and (value is not None or key in _UNBOUNDED_LIMITS)
        }

    # ========== 工厂方法 ==========

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> ScanOptions:
        """
        从字典创建参数,校验失败时抛出 ScanValidationError

        Args:
            data: 参数字典,键可以是字段名或别名

        Returns:
            ScanOptions 实例

        Raises:
            ScanValidationError: 参数不合法或包含不支持的选项

        示例:
            >>> ScanOptions.from_mapping({"host": "localhost", "colour": "red"})
            Traceback (most recent call last):
            ...
            ScanValidationError: Unsupported option(s): colour
        """
        try:
            return cls(**data)
        except ValidationError as e:
            unsupported = [
                str(error["loc"][0]) for error in e.errors() if error["type"] == "extra_forbidden"
            ]
            if unsupported:
                msg = f"Unsupported option(s): {', '.join(unsupported)}"
            else:
                msg = "; ".join(_format_error(error) for error in e.errors())
            raise ScanValidationError(msg) from e

    @classmethod
    def from_file(cls, file_path: str | Path) -> ScanOptions:
        """
        从配置文件创建参数

        支持的格式:
        - YAML (.yaml, .yml)
        - TOML (.toml)
        - JSON (.json)

        Args:
            file_path: 配置文件路径

        Returns:
            ScanOptions 实例

        Raises:
            ScanValidationError: 文件读取、解析或校验失败
        """
        return cls.from_mapping(load_config_file(file_path))

    @classmethod
    def from_env(cls, prefix: str = "REDIS_KEY_SCANNER_", **overrides: Any) -> ScanOptions:
        """
        从环境变量创建参数

        环境变量命名规则:
        - REDIS_KEY_SCANNER_HOST=localhost
        - REDIS_KEY_SCANNER_SCAN_BATCH=500
        - REDIS_KEY_SCANNER_MIN_IDLE=1w

        Args:
            prefix: 环境变量前缀
            **overrides: 优先于环境变量的参数

        Returns:
            ScanOptions 实例

        示例:
            >>> import os
            >>> os.environ["REDIS_KEY_SCANNER_HOST"] = "localhost"
            >>> options = ScanOptions.from_env()
        """
        data: dict[str, Any] = {}
        for key, value in os.environ.items():
            if key.startswith(prefix):
                field_name = key[len(prefix) :].lower()
                data[field_name] = cls._convert_env_value(value)
        data.update(overrides)
        return cls.from_mapping(data)

    @staticmethod
    def _convert_env_value(value: str) -> Any:
        """
        转换环境变量值

        数字和布尔值交给 Pydantic 的宽松模式解析("500"、"true"、"0" 都可以),
        这里只处理空值,密码和模式之类的字段保持原始字符串。
        """
        if value.strip().lower() in {"none", "null", ""}:
            return None
        return value


def load_config_file(file_path: str | Path) -> dict[str, Any]:
    """
    读取配置文件为字典

    Raises:
        ScanValidationError: 文件不存在、格式不支持或内容不是字典
    """
    file_path = Path(file_path)

    if not file_path.exists():
        msg = f"配置文件不存在: {file_path}"
        raise ScanValidationError(msg)

    suffix = file_path.suffix.lower()

    try:
        if suffix in {".yaml", ".yml"}:
            data = _load_yaml(file_path)
        elif suffix == ".toml":
            data = _load_toml(file_path)
        elif suffix == ".json":
            data = _load_json(file_path)
        else:
            msg = f"不支持的配置文件格式: {suffix}"
            raise ScanValidationError(msg)
    except ScanValidationError:
        raise
    except Exception as e:
        msg = f"读取配置文件失败: {file_path}"
        raise ScanValidationError(msg) from e

    if not isinstance(data, dict):
        msg = "配置文件必须是字典格式"
        raise ScanValidationError(msg)

    return data


def _load_yaml(file_path: Path) -> Any:
    """从 YAML 文件加载"""
    import yaml

    with file_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _load_toml(file_path: Path) -> Any:
    """从 TOML 文件加载"""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # Python < 3.11

    with file_path.open("rb") as f:
        return tomllib.load(f)


def _load_json(file_path: Path) -> Any:
    """从 JSON 文件加载"""
    import json

    with file_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _format_error(error: Any) -> str:
    """把 pydantic 错误格式化为单行文本"""
    location = ".".join(str(part) for part in error["loc"]) or "options"
    return f"{location}: {error['msg']}"


__all__ = [
    "REDIS_PORT",
    "SENTINEL_PORT",
    "DEFAULT_PATTERN",
    "DEFAULT_SCAN_BATCH",
    "ScanOptions",
    "load_config_file",
]
