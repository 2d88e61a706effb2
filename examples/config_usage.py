"""
配置使用示例

演示如何使用配置文件、环境变量和字典来创建扫描参数。
"""

import os
import tempfile
from pathlib import Path

from redis_key_scanner import ScanOptions
from redis_key_scanner.exceptions import ScanValidationError


def example_from_dict() -> None:
    """从字典创建扫描参数"""
    print("=== 从字典创建 ===\n")

    # 字段名和 camelCase 别名都可以
    options = ScanOptions.from_mapping({"host": "localhost", "scanBatch": 500, "min_idle": "1w"})
    print(f"目标: {options.description}")
    print(f"汇总参数: {options.summary_fields()}\n")


def example_from_yaml() -> None:
    """从 YAML 文件创建扫描参数"""
    print("=== 从 YAML 文件创建 ===\n")

    yaml_content = """
host: sentinel.internal
redisMaster: mymaster
db: 2
pattern: "session:*"
maxIdle: 30d
noExpiry: true
"""

    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        f.write(yaml_content)
        config_path = Path(f.name)

    try:
        options = ScanOptions.from_file(config_path)
        print(f"目标: {options.description}（哨兵端口 {options.port}）")
        print(f"maxIdle: {options.max_idle} 秒\n")
    finally:
        config_path.unlink()


def example_from_env() -> None:
    """从环境变量创建扫描参数"""
    print("=== 从环境变量创建 ===\n")

    os.environ["REDIS_KEY_SCANNER_HOST"] = "localhost"
    os.environ["REDIS_KEY_SCANNER_MIN_TTL"] = "1h"

    try:
        options = ScanOptions.from_env(limit=100)
        print(f"minTTL: {options.min_ttl} 秒, limit: {options.limit}\n")
    finally:
        del os.environ["REDIS_KEY_SCANNER_HOST"]
        del os.environ["REDIS_KEY_SCANNER_MIN_TTL"]


def example_validation() -> None:
    """参数校验"""
    print("=== 参数校验 ===\n")

    for data in ({"host": "localhost", "maxIdle": "soon"}, {"host": "localhost", "colour": "red"}):
        try:
            ScanOptions.from_mapping(data)
        except ScanValidationError as e:
            print(f"校验失败: {e}")


if __name__ == "__main__":
    example_from_dict()
    example_from_yaml()
    example_from_env()
    example_validation()
