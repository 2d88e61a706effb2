"""
命令行入口模块

    redis-key-scanner <host>[:<port>] [<master_name>] [options]

退出码：
- 0: 扫描完成
- 1: 参数错误（错误信息写入 stderr，用法写入 stdout）
- 2: 连接或查询错误
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click
import structlog

from .config import (
    DEFAULT_PATTERN,
    DEFAULT_SCAN_BATCH,
    REDIS_PORT,
    SENTINEL_PORT,
    ScanOptions,
    load_config_file,
)
from .emitter import JsonLinesEmitter
from .exceptions import ScanError, ScanValidationError
from .log import configure_logging
from .scanner import scan_keys

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_RUNTIME = 2

USAGE = f"""\
Usage:
  redis-key-scanner <host>[:<port>] [<master_name>] [options]

   Synopsis:
    Scan a redis server for keys matching specified criteria, including
    key patterns, TTL and IDLETIME.  Selected/matched keys are output in
    a JSON log format.  The scan is non-destructive, and doesn't even
    read any actual key values, so it won't affect IDLETIME either.

   Options:
    <host>              (Required) Hostname or IP of the redis server or
                        sentinel to scan
    <port>              Port number if non-standard.  Default redis port
                        is {REDIS_PORT}, and default sentinel port is {SENTINEL_PORT}.
    <master_name>       Inclusion of this argument indicates the use of
                        redis sentinel.  When <master_name> is specified,
                        the <host> and <port> options are understood to
                        refer to a sentinel as opposed to a regular redis
                        server.  However, a connection will be attempted to
                        the corresponding *slave*.

    --scan-batch=N      Batch/count size to use with the redis SCAN
                        operation.  Default is {DEFAULT_SCAN_BATCH}.
    --scan-limit=N      Limit total number of keys to scan.  Scanning will
                        cease once scan-limit is reached, regardless of
                        whether any matching keys have been selected.  By
                        default there is no limit.
    --limit=N           Limit total number of keys to select (output)
    --password=PW       Redis password (or REDIS_KEY_SCANNER_PASSWORD)
    --config=FILE       Read default options from a YAML, TOML or JSON file
    --debug             Debug mode

   Select keys that:
    --db=N              reside in logical db <N> (defaults to 0)
    --max-idle=<T>      have been inactive for no more than <T>
    --max-ttl=<T>       have a TTL of no more than <T>
    --min-idle=<T>      have been inactive for at least <T>
    --min-ttl=<T>       have a TTL of at least <T>
    --no-expiry         have TTL of -1 (ie. no expiry)
    --pattern=<p>       match key pattern (default: {DEFAULT_PATTERN})

   Timeframes <T> are of the form "<number><unit>" where unit may be any
   of 's' (seconds), 'm' (minutes), 'h' (hours), 'd' (days), or 'w' weeks.
"""


def parse_target(target: str | None) -> tuple[str | None, str | None]:
    """
    拆分 <host>[:<port>]

    只有一个冒号时才视为带端口，IPv6 地址整体作为主机名。

    Returns:
        (host, port)，未指定的部分为 None
    """
    if not target:
        return None, None
    if target.count(":") == 1:
        host, port = target.split(":")
        return host or None, port or None
    return target, None


def build_options(
    target: str | None,
    master_name: str | None,
    config_file: Path | None = None,
    **cli_options: Any,
) -> ScanOptions:
    """
    合并配置文件与命令行参数并校验

    命令行中显式给出的值优先于配置文件。--scan-limit=0 和 --limit=0 表示不限。

    Raises:
        ScanValidationError: 缺少主机或参数不合法
    """
    data: dict[str, Any] = load_config_file(config_file) if config_file else {}

    host, port = parse_target(target)
    if host is not None:
        data["host"] = host
    if port is not None:
        data["port"] = port
    if master_name:
        data["redis_master"] = master_name

    for key, value in cli_options.items():
        if value is None or value is False:
            continue
        if key in {"scan_limit", "limit"} and value == 0:
            data[key] = None
            continue
        data[key] = value

    if not data.get("host"):
        raise ScanValidationError("Host is required")

    return ScanOptions.from_mapping(data)


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Scan a redis server for keys matching idle time, TTL and pattern criteria.",
)
@click.argument("target", required=False)
@click.argument("master_name", required=False)
@click.option("--scan-batch", type=int, default=None, help="SCAN COUNT hint")
@click.option("--scan-limit", type=int, default=None, help="Max keys to scan (0 = no limit)")
@click.option("--limit", type=int, default=None, help="Max keys to select (0 = no limit)")
@click.option("--debug", is_flag=True, help="Debug mode")
@click.option("--db", type=int, default=None, help="Logical database")
@click.option("--max-idle", default=None, help="Idle for no more than <T>")
@click.option("--max-ttl", default=None, help="TTL of no more than <T>")
@click.option("--min-idle", default=None, help="Idle for at least <T>")
@click.option("--min-ttl", default=None, help="TTL of at least <T>")
@click.option("--no-expiry", is_flag=True, help="TTL of -1 (no expiry)")
@click.option("--pattern", default=None, help="Key pattern")
@click.option("--password", default=None, envvar="REDIS_KEY_SCANNER_PASSWORD", help="Redis password")
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Options file (YAML/TOML/JSON)",
)
def cli(
    target: str | None,
    master_name: str | None,
    config_file: Path | None,
    **cli_options: Any,
) -> None:
    """Scan a redis server for keys matching idle time, TTL and pattern criteria."""
    options = build_options(target, master_name, config_file, **cli_options)

    configure_logging(options.debug)
    logger.debug("options", **options.summary_fields())

    scan_keys(options, JsonLinesEmitter(sys.stdout))


def main(argv: list[str] | None = None) -> int:
    """
    运行命令行并返回退出码

    Args:
        argv: 参数列表，默认 sys.argv[1:]

    Returns:
        退出码
    """
    try:
        result = cli.main(args=argv, prog_name="redis-key-scanner", standalone_mode=False)
    except click.UsageError as e:
        click.echo(f"Error: {e.format_message()}", err=True)
        click.echo(USAGE)
        return EXIT_USAGE
    except ScanValidationError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(USAGE)
        return EXIT_USAGE
    except ScanError as e:
        click.echo(f"{type(e).__name__}: {e}", err=True)
        return EXIT_RUNTIME
    except click.Abort:
        click.echo("Aborted!", err=True)
        return EXIT_RUNTIME

    # --help 时 click 返回退出码
    return result if isinstance(result, int) else EXIT_OK


def run() -> None:
    """控制台脚本入口"""
    sys.exit(main())


if __name__ == "__main__":
    run()
