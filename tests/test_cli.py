"""
命令行测试

scan_keys 被替换为 Mock，不需要真实的 Redis。
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from redis_key_scanner.cli import (
    EXIT_OK,
    EXIT_RUNTIME,
    EXIT_USAGE,
    build_options,
    cli,
    main,
    parse_target,
)
from redis_key_scanner.exceptions import ScanConnectionError, ScanFetchError, ScanValidationError


@pytest.fixture
def mock_scan():
    """替换真实扫描"""
    with patch("redis_key_scanner.cli.scan_keys") as mocked:
        yield mocked


def scanned_options(mock_scan):
    """取出传给 scan_keys 的参数"""
    return mock_scan.call_args.args[0]


class TestParseTarget:
    """测试 <host>[:<port>] 解析"""

    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            ("localhost", ("localhost", None)),
            ("localhost:6380", ("localhost", "6380")),
            ("10.0.0.1:26379", ("10.0.0.1", "26379")),
            ("::1", ("::1", None)),
            ("", (None, None)),
            (None, (None, None)),
        ],
    )
    def test_parse_target(self, target: str | None, expected: tuple) -> None:
        assert parse_target(target) == expected


class TestBuildOptions:
    """测试参数合并"""

    def test_positional_arguments(self) -> None:
        """测试主机、端口和哨兵主节点名"""
        options = build_options("sentinel:26380", "mymaster")

        assert options.host == "sentinel"
        assert options.port == 26380
        assert options.redis_master == "mymaster"

    def test_sentinel_default_port(self) -> None:
        """测试哨兵模式未指定端口"""
        assert build_options("sentinel", "mymaster").port == 26379

    def test_unset_flags_skipped(self) -> None:
        """测试未给出的选项不覆盖默认值"""
        options = build_options("localhost", None, scan_batch=None, no_expiry=False, debug=False)

        assert options.scan_batch == 1000
        assert options.no_expiry is False

    @pytest.mark.parametrize("field", ["limit", "scan_limit"])
    def test_zero_means_unbounded(self, field: str) -> None:
        """测试 0 表示不限"""
        assert getattr(build_options("localhost", None, **{field: 0}), field) is None

    def test_missing_host(self) -> None:
        """测试缺少主机"""
        with pytest.raises(ScanValidationError, match="Host is required"):
            build_options(None, None)

    def test_config_file_merged(self, tmp_path: Path) -> None:
        """测试配置文件作为默认值，命令行优先"""
        config_file = tmp_path / "scan.json"
        config_file.write_text(json.dumps({"host": "redis", "maxIdle": "1d", "pattern": "a:*"}))

        options = build_options(None, None, config_file, pattern="b:*")

        assert options.host == "redis"
        assert options.max_idle == 86400
        assert options.pattern == "b:*"

    def test_target_overrides_config_host(self, tmp_path: Path) -> None:
        """测试命令行主机优先于配置文件"""
        config_file = tmp_path / "scan.json"
        config_file.write_text(json.dumps({"host": "redis"}))

        assert build_options("other", None, config_file).host == "other"


class TestMain:
    """测试 main() 退出码"""

    def test_success(self, mock_scan) -> None:
        """测试正常扫描"""
        code = main(["localhost:6380", "--min-idle=1w", "--no-expiry", "--limit=5", "--db=2"])

        assert code == EXIT_OK
        options = scanned_options(mock_scan)
        assert options.port == 6380
        assert options.min_idle == 604800
        assert options.no_expiry is True
        assert options.limit == 5
        assert options.db == 2

    def test_help(self, mock_scan, capsys) -> None:
        """测试 --help"""
        assert main(["--help"]) == EXIT_OK
        assert "--max-idle" in capsys.readouterr().out
        mock_scan.assert_not_called()

    def test_missing_host(self, mock_scan, capsys) -> None:
        """测试缺少主机时输出用法"""
        assert main([]) == EXIT_USAGE

        captured = capsys.readouterr()
        assert "Host is required" in captured.err
        assert "Usage:" in captured.out
        mock_scan.assert_not_called()

    def test_invalid_timeframe(self, mock_scan, capsys) -> None:
        """测试非法时间范围"""
        assert main(["localhost", "--max-idle=soon"]) == EXIT_USAGE
        assert "maxIdle" in capsys.readouterr().err
        mock_scan.assert_not_called()

    def test_unknown_option(self, mock_scan, capsys) -> None:
        """测试未知选项"""
        assert main(["localhost", "--colour=red"]) == EXIT_USAGE
        assert "Usage:" in capsys.readouterr().out

    def test_non_integer_option(self, mock_scan) -> None:
        """测试整数选项格式错误"""
        assert main(["localhost", "--scan-batch=many"]) == EXIT_USAGE

    @pytest.mark.parametrize("error", [ScanConnectionError("refused"), ScanFetchError("pipeline")])
    def test_runtime_error(self, mock_scan, capsys, error: Exception) -> None:
        """测试连接或查询错误"""
        mock_scan.side_effect = error

        assert main(["localhost"]) == EXIT_RUNTIME
        assert type(error).__name__ in capsys.readouterr().err

    def test_password_from_env(self, mock_scan, monkeypatch: pytest.MonkeyPatch) -> None:
        """测试从环境变量读取密码"""
        monkeypatch.setenv("REDIS_KEY_SCANNER_PASSWORD", "s3cret")

        assert main(["localhost"]) == EXIT_OK
        assert scanned_options(mock_scan).password.get_secret_value() == "s3cret"

    def test_config_option(self, mock_scan, tmp_path: Path) -> None:
        """测试 --config"""
        config_file = tmp_path / "scan.yaml"
        config_file.write_text("host: redis\nmin_ttl: 1h\n")

        assert main([f"--config={config_file}"]) == EXIT_OK
        options = scanned_options(mock_scan)
        assert options.host == "redis"
        assert options.min_ttl == 3600


class TestCliRunner:
    """使用 CliRunner 测试 click 命令"""

    def test_invokes_scan(self, mock_scan) -> None:
        """测试命令调用扫描并写入 stdout"""
        runner = CliRunner()

        result = runner.invoke(cli, ["localhost", "--pattern=session:*"])

        assert result.exit_code == 0
        options = scanned_options(mock_scan)
        assert options.pattern == "session:*"
        assert options.description == "localhost:6379"
