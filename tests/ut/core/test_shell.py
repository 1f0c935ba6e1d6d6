"""shell.py 执行器与 run_cmd 测试"""

from __future__ import annotations

import logging

import pytest

from wpstack.core.exceptions import CommandTimeoutError, ExecutionError
from wpstack.utils.shell import LocalExecutor, check_cmd, run_cmd


class TestLocalExecutor:
    def test_success(self) -> None:
        r = LocalExecutor().execute("echo hello")
        assert r.success and "hello" in r.stdout

    def test_stdin(self) -> None:
        r = LocalExecutor().execute(["cat"], input_text="from stdin")
        assert r.stdout == "from stdin"

    def test_default_timeout(self) -> None:
        with pytest.raises(CommandTimeoutError, match="sleep"):
            LocalExecutor(default_timeout=0.2).execute(["sleep", "5"])

    def test_missing_binary(self) -> None:
        r = LocalExecutor().execute(["definitely-not-a-real-binary-xyz"])
        assert r.returncode == 127


class TestRunCmd:
    def test_failure_raises(self, fake_executor) -> None:
        fake_executor.on("nginx", "-t", returncode=1, stderr="emerg: bad")
        with pytest.raises(ExecutionError, match="nginx失败") as exc:
            run_cmd(fake_executor, ["nginx", "-t"], label="nginx")
        assert exc.value.returncode == 1

    def test_passes_input_and_timeout(self, fake_executor) -> None:
        run_cmd(fake_executor, ["mysql"], input_text="SELECT 1;", timeout=3)
        assert fake_executor.calls[0]["input"] == "SELECT 1;"
        assert fake_executor.calls[0]["timeout"] == 3

    def test_sensitive_command_masked(self, fake_executor, caplog) -> None:
        with caplog.at_level(logging.INFO):
            run_cmd(fake_executor, ["tool", "--token=abc"], label="tool", sensitive=True)
        assert "abc" not in caplog.text

    def test_check_cmd(self, fake_executor) -> None:
        fake_executor.on("which", "wp", returncode=1)
        assert check_cmd(fake_executor, ["which", "nginx"]) is True
        assert check_cmd(fake_executor, ["which", "wp"]) is False
