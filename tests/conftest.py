"""共享 fixture：记录型命令执行器 + 隔离到 tmp_path 的配置

  FakeExecutor      记录全部命令，默认全部成功；on() 注册按参数片段匹配的结果
  config            所有路径指向 tmp_path 的 Config
  probe             前置检查全部通过的 mock HostProbe
  container         注入 FakeExecutor + probe 的 ServiceContainer
  request_factory   ProvisioningRequest 工厂
"""

from __future__ import annotations

import shlex
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from wpstack.core.config import Config
from wpstack.core.models import ProvisioningRequest
from wpstack.services.container import ServiceContainer
from wpstack.utils.logger import reset_logging
from wpstack.utils.shell import CommandResult


class FakeExecutor:
    """CommandExecutor 的记录型实现"""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self._rules: list[tuple[list[str], CommandResult | Exception]] = []

    def on(
        self, *fragment: str, returncode: int = 0,
        stdout: str = "", stderr: str = "", raises: Exception | None = None,
    ) -> None:
        """参数中连续包含 fragment 的命令返回指定结果（后注册优先）"""
        result: CommandResult | Exception = raises or CommandResult(
            returncode, stdout, stderr,
        )
        self._rules.append((list(fragment), result))

    @staticmethod
    def _contains(args: list[str], fragment: list[str]) -> bool:
        n = len(fragment)
        return any(args[i:i + n] == fragment for i in range(len(args) - n + 1))

    def execute(
        self, cmd, *, cwd=None, env=None, timeout=None, input_text=None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        self.calls.append({"args": args, "input": input_text, "timeout": timeout})
        for fragment, result in reversed(self._rules):
            if self._contains(args, fragment):
                if isinstance(result, Exception):
                    raise result
                return result
        return CommandResult(0, "", "")

    @property
    def commands(self) -> list[list[str]]:
        return [c["args"] for c in self.calls]

    def ran(self, *fragment: str) -> bool:
        return any(self._contains(a, list(fragment)) for a in self.commands)

    def index(self, *fragment: str) -> int:
        for i, a in enumerate(self.commands):
            if self._contains(a, list(fragment)):
                return i
        raise ValueError(f"命令未执行: {fragment}")


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(
        log_file=str(tmp_path / "log" / "setup.log"),
        add_site_log_file=str(tmp_path / "log" / "add_site.log"),
        web_root=str(tmp_path / "www"),
        nginx_available_dir=str(tmp_path / "nginx" / "sites-available"),
        nginx_enabled_dir=str(tmp_path / "nginx" / "sites-enabled"),
        fail2ban_jail_file=str(tmp_path / "fail2ban" / "jail.local"),
        cms_archive=str(tmp_path / "wordpress.zip"),
        wp_cli_path=str(tmp_path / "bin" / "wp"),
        registry_file=str(tmp_path / "state" / "sites.yml"),
        lock_file=str(tmp_path / "state" / "wpstack.lock"),
    )


@pytest.fixture()
def probe() -> MagicMock:
    p = MagicMock()
    p.os_identity.return_value = ("Ubuntu", "24.04")
    p.free_kb.return_value = 10_000_000
    p.can_reach.return_value = True
    p.is_privileged.return_value = True
    return p


@pytest.fixture()
def container(config: Config, fake_executor: FakeExecutor, probe: MagicMock) -> ServiceContainer:
    return ServiceContainer(config=config, executor=fake_executor, probe=probe)


@pytest.fixture()
def request_factory():
    def _make(**overrides: object) -> ProvisioningRequest:
        data: dict = {
            "domain": "example.com",
            "display_domain": "example.com",
            "db_name": "wordpress_db",
            "db_user": "wordpress_user",
            "db_password": "s3cr3t'pw",
            "admin_email": "admin@example.com",
        }
        data.update(overrides)
        return ProvisioningRequest(**data)

    return _make


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()
