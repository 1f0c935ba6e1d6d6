"""主机安全组件适配器：防火墙 (ufw)、入侵防护 (fail2ban)、杀毒 (ClamAV)"""

from __future__ import annotations

import logging
from pathlib import Path

from wpstack.services.systemd import ServiceManager
from wpstack.utils.shell import CommandExecutor, run_cmd
from wpstack.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

JAIL_TEMPLATE = """\
[nginx-http-auth]
enabled = true

[nginx-badbot]
enabled = true
filter = nginx-badbot
logpath = {access_log}
maxretry = {maxretry}
bantime = {bantime}
findtime = {findtime}

[nginx-noscript]
enabled = true
filter = nginx-noscript
logpath = {access_log}
maxretry = {maxretry}
bantime = {bantime}
findtime = {findtime}
"""


def render_jail(
    access_log: str = "/var/log/nginx/access.log",
    maxretry: int = 5, bantime: int = 3600, findtime: int = 300,
) -> str:
    return JAIL_TEMPLATE.format(
        access_log=access_log, maxretry=maxretry,
        bantime=bantime, findtime=findtime,
    )


class UfwFirewall:
    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def allow(self, rule: str | int) -> None:
        run_cmd(self.executor, ["ufw", "allow", str(rule)], label=f"ufw allow {rule}")

    def enable(self) -> None:
        # --force 跳过 "may disrupt existing ssh connections" 的交互确认
        run_cmd(self.executor, ["ufw", "--force", "enable"], label="ufw enable")


class Fail2banService:
    def __init__(
        self, executor: CommandExecutor, jail_file: str,
        services: ServiceManager | None = None,
    ) -> None:
        self.executor = executor
        self.jail_file = Path(jail_file)
        self.services = services or ServiceManager(executor)

    def write_jail(self, text: str) -> None:
        atomic_write(self.jail_file, text, mode=0o644)
        logger.info("fail2ban 规则已写入: %s", self.jail_file)

    def restart(self) -> None:
        self.services.restart("fail2ban")


class ClamAVService:
    """病毒库更新期间需停止 freshclam 服务，避免数据库文件锁冲突"""

    updater_service = "clamav-freshclam"

    def __init__(
        self, executor: CommandExecutor, services: ServiceManager | None = None,
    ) -> None:
        self.executor = executor
        self.services = services or ServiceManager(executor)

    def update_signatures(self) -> None:
        """停止 freshclam 服务、更新病毒库，无论成功与否都重新启动服务"""
        self.services.stop(self.updater_service)
        try:
            run_cmd(self.executor, ["freshclam"], label="freshclam")
        finally:
            self.start()

    def start(self) -> None:
        self.services.start(self.updater_service)
