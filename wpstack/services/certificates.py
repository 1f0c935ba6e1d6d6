"""certbot 证书适配器

签发依赖 nginx 虚拟主机已在 80 端口应答（HTTP-01 校验）。
"""

from __future__ import annotations

import logging

from wpstack.services.systemd import ServiceManager
from wpstack.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)


class CertbotClient:
    def __init__(
        self, executor: CommandExecutor, services: ServiceManager | None = None,
        renewal_timer: str = "certbot.timer",
    ) -> None:
        self.executor = executor
        self.services = services or ServiceManager(executor)
        self.renewal_timer = renewal_timer

    def issue(self, domain: str, email: str) -> None:
        """签发证书并由 nginx 插件写入 TLS 配置（证书未到期时不重复签发）"""
        logger.info("为 %s 申请 SSL 证书...", domain)
        run_cmd(
            self.executor,
            [
                "certbot", "--nginx", "-d", domain,
                "-n", "--agree-tos", "--keep-until-expiring",
                "--email", email,
            ],
            label="certbot",
        )
        logger.info("SSL 证书已安装: %s", domain)

    def schedule_auto_renewal(self) -> None:
        self.services.enable(self.renewal_timer)
        if not self.services.is_active(self.renewal_timer):
            self.services.start(self.renewal_timer)
