"""apt 包管理适配器"""

from __future__ import annotations

import logging
import os

from wpstack.utils.shell import CommandExecutor, check_cmd, run_cmd

logger = logging.getLogger(__name__)


def _apt_env() -> dict[str, str]:
    return {**os.environ, "DEBIAN_FRONTEND": "noninteractive"}


class AptPackageManager:
    """刷新软件源、安装软件包、探测命令是否可用"""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def refresh(self, upgrade: bool = True) -> None:
        run_cmd(self.executor, ["apt-get", "update"], label="apt update", env=_apt_env())
        if upgrade:
            run_cmd(
                self.executor, ["apt-get", "upgrade", "-y"],
                label="apt upgrade", env=_apt_env(),
            )

    def install(self, names: list[str]) -> None:
        if not names:
            return
        logger.info("安装软件包: %s", " ".join(names))
        run_cmd(
            self.executor, ["apt-get", "install", "-y", *names],
            label="apt install", env=_apt_env(),
        )

    def has_command(self, name: str) -> bool:
        return check_cmd(self.executor, ["which", name])
