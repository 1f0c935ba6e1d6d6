"""systemd 服务管理适配器"""

from __future__ import annotations

import logging

from wpstack.utils.shell import CommandExecutor, check_cmd, run_cmd

logger = logging.getLogger(__name__)


class ServiceManager:
    """通过 systemctl 查询与控制系统服务"""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def is_active(self, name: str) -> bool:
        return check_cmd(self.executor, ["systemctl", "is-active", "--quiet", name])

    def is_enabled(self, name: str) -> bool:
        return check_cmd(self.executor, ["systemctl", "is-enabled", "--quiet", name])

    def _ctl(self, action: str, name: str) -> None:
        run_cmd(self.executor, ["systemctl", action, name], label=f"{action} {name}")

    def start(self, name: str) -> None:
        self._ctl("start", name)

    def stop(self, name: str) -> None:
        self._ctl("stop", name)

    def restart(self, name: str) -> None:
        self._ctl("restart", name)

    def reload(self, name: str) -> None:
        self._ctl("reload", name)

    def enable(self, name: str) -> None:
        self._ctl("enable", name)

    def ensure_running(self, name: str) -> list[str]:
        """服务未运行则启动，未开机自启则启用，返回实际执行的动作"""
        actions: list[str] = []
        if not self.is_active(name):
            logger.info("%s 未运行，尝试启动...", name)
            self.start(name)
            actions.append("start")
        if not self.is_enabled(name):
            logger.info("%s 未设置开机自启，正在启用...", name)
            self.enable(name)
            actions.append("enable")
        if not actions:
            logger.info("%s 运行正常", name)
        return actions
