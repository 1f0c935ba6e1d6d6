"""前置条件检查

在任何变更操作之前按固定顺序检查运行环境：
  1. 操作系统及版本
  2. 主文件系统剩余空间
  3. 外网连通性
  4. root 权限

任一项失败立即停止（后续检查不再执行），不做重试，
由操作者在工具之外修复环境后重新运行。
"""

from __future__ import annotations

import logging
import os
import shutil
import socket
from pathlib import Path
from typing import Callable

from wpstack.core.config import Config
from wpstack.core.exceptions import PreconditionError
from wpstack.core.models import PreconditionResult

logger = logging.getLogger(__name__)


def _parse_os_release(text: str) -> dict[str, str]:
    info: dict[str, str] = {}
    for line in text.splitlines():
        if "=" in line:
            key, value = line.strip().split("=", 1)
            info[key] = value.strip('"')
    return info


class HostProbe:
    """读取本机事实（测试时替换为 mock）"""

    def __init__(self, os_release_file: str = "/etc/os-release") -> None:
        self.os_release_file = os_release_file

    def os_identity(self) -> tuple[str, str]:
        """返回 (发行版名称, 版本号)，如 ("Ubuntu", "24.04")"""
        try:
            text = Path(self.os_release_file).read_text(encoding="utf-8")
        except OSError:
            return "", ""
        info = _parse_os_release(text)
        return info.get("NAME", info.get("ID", "")), info.get("VERSION_ID", "")

    def free_kb(self, path: str) -> int:
        return shutil.disk_usage(path).free // 1024

    def can_reach(self, host: str, port: int, timeout: float) -> bool:
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError:
            return False

    def is_privileged(self) -> bool:
        return os.geteuid() == 0


class PreconditionChecker:
    """前置条件检查器"""

    def __init__(self, config: Config, probe: HostProbe | None = None) -> None:
        self.config = config
        self.probe = probe or HostProbe()

    @property
    def checks(self) -> list[tuple[str, Callable[[], PreconditionResult]]]:
        return [
            ("os", self.check_os),
            ("disk", self.check_disk),
            ("network", self.check_network),
            ("privilege", self.check_privilege),
        ]

    def check_os(self) -> PreconditionResult:
        logger.info("检查操作系统...")
        name, version = self.probe.os_identity()
        expected = (self.config.expected_os_id, self.config.expected_os_version)
        if name.lower() != expected[0].lower() or version != expected[1]:
            return PreconditionResult(
                "os", False,
                f"unsupported OS: 仅支持 {expected[0]} {expected[1]}，"
                f"当前为 {name or '未知'} {version or '?'}",
            )
        return PreconditionResult("os", True)

    def check_disk(self) -> PreconditionResult:
        logger.info("检查磁盘空间...")
        available = self.probe.free_kb(self.config.disk_path)
        if available < self.config.min_free_kb:
            return PreconditionResult(
                "disk", False,
                f"insufficient disk space: {self.config.disk_path} 可用 "
                f"{available} KB，至少需要 {self.config.min_free_kb} KB",
            )
        return PreconditionResult("disk", True)

    def check_network(self) -> PreconditionResult:
        logger.info("检查网络连接...")
        host = self.config.network_probe_host
        if not self.probe.can_reach(
            host, self.config.network_probe_port, self.config.network_timeout,
        ):
            return PreconditionResult(
                "network", False, f"no network: 无法连接 {host}，请检查网络",
            )
        return PreconditionResult("network", True)

    def check_privilege(self) -> PreconditionResult:
        logger.info("检查 root 权限...")
        if not self.probe.is_privileged():
            return PreconditionResult(
                "privilege", False,
                "insufficient privilege: 必须以 root 或 sudo 运行",
            )
        return PreconditionResult("privilege", True)

    def evaluate(self) -> list[PreconditionResult]:
        """依次执行检查，遇到第一项失败即停止，返回已执行的结果"""
        results: list[PreconditionResult] = []
        for _name, check in self.checks:
            result = check()
            results.append(result)
            if not result.passed:
                break
        return results

    def ensure(self) -> list[PreconditionResult]:
        """执行全部检查，失败抛 PreconditionError"""
        results = self.evaluate()
        last = results[-1]
        if not last.passed:
            logger.error("前置检查失败: %s", last.reason)
            raise PreconditionError(last.reason, check=last.name)
        logger.info("前置检查全部通过 (%d 项)", len(results))
        return results
