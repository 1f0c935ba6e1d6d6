"""Shell 命令执行工具：统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，所有外部服务适配器都经由它
调用系统命令，测试时注入记录型实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from wpstack.core.exceptions import CommandTimeoutError, ExecutionError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议：抽象子进程调用

    超时以 CommandTimeoutError 抛出；非零退出码不抛异常，由调用方判断。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地命令执行器，未指定 timeout 时使用 default_timeout"""

    def __init__(self, default_timeout: float | None = None) -> None:
        self.default_timeout = default_timeout

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        limit = timeout if timeout is not None else self.default_timeout
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, env=env, check=False, timeout=limit,
                input=input_text,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(
                f"{args[0]} 超时 ({limit}s)",
            ) from e
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


# =========================================================================
# 便捷函数
# =========================================================================

def format_cmd(cmd: str | list[str]) -> str:
    return cmd if isinstance(cmd, str) else shlex.join(cmd)


def run_cmd(
    executor: CommandExecutor,
    cmd: str | list[str],
    *,
    label: str = "cmd",
    cwd: str | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
    input_text: str | None = None,
    sensitive: bool = False,
) -> CommandResult:
    """执行命令，非零退出码抛 ExecutionError

    Args:
        executor: 命令执行器
        cmd: 命令字符串或参数列表
        label: 日志与错误信息中的标签
        input_text: 通过 stdin 传入的内容（SQL 等含凭据的数据走这里）
        sensitive: 为 True 时日志中不打印命令内容
    """
    shown = "<已隐藏>" if sensitive else format_cmd(cmd)
    logger.info("  %s: %s", label, shown)
    r = executor.execute(
        cmd, cwd=cwd, env=env, timeout=timeout, input_text=input_text,
    )
    if not r.success:
        detail = (r.stderr or r.stdout).strip()[:500]
        raise ExecutionError(
            f"{label}失败 (rc={r.returncode}): {detail}",
            returncode=r.returncode,
        )
    return r


def check_cmd(executor: CommandExecutor, cmd: str | list[str]) -> bool:
    """执行探测命令，只关心退出码是否为 0"""
    return executor.execute(cmd).success
