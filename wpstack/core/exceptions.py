"""统一异常体系

所有业务异常继承 WpStackError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出友好提示并以退出码 1 结束。
"""

from __future__ import annotations


class WpStackError(Exception):
    """部署工具基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(WpStackError):
    """配置文件缺失或内容无效（含步骤声明顺序错误）"""

    code = "CONFIG_ERROR"


class ValidationError(WpStackError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class PreconditionError(WpStackError):
    """运行环境不满足前置条件（操作系统 / 磁盘 / 网络 / 权限）"""

    code = "PRECONDITION_FAILED"

    def __init__(self, message: str, check: str = "") -> None:
        super().__init__(message)
        self.check = check


class ExecutionError(WpStackError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class CommandTimeoutError(ExecutionError):
    """外部命令超时"""

    code = "TIMEOUT"


class StepError(WpStackError):
    """流水线步骤失败，携带失败步骤名"""

    code = "STEP_FAILED"

    def __init__(self, message: str, step: str = "") -> None:
        super().__init__(message)
        self.step = step


class SiteExistsError(WpStackError):
    """站点域名 / 目录 / 虚拟主机已存在"""

    code = "SITE_EXISTS"

    def __init__(self, message: str, domain: str = "") -> None:
        super().__init__(message)
        self.domain = domain


class AbortedError(WpStackError):
    """操作者拒绝了破坏性操作"""

    code = "ABORTED"
