"""核心数据模型

部署请求、前置检查结果、步骤结果与站点记录集中定义，
流水线、步骤实现与报告模块统一从此处导入。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class ProvisioningRequest:
    """一次部署的全部用户输入（收集后不可变）

    domain 为 ASCII/Punycode 形式，用于路径、虚拟主机、证书与注册表；
    display_domain 仅用于展示和联系邮箱。
    """

    domain: str
    display_domain: str
    db_name: str
    db_user: str
    db_password: str = field(repr=False)
    admin_email: str
    clean_install: bool = False

    @property
    def is_idn(self) -> bool:
        return self.domain != self.display_domain

    def to_dict(self) -> dict[str, Any]:
        """导出（不含密码）"""
        data = asdict(self)
        data.pop("db_password")
        return data


@dataclass(frozen=True)
class PreconditionResult:
    """单项前置检查结果"""

    name: str
    passed: bool
    reason: str = ""


@dataclass(frozen=True)
class StepOutcome:
    """单个步骤执行结果

    kind: "ok" / "error" / "timeout"
    """

    ok: bool
    cause: str = ""
    kind: str = "ok"
    detail: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, **detail: Any) -> StepOutcome:
        return cls(ok=True, detail=detail)

    @classmethod
    def failure(cls, cause: str, kind: str = "error") -> StepOutcome:
        return cls(ok=False, cause=cause, kind=kind)


@dataclass
class StepRecord:
    """流水线执行记录中的一行"""

    step: str
    status: str  # "done" / "failed" / "skipped"
    duration: float = 0.0
    cause: str = ""
    kind: str = ""


@dataclass
class SiteRecord:
    """站点注册表条目，以 Punycode 域名为键"""

    domain: str
    display_domain: str
    root: str
    vhost_id: str
    db_name: str
    db_user: str
    created_at: str = ""
    status: str = "active"  # "pending" 表示部署尚未完成

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    @property
    def pending(self) -> bool:
        return self.status == "pending"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SiteRecord:
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
