"""部署结果汇总 - Strategy 模式

流水线全部成功后生成摘要：站点地址、后台地址、数据库信息、管理面板地址。
密码是否显示由配置 show_password 决定，默认隐藏。
每种输出格式实现 SummaryFormatter 接口并注册。
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field

from wpstack.core.config import Config
from wpstack.core.models import ProvisioningRequest

logger = logging.getLogger(__name__)

HIDDEN = "[已隐藏]"


@dataclass
class ProvisionSummary:
    """汇总信息（纯数据，无副作用）"""

    variant: str
    site_url: str
    admin_url: str
    db_name: str
    db_user: str
    db_password: str
    panel_url: str = ""
    panel_user: str = ""
    tls: bool = True
    recommendations: list[str] = field(default_factory=list)


def build_summary(
    variant: str, request: ProvisioningRequest, config: Config,
) -> ProvisionSummary:
    """由部署请求推导汇总信息，展示使用原始域名"""
    password = request.db_password if config.show_password else HIDDEN
    host = request.display_domain
    if variant == "install":
        return ProvisionSummary(
            variant=variant,
            site_url=f"https://{host}",
            admin_url=f"https://{host}/wp-admin/setup-config.php",
            db_name=request.db_name,
            db_user=request.db_user,
            db_password=password,
            panel_url=f"https://{host}:{config.panel_port}",
            panel_user=request.db_user,
            recommendations=[
                "网站无法访问时，确认域名 DNS A 记录已指向本机 IP",
                "确认防火墙放行 HTTP/HTTPS 流量",
                "通过管理面板监控服务器并定期更新软件",
            ],
        )
    return ProvisionSummary(
        variant=variant,
        site_url=f"http://{host}",
        admin_url=f"http://{host}/wp-admin",
        db_name=request.db_name,
        db_user=request.db_user,
        db_password=password,
    )


# =========================================================================
# Strategy: SummaryFormatter
# =========================================================================


class SummaryFormatter(ABC):
    """汇总格式化策略基类"""

    @abstractmethod
    def format(self, summary: ProvisionSummary) -> str:
        """将汇总信息格式化为字符串"""


class TextFormatter(SummaryFormatter):
    def format(self, summary: ProvisionSummary) -> str:
        bar = "=" * 43
        title = (
            "WordPress 安装完成!" if summary.variant == "install"
            else "新 WordPress 站点添加完成!"
        )
        lines = [
            bar, title, "",
            "站点:",
            f"- 网站地址: {summary.site_url}",
            f"- 后台地址: {summary.admin_url}",
            "",
            "数据库:",
            f"- 数据库名: {summary.db_name}",
            f"- 用户名:   {summary.db_user}",
            f"- 密码:     {summary.db_password}",
        ]
        if summary.panel_url:
            lines += [
                "",
                "管理面板 (Cockpit):",
                f"- 地址:   {summary.panel_url}",
                f"- 用户名: {summary.panel_user}",
                "- 密码:   与数据库密码相同",
            ]
        if summary.tls:
            lines += ["", "SSL 证书已签发并启用自动续期。"]
        if summary.recommendations:
            lines += ["", "建议:"]
            lines += [f"{i}. {r}" for i, r in enumerate(summary.recommendations, 1)]
        lines.append(bar)
        return "\n".join(lines)


class JSONFormatter(SummaryFormatter):
    def format(self, summary: ProvisionSummary) -> str:
        return json.dumps(asdict(summary), indent=2, ensure_ascii=False)


# =========================================================================
# 注册制工厂
# =========================================================================

_FORMATTERS: dict[str, SummaryFormatter] = {
    "text": TextFormatter(),
    "json": JSONFormatter(),
}


def register_formatter(name: str, formatter: SummaryFormatter) -> None:
    """注册自定义汇总格式"""
    _FORMATTERS[name] = formatter


def render_summary(summary: ProvisionSummary, fmt: str = "text") -> str:
    formatter = _FORMATTERS.get(fmt)
    if formatter is None:
        raise ValueError(f"不支持的格式: {fmt}，可选: {', '.join(_FORMATTERS)}")
    return formatter.format(summary)
