"""部署步骤实现

install 流水线（每个箭头都是硬依赖）:
  refresh_packages → install_packages → provision_database
  → configure_webserver → deploy_cms → configure_firewall
  → configure_intrusion_prevention → update_antivirus
  → issue_certificate → schedule_renewal → verify_services
  → register_site

add-site 流水线:
  ensure_wp_cli → provision_database → create_site_root
  → configure_webserver → deploy_cms → write_cms_config
  → install_cms → issue_certificate → register_site

clean install 分支（CleanInstall）在 install 流水线之前单独执行。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from wpstack.core.exceptions import ExecutionError
from wpstack.core.models import ProvisioningRequest, SiteRecord, StepOutcome
from wpstack.core.pipeline import ActionStep
from wpstack.services.security import render_jail

if TYPE_CHECKING:
    from wpstack.services.container import ServiceContainer

logger = logging.getLogger(__name__)


class InstallSteps:
    """全新服务器部署步骤集合"""

    def __init__(self, container: ServiceContainer) -> None:
        self.c = container

    @property
    def site_root(self) -> str:
        return str(Path(self.c.config.web_root) / self.c.config.main_site_id)

    def refresh_packages(self, request: ProvisioningRequest) -> None:
        self.c.packages.refresh()

    def install_packages(self, request: ProvisioningRequest) -> None:
        self.c.packages.install(self.c.config.packages)

    def provision_database(self, request: ProvisioningRequest) -> None:
        self.c.database.provision(request)

    def configure_webserver(self, request: ProvisioningRequest) -> None:
        self.c.webserver.configure(
            self.c.config.main_site_id, request.domain, self.site_root,
            disable_default=True,
        )

    def deploy_cms(self, request: ProvisioningRequest) -> StepOutcome:
        root = self.site_root
        Path(root).mkdir(parents=True, exist_ok=True)
        self.c.cms.fetch(root, flatten=False)
        self.c.cms.set_permissions(root)
        return StepOutcome.success(root=root)

    def configure_firewall(self, request: ProvisioningRequest) -> None:
        fw = self.c.firewall
        fw.allow(self.c.config.firewall_web_rule)
        fw.allow(self.c.config.panel_port)
        fw.enable()

    def configure_intrusion_prevention(self, request: ProvisioningRequest) -> None:
        self.c.intrusion.write_jail(render_jail())
        self.c.intrusion.restart()

    def update_antivirus(self, request: ProvisioningRequest) -> None:
        self.c.antivirus.update_signatures()

    def issue_certificate(self, request: ProvisioningRequest) -> None:
        self.c.certificates.issue(request.domain, request.admin_email)

    def schedule_renewal(self, request: ProvisioningRequest) -> None:
        self.c.certificates.schedule_auto_renewal()

    def verify_services(self, request: ProvisioningRequest) -> StepOutcome:
        actions = {}
        for name in (self.c.config.php_fpm_service, self.c.config.panel_service):
            actions[name] = self.c.services.ensure_running(name)
        for name in actions:
            if not self.c.services.is_active(name):
                return StepOutcome.failure(f"服务 {name} 启动后仍未运行")
        return StepOutcome.success(actions=actions)

    def register_site(self, request: ProvisioningRequest) -> None:
        self.c.sites.upsert(SiteRecord(
            domain=request.domain,
            display_domain=request.display_domain,
            root=self.site_root,
            vhost_id=self.c.config.main_site_id,
            db_name=request.db_name,
            db_user=request.db_user,
        ))

    def build(self) -> list[ActionStep]:
        return [
            ActionStep("refresh_packages", self.refresh_packages,
                       description="刷新软件源并升级系统"),
            ActionStep("install_packages", self.install_packages,
                       ("refresh_packages",), "安装软件包"),
            ActionStep("provision_database", self.provision_database,
                       ("install_packages",), "配置 MySQL 数据库与账号"),
            ActionStep("configure_webserver", self.configure_webserver,
                       ("provision_database",), "配置 nginx 虚拟主机"),
            ActionStep("deploy_cms", self.deploy_cms,
                       ("configure_webserver",), "下载并部署 WordPress"),
            ActionStep("configure_firewall", self.configure_firewall,
                       ("deploy_cms",), "配置 UFW 防火墙"),
            ActionStep("configure_intrusion_prevention",
                       self.configure_intrusion_prevention,
                       ("configure_firewall",), "配置 Fail2Ban"),
            ActionStep("update_antivirus", self.update_antivirus,
                       ("configure_intrusion_prevention",), "更新 ClamAV 病毒库"),
            ActionStep("issue_certificate", self.issue_certificate,
                       ("update_antivirus", "configure_webserver"), "签发 SSL 证书"),
            ActionStep("schedule_renewal", self.schedule_renewal,
                       ("issue_certificate",), "启用证书自动续期"),
            ActionStep("verify_services", self.verify_services,
                       ("schedule_renewal",), "检查 PHP-FPM 与 Cockpit 状态"),
            ActionStep("register_site", self.register_site,
                       ("verify_services",), "登记主站点"),
        ]


class CleanInstall:
    """破坏性重置：删除网站目录、nginx 站点配置、站点注册表、指定数据库与账号"""

    def __init__(self, container: ServiceContainer) -> None:
        self.c = container

    def wipe(self, request: ProvisioningRequest) -> None:
        logger.warning("执行全新安装清理...")
        try:
            self._remove_files()
        except OSError as e:
            logger.error("清理文件失败: %s", e)
            raise ExecutionError(f"全新安装清理失败: {type(e).__name__}: {e}") from e

        if self.c.packages.has_command("mysql"):
            self.c.database.drop_database(request.db_name)
            self.c.database.drop_user(request.db_user)
        else:
            logger.warning("未安装 mysql 客户端，跳过数据库清理")
        logger.info("清理完成")

    def _remove_files(self) -> None:
        web_root = Path(self.c.config.web_root)
        if web_root.is_dir():
            for entry in web_root.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
        removed = self.c.webserver.remove_all_sites()
        logger.info("已删除 %d 个 nginx 站点配置", removed)
        sites = self.c.sites.clear()
        logger.info("已清空站点注册表 (%d 条)", sites)


class AddSiteSteps:
    """在已部署的服务器上新增站点"""

    def __init__(self, container: ServiceContainer, record: SiteRecord) -> None:
        self.c = container
        self.record = record

    def ensure_wp_cli(self, request: ProvisioningRequest) -> None:
        self.c.cms.ensure_cli()

    def provision_database(self, request: ProvisioningRequest) -> None:
        self.c.database.provision(request)

    def create_site_root(self, request: ProvisioningRequest) -> None:
        Path(self.record.root).mkdir(parents=True, exist_ok=True)
        self.c.cms.set_permissions(self.record.root)

    def configure_webserver(self, request: ProvisioningRequest) -> None:
        self.c.webserver.configure(
            self.record.vhost_id, request.domain, self.record.root,
        )

    def deploy_cms(self, request: ProvisioningRequest) -> None:
        self.c.cms.fetch(self.record.root, flatten=True)
        self.c.cms.set_permissions(self.record.root)

    def write_cms_config(self, request: ProvisioningRequest) -> None:
        self.c.cms.write_config(self.record.root, request)

    def install_cms(self, request: ProvisioningRequest) -> None:
        self.c.cms.core_install(
            url=f"http://{request.domain}",
            title="New WordPress Site",
            admin_user=request.db_user,
            admin_password=request.db_password,
            admin_email=request.admin_email,
            path=self.record.root,
        )

    def issue_certificate(self, request: ProvisioningRequest) -> None:
        self.c.certificates.issue(request.domain, request.admin_email)

    def register_site(self, request: ProvisioningRequest) -> None:
        self.c.sites.register(self.record)

    def build(self) -> list[ActionStep]:
        return [
            ActionStep("ensure_wp_cli", self.ensure_wp_cli,
                       description="检查 WP-CLI"),
            ActionStep("provision_database", self.provision_database,
                       ("ensure_wp_cli",), "创建数据库与账号"),
            ActionStep("create_site_root", self.create_site_root,
                       ("provision_database",), "创建站点目录"),
            ActionStep("configure_webserver", self.configure_webserver,
                       ("create_site_root",), "配置 nginx 虚拟主机"),
            ActionStep("deploy_cms", self.deploy_cms,
                       ("configure_webserver",), "下载 WordPress"),
            ActionStep("write_cms_config", self.write_cms_config,
                       ("deploy_cms",), "生成 wp-config.php"),
            ActionStep("install_cms", self.install_cms,
                       ("write_cms_config",), "初始化 WordPress"),
            ActionStep("issue_certificate", self.issue_certificate,
                       ("install_cms", "configure_webserver"), "签发 SSL 证书"),
            ActionStep("register_site", self.register_site,
                       ("issue_certificate",), "登记站点"),
        ]
