"""部署编排器：串联参数、前置检查、流水线与汇总

    请求 → 前置检查 → [clean install 确认 + 清理] → 流水线 → 汇总

任何一环失败都以 WpStackError 向上抛出，由 CLI 转换为退出码 1；
汇总只在流水线全部成功后生成。
"""

from __future__ import annotations

import logging
from typing import Callable

from wpstack.core.exceptions import AbortedError
from wpstack.core.models import ProvisioningRequest, SiteRecord
from wpstack.core.pipeline import PipelineRunner
from wpstack.core.reporter import build_summary
from wpstack.core.sites import exclusive_lock
from wpstack.services.container import ServiceContainer
from wpstack.services.orchestrator.models import ProvisionReport
from wpstack.services.orchestrator.steps import AddSiteSteps, CleanInstall, InstallSteps

logger = logging.getLogger(__name__)

# confirm(prompt) -> bool
ConfirmFunc = Callable[[str], bool]

CLEAN_INSTALL_PROMPT = (
    "警告: 将删除服务器上所有网站目录、nginx 站点配置以及数据库 {db} 和用户 {user}。"
    "确定执行全新安装吗?"
)


def _deny(_prompt: str) -> bool:
    return False


class Provisioner:
    """install / add-site 两种部署变体的编排入口"""

    def __init__(
        self,
        container: ServiceContainer | None = None,
        confirm: ConfirmFunc | None = None,
    ) -> None:
        self.c = container or ServiceContainer()
        self.confirm = confirm or _deny

    def install_runner(self) -> PipelineRunner:
        return PipelineRunner("install", InstallSteps(self.c).build())

    def add_site_runner(self, request: ProvisioningRequest) -> PipelineRunner:
        return self._add_site_runner(self.c.sites.plan_site(request))

    def _add_site_runner(self, record: SiteRecord) -> PipelineRunner:
        return PipelineRunner("add-site", AddSiteSteps(self.c, record).build())

    def _clean_install(self, request: ProvisioningRequest) -> None:
        logger.info("等待全新安装确认...")
        prompt = CLEAN_INSTALL_PROMPT.format(db=request.db_name, user=request.db_user)
        if not self.confirm(prompt):
            logger.error("全新安装已取消，退出")
            raise AbortedError("操作者拒绝全新安装，未做任何修改")
        CleanInstall(self.c).wipe(request)

    def install(self, request: ProvisioningRequest) -> ProvisionReport:
        logger.info("开始部署 WordPress: %s", request.display_domain)
        report = ProvisionReport(variant="install", request=request)
        report.preconditions = self.c.preconditions.ensure()

        runner = self.install_runner()
        with exclusive_lock(self.c.config.lock_file):
            self.c.sites.reload()
            if request.clean_install:
                self._clean_install(request)
                report.cleaned = True
            report.pipeline = runner.run(request)

        report.pipeline.raise_for_status()
        report.summary = build_summary("install", request, self.c.config)
        logger.info("WordPress 部署完成")
        return report

    def add_site(self, request: ProvisioningRequest) -> ProvisionReport:
        logger.info("开始添加新站点: %s", request.display_domain)
        report = ProvisionReport(variant="add-site", request=request)
        report.preconditions = self.c.preconditions.ensure()

        with exclusive_lock(self.c.config.lock_file):
            sites = self.c.sites
            sites.reload()
            record = sites.plan_site(request)
            sites.ensure_available(record)
            record = sites.reserve(record)
            report.pipeline = self._add_site_runner(record).run(request)

        report.pipeline.raise_for_status()
        report.summary = build_summary("add-site", request, self.c.config)
        logger.info("站点 %s 添加完成", request.display_domain)
        return report
