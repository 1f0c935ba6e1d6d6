"""部署编排器

- models.py: 部署报告
- steps.py: install / add-site 步骤与 clean install 清理
- orchestrator.py: 编排入口
"""

from wpstack.services.orchestrator.models import ProvisionReport
from wpstack.services.orchestrator.orchestrator import Provisioner
from wpstack.services.orchestrator.steps import AddSiteSteps, CleanInstall, InstallSteps

__all__ = [
    "AddSiteSteps",
    "CleanInstall",
    "InstallSteps",
    "ProvisionReport",
    "Provisioner",
]
