"""编排器数据模型"""

from __future__ import annotations

from dataclasses import dataclass, field

from wpstack.core.models import PreconditionResult, ProvisioningRequest
from wpstack.core.pipeline import PipelineReport
from wpstack.core.reporter import ProvisionSummary


@dataclass
class ProvisionReport:
    """一次部署（install / add-site）的完整记录"""

    variant: str
    request: ProvisioningRequest
    preconditions: list[PreconditionResult] = field(default_factory=list)
    cleaned: bool = False
    pipeline: PipelineReport | None = None
    summary: ProvisionSummary | None = None

    @property
    def success(self) -> bool:
        return self.pipeline is not None and self.pipeline.success
