"""部署流水线执行器

步骤顺序以数据声明（ActionStep.requires），构造时即校验：
每个步骤依赖的步骤必须出现在它之前。

执行语义：
  - 顺序、同步执行，一次只跑一个步骤
  - 遇到第一个失败即停止，后续步骤不再执行，不做回滚
  - 步骤抛出的业务异常 / OSError 转换为失败结果，超时单独归类
  - 幂等性由各步骤自身保证，执行器不做假设

用法:
    runner = PipelineRunner("install", steps)
    report = runner.run(request)
    report.raise_for_status()
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from wpstack.core.exceptions import (
    CommandTimeoutError,
    ConfigError,
    StepError,
    WpStackError,
)
from wpstack.core.models import ProvisioningRequest, StepOutcome, StepRecord

logger = logging.getLogger(__name__)

StepAction = Callable[[ProvisioningRequest], StepOutcome | None]


@dataclass(frozen=True)
class ActionStep:
    """流水线中的一个原子步骤（无状态）"""

    name: str
    action: StepAction
    requires: tuple[str, ...] = ()
    description: str = ""


def validate_order(steps: list[ActionStep]) -> None:
    """校验步骤名唯一，且依赖全部出现在步骤之前"""
    seen: set[str] = set()
    for step in steps:
        if step.name in seen:
            raise ConfigError(f"步骤名重复: {step.name}")
        missing = [r for r in step.requires if r not in seen]
        if missing:
            raise ConfigError(
                f"步骤 {step.name} 依赖的步骤未在其之前声明: {', '.join(missing)}",
            )
        seen.add(step.name)


@dataclass
class PipelineReport:
    """一次流水线执行的记录"""

    pipeline: str
    total: int = 0
    records: list[StepRecord] = field(default_factory=list)
    failed_step: str = ""
    cause: str = ""
    kind: str = ""

    @property
    def success(self) -> bool:
        return (
            not self.failed_step
            and len(self.records) == self.total
            and all(r.status == "done" for r in self.records)
        )

    @property
    def executed(self) -> list[str]:
        return [r.step for r in self.records]

    def raise_for_status(self) -> None:
        if not self.success:
            raise StepError(
                f"步骤 {self.failed_step} 失败: {self.cause}",
                step=self.failed_step,
            )


class PipelineRunner:
    """顺序执行 ActionStep，遇到失败即停止"""

    def __init__(self, name: str, steps: list[ActionStep]) -> None:
        validate_order(steps)
        self.name = name
        self.steps = list(steps)

    def describe(self) -> list[tuple[str, tuple[str, ...], str]]:
        """声明的步骤顺序：(步骤名, 依赖, 描述)"""
        return [(s.name, s.requires, s.description) for s in self.steps]

    def _invoke(self, step: ActionStep, request: ProvisioningRequest) -> StepOutcome:
        try:
            outcome = step.action(request)
        except CommandTimeoutError as e:
            return StepOutcome.failure(str(e), kind="timeout")
        except WpStackError as e:
            return StepOutcome.failure(str(e))
        except OSError as e:
            return StepOutcome.failure(f"{type(e).__name__}: {e}")
        return outcome if outcome is not None else StepOutcome.success()

    def run(self, request: ProvisioningRequest) -> PipelineReport:
        report = PipelineReport(pipeline=self.name, total=len(self.steps))
        succeeded: set[str] = set()
        n = len(self.steps)

        for index, step in enumerate(self.steps, start=1):
            unmet = [r for r in step.requires if r not in succeeded]
            if unmet:
                cause = f"依赖步骤未成功: {', '.join(unmet)}"
                report.records.append(StepRecord(step.name, "failed", cause=cause, kind="error"))
                report.failed_step, report.cause, report.kind = step.name, cause, "error"
                logger.error("[Step %d/%d] %s 无法执行: %s", index, n, step.name, cause)
                break

            logger.info("[Step %d/%d] %s", index, n, step.description or step.name)
            start = time.monotonic()
            outcome = self._invoke(step, request)
            duration = time.monotonic() - start

            if outcome.ok:
                succeeded.add(step.name)
                report.records.append(StepRecord(step.name, "done", duration=duration))
                logger.info("[Step %d/%d] %s 完成 (%.1fs)", index, n, step.name, duration)
                continue

            report.records.append(StepRecord(
                step.name, "failed", duration=duration,
                cause=outcome.cause, kind=outcome.kind,
            ))
            report.failed_step = step.name
            report.cause = outcome.cause
            report.kind = outcome.kind
            logger.error(
                "[Step %d/%d] %s 失败 (%s): %s",
                index, n, step.name, outcome.kind, outcome.cause,
            )
            break

        if report.success:
            logger.info("流水线 %s 全部完成 (%d 步)", self.name, n)
        else:
            logger.error(
                "流水线 %s 已停止，剩余 %d 步未执行",
                self.name, n - len(report.records),
            )
        return report
