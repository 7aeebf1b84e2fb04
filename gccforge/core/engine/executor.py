"""
Engine executor — the stage runner.

Takes a resolved plan and a prepared workspace, builds the ordered
stage pipeline, executes every action through the build context and
collects receipts per stage.

Flow:
    plan + workspace → build pipeline → execute (halt on first failure) → report

There is no retry and no partial success: the first non-zero exit
marks its stage failed, later stages never start, and the report
carries a StageError for the caller to raise.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from gccforge.core.context import BuildContext
from gccforge.core.engine.stages import STAGE_BUILDERS
from gccforge.core.errors import StageError
from gccforge.core.models.action import Action
from gccforge.core.models.plan import BuildPlan
from gccforge.core.models.stage import STAGE_ORDER, STAGE_TITLES, Stage, StageResult
from gccforge.core.models.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class StagePlan:
    """The actions one stage will run, or why it is skipped."""

    stage: Stage
    actions: list[Action] = field(default_factory=list)
    skip_reason: str | None = None


@dataclass
class PipelinePlan:
    """Ordered stages for one build."""

    operation_id: str = ""
    stages: list[StagePlan] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return sum(len(s.actions) for s in self.stages)

    @property
    def actions(self) -> list[Action]:
        return [a for s in self.stages for a in s.actions]


@dataclass
class PipelineReport:
    """Result of running a pipeline."""

    operation_id: str = ""
    results: list[StageResult] = field(default_factory=list)
    failure: StageError | None = None

    @property
    def all_ok(self) -> bool:
        return self.failure is None

    @property
    def completed(self) -> list[Stage]:
        return [r.stage for r in self.results if r.ok]

    @property
    def failed_stage(self) -> Stage | None:
        return self.failure.stage if self.failure else None

    @property
    def status(self) -> str:
        return "ok" if self.all_ok else "failed"

    def result(self, stage: Stage) -> StageResult | None:
        for r in self.results:
            if r.stage == stage:
                return r
        return None

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise self.failure

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "stages": [
                {
                    "stage": r.stage.value,
                    "status": r.status,
                    "cause": r.cause,
                    "duration_ms": r.duration_ms,
                    "actions": len(r.receipts),
                }
                for r in self.results
            ],
        }


def build_pipeline(plan: BuildPlan, workspace: Workspace, operation_id: str = "") -> PipelinePlan:
    """Build the ordered stage pipeline for a plan.

    HEADERS is skipped for newlib builds; every other stage always runs.

    Args:
        plan: The resolved build plan.
        workspace: The prepared workspace.
        operation_id: Identifier stamped on the report.

    Returns:
        PipelinePlan with one StagePlan per stage, in execution order.
    """
    pipeline = PipelinePlan(operation_id=operation_id or generate_operation_id())
    for stage in STAGE_ORDER:
        if stage == Stage.HEADERS and plan.use_newlib:
            pipeline.stages.append(StagePlan(stage=stage, skip_reason="newlib needs no kernel headers"))
            continue
        pipeline.stages.append(StagePlan(stage=stage, actions=STAGE_BUILDERS[stage](plan, workspace)))
    return pipeline


def execute_pipeline(pipeline: PipelinePlan, ctx: BuildContext) -> PipelineReport:
    """Run every stage in order, stopping at the first failure.

    Args:
        pipeline: The stage pipeline.
        ctx: Build context used to dispatch actions.

    Returns:
        PipelineReport; ``failure`` is set when a stage failed.
    """
    report = PipelineReport(operation_id=pipeline.operation_id)

    for stage_plan in pipeline.stages:
        stage = stage_plan.stage
        if stage_plan.skip_reason:
            logger.warning("Skipping %s: %s", stage.value, stage_plan.skip_reason)
            report.results.append(StageResult(stage=stage, status="skipped", cause=stage_plan.skip_reason))
            continue

        logger.warning("%s", STAGE_TITLES[stage])
        result = StageResult(stage=stage)
        report.results.append(result)

        for action in stage_plan.actions:
            receipt = ctx.run(action)
            result.receipts.append(receipt)
            if not receipt.failed:
                continue
            if action.optional:
                logger.warning("%s: %s (continuing)", action.id, receipt.error)
                continue

            result.status = "failed"
            result.cause = receipt.error
            report.failure = StageError(
                stage,
                f"Error during {action.id.split(':', 1)[1]}: {receipt.error}",
                receipt=receipt,
            )
            logger.error("✗ %s failed at %s", stage.value, action.id)
            return report

        logger.info("✓ %s (%dms)", stage.value, result.duration_ms)

    return report


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"build-{now}-{short}"
