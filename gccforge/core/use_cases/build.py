"""
Build use case — one full toolchain build, end to end.

This is the top-level orchestrator: it detects the host, resolves the
plan, cleans the workspace, acquires sources, prepares (and always
releases) the build directories, runs the stage pipeline, packages
and reports, then publishes and ships the run log.

The run is binary. The first fatal error propagates to the caller
after mounts are released, the report is logged and the log has been
handed to the notification channel.
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from gccforge.adapters import default_registry
from gccforge.adapters.registry import AdapterRegistry
from gccforge.core.config.settings import Settings
from gccforge.core.context import BuildContext
from gccforge.core.engine.executor import (
    PipelineReport,
    build_pipeline,
    execute_pipeline,
    generate_operation_id,
)
from gccforge.core.errors import BuildAborted, GccForgeError
from gccforge.core.models.action import Receipt
from gccforge.core.models.plan import Architecture, BuildPlan, HostInfo
from gccforge.core.models.request import BuildRequest
from gccforge.core.services.acquisition import SourceAcquirer, SourceStatus
from gccforge.core.services.host import detect_host
from gccforge.core.services.notify import Notifier
from gccforge.core.services.packaging import BuildReport, Packager
from gccforge.core.services.resolver import resolve
from gccforge.core.services.workspace import WorkspacePreparer

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Everything one run produced."""

    operation_id: str = ""
    plan: BuildPlan | None = None
    pipeline: PipelineReport | None = None
    report: BuildReport | None = None
    archive: Path | None = None
    published: bool = False
    logs_shipped: bool = False
    error: GccForgeError | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.report is not None and self.report.success

    def to_dict(self) -> dict:
        result: dict = {
            "operation_id": self.operation_id,
            "success": self.success,
            "published": self.published,
            "logs_shipped": self.logs_shipped,
        }
        if self.plan:
            result["plan"] = self.plan.summary()
        if self.pipeline:
            result["pipeline"] = self.pipeline.to_dict()
        if self.report:
            result["report"] = self.report.to_dict()
        if self.archive:
            result["archive"] = str(self.archive)
        if self.error:
            result["error"] = self.error.to_dict()
        return result


# ── Signal guard ────────────────────────────────────────────────


@contextmanager
def signal_guard() -> Iterator[None]:
    """Turn SIGINT and SIGTERM into BuildAborted inside the block.

    Previous handlers are restored on exit. Outside the main thread
    signals cannot be hooked and the block runs unguarded.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _abort(signum, frame):
        raise BuildAborted(signum)

    previous = {sig: signal.signal(sig, _abort) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


# ── Helpers for the individual commands ─────────────────────────


def make_context(
    settings: Settings,
    registry: AdapterRegistry | None = None,
) -> BuildContext:
    return BuildContext(registry=registry or default_registry(), root=settings.root)


def resolve_plan(
    request: BuildRequest,
    ctx: BuildContext,
    host: HostInfo | None = None,
    detect: bool = False,
) -> BuildPlan:
    """Resolve a request, detecting the host when it is needed.

    The host compiler is queried for ``--arch host`` and whenever
    ``detect`` is set (a real build needs the ``--build`` triple).
    """
    if host is None and (detect or request.architecture == Architecture.HOST):
        host = detect_host(ctx)
    return resolve(
        request.architecture,
        request.flavor,
        request.version,
        bare_metal=request.bare_metal,
        use_newlib=request.use_newlib,
        tarball_mode=request.tarballs,
        host=host,
        jobs=request.jobs,
        codec=request.codec,
        full_history=request.full_history,
        no_update=request.no_update,
    )


def clean_workspace(
    settings: Settings,
    registry: AdapterRegistry | None = None,
    target: str | None = None,
) -> None:
    """Run the clean-up and integrity check on its own."""
    ctx = make_context(settings, registry)
    WorkspacePreparer(ctx, settings).clean_up(target)


def fetch_sources(
    request: BuildRequest,
    settings: Settings,
    registry: AdapterRegistry | None = None,
    host: HostInfo | None = None,
) -> tuple[BuildPlan, list[Receipt]]:
    """Acquire every source a request needs without building."""
    ctx = make_context(settings, registry)
    plan = resolve_plan(request, ctx, host=host)
    with signal_guard():
        receipts = SourceAcquirer(ctx, settings).acquire(plan)
    return plan, receipts


def source_status(
    request: BuildRequest,
    settings: Settings,
    registry: AdapterRegistry | None = None,
    host: HostInfo | None = None,
) -> tuple[BuildPlan, list[SourceStatus]]:
    """Resolved sources and whether each is already on disk."""
    ctx = make_context(settings, registry)
    plan = resolve_plan(request, ctx, host=host)
    return plan, SourceAcquirer(ctx, settings).status(plan)


# ── Full build ──────────────────────────────────────────────────


def run_build(
    request: BuildRequest,
    settings: Settings,
    registry: AdapterRegistry | None = None,
    host: HostInfo | None = None,
    result: BuildResult | None = None,
) -> BuildResult:
    """Build a cross toolchain.

    Args:
        request: What the operator asked for.
        settings: Resolved settings (workdir, credentials, bind root).
        registry: Optional pre-configured adapter registry.
        host: Pre-detected host facts (skips querying the host gcc).
        result: Optional result object filled in as the run proceeds,
            so a caller still sees the partial outcome when an error
            propagates.

    Returns:
        BuildResult with the plan, stage results and report.

    Raises:
        GccForgeError: The first fatal error, after clean-up.
    """
    result = result if result is not None else BuildResult()
    result.operation_id = result.operation_id or generate_operation_id()
    ctx = make_context(settings, registry)
    preparer = WorkspacePreparer(ctx, settings, tmpfs=request.tmpfs)
    started = time.monotonic()

    with signal_guard():
        try:
            plan = resolve_plan(request, ctx, host=host, detect=True)
            result.plan = plan
            logger.warning(
                "Building %s GCC %d for %s (%s)",
                plan.flavor.value, plan.version, plan.target, plan.libc.value,
            )

            preparer.clean_up(plan.target)
            SourceAcquirer(ctx, settings).acquire(plan)

            with preparer.mounted(plan) as workspace:
                pipeline = build_pipeline(plan, workspace, result.operation_id)
                result.pipeline = execute_pipeline(pipeline, ctx)
                result.pipeline.raise_for_failure()

            packager = Packager(ctx, settings)
            if packager.succeeded(plan):
                result.archive = packager.package(plan)
        except GccForgeError as e:
            result.error = e
            raise
        finally:
            preparer.release()
            _finish(result, request, settings, ctx, time.monotonic() - started)

    return result


def _finish(
    result: BuildResult,
    request: BuildRequest,
    settings: Settings,
    ctx: BuildContext,
    elapsed: float,
) -> None:
    """Report, publish and ship the log, whatever happened before."""
    plan = result.plan
    notifier = Notifier(ctx, settings)

    if plan is not None:
        packager = Packager(ctx, settings)
        stages = result.pipeline.results if result.pipeline else []
        report = packager.report(plan, elapsed, archive=result.archive, stages=stages)
        result.report = report
        for line in report.lines():
            logger.info("%s", line)

        if request.release and report.success and result.error is None:
            result.published = notifier.publish_release(plan, report)

    target = plan.target if plan else request.architecture.value
    version = result.report.gcc_version if result.report else None
    result.logs_shipped = notifier.push_logs(target, settings.log_path, version)
