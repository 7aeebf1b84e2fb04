"""
Packaging & reporting — archive the install tree and describe the run.

The existence of ``<target>/bin/<target>-gcc`` is the only success
signal for a build: packaging runs only when it is there, and the
report says "BUILD SUCCESSFUL" or "BUILD FAILED" based on it alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gccforge.core.config.settings import Settings
from gccforge.core.context import BuildContext
from gccforge.core.data.constants import CODEC_PROGRAMS
from gccforge.core.errors import PackagingError
from gccforge.core.models.action import Action
from gccforge.core.models.plan import BuildPlan
from gccforge.core.models.stage import StageResult

logger = logging.getLogger(__name__)


# ── Formatting ──────────────────────────────────────────────────


def _plural(count: int, unit: str) -> str:
    return f"1 {unit}" if count == 1 else f"{count} {unit}S"


def format_duration(seconds: float) -> str:
    """Human-readable wall-clock duration.

    >>> format_duration(3725)
    '1 HOUR, 2 MINUTES, AND 5 SECONDS'
    >>> format_duration(61)
    '1 MINUTE AND 1 SECOND'
    """
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    text = ""
    if hours:
        text += _plural(hours, "HOUR") + ", "
    text += _plural(minutes, "MINUTE")
    text += ", AND " if hours else " AND "
    text += _plural(secs, "SECOND")
    return text


def format_size(size: int) -> str:
    """Size with a binary suffix, the way ``du -h`` prints it."""
    value = float(size)
    for suffix in ("B", "K", "M", "G"):
        if value < 1024:
            return f"{value:.0f}{suffix}" if suffix == "B" else f"{value:.1f}{suffix}"
        value /= 1024
    return f"{value:.1f}T"


def tree_size(path: Path) -> int:
    """Bytes used by a file, or by every regular file below a directory."""
    if path.is_file():
        return path.stat().st_size
    return sum(p.stat().st_size for p in path.rglob("*") if p.is_file() and not p.is_symlink())


def build_date(
    timezone: str | None = None,
    now: datetime | None = None,
    fmt: str = "%Y%m%d",
) -> str:
    """Today in the configured time zone (UTC when unset or unknown)."""
    tz = UTC
    if timezone:
        try:
            tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone '%s', using UTC", timezone)
    moment = now or datetime.now(UTC)
    return moment.astimezone(tz).strftime(fmt)


def package_name(plan: BuildPlan, date: str) -> str:
    """Archive file name for a plan, e.g. ``aarch64-linux-gnu-11.x-gnu-20221014.tar.xz``."""
    if plan.codec is None:
        raise ValueError("plan has no packaging codec")
    return f"{plan.target}-{plan.version}.x-{plan.flavor.value}-{date}.tar.{plan.codec.value}"


# ── Report ──────────────────────────────────────────────────────


@dataclass
class BuildReport:
    """What a finished (or failed) run produced."""

    success: bool
    duration: str
    target: str
    gcc_version: str | None = None
    gcc_commit: str | None = None
    artifact: str | None = None
    artifact_size: str | None = None
    packaged: bool = False
    stages: list[StageResult] = field(default_factory=list)

    @property
    def verdict(self) -> str:
        return "BUILD SUCCESSFUL" if self.success else "BUILD FAILED"

    def lines(self) -> list[str]:
        """The report as console lines."""
        out = [self.verdict, f"Total time elapsed: {self.duration}"]
        if self.gcc_version:
            out.append(f"GCC version: {self.gcc_version}")
        if self.gcc_commit:
            out.append(f"GCC commit: {self.gcc_commit}")
        if self.success and self.artifact:
            if self.packaged:
                out.append(f"File location: {self.artifact}")
                out.append(f"File size: {self.artifact_size}")
            else:
                out.append(f"Toolchain location: {self.artifact}")
        return out

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "verdict": self.verdict,
            "duration": self.duration,
            "target": self.target,
            "gcc_version": self.gcc_version,
            "gcc_commit": self.gcc_commit,
            "artifact": self.artifact,
            "artifact_size": self.artifact_size,
            "packaged": self.packaged,
            "stages": [{"stage": s.stage.value, "status": s.status, "cause": s.cause} for s in self.stages],
        }


# ── Packager ────────────────────────────────────────────────────


class Packager:
    """Archives the install tree and gathers report facts."""

    def __init__(self, ctx: BuildContext, settings: Settings):
        self.ctx = ctx
        self.settings = settings

    def gcc_binary(self, plan: BuildPlan) -> Path:
        return self.ctx.path(plan.gcc_binary)

    def succeeded(self, plan: BuildPlan) -> bool:
        return self.gcc_binary(plan).is_file()

    def package(self, plan: BuildPlan, now: datetime | None = None) -> Path | None:
        """Compress ``<root>/<target>`` with the plan's codec.

        Returns:
            The archive path, or None when the plan has no codec.

        Raises:
            PackagingError: If tar fails.
        """
        if plan.codec is None:
            return None

        name = package_name(plan, build_date(self.settings.timezone, now))
        program = CODEC_PROGRAMS[plan.codec.value]
        logger.warning("Packaging toolchain into %s", name)
        receipt = self.ctx.run(Action(
            id=f"package:{plan.codec.value}",
            adapter="shell",
            params={
                "argv": ["tar", "-c", f"--use-compress-program={program}", "-f", name, plan.target],
                "cwd": str(self.ctx.root),
            },
        ))
        if receipt.failed:
            raise PackagingError(
                f"Failed to package toolchain: {receipt.error}",
                hint=f"Is '{program.split()[0]}' installed?",
            )
        return self.ctx.path(name)

    def gcc_version(self, plan: BuildPlan) -> str | None:
        """First line of ``<target>-gcc --version``, if the compiler runs."""
        binary = self.gcc_binary(plan)
        if not binary.is_file():
            return None
        receipt = self.ctx.run(Action(
            id="report:gcc-version",
            adapter="shell",
            params={"argv": [str(binary), "--version"]},
        ))
        if receipt.failed or not receipt.output.strip():
            return None
        return receipt.output.strip().splitlines()[0]

    def gcc_commit(self, plan: BuildPlan) -> str | None:
        """Head commit of the GCC checkout (clone mode only)."""
        if plan.tarballs:
            return None
        checkout = self.settings.sources_path / "gcc"
        if not checkout.is_dir():
            return None
        receipt = self.ctx.run(Action(
            id="report:gcc-commit",
            adapter="git",
            params={"operation": "rev_parse", "cwd": str(checkout)},
        ))
        if receipt.failed:
            return None
        return receipt.output.strip() or None

    def report(
        self,
        plan: BuildPlan,
        elapsed_seconds: float,
        archive: Path | None = None,
        stages: list[StageResult] | None = None,
    ) -> BuildReport:
        """Assemble the run report."""
        success = self.succeeded(plan)
        report = BuildReport(
            success=success,
            duration=format_duration(elapsed_seconds),
            target=plan.target,
            gcc_version=self.gcc_version(plan),
            gcc_commit=self.gcc_commit(plan),
            stages=list(stages or []),
        )
        if success:
            artifact = archive if archive is not None else self.ctx.path(plan.target)
            report.artifact = str(artifact)
            report.packaged = archive is not None
            if artifact.exists():
                report.artifact_size = format_size(tree_size(artifact))
        return report
