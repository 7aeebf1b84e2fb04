"""
Host detection — facts about the build machine.

The resolver needs the host compiler's triple and major version for
``--arch host`` builds, and every plan needs the build triple for
``--build=``. Detection runs the host ``gcc`` through the adapters.
"""

from __future__ import annotations

import logging
import platform

from gccforge.core.context import BuildContext
from gccforge.core.errors import AcquisitionError
from gccforge.core.models.action import Action
from gccforge.core.models.plan import HostInfo

logger = logging.getLogger(__name__)


def detect_host(ctx: BuildContext) -> HostInfo:
    """Query the host compiler.

    Raises:
        AcquisitionError: If no working host ``gcc`` is installed.
    """
    triple = _gcc_query(ctx, "-dumpmachine")
    version = _gcc_query(ctx, "-dumpversion")
    try:
        major = int(version.split(".")[0])
    except ValueError:
        raise AcquisitionError(
            f"Cannot parse host compiler version '{version}'",
        ) from None

    info = HostInfo(machine=platform.machine(), triple=triple, gcc_major=major)
    logger.info("Host: %s (%s), gcc %d", info.machine, info.triple, info.gcc_major)
    return info


def _gcc_query(ctx: BuildContext, flag: str) -> str:
    receipt = ctx.run(Action(
        id=f"host:gcc{flag}",
        adapter="shell",
        params={"argv": ["gcc", flag]},
    ))
    if receipt.failed:
        raise AcquisitionError(
            f"Host compiler query 'gcc {flag}' failed: {receipt.error}",
            hint="Install a host GCC; it is needed to bootstrap the cross toolchain.",
        )
    lines = receipt.output.strip().splitlines()
    return lines[-1].strip() if lines else ""
