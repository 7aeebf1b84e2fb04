"""
Error taxonomy — every fatal condition a build can hit.

Adapters never raise; services translate failed receipts into one of
these exceptions, and the CLI is the only place that catches them.
Each error carries an optional ``hint`` telling the operator what to
do next, and ``show_usage`` for errors caused by a bad invocation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gccforge.core.models.action import Receipt
    from gccforge.core.models.stage import Stage


class GccForgeError(Exception):
    """Base class for all build errors."""

    show_usage = False

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_dict(self) -> dict:
        result: dict = {"error": self.message, "kind": type(self).__name__}
        if self.hint:
            result["hint"] = self.hint
        return result


class ValidationError(GccForgeError):
    """The requested (architecture, flavor, version) cannot be built."""

    show_usage = True


class AcquisitionError(GccForgeError):
    """A source, directory or auxiliary tool could not be obtained."""


class MissingSourceError(AcquisitionError):
    """The compiler source tree is absent when the workspace is prepared."""


class PatchError(GccForgeError):
    """A compatibility patch did not apply to the compiler tree."""


class StageError(GccForgeError):
    """A configure/make/install invocation exited non-zero."""

    def __init__(
        self,
        stage: Stage,
        message: str,
        receipt: Receipt | None = None,
        hint: str | None = None,
    ):
        super().__init__(f"[{stage.value}] {message}", hint=hint)
        self.stage = stage
        self.receipt = receipt

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["stage"] = self.stage.value
        if self.receipt is not None:
            result["output_tail"] = self.receipt.tail
        return result


class IntegrityError(GccForgeError):
    """Leftovers from a previous run survived the clean-up step."""


class BuildAborted(GccForgeError):
    """The run was interrupted by SIGINT or SIGTERM."""

    def __init__(self, signum: int | None = None):
        super().__init__("Manually aborted!")
        self.signum = signum


class PackagingError(GccForgeError):
    """The install tree could not be archived."""
