"""
Mock adapter — universal test double for all adapter operations.

Stands in for any adapter name (shell, git, mount, ...) so builds can
be exercised without touching the network, mounts or compilers.
Responses are matched by action ID, either exactly or by glob pattern
(``gcc-frontend:*``), and an optional side effect can create the files
a real tool would have produced.
"""

from __future__ import annotations

from collections.abc import Callable
from fnmatch import fnmatchcase

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.core.models.action import Receipt

SideEffect = Callable[[ExecutionContext], None]


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._side_effects: dict[str, SideEffect] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    @property
    def action_ids(self) -> list[str]:
        """IDs of executed actions, in call order."""
        return [ctx.action.id for ctx in self._call_log]

    def calls_matching(self, pattern: str) -> list[ExecutionContext]:
        return [ctx for ctx in self._call_log if fnmatchcase(ctx.action.id, pattern)]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, pattern: str, receipt: Receipt) -> None:
        """Set a custom response for an action ID or glob pattern."""
        self._responses[pattern] = receipt

    def set_failure(self, pattern: str, error: str = "Mock failure") -> None:
        """Configure matching actions to fail."""
        self._responses[pattern] = Receipt.failure(
            adapter=self._name,
            action_id=pattern,
            error=error,
            metadata={"return_code": 1, "tail": error},
        )

    def set_side_effect(self, pattern: str, effect: SideEffect) -> None:
        """Run ``effect(context)`` whenever a matching action executes."""
        self._side_effects[pattern] = effect

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action_id = context.action.id

        for pattern, effect in self._side_effects.items():
            if fnmatchcase(action_id, pattern):
                effect(context)

        for pattern, receipt in self._responses.items():
            if fnmatchcase(action_id, pattern):
                return receipt.model_copy(update={"action_id": action_id})

        # Default: success
        return Receipt.success(
            adapter=self._name,
            action_id=action_id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log, custom responses and side effects."""
        self._call_log.clear()
        self._responses.clear()
        self._side_effects.clear()
