"""
Step types — outcomes of best-effort side effects.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

type Action[T] = Callable[[], Awaitable[T]]
"""Zero-argument async side effect."""


# ═══════════════════════════════════════════════════════════════════════════════
# StepOutcome — one side effect
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class StepOutcome[T]:
    """
    Result of one best-effort step.

    `ok` is False when the action raised; `error` then holds the exception
    text. Nothing is ever rolled back.
    """

    label: str
    ok: bool
    value: T | None = None
    error: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def skipped(label: str, reason: str) -> StepOutcome[Any]:
        return StepOutcome(label=label, ok=True, context={"skipped": reason})

    @property
    def was_skipped(self) -> bool:
        return "skipped" in self.context


# ═══════════════════════════════════════════════════════════════════════════════
# EffectsReport — a batch of side effects
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class EffectsReport:
    outcomes: list[StepOutcome[Any]] = field(default_factory=list)

    def add(self, outcome: StepOutcome[Any]) -> StepOutcome[Any]:
        self.outcomes.append(outcome)
        return outcome

    @property
    def run(self) -> int:
        return sum(1 for o in self.outcomes if not o.was_skipped)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[StepOutcome[Any]]:
        return [o for o in self.outcomes if not o.ok]


__all__ = ("Action", "StepOutcome", "EffectsReport")
