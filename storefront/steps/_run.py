"""
Best-effort execution: run, log on failure, never raise.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from storefront.steps._types import Action, EffectsReport, StepOutcome

logger = logging.getLogger(__name__)


async def best_effort[T](label: str, action: Action[T], **context: Any) -> StepOutcome[T]:
    """
    Run `action`, converting any exception into a failed outcome.

    Example:
        outcome = await best_effort(
            "link invoice",
            lambda: orders.attach_invoice(order.id, invoice.invoice_id),
            order_id=order.id,
        )
        if not outcome.ok:
            ...  # logged already; carry on
    """
    try:
        value = await action()
    except Exception as e:
        logger.error("Step %r failed (%s): %s", label, _fmt(context), e)
        return StepOutcome(label=label, ok=False, error=str(e) or type(e).__name__, context=context)

    return StepOutcome(label=label, ok=True, value=value, context=context)


async def run_each(steps: Sequence[tuple[str, Action[Any], dict[str, Any]]]) -> EffectsReport:
    """Run steps in order; one failure never stops the rest."""
    report = EffectsReport()
    for label, action, context in steps:
        report.add(await best_effort(label, action, **context))
    return report


def _fmt(context: dict[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in context.items())


__all__ = ("best_effort", "run_each")
