"""
Steps — best-effort side effects without compensation.

    from storefront import steps as S

    report = await S.run_each([
        ("decrement stock", lambda: products.decrement_stock(pid, 2), {"product_id": pid}),
        ("send confirmation", lambda: mailer.send(...), {}),
    ])
    report.failed    # logged, never raised
"""

from __future__ import annotations

from storefront.steps._types import Action, StepOutcome, EffectsReport
from storefront.steps._run import best_effort, run_each

__all__ = (
    "Action",
    "StepOutcome",
    "EffectsReport",
    "best_effort",
    "run_each",
)
