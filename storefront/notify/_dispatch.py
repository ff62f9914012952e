"""
Notification dispatcher.

Two send paths:

    send_order_confirmation   — synchronous, from settlement
    run_shipping_sweep        — scheduled, selects due shipping notices

Every send is best-effort. A failed shipping notice is left unstamped and
is picked up again by the next sweep; there is no retry counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from storefront._types import Clock, utcnow
from storefront.notify._mailer import Mailer
from storefront.notify._templates import (
    Branding,
    Email,
    order_confirmation_email,
    shipping_notice_email,
)
from storefront.orders import Order, OrderStore
from storefront.steps import best_effort

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SweepReport:
    found: int
    sent: int
    failed: int
    unstamped: int = 0


class NotificationDispatcher:
    def __init__(
        self,
        orders: OrderStore,
        mailer: Mailer,
        branding: Branding,
        clock: Clock = utcnow,
    ) -> None:
        self._orders = orders
        self._mailer = mailer
        self._branding = branding
        self._clock = clock

    # ═══════════════════════════════════════════════════════════════════════════
    # Single sends
    # ═══════════════════════════════════════════════════════════════════════════

    async def send_order_confirmation(self, order: Order, to: str | None = None) -> bool:
        """Send the confirmation to `to` (default: the order's email). False when skipped or failed."""
        recipient = to or order.email
        if not recipient:
            logger.info("Order %s has no email, confirmation skipped", order.order_number)
            return False

        email = order_confirmation_email(
            order.order_number, order.id, order.total_amount, self._branding,
        )
        return await self._deliver("order confirmation", recipient, email, order)

    async def send_shipping_notice(self, order: Order) -> bool:
        if not (order.email and order.tracking_number and order.tracking_url):
            logger.info("Order %s lacks email or tracking data, notice skipped", order.order_number)
            return False

        email = shipping_notice_email(
            order.order_number,
            order.shipping_address.name,
            order.tracking_number,
            order.tracking_url,
            self._branding,
        )
        return await self._deliver("shipping notice", order.email, email, order)

    # ═══════════════════════════════════════════════════════════════════════════
    # Sweep
    # ═══════════════════════════════════════════════════════════════════════════

    async def run_shipping_sweep(self, now: datetime | None = None) -> SweepReport:
        """
        Send every due shipping notice and stamp the ones that went out.

        Selection failures propagate; per-order failures do not.
        """
        now = now or self._clock()
        due = await self._orders.due_shipping_notifications(now)

        if not due:
            logger.info("No pending shipping notifications")
            return SweepReport(found=0, sent=0, failed=0)

        logger.info("Found %d shipping notification(s) to send", len(due))

        sent = failed = unstamped = 0
        for order in due:
            if not await self.send_shipping_notice(order):
                failed += 1
                continue

            sent += 1
            stamp = await best_effort(
                "stamp notification sent",
                lambda order=order: self._orders.mark_notification_sent(order.id, self._clock()),
                order_id=order.id,
            )
            if not stamp.ok:
                # sent but unstamped: the next sweep will send it again
                unstamped += 1

        report = SweepReport(found=len(due), sent=sent, failed=failed, unstamped=unstamped)
        logger.info(
            "Shipping sweep finished: found=%d sent=%d failed=%d unstamped=%d",
            report.found, report.sent, report.failed, report.unstamped,
        )
        return report

    # ═══════════════════════════════════════════════════════════════════════════
    # Internal
    # ═══════════════════════════════════════════════════════════════════════════

    async def _deliver(self, kind: str, to: str, email: Email, order: Order) -> bool:
        outcome = await best_effort(
            f"send {kind}",
            lambda: self._mailer.send(to, email.subject, email.text, email.html),
            order_id=order.id,
            order_number=order.order_number,
        )
        return outcome.ok


__all__ = ("SweepReport", "NotificationDispatcher")
