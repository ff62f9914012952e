"""
Command-line entry points.

    storefront-notify-shipping          one sweep of due shipping notices; exit 0/1
    storefront-serve [--host] [--port]  run the HTTP API under uvicorn

Both read configuration from the process environment.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

import uvicorn

from storefront import notify as N
from storefront import orders as O
from storefront._container import Storefront
from storefront.config import Settings
from storefront.db import create_database
from storefront.errors import ConfigError
from storefront.log import setup_logging

logger = logging.getLogger("storefront.cli")


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping notification sweep
# ═══════════════════════════════════════════════════════════════════════════════


async def run_shipping_sweep(settings: Settings) -> N.SweepReport:
    """One sweep with its own engine and mail client, both closed afterwards."""
    session_factory, engine = await create_database(settings.database_url)
    mailer = N.MailgunMailer(
        settings.mailgun_api_key,
        settings.mailgun_domain,
        settings.mail_from,
        base_url=settings.mailgun_base_url,
    )
    branding = N.Branding(settings.store_name, settings.site_url, settings.support_email)
    dispatcher = N.NotificationDispatcher(O.OrderStore(session_factory), mailer, branding)
    try:
        return await dispatcher.run_shipping_sweep()
    finally:
        await mailer.aclose()
        await engine.dispose()


def notify_shipping_main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="storefront-notify-shipping",
        description="Send every due shipping notification once.",
    )
    parser.parse_args(argv)
    setup_logging()

    try:
        settings = Settings.from_env(require_gateway=False)
    except ConfigError as e:
        logger.error("ERROR: %s", e.message)
        return 1

    setup_logging(settings.log_level)
    logger.info("Checking for pending shipping notifications...")
    try:
        report = asyncio.run(run_shipping_sweep(settings))
    except Exception:
        logger.exception("Error processing notifications")
        return 1

    logger.info("Finished processing notifications (%d sent, %d failed)", report.sent, report.failed)
    return 0


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP server
# ═══════════════════════════════════════════════════════════════════════════════


async def serve(settings: Settings, host: str, port: int) -> None:
    from storefront.wire import create_app

    storefront = await Storefront.open(settings)
    try:
        app = create_app(storefront)
        config = uvicorn.Config(app, host=host, port=port, log_level=settings.log_level.lower())
        await uvicorn.Server(config).serve()
    finally:
        await storefront.aclose()


def serve_main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="storefront-serve", description="Run the storefront HTTP API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)
    setup_logging()

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logger.error("ERROR: %s", e.message)
        return 1

    setup_logging(settings.log_level)
    asyncio.run(serve(settings, args.host, args.port))
    return 0


if __name__ == "__main__":
    sys.exit(notify_shipping_main())
