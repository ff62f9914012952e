"""
Configuration — read once from the process environment.

    settings = Settings.from_env()                         # server
    settings = Settings.from_env(require_gateway=False)    # notification sweep
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from storefront.errors import ConfigError

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///storefront.db"
DEFAULT_MAILGUN_BASE_URL = "https://api.mailgun.net"
DEFAULT_STORE_NAME = "Storefront"
DEFAULT_SITE_URL = "http://localhost:8000"


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL

    btcpay_host: str = ""
    btcpay_store_id: str = ""
    btcpay_api_key: str = ""
    btcpay_allow_insecure: bool = False

    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mailgun_base_url: str = DEFAULT_MAILGUN_BASE_URL

    store_name: str = DEFAULT_STORE_NAME
    support_email: str | None = None
    site_url: str = DEFAULT_SITE_URL
    admin_token: str | None = None

    invoice_expiration_minutes: int = 60
    shipping_notification_delay_hours: int = 24
    log_level: str = "INFO"

    @property
    def mail_from(self) -> str:
        return f"{self.store_name} <noreply@{self.mailgun_domain}>"

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        *,
        require_gateway: bool = True,
    ) -> Settings:
        """
        Build settings from environment variables.

        Empty strings count as unset. Raises ConfigError naming every
        missing required variable at once.
        """
        source = os.environ if env is None else env

        def get(name: str) -> str | None:
            value = source.get(name, "").strip()
            return value or None

        required = ["MAILGUN_API_KEY", "MAILGUN_DOMAIN"]
        if require_gateway:
            required = ["BTCPAY_HOST", "BTCPAY_STORE_ID", "BTCPAY_API_KEY", *required]

        missing = [name for name in required if get(name) is None]
        if missing:
            raise ConfigError(missing)

        try:
            expiration = int(get("INVOICE_EXPIRATION_MINUTES") or 60)
            delay = int(get("SHIPPING_NOTIFICATION_DELAY_HOURS") or 24)
        except ValueError as e:
            raise ConfigError(["INVOICE_EXPIRATION_MINUTES / SHIPPING_NOTIFICATION_DELAY_HOURS (integers)"]) from e

        return cls(
            database_url=get("STOREFRONT_DATABASE_URL") or DEFAULT_DATABASE_URL,
            btcpay_host=(get("BTCPAY_HOST") or "").rstrip("/"),
            btcpay_store_id=get("BTCPAY_STORE_ID") or "",
            btcpay_api_key=get("BTCPAY_API_KEY") or "",
            btcpay_allow_insecure=(get("BTCPAY_ALLOW_INSECURE") or "").lower() == "true",
            mailgun_api_key=get("MAILGUN_API_KEY") or "",
            mailgun_domain=get("MAILGUN_DOMAIN") or "",
            mailgun_base_url=(get("MAILGUN_BASE_URL") or DEFAULT_MAILGUN_BASE_URL).rstrip("/"),
            store_name=get("STORE_NAME") or DEFAULT_STORE_NAME,
            support_email=get("SUPPORT_EMAIL"),
            site_url=(get("SITE_URL") or DEFAULT_SITE_URL).rstrip("/"),
            admin_token=get("ADMIN_API_TOKEN"),
            invoice_expiration_minutes=expiration,
            shipping_notification_delay_hours=delay,
            log_level=(get("LOG_LEVEL") or "INFO").upper(),
        )


__all__ = ("Settings",)
