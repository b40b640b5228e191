"""Notification channel settings, read once from the environment at start-up."""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass(frozen=True)
class NotificationSettings:
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_from_address: str | None = None
    smtp_use_tls: bool = True

    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None

    telegram_bot_token: str | None = None

    max_retries: int = 3
    send_timeout: float = 10.0
    default_locale: str = "es"

    @classmethod
    def from_env(cls) -> "NotificationSettings":
        return cls(
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_from_address=os.getenv("SMTP_FROM_ADDRESS") or None,
            smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
            twilio_account_sid=os.getenv("TWILIO_ACCOUNT_SID") or None,
            twilio_auth_token=os.getenv("TWILIO_AUTH_TOKEN") or None,
            twilio_from_number=os.getenv("TWILIO_FROM_NUMBER") or None,
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            max_retries=_env_int("NOTIFICATION_MAX_RETRIES", 3),
            send_timeout=_env_float("NOTIFICATION_SEND_TIMEOUT", 10.0),
            default_locale=os.getenv("NOTIFICATION_DEFAULT_LOCALE") or "es",
        )

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_from_address)

    @property
    def sms_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number)

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token)
