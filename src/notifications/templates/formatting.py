"""Locale-aware formatting for customer-facing messages (es, en)."""

from datetime import datetime

SUPPORTED_LOCALES = ("es", "en")
DEFAULT_LOCALE = "es"

_WEEKDAYS = {
    "es": ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"],
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
}

_TO_BE_CONFIRMED = {"es": "por confirmar", "en": "to be confirmed"}


def resolve_locale(locale: str | None) -> str:
    return locale if locale in SUPPORTED_LOCALES else DEFAULT_LOCALE


def format_pickup_time(value, locale: str = DEFAULT_LOCALE) -> str:
    """Weekday and 24h ``HH:MM``, e.g. ``viernes 14:30``."""
    locale = resolve_locale(locale)
    if value is None or value == "":
        return _TO_BE_CONFIRMED[locale]
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return f"{_WEEKDAYS[locale][value.weekday()]} {value:%H:%M}"


def format_currency(amount, locale: str = DEFAULT_LOCALE) -> str:
    """Amount in Mexican pesos, e.g. ``$1,234.50`` (es) or ``MX$1,234.50`` (en)."""
    locale = resolve_locale(locale)
    symbol = "$" if locale == "es" else "MX$"
    return f"{symbol}{float(amount or 0):,.2f}"
