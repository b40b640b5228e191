"""Telegram Bot API adapter."""

import requests
import structlog

from notifications.channel.telegram_port import TelegramPort

logger = structlog.get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramBotAdapter(TelegramPort):
    def __init__(self, bot_token: str, timeout: float = 10.0, session: requests.Session | None = None):
        self.bot_token = bot_token
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def send_message_url(self) -> str:
        return f"{TELEGRAM_API_BASE}/bot{self.bot_token}/sendMessage"

    def send(self, chat_id: str, text: str) -> dict:
        try:
            response = self.session.post(
                self.send_message_url,
                json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("telegram_request_failed", error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc) or exc.__class__.__name__}

        try:
            data = response.json()
        except ValueError:
            data = {}

        # The Bot API can answer 200 with ok=false
        if not response.ok or not data.get("ok"):
            error = data.get("description") or f"Telegram API error: {response.status_code}"
            logger.warning("telegram_send_failed", status_code=response.status_code, error=error)
            return {"message_id": None, "status": "failed", "error": error}

        return {"message_id": str(data["result"]["message_id"]), "status": "sent"}
