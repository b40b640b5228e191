"""Telegram channel port: abstract interface for chat bot dispatch."""

from abc import ABC, abstractmethod


class TelegramPort(ABC):
    """Abstract interface for chat bot dispatch adapters."""

    @abstractmethod
    def send(self, chat_id: str, text: str) -> dict:
        """Send a text message to a chat.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
