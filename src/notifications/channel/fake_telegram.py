"""Fake Telegram adapter: records chat messages for testing."""

from itertools import count

from notifications.channel.telegram_port import TelegramPort


class FakeTelegramAdapter(TelegramPort):
    """Chat bot adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Bad Request: chat not found"
        self._message_ids = count(1)

    def configure(self, should_succeed: bool = True, failure_reason: str = "Bad Request: chat not found"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, chat_id: str, text: str) -> dict:
        if not self.should_succeed:
            return {
                "message_id": None,
                "status": "failed",
                "error": self.failure_reason,
            }

        message_id = str(next(self._message_ids))
        self.sent_messages.append({"message_id": message_id, "chat_id": chat_id, "text": text})

        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "Bad Request: chat not found"
