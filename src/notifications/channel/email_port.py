"""Email channel port."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Sends a multipart email: a plain text part, plus HTML when given."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        """Deliver one email. Adapters block; the dispatcher runs them in a worker thread.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
