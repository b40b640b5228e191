"""SMS channel port and the phone number check shared by SMS adapters."""

import re
from abc import ABC, abstractmethod

E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")


def is_e164(number: str | None) -> bool:
    return bool(number) and E164_PATTERN.match(number) is not None


class SMSPort(ABC):
    """Sends plain text messages to E.164 phone numbers."""

    @abstractmethod
    def send(self, to: str, body: str) -> dict:
        """Send ``body`` to ``to``. Provider errors are returned, not raised.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
