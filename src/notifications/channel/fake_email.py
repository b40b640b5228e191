"""Fake email adapter: records sent emails for testing."""

import time
from uuid import uuid4

from notifications.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self.delay = 0.0
        self.failing_recipients: set[str] = set()

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Email delivery failed",
        delay: float = 0.0,
        failing_recipients=(),
    ):
        """Configure the fake adapter behavior for testing.

        ``delay`` blocks the send for that many seconds, to exercise timeouts.
        ``failing_recipients`` fail while every other address succeeds.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.delay = delay
        self.failing_recipients = set(failing_recipients)

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        if self.delay:
            time.sleep(self.delay)

        if not self.should_succeed or to in self.failing_recipients:
            return {
                "message_id": None,
                "status": "failed",
                "error": self.failure_reason,
            }

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {
                "message_id": message_id,
                "to": to,
                "subject": subject,
                "body": body,
                "html_body": html_body,
            }
        )

        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent emails (useful between tests)."""
        self.sent_emails.clear()
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self.delay = 0.0
        self.failing_recipients = set()
