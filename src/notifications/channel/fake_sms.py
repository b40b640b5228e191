"""Fake SMS adapter: records text messages for testing."""

from uuid import uuid4

from notifications.channel.sms_port import SMSPort, is_e164


class FakeSMSAdapter(SMSPort):
    """Accepts any E.164 number and keeps the messages for test assertions.

    Message ids mimic Twilio SIDs (``SM`` + 32 hex characters).
    """

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "SMS delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "SMS delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, to: str, body: str) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}
        if not is_e164(to):
            return {"message_id": None, "status": "failed", "error": f"Invalid 'To' phone number: {to}"}

        sid = f"SM{uuid4().hex}"
        self.sent_messages.append({"message_id": sid, "to": to, "body": body})
        return {"message_id": sid, "status": "sent"}

    def reset(self):
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "SMS delivery failed"
