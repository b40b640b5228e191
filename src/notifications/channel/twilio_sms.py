"""Twilio SMS adapter."""

import structlog
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from notifications.channel.sms_port import SMSPort, is_e164

logger = structlog.get_logger(__name__)


class TwilioSMSAdapter(SMSPort):
    def __init__(self, account_sid: str, auth_token: str, from_number: str, timeout: float = 10.0, client=None):
        self.from_number = from_number
        self.client = client or Client(account_sid, auth_token, http_client=TwilioHttpClient(timeout=timeout))

    def send(self, to: str, body: str) -> dict:
        if not is_e164(to):
            return {"message_id": None, "status": "failed", "error": f"Invalid 'To' phone number: {to}"}

        try:
            message = self.client.messages.create(body=body, from_=self.from_number, to=to)
        except TwilioRestException as exc:
            logger.warning("twilio_send_failed", status=exc.status, code=exc.code, error=exc.msg)
            return {"message_id": None, "status": "failed", "error": f"Twilio error {exc.code}: {exc.msg}"}
        except TwilioException as exc:
            logger.warning("twilio_send_failed", error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        return {"message_id": message.sid, "status": "sent"}
