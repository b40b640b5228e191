"""Channel adapters, built once from settings and injected into the dispatcher.

A channel without credentials gets no adapter: SMS and Telegram then run in
stub mode, email reports a configuration error.
"""

from dataclasses import dataclass

from notifications.channel.email_port import EmailPort
from notifications.channel.sms_port import SMSPort
from notifications.channel.telegram_port import TelegramPort
from notifications.config import NotificationSettings
from notifications.notification.notification import NotificationChannel


@dataclass
class ChannelSet:
    email: EmailPort | None = None
    sms: SMSPort | None = None
    telegram: TelegramPort | None = None

    def get(self, channel: str):
        channel = NotificationChannel(channel)
        if channel == NotificationChannel.EMAIL:
            return self.email
        if channel == NotificationChannel.SMS:
            return self.sms
        return self.telegram


def build_channels(settings: NotificationSettings) -> ChannelSet:
    """Create the real adapters for every configured channel."""
    channels = ChannelSet()

    if settings.email_configured:
        from notifications.channel.smtp_email import SMTPEmailAdapter

        channels.email = SMTPEmailAdapter(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_address=settings.smtp_from_address,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.send_timeout,
        )

    if settings.sms_configured:
        from notifications.channel.twilio_sms import TwilioSMSAdapter

        channels.sms = TwilioSMSAdapter(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_from_number,
            timeout=settings.send_timeout,
        )

    if settings.telegram_configured:
        from notifications.channel.telegram_bot import TelegramBotAdapter

        channels.telegram = TelegramBotAdapter(settings.telegram_bot_token, timeout=settings.send_timeout)

    return channels
