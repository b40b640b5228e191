"""Order ready template: the order is waiting at the counter."""

from notifications.notification.notification import NotificationChannel, NotificationType
from notifications.templates.formatting import format_pickup_time, resolve_locale

_TEXT = {
    "es": {
        "subject": "Tu pedido {order_number} está listo",
        "heading": "Tu pedido está listo",
        "intro": "Hola, tu pedido <strong>{order_number}</strong> está listo para recoger.",
        "pickup": "Hora de recogida:",
        "outro": "Por favor recoge tu pedido en el mostrador.",
        "short": "Tu pedido {order_number} está listo para recoger. Hora: {pickup_time}",
    },
    "en": {
        "subject": "Your order {order_number} is ready",
        "heading": "Your order is ready",
        "intro": "Hello, your order <strong>{order_number}</strong> is ready for pickup.",
        "pickup": "Pickup time:",
        "outro": "Please pick up your order at the counter.",
        "short": "Your order {order_number} is ready for pickup. Time: {pickup_time}",
    },
}


class OrderReadyTemplate:
    notification_type = NotificationType.ORDER_READY.value
    default_channels = [
        NotificationChannel.EMAIL.value,
        NotificationChannel.SMS.value,
        NotificationChannel.TELEGRAM.value,
    ]

    @staticmethod
    def render(context: dict, channel: str = NotificationChannel.EMAIL.value, locale: str = "es") -> dict:
        locale = resolve_locale(locale)
        text = _TEXT[locale]
        values = {
            "order_number": context.get("order_number", "N/A"),
            "pickup_time": format_pickup_time(context.get("pickup_time"), locale),
        }

        if channel != NotificationChannel.EMAIL.value:
            return {"subject": None, "body": text["short"].format(**values), "html_body": None}

        return {
            "subject": text["subject"].format(**values),
            "body": text["short"].format(**values),
            "html_body": (
                '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
                f'<h2 style="color: #10b981;">{text["heading"]}</h2>'
                f"<p>{text['intro'].format(**values)}</p>"
                f"<p><strong>{text['pickup']}</strong> {values['pickup_time']}</p>"
                f"<p>{text['outro']}</p>"
                "</div>"
            ),
        }
