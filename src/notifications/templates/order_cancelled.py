"""Order cancelled template: sent when staff cancel an order."""

from notifications.notification.notification import NotificationChannel, NotificationType
from notifications.templates.formatting import resolve_locale

_TEXT = {
    "es": {
        "subject": "Pedido {order_number} cancelado",
        "heading": "Pedido cancelado",
        "intro": "Tu pedido <strong>{order_number}</strong> ha sido cancelado.",
        "reason": "Motivo:",
        "short": "Tu pedido {order_number} ha sido cancelado.",
    },
    "en": {
        "subject": "Order {order_number} cancelled",
        "heading": "Order cancelled",
        "intro": "Your order <strong>{order_number}</strong> has been cancelled.",
        "reason": "Reason:",
        "short": "Your order {order_number} has been cancelled.",
    },
}


class OrderCancelledTemplate:
    notification_type = NotificationType.ORDER_CANCELLED.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict, channel: str = NotificationChannel.EMAIL.value, locale: str = "es") -> dict:
        locale = resolve_locale(locale)
        text = _TEXT[locale]
        order_number = context.get("order_number", "N/A")
        reason = context.get("reason")

        short = text["short"].format(order_number=order_number)
        if reason:
            short = f"{short} {text['reason']} {reason}"

        if channel != NotificationChannel.EMAIL.value:
            return {"subject": None, "body": short, "html_body": None}

        reason_html = f"<p><strong>{text['reason']}</strong> {reason}</p>" if reason else ""
        return {
            "subject": text["subject"].format(order_number=order_number),
            "body": short,
            "html_body": (
                '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
                f'<h2 style="color: #ef4444;">{text["heading"]}</h2>'
                f"<p>{text['intro'].format(order_number=order_number)}</p>"
                f"{reason_html}"
                "</div>"
            ),
        }
