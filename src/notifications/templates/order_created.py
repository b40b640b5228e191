"""Order created template: sent when the order is placed."""

from notifications.notification.notification import NotificationChannel, NotificationType
from notifications.templates.formatting import format_currency, format_pickup_time, resolve_locale

_TEXT = {
    "es": {
        "subject": "Confirmación de pedido {order_number}",
        "heading": "Confirmación de pedido",
        "intro": "Hemos recibido tu pedido <strong>{order_number}</strong>.",
        "total": "Total:",
        "pickup": "Hora de recogida estimada:",
        "outro": "Te notificaremos cuando tu pedido esté listo.",
        "short": "Recibimos tu pedido {order_number}. Total: {total}. Recogida: {pickup_time}",
    },
    "en": {
        "subject": "Order {order_number} confirmation",
        "heading": "Order confirmation",
        "intro": "We have received your order <strong>{order_number}</strong>.",
        "total": "Total:",
        "pickup": "Estimated pickup time:",
        "outro": "We will notify you when your order is ready.",
        "short": "We received your order {order_number}. Total: {total}. Pickup: {pickup_time}",
    },
}


class OrderCreatedTemplate:
    notification_type = NotificationType.ORDER_CREATED.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict, channel: str = NotificationChannel.EMAIL.value, locale: str = "es") -> dict:
        locale = resolve_locale(locale)
        text = _TEXT[locale]
        values = {
            "order_number": context.get("order_number", "N/A"),
            "pickup_time": format_pickup_time(context.get("pickup_time"), locale),
            "total": format_currency(context.get("total"), locale),
        }

        if channel != NotificationChannel.EMAIL.value:
            return {"subject": None, "body": text["short"].format(**values), "html_body": None}

        return {
            "subject": text["subject"].format(**values),
            "body": text["short"].format(**values),
            "html_body": (
                '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
                f'<h2 style="color: #3b82f6;">{text["heading"]}</h2>'
                f"<p>{text['intro'].format(**values)}</p>"
                f"<p><strong>{text['total']}</strong> {values['total']}</p>"
                f"<p><strong>{text['pickup']}</strong> {values['pickup_time']}</p>"
                f"<p>{text['outro']}</p>"
                "</div>"
            ),
        }
