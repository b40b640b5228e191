"""Template registry: maps NotificationType to template classes.

Each template renders per channel and locale: email gets a subject and an
HTML body, SMS and Telegram a single line of text.
"""

from notifications.notification.notification import NotificationType
from notifications.templates.order_cancelled import OrderCancelledTemplate
from notifications.templates.order_created import OrderCreatedTemplate
from notifications.templates.order_ready import OrderReadyTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.ORDER_CREATED.value: OrderCreatedTemplate,
    NotificationType.ORDER_READY.value: OrderReadyTemplate,
    NotificationType.ORDER_CANCELLED.value: OrderCancelledTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
