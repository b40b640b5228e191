"""Notifications bounded context: customer messages about pickup orders.

Sends lifecycle messages (order created, ready, cancelled) by email, SMS and
Telegram, keeps a log entry for every attempt, and retries failed sends in
place within a bounded budget.
"""

import structlog
from protean.domain import Domain

notifications = Domain(name="notifications")

logger = structlog.get_logger(__name__)
