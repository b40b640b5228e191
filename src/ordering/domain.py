"""Ordering bounded context: online pickup orders.

Owns the order lifecycle: the status state machine, lifecycle timestamps,
the status audit trail, the order store adapter with its live change feed,
and the realtime order views that dashboards read from.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
