"""Fixtures for cross-domain integration tests.

These tests run the ordering status engine and the notification dispatcher
together, the way the API process wires them.
"""

import pytest

from shared.db import drop_db, setup_db


@pytest.fixture(scope="session", autouse=True)
def setup_databases(ordering_bed, notifications_bed):
    """Create database schemas for both domains."""
    from notifications.domain import notifications
    from ordering.domain import ordering

    setup_db(ordering)
    setup_db(notifications)

    yield

    drop_db(ordering)
    drop_db(notifications)
