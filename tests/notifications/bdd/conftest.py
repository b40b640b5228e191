"""Shared BDD fixtures for the Notifications domain."""

from uuid import uuid4

import pytest
from notifications.channel import ChannelSet
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.notification.dispatcher import NotificationDispatcher


@pytest.fixture()
def business_id():
    return f"biz-{uuid4().hex[:8]}"


@pytest.fixture()
def order_id():
    return str(uuid4())


@pytest.fixture()
def email_adapter():
    return FakeEmailAdapter()


@pytest.fixture()
def dispatcher(email_adapter):
    return NotificationDispatcher(ChannelSet(email=email_adapter))
