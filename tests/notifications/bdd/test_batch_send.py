"""BDD tests for batch notifications."""

import asyncio

from notifications.notification.dispatcher import BatchItem
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/batch_send.feature")


def _email(business_id, order_id, recipient):
    return BatchItem(
        business_id=business_id,
        channel="email",
        recipient=recipient,
        content="<p>Tu pedido está listo</p>",
        subject="Pedido listo",
        order_id=order_id,
    )


@given(parsers.parse('the email provider rejects "{recipient}"'))
def _(email_adapter, recipient):
    email_adapter.configure(failing_recipients={recipient}, failure_reason="Mailbox unavailable")


@when(
    parsers.parse('a batch of emails to "{first}" and "{second}" is sent'),
    target_fixture="batch",
)
def _(dispatcher, business_id, order_id, first, second):
    items = [_email(business_id, order_id, first), _email(business_id, order_id, second)]
    return asyncio.run(dispatcher.batch_send(items))


@when(parsers.parse('a batch of emails to "{first}" and nobody is sent'), target_fixture="batch")
def _(dispatcher, business_id, order_id, first):
    items = [_email(business_id, order_id, first), _email(business_id, order_id, None)]
    return asyncio.run(dispatcher.batch_send(items))


@then(parsers.parse("{sent:d} message was sent and {failed:d} failed"))
def _(batch, sent, failed):
    assert (batch.successful, batch.failed) == (sent, failed)


@then(parsers.parse("{skipped:d} message was skipped"))
def _(batch, skipped):
    assert batch.skipped == skipped


@then(parsers.re(r"(?P<count>\d+) notification log entr(?:y was|ies were) written"))
def _(dispatcher, order_id, count):
    assert len(asyncio.run(dispatcher.get_notification_history(order_id))) == int(count)
