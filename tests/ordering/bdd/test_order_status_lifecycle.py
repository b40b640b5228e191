"""BDD tests for the order status lifecycle."""

import asyncio

from pytest_bdd import parsers, scenarios, then, when

scenarios("features/order_status_lifecycle.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.parse('staff move the order to "{status}"'), target_fixture="result")
def _(engine, order, status):
    return asyncio.run(engine.update_status(order["id"], status, changed_by="staff-1"))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the status change succeeds")
def _(result):
    assert result.success is True, result.error_message


@then("the status change is rejected as an invalid transition")
def _(result):
    assert result.success is False
    assert result.error.code == "invalid_transition"


@then(parsers.parse('the order is "{status}"'))
def _(store, order, status):
    assert asyncio.run(store.get_by_id(order["id"]))["status"] == status


@then(parsers.parse('the "{field}" time is recorded'))
def _(store, order, field):
    assert asyncio.run(store.get_by_id(order["id"]))[field] is not None


@then(parsers.parse("the order has {count:d} history entry"))
def _(engine, order, count):
    assert len(asyncio.run(engine.get_status_history(order["id"]))) == count


@then(parsers.parse('the last history entry goes from "{old}" to "{new}"'))
def _(engine, order, old, new):
    last = asyncio.run(engine.get_status_history(order["id"]))[-1]
    assert (last["old_status"], last["new_status"]) == (old, new)


@then("the customer was notified once")
def _(notifier, result):
    assert len(notifier.orders) == 1
    assert result.notification_sent is True
