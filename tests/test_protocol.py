import concurrent.futures
import threading

import pytest

from pricetools.core.errors import NotFoundError, TransportError, ValidationError
from pricetools.core.protocol import Command, CommandKind, ResponseSlot


def test_slot_resolves_exactly_once():
    slot = ResponseSlot()
    assert slot.resolve({"a": 1})
    assert not slot.resolve({"a": 2})
    assert not slot.fail(NotFoundError("late"))
    assert slot.wait() == {"a": 1}


def test_slot_error_is_raised_to_waiter():
    slot = ResponseSlot()
    slot.fail(NotFoundError("Product 7 not found"))
    with pytest.raises(NotFoundError, match="Product 7"):
        slot.wait()


def test_dropped_slot_is_transport_error():
    slot = ResponseSlot()
    assert slot.drop("task cancelled")
    with pytest.raises(TransportError, match="task cancelled"):
        slot.wait()


def test_write_into_abandoned_slot_is_discarded():
    slot = ResponseSlot()
    assert slot.abandon()
    assert slot.done()
    assert not slot.resolve({"ignored": True})
    with pytest.raises(TransportError, match="abandoned"):
        slot.wait()


def test_wait_blocks_until_other_thread_resolves():
    slot = ResponseSlot()
    timer = threading.Timer(0.05, slot.resolve, args=("done",))
    timer.start()
    assert slot.wait(timeout=5) == "done"


def test_wait_timeout():
    slot = ResponseSlot()
    with pytest.raises(concurrent.futures.TimeoutError):
        slot.wait(timeout=0.01)


def test_command_build_copies_payload():
    payload = {"query": "w", "nested": {"x": [1]}}
    cmd = Command.build("search_products", payload)
    payload["nested"]["x"].append(2)
    assert cmd.kind is CommandKind.SEARCH_PRODUCTS
    assert cmd.payload == {"query": "w", "nested": {"x": [1]}}
    assert not cmd.responder.done()


def test_command_build_rejects_non_object_payload():
    with pytest.raises(ValidationError):
        Command.build(CommandKind.GET_PRODUCT_PRICE, [1, 2])
    assert Command.build(CommandKind.GET_PRODUCT_PRICE, None).payload == {}


def test_command_kind_is_closed():
    with pytest.raises(ValueError):
        Command.build("delete_products", {})
