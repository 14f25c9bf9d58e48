"""Tests for the Order Store: create, lookups, listing and failure wrapping."""

import re
from unittest.mock import MagicMock, patch

import pytest
from protean.adapters.repository.memory import DictDAO
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orderdesk.errors import PersistenceFailure
from orderdesk.feed.change_feed import change_feed
from orderdesk.order.order import Order
from orderdesk.order.store import OrderStore, order_store


class TestCreate:
    def test_create_persists_pending_order_with_lines(self, place_order):
        order = place_order()

        assert order["status"] == "pending"
        assert order["total_amount"] == 349.0
        assert re.fullmatch(r"ORD-\d{8}", order["order_number"])
        assert len(order["items"]) == 1
        assert order["items"][0]["order_id"] == order["id"]

        stored = current_domain.repository_for(Order).get(order["id"])
        assert stored.customer_email == "asha@example.com"
        assert len(stored.lines) == 1

    def test_create_defaults_payment_method(self, place_order):
        assert place_order()["payment_method"] == "cod"

    def test_create_with_payment_method(self, customer, biryani_lines):
        order = order_store.create(customer=customer, lines=biryani_lines, payment_method="card")
        assert order["payment_method"] == "card"

    def test_resubmitting_same_order_id_is_idempotent(self, customer, biryani_lines):
        first = order_store.create(customer=customer, lines=biryani_lines, order_id="checkout-42")
        second = order_store.create(customer=customer, lines=biryani_lines, order_id="checkout-42")

        assert first["id"] == second["id"] == "checkout-42"
        assert len(order_store.list_all()) == 1

    def test_missing_customer_field_persists_nothing(self, customer, biryani_lines):
        with pytest.raises(ValidationError):
            order_store.create(customer={**customer, "phone": None}, lines=biryani_lines)

        assert order_store.list_all() == []

    def test_empty_lines_persist_nothing(self, customer):
        with pytest.raises(ValidationError):
            order_store.create(customer=customer, lines=[])

        assert order_store.list_all() == []

    def test_colliding_order_numbers_are_stepped(self, place_order):
        with patch("orderdesk.order.placement.time") as clock:
            clock.time.return_value = 1718123456.5
            first = place_order()
            second = place_order()

        assert first["order_number"] == "ORD-23456500"
        assert second["order_number"] == "ORD-23456501"


class TestLookups:
    def test_get_returns_snapshot(self, place_order):
        order = place_order()
        assert order_store.get(order["id"])["order_number"] == order["order_number"]

    def test_get_unknown_returns_none(self):
        assert order_store.get("no-such-order") is None

    def test_find_by_order_number(self, place_order):
        order = place_order()
        found = order_store.find_by_order_number(order["order_number"])
        assert found["id"] == order["id"]

    def test_find_by_order_number_is_exact(self, place_order):
        order = place_order()
        assert order_store.find_by_order_number(order["order_number"].lower()) is None
        assert order_store.find_by_order_number("ORD-00000000") is None

    def test_list_all_newest_first(self, place_order):
        first = place_order(name="First")
        second = place_order(name="Second")

        assert [o["id"] for o in order_store.list_all()] == [second["id"], first["id"]]

    def test_list_all_honours_limit(self, place_order, monkeypatch):
        for _ in range(3):
            place_order()
        monkeypatch.setitem(current_domain.config["custom"], "fleet_list_limit", 2)

        assert len(order_store.list_all()) == 2


class TestPersistenceFailure:
    def _broken_domain(self):
        broken = MagicMock()
        broken.process.side_effect = RuntimeError("connection refused")
        broken.repository_for.side_effect = RuntimeError("connection refused")
        return broken

    def test_create_failure_is_retryable(self, customer, biryani_lines):
        with patch("orderdesk.order.store.current_domain", self._broken_domain()):
            with pytest.raises(PersistenceFailure) as exc:
                order_store.create(customer=customer, lines=biryani_lines)

        assert exc.value.retryable is True
        assert exc.value.operation == "create"

    def test_read_failure_is_wrapped(self):
        with patch("orderdesk.order.store.current_domain", self._broken_domain()):
            with pytest.raises(PersistenceFailure):
                order_store.list_all()

    def test_failed_update_leaves_committed_state(self, place_order):
        order = place_order()
        received = []
        change_feed.subscribe_one(order["id"], received.append)

        with patch.object(DictDAO, "_update", side_effect=RuntimeError("disk full")):
            with pytest.raises(PersistenceFailure) as exc:
                order_store.update_status(order["id"], "confirmed")

        assert exc.value.order_id == order["id"]
        assert order_store.get(order["id"])["status"] == "pending"
        assert received == []


class TestWriteLocks:
    def test_same_order_always_gets_the_same_lock(self):
        store = OrderStore(lock_stripes=8)
        assert store._lock_for("order-x") is store._lock_for("order-x")

    def test_lock_pool_does_not_grow_with_orders(self):
        store = OrderStore(lock_stripes=8)
        locks = {id(store._lock_for(f"order-{n}")) for n in range(500)}

        assert len(locks) <= 8
        assert len(store._locks) == 8
