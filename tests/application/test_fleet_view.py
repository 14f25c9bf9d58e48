"""Tests for the operator's Fleet View."""

from unittest.mock import MagicMock

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orderdesk.cart.cart import Cart
from orderdesk.cart.checkout import checkout
from orderdesk.catalogue.menu import get_menu_item
from orderdesk.errors import PersistenceFailure
from orderdesk.feed.change_feed import change_feed
from orderdesk.order.store import order_store
from orderdesk.views.fleet import FleetView
from orderdesk.views.session import OrderSessionView


def _fleet(on_change=None, store=order_store):
    return FleetView(store, change_feed, on_change=on_change)


class TestOpen:
    def test_open_loads_newest_first(self, place_order):
        first = place_order()
        second = place_order()
        changes = []
        view = _fleet(changes.append)

        orders = view.open()

        assert [o["id"] for o in orders] == [second["id"], first["id"]]
        assert changes[0]["type"] == "snapshot"
        assert view.is_open

    def test_open_failure_releases_subscription(self):
        store = MagicMock()
        store.list_all.side_effect = PersistenceFailure("Order store failed during list_all; please retry")
        view = _fleet(store=store)

        with pytest.raises(PersistenceFailure):
            view.open()

        assert not view.is_open
        assert change_feed.subscriber_count() == 0

    def test_reconnect_refetches(self, place_order):
        view = _fleet()
        view.open()
        view.close()
        missed = place_order()

        orders = view.reconnect()

        assert orders[0]["id"] == missed["id"]
        assert change_feed.subscriber_count() == 1


class TestLiveUpdates:
    def test_new_order_appears_at_head(self, place_order):
        place_order()
        changes = []
        view = _fleet(changes.append)
        view.open()

        created = place_order(name="Ravi")

        assert view.orders[0]["id"] == created["id"]
        assert changes[-1] == {"type": "created", "order": view.orders[0]}

    def test_status_change_patches_row_and_selection(self, place_order):
        order = place_order()
        view = _fleet()
        view.open()
        view.select(order["id"])

        order_store.update_status(order["id"], "out_for_delivery")

        assert view.orders[0]["status"] == "out_for_delivery"
        assert view.selected["status"] == "out_for_delivery"

    def test_close_stops_updates(self, place_order):
        view = _fleet()
        view.open()
        view.close()

        place_order()

        assert view.orders == []


class TestSetStatus:
    def test_set_status_notifies_once(self, place_order):
        order = place_order()
        changes = []
        view = _fleet(changes.append)
        view.open()

        view.set_status(order["id"], "confirmed")

        updates = [c for c in changes if c["type"] == "updated"]
        assert len(updates) == 1
        assert updates[0]["order"]["status"] == "confirmed"
        assert view.orders[0]["status"] == "confirmed"

    def test_rejected_status_leaves_view(self, place_order):
        order = place_order()
        view = _fleet()
        view.open()

        with pytest.raises(ValidationError):
            view.set_status(order["id"], "teleported")

        assert view.orders[0]["status"] == "pending"

    def test_store_failure_leaves_view(self, place_order):
        place_order()
        store = MagicMock(wraps=order_store)
        store.update_status.side_effect = PersistenceFailure("Order store failed during update_status; please retry")
        view = _fleet(store=store)
        view.open()
        before = view.orders

        with pytest.raises(PersistenceFailure):
            view.set_status(before[0]["id"], "confirmed")

        assert view.orders == before


class TestSelect:
    def test_select_row_in_list(self, place_order):
        order = place_order()
        view = _fleet()
        view.open()

        assert view.select(order["id"])["id"] == order["id"]

    def test_select_fetches_order_outside_list(self, place_order, monkeypatch):
        older = place_order()
        place_order()
        monkeypatch.setitem(current_domain.config["custom"], "fleet_list_limit", 1)
        view = _fleet()
        view.open()

        selected = view.select(older["id"])

        assert selected["id"] == older["id"]
        assert len(view.orders) == 2

    def test_select_unknown_clears_pane(self):
        view = _fleet()
        view.open()

        assert view.select("missing") is None
        assert view.selected is None


class TestEndToEnd:
    def test_biryani_order_reaches_dashboard_and_customer(self, customer):
        fleet_changes = []
        fleet = _fleet(fleet_changes.append)
        fleet.open()

        cart = Cart.start()
        cart.add_item(get_menu_item(1))
        order = checkout(cart, order_store, customer)

        assert order["total_amount"] == 349
        assert fleet_changes[-1]["type"] == "created"
        assert fleet.orders[0]["id"] == order["id"]
        assert fleet.orders[0]["status"] == "pending"

        session = OrderSessionView(order_store, change_feed)
        session.search(order["order_number"])

        fleet.set_status(order["id"], "confirmed")

        assert session.current["status"] == "confirmed"
        assert fleet.orders[0]["status"] == "confirmed"
