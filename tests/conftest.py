import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before any test module imports the domain."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def orderdesk_bed():
    from orderdesk.domain import orderdesk

    bed = DomainFixture(orderdesk)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(orderdesk_bed):
    """Run every test inside the domain context, then clear shared state."""
    from orderdesk.access.gate import reset_gate
    from orderdesk.feed.change_feed import change_feed
    from orderdesk.notifications import reset_channels
    from orderdesk.notifications.dispatch import dispatcher

    with orderdesk_bed.domain_context():
        yield

        dispatcher.drain(timeout=5.0)

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    change_feed.reset()
    reset_channels()
    reset_gate()


@pytest.fixture
def customer():
    return {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "+91 9000000000",
        "address": "12 MG Road, Bengaluru",
    }


@pytest.fixture
def biryani_lines():
    return [{"item_name": "Hyderabadi Dum Biryani", "quantity": 1, "price": 349.0}]


@pytest.fixture
def place_order(customer, biryani_lines):
    """Create an order through the store and return its snapshot."""
    from orderdesk.order.store import order_store

    def _place(lines=None, **overrides):
        return order_store.create(customer={**customer, **overrides}, lines=lines or biryani_lines)

    return _place
