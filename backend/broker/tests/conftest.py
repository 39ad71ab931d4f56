import itertools

import pytest

from broker.messaging.router import MessageRouter
from broker.server.app import create_app
from broker.server.settings import BrokerServerSettings
from broker.session.broker import SessionBroker
from broker.tests.mocks import MockConnection


def sequential_codes(prefix: str, width: int):
    """Return a factory yielding predictable codes, e.g. R00001, R00002."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter):0{width}d}"


@pytest.fixture
def broker():
    return SessionBroker(
        room_id_factory=sequential_codes("R", 5),
        invite_code_factory=sequential_codes("I", 3),
    )


@pytest.fixture
def message_router(broker):
    return MessageRouter(broker)


@pytest.fixture
def connect(broker):
    """Create and register a mock connection."""

    def _connect(connection_id: str | None = None) -> MockConnection:
        connection = MockConnection(connection_id)
        broker.register_connection(connection)
        return connection

    return _connect


@pytest.fixture
def app(broker, message_router):
    return create_app(
        settings=BrokerServerSettings(),
        broker=broker,
        message_router=message_router,
    )
