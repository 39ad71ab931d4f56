import pytest

from broker.session.broker import SessionBroker
from broker.tests.mocks import MockConnection


@pytest.fixture
def connect_to_example():
    """Broker pinned to room id AB12CD and invite code WXYZ, with two registered players."""
    broker = SessionBroker(room_id_factory=lambda: "AB12CD", invite_code_factory=lambda: "WXYZ")
    player1 = MockConnection("player-1")
    player2 = MockConnection("player-2")
    broker.register_connection(player1)
    broker.register_connection(player2)
    return broker, player1, player2
