import asyncio
from unittest.mock import AsyncMock

from broker.session.broadcast import deliver, fan_out, send_safe
from broker.tests.mocks import MockConnection, StalledConnection


class TestSendSafe:
    async def test_returns_true_on_delivery(self):
        connection = MockConnection()
        assert await send_safe(connection, {"type": "roomList", "rooms": []}) is True
        assert connection.sent_messages == [{"type": "roomList", "rooms": []}]

    async def test_suppresses_closed_connection(self):
        connection = MockConnection()
        await connection.close()
        assert await send_safe(connection, {"type": "roomList", "rooms": []}) is False

    async def test_suppresses_os_error(self):
        connection = MockConnection()
        connection.send_text = AsyncMock(side_effect=OSError("reset"))
        assert await send_safe(connection, {"type": "roomList", "rooms": []}) is False


class TestDeliver:
    async def test_preserves_order_per_connection(self):
        first = MockConnection("first")
        second = MockConnection("second")
        outbox = [
            (first, {"type": "choiceMade", "playerId": 1, "choice": "rock"}),
            (second, {"type": "choiceMade", "playerId": 1, "choice": "rock"}),
            *fan_out([first, second], {"type": "result", "choices": {}, "result": "Draw"}),
        ]

        await deliver(outbox)

        for connection in (first, second):
            assert [m["type"] for m in connection.sent_messages] == ["choiceMade", "result"]

    async def test_failure_does_not_stop_other_recipients(self):
        broken = MockConnection("broken")
        broken.send_text = AsyncMock(side_effect=ConnectionError("broken pipe"))
        healthy = MockConnection("healthy")

        await deliver(fan_out([broken, healthy], {"type": "opponentDisconnected"}))

        assert healthy.sent_messages == [{"type": "opponentDisconnected"}]

    async def test_failed_send_drops_rest_of_that_queue(self):
        broken = MockConnection("broken")
        broken.send_text = AsyncMock(side_effect=ConnectionError("broken pipe"))

        await deliver([(broken, {"type": "choiceMade"}), (broken, {"type": "result"})])

        assert broken.send_text.await_count == 1

    async def test_stalled_recipient_does_not_delay_others(self):
        stalled = StalledConnection("stalled")
        healthy = MockConnection("healthy")

        task = asyncio.create_task(deliver(fan_out([stalled, healthy], {"type": "roomListUpdate", "rooms": []})))
        await asyncio.sleep(0.01)

        assert healthy.sent_messages == [{"type": "roomListUpdate", "rooms": []}]
        assert not task.done()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def test_empty_outbox(self):
        await deliver([])
