import json

import pytest
import fakeredis.aioredis as fakeredis

from meetgrid.bus import EventBus


class TestEventBus:
    def test_channel_name(self):
        assert EventBus.availability_channel("evt") == "availability:evt"

    @pytest.mark.asyncio
    async def test_publish_reaches_subscribers(self):
        client = fakeredis.FakeRedis(decode_responses=True)
        pubsub = client.pubsub()
        await pubsub.subscribe("availability:evt")
        await pubsub.get_message(timeout=1.0)

        event = {
            "type": "availability_updated",
            "event_id": "evt",
            "schedule_id": "s1",
            "slot_count": 2,
            "timestamp": "2025-01-20T00:00:00+00:00",
        }
        await EventBus(client).publish("evt", event)

        message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
        assert message is not None
        assert json.loads(message["data"]) == event
        await pubsub.aclose()
        await client.aclose()
