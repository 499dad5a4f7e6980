import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from datetime import date

import pytest
from fastapi.testclient import TestClient
import fakeredis.aioredis as fakeredis

import meetgrid.lifespan as lifespan
import meetgrid.main as main
from meetgrid.config import clear_settings_cache
from meetgrid.core.slots import build_lattice


class _AwaitableRedis:
    def __init__(self, client):
        self._client = client

    def __await__(self):
        async def _coro():
            return self._client

        return _coro().__await__()


@pytest.fixture
def client(monkeypatch):
    def fake_redis_constructor(*_args, **_kwargs):
        fake = fakeredis.FakeRedis(decode_responses=True)
        return _AwaitableRedis(fake)

    monkeypatch.setattr(lifespan.redis, "Redis", fake_redis_constructor)

    with TestClient(main.app) as c:
        yield c


@pytest.fixture(autouse=True)
def _fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def lattice():
    """2025-01-20 .. 2025-01-21 in 30 minute slots."""
    return build_lattice(date(2025, 1, 20), date(2025, 1, 21), 30)


@pytest.fixture
def event_row():
    return {
        "id": "evt123",
        "name": "Team sync",
        "description": None,
        "date_range_start": date(2025, 1, 20),
        "date_range_end": date(2025, 1, 21),
        "time_slot_duration": 30,
        "creator_id": "creator",
        "creator_can_see_emails": True,
        "created_at": "2025-01-01T00:00:00+00:00",
    }


def make_schedule(schedule_id, name, slots, user_id=None, email=None):
    """Schedule dict as returned by the db layer; ``slots`` are (date, start, end) triples."""
    return {
        "id": schedule_id,
        "event_id": "evt123",
        "user_id": user_id,
        "display_name": name,
        "email": email,
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
        "availabilities": [
            {"date": day, "start_time": start, "end_time": end} for day, start, end in slots
        ],
    }
