"""Tests for dependency injection."""

from unittest.mock import MagicMock, patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from meetgrid import state
from meetgrid.dependencies import Viewer, get_optional_event_bus


class TestGetOptionalEventBus:
    def test_returns_bus_when_initialized(self):
        mock_bus = MagicMock()
        with patch.object(state, "event_bus", mock_bus):
            assert get_optional_event_bus() is mock_bus

    def test_returns_none_when_not_initialized(self):
        with patch.object(state, "event_bus", None):
            assert get_optional_event_bus() is None


class TestGetViewer:
    def _client(self):
        app = FastAPI()

        @app.get("/events/{event_id}/whoami")
        async def whoami(event_id: str, viewer: Viewer):
            return {"user_id": viewer.user_id, "remembered": viewer.remembered_schedule_id}

        return TestClient(app)

    def test_user_header(self):
        client = self._client()
        client.cookies.set("meetgrid_schedule_evt", "sched-1")
        response = client.get("/events/evt/whoami", headers={"X-User-Id": "u1"})
        assert response.json() == {"user_id": "u1", "remembered": None}

    def test_remembered_cookie_scoped_to_event(self):
        client = self._client()
        client.cookies.set("meetgrid_schedule_evt", "sched-1")
        assert client.get("/events/evt/whoami").json() == {"user_id": None, "remembered": "sched-1"}
        assert client.get("/events/other/whoami").json() == {"user_id": None, "remembered": None}
