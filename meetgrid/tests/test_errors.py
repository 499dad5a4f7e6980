"""Tests for standardized error handling."""

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient


class TestAPIErrors:
    def test_not_found_error_with_context(self):
        from meetgrid.errors import NotFoundError

        error = NotFoundError(detail="Event not found", resource_type="event", resource_id="abc")
        assert error.status_code == 404
        assert error.error == "not_found"
        assert error.context == {"resource_type": "event", "resource_id": "abc"}

    def test_defaults(self):
        from meetgrid.errors import (
            BadRequestError,
            ConflictError,
            DatabaseError,
            ServiceUnavailableError,
            ValidationError,
        )

        assert (BadRequestError().status_code, BadRequestError().error) == (400, "bad_request")
        assert ConflictError().status_code == 409
        assert DatabaseError().error == "database_error"
        assert ServiceUnavailableError().status_code == 503
        assert ValidationError().status_code == 422
        assert ValidationError().detail == "Invalid input"

    def test_aggregation_fetch_error(self):
        from meetgrid.errors import AggregationFetchError, ExternalServiceError

        error = AggregationFetchError(event_id="evt")
        assert isinstance(error, ExternalServiceError)
        assert error.status_code == 502
        assert error.error_code == "AGGREGATION_FETCH_FAILED"
        assert error.detail == "Failed to fetch aggregated time slots"
        assert error.context == {"event_id": "evt"}

    def test_to_response(self):
        from meetgrid.errors import ValidationError

        response = ValidationError(detail="Select at least one time slot", error_code="NO_SLOTS_SELECTED").to_response()
        assert response.model_dump(exclude_none=True) == {
            "error": "validation_error",
            "detail": "Select at least one time slot",
            "error_code": "NO_SLOTS_SELECTED",
        }


class TestExceptionHandlers:
    def _client(self):
        from meetgrid.errors import NotFoundError, register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/not-found")
        async def not_found():
            raise NotFoundError(detail="Event not found")

        @app.get("/http")
        async def http_error():
            raise HTTPException(status_code=409, detail="taken")

        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret internals")

        return TestClient(app, raise_server_exceptions=False)

    def test_api_error(self):
        response = self._client().get("/not-found")
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "detail": "Event not found"}

    def test_http_exception(self):
        response = self._client().get("/http")
        assert response.status_code == 409
        assert response.json() == {"error": "conflict", "detail": "taken"}

    def test_unhandled_exception_hides_details(self):
        response = self._client().get("/boom")
        assert response.status_code == 500
        assert response.json() == {"error": "internal_error", "detail": "An unexpected error occurred"}


class TestStatusToErrorType:
    def test_mapping(self):
        from meetgrid.errors import _status_to_error_type

        assert _status_to_error_type(404) == "not_found"
        assert _status_to_error_type(422) == "validation_error"
        assert _status_to_error_type(502) == "bad_gateway"
        assert _status_to_error_type(418) == "error"
