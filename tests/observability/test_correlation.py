"""
Test suite for correlation IDs and the request middleware.

System role: Verification of request tracing
"""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from flowchart_ai.observability.correlation import (
    CORRELATION_HEADER,
    CorrelationIdFilter,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from flowchart_ai.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware


@pytest.fixture(autouse=True)
def reset_correlation_id():
    yield
    clear_correlation_id()


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    @app.get("/echo")
    async def echo():
        return {"correlationId": get_correlation_id()}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return TestClient(app, raise_server_exceptions=True)


class TestCorrelationContext:
    """Test suite for correlation ID helpers."""

    def test_set_correlation_id_should_keep_given_value(self) -> None:
        assert set_correlation_id("req-123") == "req-123"
        assert get_correlation_id() == "req-123"

    def test_set_correlation_id_should_generate_for_blank(self) -> None:
        generated = set_correlation_id("   ")

        assert len(generated) == 32
        assert get_correlation_id() == generated

    def test_filter_should_stamp_records(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "-"

        set_correlation_id("req-9")
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "req-9"


class TestMiddleware:
    """Test suite for CorrelationMiddleware and RequestLoggingMiddleware."""

    def test_middleware_should_echo_caller_correlation_id(self, client: TestClient) -> None:
        response = client.get("/echo", headers={CORRELATION_HEADER: "abc"})

        assert response.headers[CORRELATION_HEADER] == "abc"
        assert response.json() == {"correlationId": "abc"}

    def test_middleware_should_generate_correlation_id(self, client: TestClient) -> None:
        response = client.get("/echo")

        assert response.headers[CORRELATION_HEADER] == response.json()["correlationId"]
        assert response.headers[CORRELATION_HEADER]

    def test_request_logging_should_log_status(self, client: TestClient, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="flowchart_ai.observability.middleware"):
            client.get("/echo")

        completed = [r for r in caplog.records if getattr(r, "status_code", None) == 200]
        assert completed[0].path == "/echo"
        assert completed[0].process_time_ms >= 0

    def test_request_logging_should_log_and_reraise_exceptions(self, client: TestClient, caplog) -> None:
        with caplog.at_level(logging.ERROR, logger="flowchart_ai.observability.middleware"):
            with pytest.raises(RuntimeError, match="kaboom"):
                client.get("/boom")

        assert any(getattr(r, "error_type", None) == "RuntimeError" for r in caplog.records)
