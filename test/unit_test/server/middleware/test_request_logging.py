"""
Unit tests for the request logging middleware.

This test suite covers:
- Request ID generation and propagation
- Timing headers
- Slow request detection
- Error logging
"""

from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from starlette.responses import Response

from waybill_ledger.server.middleware import RequestLoggingMiddleware

MIDDLEWARE_LOGGER = "waybill_ledger.server.middleware.request_logging.logger"
LOG_API_REQUEST = "waybill_ledger.server.middleware.request_logging.log_api_request"


@pytest.fixture
def mock_request():
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/waybills"
    request.headers = {}
    request.state = MagicMock()
    return request


class TestDispatch:
    async def test_sets_headers(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = RequestLoggingMiddleware(app=AsyncMock())
        with patch(MIDDLEWARE_LOGGER) as mock_logger:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 32
        assert float(response.headers["X-Process-Time"]) >= 0
        assert mock_request.state.request_id == response.headers["X-Request-ID"]
        mock_logger.info.assert_called_once()
        mock_logger.warning.assert_not_called()

    async def test_echoes_incoming_request_id(self, mock_request):
        mock_request.headers = {"X-Request-ID": "trace-7"}

        async def call_next(request):
            return Response(status_code=204)

        middleware = RequestLoggingMiddleware(app=AsyncMock())
        with patch(MIDDLEWARE_LOGGER):
            response = await middleware.dispatch(mock_request, call_next)

        assert response.headers["X-Request-ID"] == "trace-7"
        assert mock_request.state.request_id == "trace-7"

    async def test_slow_request_warning(self, mock_request):
        async def call_next(request):
            return Response(status_code=200)

        middleware = RequestLoggingMiddleware(app=AsyncMock(), slow_request_ms=-1)
        with patch(MIDDLEWARE_LOGGER) as mock_logger:
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args[0][0]

    async def test_slow_threshold_defaults_to_settings(self):
        with patch("waybill_ledger.server.middleware.request_logging.settings") as mock_settings:
            mock_settings.slow_request_ms = 250.0
            middleware = RequestLoggingMiddleware(app=AsyncMock())
        assert middleware.slow_request_ms == 250.0

    async def test_error_is_logged_and_reraised(self, mock_request):
        async def call_next(request):
            raise RuntimeError("handler failed")

        middleware = RequestLoggingMiddleware(app=AsyncMock())
        with patch(MIDDLEWARE_LOGGER) as mock_logger:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(mock_request, call_next)

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["extra"]["error"] == "handler failed"

    async def test_request_sent_to_logfire(self, mock_request):
        mock_request.headers = {"X-Request-ID": "trace-9"}

        async def call_next(request):
            return Response(status_code=201)

        middleware = RequestLoggingMiddleware(app=AsyncMock())
        with patch(MIDDLEWARE_LOGGER), patch(LOG_API_REQUEST) as mock_log_api_request:
            await middleware.dispatch(mock_request, call_next)

        mock_log_api_request.assert_called_once()
        kwargs = mock_log_api_request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["path"] == "/api/v1/waybills"
        assert kwargs["status_code"] == 201
        assert kwargs["request_id"] == "trace-9"

    async def test_failed_request_sent_to_logfire_as_500(self, mock_request):
        async def call_next(request):
            raise RuntimeError("handler failed")

        middleware = RequestLoggingMiddleware(app=AsyncMock())
        with patch(MIDDLEWARE_LOGGER), patch(LOG_API_REQUEST) as mock_log_api_request:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log_api_request.call_args.kwargs["status_code"] == 500


class TestIntegration:
    async def test_headers_on_real_application(self):
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware)

        @app.get("/ping")
        async def ping(request: Request):
            return {"request_id": request.state.request_id}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            response = await client.get("/ping")

        assert response.status_code == 200
        assert response.json()["request_id"] == response.headers["X-Request-ID"]
        assert "X-Process-Time" in response.headers
