"""
Unit tests for the Logfire monitoring module.

This test suite covers:
- Environment variable parsing
- Initialization gating and instrumentation flags
- Request and error logging once Logfire is configured
"""

import importlib
import os
from unittest.mock import MagicMock, patch

import pytest

import waybill_ledger.core.monitoring as monitoring

MODULE = "waybill_ledger.core.monitoring"


@pytest.fixture(autouse=True)
def reset_configured():
    with patch(f"{MODULE}._configured", False):
        yield


class TestLogfireEnvironmentConfiguration:
    """Test environment variable configuration for Logfire."""

    @pytest.fixture(autouse=True)
    def restore_module(self):
        yield
        importlib.reload(monitoring)

    def test_logfire_disabled_by_default(self):
        with patch.dict(os.environ, {}, clear=True):
            importlib.reload(monitoring)
            assert monitoring.LOGFIRE_ENABLED is False
            assert monitoring.LOGFIRE_SERVICE_NAME == "waybill-ledger-server"

    @pytest.mark.parametrize("value", ["true", "1", "yes", "TRUE"])
    def test_logfire_enabled_values(self, value):
        with patch.dict(os.environ, {"LOGFIRE_ENABLED": value}):
            importlib.reload(monitoring)
            assert monitoring.LOGFIRE_ENABLED is True

    def test_values_from_environment(self):
        env = {
            "LOGFIRE_TOKEN": "token-1",
            "LOGFIRE_ENVIRONMENT": "staging",
            "LOGFIRE_SAMPLE_RATE": "0.25",
            "LOGFIRE_TRACE_SQLALCHEMY": "false",
            "LOGFIRE_TRACE_FASTAPI": "no",
        }
        with patch.dict(os.environ, env):
            importlib.reload(monitoring)
            assert monitoring.LOGFIRE_TOKEN == "token-1"
            assert monitoring.LOGFIRE_ENVIRONMENT == "staging"
            assert monitoring.LOGFIRE_SAMPLE_RATE == 0.25
            assert monitoring.LOGFIRE_TRACE_SQLALCHEMY is False
            assert monitoring.LOGFIRE_TRACE_FASTAPI is False


class TestInitializeLogfire:
    """Test Logfire initialization function."""

    @patch(f"{MODULE}.LOGFIRE_ENABLED", False)
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_disabled(self, mock_logger, mock_logfire):
        assert monitoring.initialize_logfire() is False

        mock_logfire.configure.assert_not_called()
        assert "disabled" in mock_logger.info.call_args[0][0].lower()
        assert monitoring.is_logfire_active() is False

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "")
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_no_token(self, mock_logger, mock_logfire):
        assert monitoring.initialize_logfire() is False

        mock_logfire.configure.assert_not_called()
        assert "token" in mock_logger.warning.call_args[0][0].lower()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_SERVICE_NAME", "test-service")
    @patch(f"{MODULE}.LOGFIRE_ENVIRONMENT", "test")
    @patch(f"{MODULE}.LOGFIRE_TRACE_SQLALCHEMY", True)
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", True)
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_configures_and_instruments(self, mock_logger, mock_logfire):
        app = MagicMock()
        engine = MagicMock()

        assert monitoring.initialize_logfire(app=app, engine=engine) is True

        kwargs = mock_logfire.configure.call_args.kwargs
        assert kwargs["token"] == "test-token"
        assert kwargs["service_name"] == "test-service"
        assert kwargs["environment"] == "test"
        mock_logfire.instrument_sqlalchemy.assert_called_once_with(engine=engine.sync_engine)
        mock_logfire.instrument_fastapi.assert_called_once_with(app=app)
        assert monitoring.is_logfire_active() is True

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_TRACE_SQLALCHEMY", False)
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", False)
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_instrumentation_flags_disabled(self, mock_logger, mock_logfire):
        assert monitoring.initialize_logfire(app=MagicMock(), engine=MagicMock()) is True

        mock_logfire.instrument_sqlalchemy.assert_not_called()
        mock_logfire.instrument_fastapi.assert_not_called()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", True)
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_failed_instrumentation_only_warns(self, mock_logger, mock_logfire):
        mock_logfire.instrument_fastapi.side_effect = RuntimeError("unsupported")

        assert monitoring.initialize_logfire(app=MagicMock()) is True

        assert any("FastAPI" in call[0][0] for call in mock_logger.warning.call_args_list)

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_configure_failure(self, mock_logger, mock_logfire):
        mock_logfire.configure.side_effect = RuntimeError("bad token")

        assert monitoring.initialize_logfire() is False

        mock_logger.error.assert_called_once()
        assert monitoring.is_logfire_active() is False


class TestLogApiRequest:
    @patch(f"{MODULE}.logfire")
    def test_skipped_until_configured(self, mock_logfire):
        monitoring.log_api_request(method="GET", path="/health", status_code=200, duration_ms=1.0)
        mock_logfire.info.assert_not_called()

    @patch(f"{MODULE}._configured", True)
    @patch(f"{MODULE}.logfire")
    def test_sends_request_metrics(self, mock_logfire):
        monitoring.log_api_request(
            method="POST", path="/api/v1/waybills", status_code=201, duration_ms=12.5, request_id="req-1"
        )

        mock_logfire.info.assert_called_once_with(
            "API request completed",
            method="POST",
            path="/api/v1/waybills",
            status_code=201,
            duration_ms=12.5,
            request_id="req-1",
        )

    @patch(f"{MODULE}._configured", True)
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_handles_exception(self, mock_logger, mock_logfire):
        mock_logfire.info.side_effect = RuntimeError("exporter down")

        monitoring.log_api_request(method="GET", path="/health", status_code=200, duration_ms=1.0)

        mock_logger.debug.assert_called_once()


class TestLogError:
    @patch(f"{MODULE}.logfire")
    def test_skipped_until_configured(self, mock_logfire):
        monitoring.log_error(error_type="ValueError", error_message="bad")
        mock_logfire.error.assert_not_called()

    @patch(f"{MODULE}._configured", True)
    @patch(f"{MODULE}.logfire")
    def test_sends_error_with_context(self, mock_logfire):
        monitoring.log_error(error_type="ValueError", error_message="bad {quantity}", context={"path": "/x"})

        args, kwargs = mock_logfire.error.call_args
        assert args == ("{error_type}: {error_message}",)
        assert kwargs == {"error_type": "ValueError", "error_message": "bad {quantity}", "path": "/x"}

    @patch(f"{MODULE}._configured", True)
    @patch(f"{MODULE}.logfire")
    @patch(f"{MODULE}.logger")
    def test_handles_exception(self, mock_logger, mock_logfire):
        mock_logfire.error.side_effect = RuntimeError("exporter down")

        monitoring.log_error(error_type="ValueError", error_message="bad")

        mock_logger.debug.assert_called_once()
