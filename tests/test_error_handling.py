"""Tests for the error taxonomy and the tool error logging decorator."""

import logging

import pytest

from team_memory.utils.error_handling import (
    ConfigurationError,
    RemoteError,
    TeamMemoryError,
    ValidationError,
    log_tool_errors,
)


class TestErrors:

    def test_hierarchy(self):
        for error_class in (ConfigurationError, RemoteError, ValidationError):
            assert issubclass(error_class, TeamMemoryError)

    def test_configuration_error_guidance(self):
        error = ConfigurationError("API key missing", guidance="Set SUPERMEMORY_API_KEY")
        assert str(error) == "API key missing\n\nSet SUPERMEMORY_API_KEY"
        assert error.guidance == "Set SUPERMEMORY_API_KEY"

    def test_configuration_error_without_guidance(self):
        assert str(ConfigurationError("broken")) == "broken"

    def test_remote_error_to_dict(self):
        assert RemoteError("API request failed: 503", status_code=503).to_dict() == {
            "type": "RemoteError",
            "message": "API request failed: 503",
            "status_code": 503,
        }

    def test_validation_error_field(self):
        error = ValidationError("Invalid argument 'limit'", field="limit")
        assert error.field == "limit"
        assert error.to_dict()["type"] == "ValidationError"


class TestLogToolErrors:

    async def test_async_success(self):
        @log_tool_errors("search")
        async def handler(value):
            return value * 2

        assert await handler(21) == 42

    async def test_known_error_is_logged_as_warning(self, caplog):
        @log_tool_errors("store")
        async def handler():
            raise RemoteError("API request failed: 500", status_code=500)

        with caplog.at_level(logging.WARNING, logger="team_memory"):
            with pytest.raises(RemoteError):
                await handler()

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "Tool 'store' failed" in record.getMessage()
        assert "500" in record.getMessage()

    async def test_unexpected_error_is_logged_with_traceback(self, caplog):
        @log_tool_errors()
        async def broken_handler():
            raise KeyError("missing")

        with caplog.at_level(logging.ERROR, logger="team_memory"):
            with pytest.raises(KeyError):
                await broken_handler()

        record = caplog.records[-1]
        assert "broken_handler" in record.getMessage()
        assert record.exc_info is not None

    def test_sync_function(self, caplog):
        @log_tool_errors("render")
        def render():
            raise ValidationError("bad input")

        with caplog.at_level(logging.WARNING, logger="team_memory"):
            with pytest.raises(ValidationError):
                render()

        assert "Tool 'render' failed" in caplog.records[-1].getMessage()

    def test_preserves_metadata(self):
        @log_tool_errors()
        async def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."
