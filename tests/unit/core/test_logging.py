import pytest
import structlog

from linkauth.core.config import Settings
from linkauth.core.logging import (
    LoggingContext,
    configure_logging,
    rename_message_field,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_rename_message_field():
    event_dict = {"event": "Token issued", "app_id": "abc"}
    result = rename_message_field(None, "info", event_dict)
    assert result == {"message": "Token issued", "app_id": "abc"}


def test_configure_logging_json_in_production():
    configure_logging(Settings(environment="production", log_format="json"))

    processors = structlog.get_config()["processors"]
    assert rename_message_field in processors
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_configure_logging_console_in_development():
    configure_logging(Settings(environment="development"))

    processors = structlog.get_config()["processors"]
    assert rename_message_field not in processors
    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


def test_logging_context_binds_and_unbinds():
    with LoggingContext(command="sweep"):
        assert structlog.contextvars.get_contextvars()["command"] == "sweep"
    assert "command" not in structlog.contextvars.get_contextvars()
