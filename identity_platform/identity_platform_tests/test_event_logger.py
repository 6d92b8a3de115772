"""
Unit tests for event logger utility.
"""
import logging
from unittest.mock import Mock

import pytest

from identity_platform.identity_platform.identity_service.utils.event_logger import (
    ALLOWED_EVENT_TYPES,
    log_auth_event,
)

LOGGER_NAME = "identity_platform.identity_platform.identity_service.utils.event_logger"


@pytest.fixture
def mock_request():
    """Create a mock FastAPI Request object."""
    request = Mock()
    request.client = Mock()
    request.client.host = "192.168.1.1"
    request.headers = {"user-agent": "Mozilla/5.0 Test Browser"}
    return request


def test_log_auth_event_success_is_info(mock_request, caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        log_auth_event("signin_success", "user@example.com", mock_request, identifier="abc-123")

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.levelno == logging.INFO
    message = record.getMessage()
    assert "AUTH signin_success" in message
    assert "email=user@example.com" in message
    assert "identifier=abc-123" in message
    assert "ip=192.168.1.1" in message
    assert "Mozilla/5.0 Test Browser" in message


def test_log_auth_event_failure_is_warning(mock_request, caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        log_auth_event("signup_failure", "user@example.com", mock_request, reason="duplicate")

    assert caplog.records[0].levelno == logging.WARNING
    assert "reason=duplicate" in caplog.records[0].getMessage()


def test_log_auth_event_invalid_type(mock_request):
    with pytest.raises(ValueError) as exc_info:
        log_auth_event("password_reset", "user@example.com", mock_request)

    assert "Invalid event_type" in str(exc_info.value)


def test_log_auth_event_x_forwarded_for_fallback(caplog):
    request = Mock()
    request.client = None
    request.headers = {"x-forwarded-for": "203.0.113.1, 198.51.100.1", "user-agent": "curl/8.0"}

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        log_auth_event("signin_failure", "user@example.com", request, reason="bad_password")

    assert "ip=203.0.113.1" in caplog.records[0].getMessage()


def test_allowed_event_types():
    assert ALLOWED_EVENT_TYPES == {"signup_success", "signup_failure", "signin_success", "signin_failure"}


def test_signup_request_logs_events(client, caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        client.post("/auth/signup", json={"email": "events@example.com", "password": "secret1"})
        client.post("/auth/signin", json={"email": "events@example.com", "password": "wrong-password"})

    messages = [r.getMessage() for r in caplog.records if r.name == LOGGER_NAME]
    assert any("AUTH signup_success" in m for m in messages)
    assert any("AUTH signin_failure" in m and "reason=bad_password" in m for m in messages)
    # Passwords never reach the log
    assert not any("secret1" in m or "wrong-password" in m for m in messages)
