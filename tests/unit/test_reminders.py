"""Unit tests for the overdue reminder webhook client"""

import asyncio
import httpx
from unittest.mock import AsyncMock, patch
from fee_engine.infrastructure.clients.reminders import ReminderClient


WEBHOOK_URL = "http://reminders.test/events"


def _client() -> ReminderClient:
    client = ReminderClient(webhook_url=WEBHOOK_URL)
    client.max_retries = 3
    client.backoff_base = 0
    return client


def test_disabled_without_webhook_url():
    client = ReminderClient()
    client.webhook_url = None

    assert client.enabled is False
    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
        asyncio.run(client.send_overdue_event({"event": "FEE_OVERDUE"}))

    mock_post.assert_not_called()


def test_event_delivered_on_first_attempt():
    response = httpx.Response(200, request=httpx.Request("POST", WEBHOOK_URL))

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=response) as mock_post:
        asyncio.run(_client().send_overdue_event({"event": "FEE_OVERDUE", "student_id": "stu_1"}))

    mock_post.assert_called_once()
    assert mock_post.call_args.kwargs["json"]["student_id"] == "stu_1"


def test_exhausted_retries_are_logged_not_raised(caplog):
    """Test a dead webhook gives up quietly after the last retry"""
    failure = httpx.ConnectError("connection refused")

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, side_effect=failure) as mock_post:
        result = asyncio.run(_client().send_overdue_event({"event": "FEE_OVERDUE", "student_id": "stu_1"}))

    assert result is None
    assert mock_post.call_count == 3
    assert "failed after 3 attempts" in caplog.text
