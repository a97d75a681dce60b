"""Overdue reminder webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from fee_engine.config import settings
from fee_engine.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram


class ReminderClient:
    """Client for sending overdue events to the collections reminder service"""

    def __init__(self, webhook_url: str | None = None):
        self.webhook_url = webhook_url or settings.reminder_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_overdue_event(self, payload: Dict[str, Any]) -> None:
        """
        Send an overdue event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on HTTP errors and network failures
        - Tracks latency histogram and failure counter
        - Gives up with an error log once retries run out; the response
          that triggered the reminder has already been sent
        """
        if not self.enabled:
            return

        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logging.error(
                            f"Reminder webhook failed after {attempt} attempts: {e}",
                            extra={"student_id": payload.get("student_id"), "event": payload.get("event")},
                        )
                        return

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
