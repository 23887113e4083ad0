"""Balance-event webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from cashflow_core.config import settings
from cashflow_core.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram


class BalanceEventClient:
    """Client publishing balance deltas to the external balance ledger"""

    def __init__(
        self,
        webhook_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.balance_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_balance_event(self, payload: Dict[str, Any]) -> None:
        """
        Send a balance-delta event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx errors and network failures; 4xx fails immediately
        - Tracks latency histogram and failure counter

        Args:
            payload: Event data (transaction id, user id, operation, delta)
        """
        if not self.enabled:
            return

        attempt = 0
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    webhook_failure_counter.inc()
                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        raise

                except httpx.RequestError:
                    attempt += 1
                    webhook_failure_counter.inc()
                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        raise

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)

    async def deliver(self, payload: Dict[str, Any]) -> None:
        """Background-task entry point: a delivery that exhausts its retries is logged"""
        try:
            await self.send_balance_event(payload)
        except httpx.HTTPError as e:
            logging.error(
                f"Balance webhook delivery failed: {e}",
                extra={"request_id": payload.get("request_id"), "transaction_id": payload.get("transaction_id")},
            )
