"""Unit tests for the balance-event webhook client"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch
from cashflow_core.infrastructure.clients.balance_events import BalanceEventClient

WEBHOOK_URL = "http://ledger.test/balance-events"
PAYLOAD = {"event": "BALANCE_DELTA", "transaction_id": "txn_1", "balance_delta": -120.0}


def make_client(responses: list[int], calls: list[httpx.Request]) -> BalanceEventClient:
    statuses = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(next(statuses))

    return BalanceEventClient(webhook_url=WEBHOOK_URL, transport=httpx.MockTransport(handler))


async def test_send_balance_event_posts_payload():
    calls: list[httpx.Request] = []
    client = make_client([200], calls)

    await client.send_balance_event(PAYLOAD)

    assert len(calls) == 1
    assert calls[0].url == WEBHOOK_URL
    assert b'"transaction_id":"txn_1"' in calls[0].content.replace(b" ", b"")


@patch("cashflow_core.infrastructure.clients.balance_events.asyncio.sleep", new_callable=AsyncMock)
async def test_server_errors_are_retried_with_backoff(mock_sleep: AsyncMock):
    calls: list[httpx.Request] = []
    client = make_client([503, 502, 200], calls)

    await client.send_balance_event(PAYLOAD)

    assert len(calls) == 3
    assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]


@patch("cashflow_core.infrastructure.clients.balance_events.asyncio.sleep", new_callable=AsyncMock)
async def test_client_errors_are_not_retried(mock_sleep: AsyncMock):
    calls: list[httpx.Request] = []
    client = make_client([400], calls)

    with pytest.raises(httpx.HTTPStatusError):
        await client.send_balance_event(PAYLOAD)

    assert len(calls) == 1
    mock_sleep.assert_not_awaited()


@patch("cashflow_core.infrastructure.clients.balance_events.asyncio.sleep", new_callable=AsyncMock)
async def test_deliver_logs_after_exhausting_retries(mock_sleep: AsyncMock, caplog):
    calls: list[httpx.Request] = []
    client = make_client([500, 500], calls)
    client.max_retries = 2

    await client.deliver(PAYLOAD)

    assert len(calls) == 2
    assert "Balance webhook delivery failed" in caplog.text


async def test_disabled_without_url():
    client = BalanceEventClient(webhook_url=None)
    client.webhook_url = None

    assert client.enabled is False
    await client.send_balance_event(PAYLOAD)
