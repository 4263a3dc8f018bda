"""Pytest configuration and fixtures for token pulse tests."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from tokenpulse.core.config import DashboardConfig
from tokenpulse.core.models import TokenRecord
from tokenpulse.providers.autofun import AutoFunTokenProvider

API_URL = "https://api.auto.fun/api/tokens"
PROXY_A = "https://relay-a.test/?"
PROXY_B = "https://relay-b.test/raw?url="


@pytest.fixture
def now() -> datetime:
    """Fixed current time: 2024-05-01 12:30 UTC."""
    return datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_token(now: datetime) -> Callable[..., TokenRecord]:
    """Factory for active tokens created ``hours_ago`` before ``now``."""
    counter = {"n": 0}

    def _make(hours_ago: float | None = 1.0, **fields: Any) -> TokenRecord:
        counter["n"] += 1
        data: dict[str, Any] = {
            "id": f"tok-{counter['n']}",
            "name": f"Token {counter['n']}",
            "ticker": f"T{counter['n']}",
            "status": "active",
        }
        if hours_ago is not None:
            data["createdAt"] = (now - timedelta(hours=hours_ago)).isoformat()
        data.update(fields)
        return TokenRecord.model_validate(data)

    return _make


@pytest.fixture
def sample_raw_tokens(now: datetime) -> list[dict[str, Any]]:
    """Raw listing records as the API returns them."""
    return [
        {
            "id": "1",
            "name": "Alpha",
            "ticker": "ALP",
            "status": "active",
            "createdAt": (now - timedelta(minutes=30)).isoformat(),
            "creator": "creator-a",
            "volume24h": 2400,
            "marketCapUSD": 31_000,
            "holderCount": 12,
            "liquidity": 3_100,
            "mint": "AlphaMint111",
            "image": "https://img.test/alpha.png",
        },
        {
            "id": "2",
            "name": "Beta",
            "ticker": "BET",
            "status": "active",
            "createdAt": (now - timedelta(hours=5, minutes=10)).isoformat(),
            "creator": "creator-b",
            "volume": "480",
            "marketCap": "2500000",
            "holders": 40,
            "liquidityPercent": 12.5,
        },
        {
            "id": "3",
            "name": "Gamma",
            "ticker": "GAM",
            "status": "migrated",
            "createdAt": (now - timedelta(hours=2)).isoformat(),
            "creator": "creator-a",
            "marketCapUSD": 99_000,
        },
        {
            "id": "4",
            "name": "Delta",
            "ticker": "DEL",
            "status": "active",
            "createdAt": (now - timedelta(days=3)).isoformat(),
            "creator": "creator-c",
            "marketCapUSD": 5_000,
            "holderCount": 100,
            "contractAddress": "DeltaContract444",
        },
    ]


@pytest.fixture
def sample_payload(sample_raw_tokens: list[dict[str, Any]]) -> dict[str, Any]:
    """Listing response body."""
    return {"tokens": sample_raw_tokens, "page": 1, "total": len(sample_raw_tokens)}


@pytest.fixture
def test_config() -> DashboardConfig:
    """Config with two test relays and no rate limit pressure."""
    return DashboardConfig(
        api_url=API_URL,
        proxy_prefixes=[PROXY_A, PROXY_B],
        rate_limit_calls=1000,
        rate_limit_period=60,
    )


@pytest.fixture
def make_provider(test_config: DashboardConfig) -> Callable[..., AutoFunTokenProvider]:
    """Build a provider whose HTTP traffic goes through a handler function."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        config: DashboardConfig | None = None,
    ) -> AutoFunTokenProvider:
        return AutoFunTokenProvider(
            config=config or test_config,
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def json_response() -> Callable[..., httpx.Response]:
    """Build an httpx response with a JSON body."""

    def _make(payload: Any, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"))

    return _make
