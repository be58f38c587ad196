"""Tests for the API usage tracking service."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import select

from thouthy.models.thought import ApiUsageLog
from thouthy.services.usage import (
    DEFAULT_PRICING,
    MODEL_PRICING,
    compute_cost,
    log_usage,
    usage_by_service,
)

SONNET = "claude-sonnet-4-20250514"
HAIKU = "claude-haiku-4-5-20251001"


# ---------------------------------------------------------------------------
# 1. compute_cost
# ---------------------------------------------------------------------------


class TestComputeCost:
    def test_sonnet(self):
        """Sonnet pricing: $3/Mtok input, $15/Mtok output."""
        assert compute_cost(SONNET, 1_000_000, 1_000_000) == pytest.approx(18.0)

    def test_haiku(self):
        """Haiku pricing: $1/Mtok input, $5/Mtok output."""
        assert compute_cost(HAIKU, 1_000_000, 1_000_000) == pytest.approx(6.0)

    def test_unknown_model_uses_default(self):
        input_rate, output_rate = DEFAULT_PRICING
        cost = compute_cost("unknown-model", 1_000_000, 1_000_000)
        assert cost == pytest.approx(input_rate + output_rate)

    def test_zero_tokens(self):
        assert compute_cost(SONNET, 0, 0) == 0.0

    def test_small_call(self):
        expected = (1000 * 1.0 + 200 * 5.0) / 1_000_000
        assert compute_cost(HAIKU, 1000, 200) == pytest.approx(expected)

    def test_pricing_table(self):
        assert {SONNET, HAIKU} <= set(MODEL_PRICING)
        for model, (input_rate, output_rate) in MODEL_PRICING.items():
            assert input_rate > 0, model
            assert output_rate > 0, model


# ---------------------------------------------------------------------------
# 2. log_usage
# ---------------------------------------------------------------------------


class TestLogUsage:
    async def test_creates_entry(self, session_factory, session):
        with patch(
            "thouthy.services.usage.get_session_factory",
            new_callable=AsyncMock,
            return_value=session_factory,
        ):
            await log_usage(
                service="classifier",
                model=HAIKU,
                input_tokens=400,
                output_tokens=60,
                thought_id="thought-1",
            )

        entry = (await session.execute(select(ApiUsageLog))).scalar_one()
        assert entry.service == "classifier"
        assert entry.model == HAIKU
        assert entry.input_tokens == 400
        assert entry.output_tokens == 60
        assert entry.thought_id == "thought-1"
        assert entry.cost_usd == pytest.approx(compute_cost(HAIKU, 400, 60))
        assert isinstance(entry.timestamp, datetime)

    async def test_without_thought_id(self, session_factory, session):
        with patch(
            "thouthy.services.usage.get_session_factory",
            new_callable=AsyncMock,
            return_value=session_factory,
        ):
            await log_usage(service="posts", model=SONNET, input_tokens=900, output_tokens=500)

        entry = (await session.execute(select(ApiUsageLog))).scalar_one()
        assert entry.thought_id is None
        assert entry.service == "posts"


def _failing_session() -> MagicMock:
    mock_session = MagicMock()
    mock_session.add = MagicMock()
    mock_session.commit = AsyncMock(side_effect=RuntimeError("DB locked"))
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    return mock_session


class TestLogUsageRetry:
    async def test_gives_up_after_three_failures(self):
        """Failures are logged, never raised."""
        mock_session = _failing_session()

        with (
            patch(
                "thouthy.services.usage.get_session_factory",
                new_callable=AsyncMock,
                return_value=lambda: mock_session,
            ),
            patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
        ):
            await log_usage(service="posts", model=SONNET, input_tokens=10, output_tokens=5)

        assert mock_session.commit.await_count == 3
        assert mock_sleep.await_count == 2
        mock_sleep.assert_any_await(0.5)
        mock_sleep.assert_any_await(1.0)

    async def test_recovers_on_retry(self):
        mock_session = _failing_session()
        mock_session.commit = AsyncMock(side_effect=[RuntimeError("DB locked"), None])

        with (
            patch(
                "thouthy.services.usage.get_session_factory",
                new_callable=AsyncMock,
                return_value=lambda: mock_session,
            ),
            patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
        ):
            await log_usage(service="posts", model=SONNET, input_tokens=10, output_tokens=5)

        assert mock_session.commit.await_count == 2
        assert mock_sleep.await_count == 1


# ---------------------------------------------------------------------------
# 3. usage_by_service
# ---------------------------------------------------------------------------


def _entry(service: str, model: str, tokens: tuple[int, int], cost: float, day: int):
    return ApiUsageLog(
        service=service,
        model=model,
        input_tokens=tokens[0],
        output_tokens=tokens[1],
        cost_usd=cost,
        timestamp=datetime(2026, 3, day),
    )


class TestUsageByService:
    async def test_aggregates_per_service(self, session_factory, session):
        session.add_all(
            [
                _entry("classifier", HAIKU, (100, 20), 0.01, day=1),
                _entry("classifier", HAIKU, (200, 30), 0.02, day=2),
                _entry("posts", SONNET, (900, 500), 0.5, day=2),
            ]
        )
        await session.commit()

        with patch(
            "thouthy.services.usage.get_session_factory",
            new_callable=AsyncMock,
            return_value=session_factory,
        ):
            usage = await usage_by_service()
            recent = await usage_by_service(since=datetime(2026, 3, 2))

        assert [u.service for u in usage] == ["posts", "classifier"]
        classifier = usage[1]
        assert classifier.calls == 2
        assert classifier.input_tokens == 300
        assert classifier.output_tokens == 50
        assert classifier.cost_usd == pytest.approx(0.03)

        assert {u.service: u.calls for u in recent} == {"posts": 1, "classifier": 1}

    async def test_empty(self, session_factory):
        with patch(
            "thouthy.services.usage.get_session_factory",
            new_callable=AsyncMock,
            return_value=session_factory,
        ):
            assert await usage_by_service() == []
