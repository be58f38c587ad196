"""API usage tracking service."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select

from thouthy.models.thought import ApiUsageLog, get_session_factory, utcnow

logger = logging.getLogger(__name__)

# Anthropic pricing per million tokens
MODEL_PRICING: dict[str, tuple[float, float]] = {
    # (input_per_mtok, output_per_mtok)
    "claude-sonnet-4-20250514": (3.0, 15.0),
    "claude-haiku-4-5-20251001": (1.0, 5.0),
}

# Default pricing for unknown models
DEFAULT_PRICING = (3.0, 15.0)


def compute_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Compute USD cost for an API call."""
    input_rate, output_rate = MODEL_PRICING.get(model, DEFAULT_PRICING)
    return (input_tokens * input_rate + output_tokens * output_rate) / 1_000_000


async def log_usage(
    service: str,
    model: str,
    input_tokens: int,
    output_tokens: int,
    thought_id: str | None = None,
) -> None:
    """Log an API usage entry to the database.

    Retries briefly on failure (SQLite lock contention) and never raises.
    """
    cost = compute_cost(model, input_tokens, output_tokens)

    for attempt in range(3):
        try:
            factory = await get_session_factory()
            async with factory() as session:
                session.add(
                    ApiUsageLog(
                        timestamp=utcnow(),
                        service=service,
                        model=model,
                        input_tokens=input_tokens,
                        output_tokens=output_tokens,
                        cost_usd=cost,
                        thought_id=thought_id,
                    )
                )
                await session.commit()
            return
        except Exception as exc:
            if attempt < 2:
                await asyncio.sleep(0.5 * (attempt + 1))
            else:
                logger.warning("Failed to log API usage after 3 attempts: %s", exc)


@dataclass
class ServiceUsage:
    """Aggregated Claude usage for one service."""

    service: str
    calls: int
    input_tokens: int
    output_tokens: int
    cost_usd: float


async def usage_by_service(since: datetime | None = None) -> list[ServiceUsage]:
    """Call counts, tokens, and cost per service, most expensive first."""
    factory = await get_session_factory()
    async with factory() as session:
        query = select(
            ApiUsageLog.service,
            func.count(ApiUsageLog.id),
            func.coalesce(func.sum(ApiUsageLog.input_tokens), 0),
            func.coalesce(func.sum(ApiUsageLog.output_tokens), 0),
            func.coalesce(func.sum(ApiUsageLog.cost_usd), 0.0),
        ).group_by(ApiUsageLog.service)
        if since is not None:
            query = query.where(ApiUsageLog.timestamp >= since)
        result = await session.execute(query)
        rows = result.all()

    usage = [
        ServiceUsage(
            service=row[0],
            calls=row[1],
            input_tokens=row[2],
            output_tokens=row[3],
            cost_usd=round(row[4], 4),
        )
        for row in rows
    ]
    return sorted(usage, key=lambda u: u.cost_usd, reverse=True)
