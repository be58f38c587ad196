"""Shared test factories and utilities for thouthy tests."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from anthropic.types import TextBlock

from thouthy.services.records import ThoughtRecord

# Fixed clock for deterministic recency
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

_counter = 0


def make_record(
    *,
    id: str | None = None,
    text: str = "plain note",
    age_days: float = 0,
    tags: list[str] | None = None,
    **overrides,
) -> ThoughtRecord:
    """Build a ThoughtRecord captured ``age_days`` before NOW."""
    global _counter
    if id is None:
        _counter += 1
        id = f"thought-{_counter}"
    return ThoughtRecord(
        id=id,
        original_text=text,
        created_at=NOW - timedelta(days=age_days),
        tags=frozenset(tags or []),
        **overrides,
    )


def make_classification_response(overrides: dict | None = None) -> dict:
    """Build a Claude classification JSON dict with sensible defaults."""
    base: dict = {
        "summary": "Wants a steadier afternoon routine.",
        "tags": ["health"],
        "is_spark": True,
        "best_potential": "Insight",
    }
    if overrides:
        base.update(overrides)
    return base


def mock_anthropic_response(
    data: dict | str,
    *,
    input_tokens: int = 500,
    output_tokens: int = 100,
) -> MagicMock:
    """Create a mock Anthropic messages.create() return value."""
    text = data if isinstance(data, str) else json.dumps(data)
    content_block = TextBlock(type="text", text=text)
    usage = MagicMock()
    usage.input_tokens = input_tokens
    usage.output_tokens = output_tokens
    response = MagicMock()
    response.content = [content_block]
    response.usage = usage
    return response
