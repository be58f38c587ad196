"""Tests for the capture pipeline."""

from unittest.mock import AsyncMock, patch

import pytest

from thouthy.services.capture import ThoughtProcessor
from thouthy.services.classifier import Classification
from thouthy.services.records import Potential
from thouthy.services.store import ThoughtNotFoundError


@pytest.fixture
def processor(store) -> ThoughtProcessor:
    """Processor with no API key, so classification uses heuristics."""
    return ThoughtProcessor(store)


class TestCapture:
    async def test_heuristic_enrichment(self, processor):
        thought = await processor.capture(
            "I always lose focus after lunch", tags=["health"]
        )

        assert thought.summary == "I always lose focus after lunch"
        assert thought.is_spark is True
        assert thought.best_potential == Potential.SHARE.value
        assert thought.tag_names == ["health"]
        assert thought.powerful_score is not None

    async def test_user_potential_kept(self, processor):
        thought = await processor.capture("Need to call the dentist", potential="Share")
        assert thought.potential == "Share"
        assert thought.best_potential == "To-Do"

    async def test_classifier_tags_added_to_user_tags(self, processor):
        result = Classification(
            summary="Pick-up game idea",
            tags=["soccer", "family"],
            is_spark=False,
            best_potential=Potential.INSIGHT,
            source="claude",
        )
        with patch(
            "thouthy.services.capture.classify_thought",
            new_callable=AsyncMock,
            return_value=result,
        ):
            thought = await processor.capture("Sunday pick-up game", tags=["Family"])

        assert thought.tag_names == ["family", "soccer"]
        assert thought.summary == "Pick-up game idea"
        assert thought.best_potential == "Insight"

    async def test_user_spark_kept(self, processor):
        thought = await processor.capture("Buy milk", is_spark=True)
        assert thought.is_spark is True

    async def test_invalid_text_rejected(self, processor):
        with pytest.raises(ValueError):
            await processor.capture("   ")


class TestReclassify:
    async def test_spark_set_by_user_not_cleared(self, processor, store):
        thought = await store.create_thought("Sunday pick-up game", is_spark=True)
        result = Classification(summary="Game", tags=["soccer"], is_spark=False)

        with patch(
            "thouthy.services.capture.classify_thought",
            new_callable=AsyncMock,
            return_value=result,
        ) as mock_classify:
            updated = await processor.reclassify(thought.id)

        mock_classify.assert_awaited_once()
        assert updated.is_spark is True
        assert updated.tag_names == ["soccer"]
        assert updated.summary == "Game"

    async def test_existing_tags_kept(self, processor, store):
        thought = await store.create_thought("Sunday pick-up game", tags=["family"])
        result = Classification(summary="Game", tags=["soccer"])

        with patch(
            "thouthy.services.capture.classify_thought",
            new_callable=AsyncMock,
            return_value=result,
        ):
            updated = await processor.reclassify(thought.id)

        assert updated.tag_names == ["family", "soccer"]

    async def test_missing_thought(self, processor):
        with pytest.raises(ThoughtNotFoundError):
            await processor.reclassify("nope")
