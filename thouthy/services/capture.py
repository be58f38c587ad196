"""Capture pipeline: store a thought, classify it, refresh cached scores."""

import logging

from anthropic import Anthropic

from thouthy.config import get_settings
from thouthy.models.thought import Thought
from thouthy.services.classifier import Classification, classify_thought
from thouthy.services.store import ThoughtStore, get_thought_store

logger = logging.getLogger(__name__)


class ThoughtProcessor:
    """Runs classification on captured thoughts and keeps scores current."""

    def __init__(self, store: ThoughtStore | None = None):
        settings = get_settings()
        self._store = store or get_thought_store()
        self._anthropic = (
            Anthropic(api_key=settings.anthropic_api_key) if settings.anthropic_api_key else None
        )

    async def capture(
        self,
        text: str,
        *,
        tags: list[str] | None = None,
        is_spark: bool = False,
        potential: str | None = None,
    ) -> Thought:
        """Store a new thought and enrich it with classification results.

        Tags supplied by the user are kept; classifier tags are added to them.
        """
        thought = await self._store.create_thought(
            text, tags=tags, is_spark=is_spark, potential=potential
        )
        return await self._apply(thought, user_tags=tags or [])

    async def reclassify(self, thought_id: str) -> Thought:
        """Re-run classification for an existing thought."""
        thought = await self._store.get_thought(thought_id)
        return await self._apply(thought, user_tags=thought.tag_names)

    async def _apply(self, thought: Thought, user_tags: list[str]) -> Thought:
        result: Classification = await classify_thought(
            thought.original_text, self._anthropic, thought_id=thought.id
        )
        logger.info(
            "Classified %s via %s: spark=%s best=%s tags=%s",
            thought.id,
            result.source,
            result.is_spark,
            result.best_potential.value,
            result.tags,
        )

        await self._store.update_thought(
            thought.id,
            summary=result.summary,
            # A spark set by the user is never cleared by the classifier
            is_spark=thought.is_spark or result.is_spark,
            best_potential=result.best_potential.value,
            tags=[*user_tags, *result.tags],
        )
        await self._store.refresh_powerful_scores()
        return await self._store.get_thought(thought.id)


# Singleton instance
_processor: ThoughtProcessor | None = None


def get_thought_processor() -> ThoughtProcessor:
    """Get or create the thought processor singleton."""
    global _processor
    if _processor is None:
        _processor = ThoughtProcessor()
    return _processor
