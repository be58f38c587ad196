"""Persistence service for thoughts, their tags, and share-post drafts."""

import logging
from collections.abc import Iterable, Mapping

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from thouthy.models.thought import SharePost, Thought, ThoughtTag, get_session_factory, utcnow
from thouthy.services.powerful_score import calculate_powerful_score
from thouthy.services.records import PLATFORMS, POTENTIAL_VALUES, ThoughtRecord
from thouthy.tracing import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

# Scalar fields update_thought() accepts
_UPDATABLE_FIELDS = {
    "original_text",
    "summary",
    "is_spark",
    "is_parked",
    "is_powerful",
    "potential",
    "best_potential",
    "todo_completed",
}


class ThoughtNotFoundError(LookupError):
    """Raised when a thought ID does not exist."""

    def __init__(self, thought_id: str):
        super().__init__(f"Thought {thought_id} not found")
        self.thought_id = thought_id


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Lower-case, strip, and deduplicate tags, preserving first-seen order."""
    seen: list[str] = []
    for tag in tags or []:
        clean = tag.strip().lower()
        if clean and clean not in seen:
            seen.append(clean)
    return seen


def _check_potential(value: str | None) -> None:
    if value is not None and value not in POTENTIAL_VALUES:
        raise ValueError(f"Unknown potential {value!r}; expected one of {POTENTIAL_VALUES}")


def _check_platform(platform: str) -> None:
    if platform not in PLATFORMS:
        raise ValueError(f"Unknown platform {platform!r}; expected one of {list(PLATFORMS)}")


class ThoughtStore:
    """CRUD over thoughts plus powerful-score caching."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory

    async def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            return await get_session_factory()
        return self._session_factory

    async def _get_or_raise(self, session: AsyncSession, thought_id: str) -> Thought:
        thought = await session.get(Thought, thought_id)
        if thought is None:
            raise ThoughtNotFoundError(thought_id)
        return thought

    async def create_thought(
        self,
        text: str,
        *,
        tags: Iterable[str] | None = None,
        is_spark: bool = False,
        potential: str | None = None,
    ) -> Thought:
        """Capture a new thought."""
        if not text or not text.strip():
            raise ValueError("Thought text must not be empty")
        _check_potential(potential)

        now = utcnow()
        thought = Thought(
            original_text=text.strip(),
            is_spark=is_spark,
            is_parked=False,
            is_powerful=False,
            potential=potential,
            created_at=now,
            updated_at=now,
            tags=[ThoughtTag(tag=t) for t in normalize_tags(tags)],
            posts=[],
        )

        factory = await self._factory()
        async with factory() as session:
            session.add(thought)
            await session.commit()

        logger.info("Captured thought %s", thought.id)
        return thought

    async def get_thought(self, thought_id: str) -> Thought:
        factory = await self._factory()
        async with factory() as session:
            return await self._get_or_raise(session, thought_id)

    async def list_thoughts(self) -> list[Thought]:
        """All thoughts, newest first."""
        factory = await self._factory()
        async with factory() as session:
            result = await session.execute(select(Thought).order_by(Thought.created_at.desc()))
            return list(result.scalars().all())

    async def load_records(self) -> list[ThoughtRecord]:
        """Snapshot of the full corpus for scoring and views."""
        return [ThoughtRecord.from_model(t) for t in await self.list_thoughts()]

    async def update_thought(
        self,
        thought_id: str,
        *,
        tags: Iterable[str] | None = None,
        **fields,
    ) -> Thought:
        """Partially update a thought. Only fields passed are changed."""
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        _check_potential(fields.get("potential"))
        _check_potential(fields.get("best_potential"))
        if "original_text" in fields:
            text = fields["original_text"]
            if not text or not text.strip():
                raise ValueError("Thought text must not be empty")
            fields["original_text"] = text.strip()

        factory = await self._factory()
        async with factory() as session:
            thought = await self._get_or_raise(session, thought_id)
            for name, value in fields.items():
                setattr(thought, name, value)

            if tags is not None:
                wanted = normalize_tags(tags)
                thought.tags = [t for t in thought.tags if t.tag in wanted]
                existing = {t.tag for t in thought.tags}
                for tag in wanted:
                    if tag not in existing:
                        thought.tags.append(ThoughtTag(tag=tag))

            thought.updated_at = utcnow()
            await session.commit()
            return thought

    async def delete_thought(self, thought_id: str) -> None:
        factory = await self._factory()
        async with factory() as session:
            thought = await self._get_or_raise(session, thought_id)
            await session.delete(thought)
            await session.commit()
        logger.info("Deleted thought %s", thought_id)

    async def park(self, thought_id: str) -> Thought:
        return await self.update_thought(thought_id, is_parked=True)

    async def unpark(self, thought_id: str) -> Thought:
        return await self.update_thought(thought_id, is_parked=False)

    async def save_post_drafts(self, thought_id: str, drafts: Mapping[str, str]) -> Thought:
        """Store per-platform drafts, keeping the shared flag of existing rows."""
        for platform in drafts:
            _check_platform(platform)

        factory = await self._factory()
        async with factory() as session:
            thought = await self._get_or_raise(session, thought_id)
            by_platform = {p.platform: p for p in thought.posts}
            for platform, draft in drafts.items():
                post = by_platform.get(platform)
                if post is None:
                    thought.posts.append(SharePost(platform=platform, draft=draft, shared=False))
                else:
                    post.draft = draft
            thought.updated_at = utcnow()
            await session.commit()
            return thought

    async def mark_shared(self, thought_id: str, platform: str, shared: bool = True) -> Thought:
        """Flag a platform draft as shared (or not). Creates an empty row if needed."""
        _check_platform(platform)

        factory = await self._factory()
        async with factory() as session:
            thought = await self._get_or_raise(session, thought_id)
            post = next((p for p in thought.posts if p.platform == platform), None)
            if post is None:
                post = SharePost(platform=platform, draft=None)
                thought.posts.append(post)
            post.shared = shared
            post.shared_at = utcnow() if shared else None
            thought.updated_at = utcnow()
            await session.commit()
            return thought

    async def refresh_powerful_scores(self) -> int:
        """Recompute the cached powerful score of every thought.

        Returns:
            Number of thoughts whose cached score changed.
        """
        factory = await self._factory()
        with tracer.start_as_current_span("refresh_powerful_scores") as span:
            async with factory() as session:
                result = await session.execute(select(Thought))
                thoughts = list(result.scalars().all())
                # Score against fresh snapshots so stale cached values are ignored
                records = [ThoughtRecord.from_model(t) for t in thoughts]

                now = utcnow()
                updated = 0
                for thought, record in zip(thoughts, records):
                    score = calculate_powerful_score(record, records)
                    if thought.powerful_score != score:
                        thought.powerful_score = score
                        updated += 1
                    thought.scored_at = now

                await session.commit()

            span.set_attribute("thouthy.thoughts", len(records))
            span.set_attribute("thouthy.scores_changed", updated)

        logger.info("Refreshed powerful scores: %d of %d changed", updated, len(records))
        return updated

    async def tag_counts(self) -> dict[str, int]:
        """Tag -> number of thoughts carrying it."""
        factory = await self._factory()
        async with factory() as session:
            result = await session.execute(
                select(ThoughtTag.tag, func.count(ThoughtTag.id)).group_by(ThoughtTag.tag)
            )
            return dict(result.all())


# Singleton instance
_store: ThoughtStore | None = None


def get_thought_store() -> ThoughtStore:
    """Get or create the thought store singleton."""
    global _store
    if _store is None:
        _store = ThoughtStore()
    return _store
