"""REST API endpoints for Thouthy."""

from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Literal

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from thouthy.config import get_settings
from thouthy.models.thought import Thought, utcnow
from thouthy.services.capture import get_thought_processor
from thouthy.services.classifier import TAG_CATALOG
from thouthy.services.explore import explore_recommendation
from thouthy.services.posts import get_post_drafter
from thouthy.services.powerful_score import get_powerful_thoughts, score_breakdown
from thouthy.services.records import PLATFORMS, ThoughtRecord
from thouthy.services.store import ThoughtNotFoundError, get_thought_store
from thouthy.services.usage import usage_by_service
from thouthy.services.views import (
    explore_view,
    library_view,
    park_view,
    share_queue,
    todo_view,
)

router = APIRouter(prefix="/api", tags=["api"])

_NON_NULLABLE_UPDATES = ("original_text", "is_spark", "is_powerful")


class CaptureRequest(BaseModel):
    """A newly captured thought."""

    text: str = Field(min_length=1)
    tags: list[str] = []
    is_spark: bool = False
    potential: str | None = None
    classify: bool = True


class ThoughtUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    original_text: str | None = None
    summary: str | None = None
    tags: list[str] | None = None
    is_spark: bool | None = None
    is_powerful: bool | None = None
    potential: str | None = None
    todo_completed: bool | None = None


class ThoughtResponse(BaseModel):
    """API response for a thought."""

    id: str
    original_text: str
    summary: str | None
    tags: list[str]
    is_spark: bool
    is_parked: bool
    is_powerful: bool
    potential: str | None
    best_potential: str | None
    todo_completed: bool | None
    shared: dict[str, bool] | None
    powerful_score: int | None
    created_at: datetime


class ScoreBreakdownResponse(BaseModel):
    recency: int
    repetition: int
    emotional: int
    engagement: int
    spark: int
    total: int
    similar_count: int
    emotional_matches: int


class SharePostResponse(BaseModel):
    platform: str
    draft: str | None
    shared: bool
    shared_at: datetime | None


class ThoughtDetailResponse(ThoughtResponse):
    """Thought with drafts and a live score breakdown."""

    posts: list[SharePostResponse]
    breakdown: ScoreBreakdownResponse


class RecommendationResponse(BaseModel):
    type: str
    explanation: str
    value: str
    confidence: int


class ExploreItemResponse(ThoughtResponse):
    recommendation: RecommendationResponse | None = None


class StatsResponse(BaseModel):
    """Corpus statistics."""

    total_thoughts: int
    active_count: int
    parked_count: int
    spark_count: int
    open_todo_count: int
    shared_count: int  # thoughts shared on at least one platform
    average_score: float


def _to_response(record: ThoughtRecord) -> ThoughtResponse:
    return ThoughtResponse(
        id=record.id,
        original_text=record.original_text,
        summary=record.summary,
        tags=sorted(record.tags),
        is_spark=record.is_spark,
        is_parked=record.is_parked,
        is_powerful=record.is_powerful,
        potential=record.potential,
        best_potential=record.best_potential,
        todo_completed=record.todo_completed,
        shared=record.shared,
        powerful_score=record.powerful_score,
        created_at=record.created_at,
    )


def _not_found(e: ThoughtNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


async def _records() -> list[ThoughtRecord]:
    return await get_thought_store().load_records()


async def _refreshed(thought: Thought) -> ThoughtResponse:
    """Refresh cached scores after a mutation and return the updated thought."""
    store = get_thought_store()
    await store.refresh_powerful_scores()
    return _to_response(ThoughtRecord.from_model(await store.get_thought(thought.id)))


# Thought CRUD


@router.post("/thoughts", response_model=ThoughtResponse, status_code=201)
async def capture_thought(body: CaptureRequest):
    """Capture a thought. Classification runs inline unless classify=false."""
    try:
        if body.classify:
            thought = await get_thought_processor().capture(
                body.text, tags=body.tags, is_spark=body.is_spark, potential=body.potential
            )
            return _to_response(ThoughtRecord.from_model(thought))
        thought = await get_thought_store().create_thought(
            body.text, tags=body.tags, is_spark=body.is_spark, potential=body.potential
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _refreshed(thought)


@router.get("/thoughts", response_model=list[ThoughtResponse])
async def list_thoughts(
    archived: bool = False,
    q: str | None = None,
    sort: Literal["latest", "oldest"] = "latest",
):
    """Library listing: active thoughts, or parked ones with archived=true."""
    records = library_view(await _records(), archived=archived, query=q, sort=sort)
    return [_to_response(r) for r in records]


@router.get("/thoughts/{thought_id}", response_model=ThoughtDetailResponse)
async def get_thought(thought_id: str):
    """A single thought with its drafts and score breakdown."""
    store = get_thought_store()
    try:
        thought = await store.get_thought(thought_id)
    except ThoughtNotFoundError as e:
        raise _not_found(e)

    record = ThoughtRecord.from_model(thought)
    breakdown = score_breakdown(record, await _records())
    base = _to_response(record)
    return ThoughtDetailResponse(
        **base.model_dump(),
        posts=[
            SharePostResponse(
                platform=p.platform, draft=p.draft, shared=p.shared, shared_at=p.shared_at
            )
            for p in sorted(thought.posts, key=lambda p: PLATFORMS.index(p.platform))
        ],
        breakdown=ScoreBreakdownResponse(
            recency=breakdown.recency,
            repetition=breakdown.repetition,
            emotional=breakdown.emotional,
            engagement=breakdown.engagement,
            spark=breakdown.spark,
            total=breakdown.total,
            similar_count=breakdown.similar_count,
            emotional_matches=breakdown.emotional_matches,
        ),
    )


@router.patch("/thoughts/{thought_id}", response_model=ThoughtResponse)
async def update_thought(thought_id: str, body: ThoughtUpdate):
    """Edit a thought's text, tags, flags, or potential."""
    fields = body.model_dump(exclude_unset=True)
    tags = fields.pop("tags", None)
    # Explicit nulls only clear nullable fields
    for name in _NON_NULLABLE_UPDATES:
        if name in fields and fields[name] is None:
            del fields[name]
    try:
        thought = await get_thought_store().update_thought(thought_id, tags=tags, **fields)
    except ThoughtNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _refreshed(thought)


@router.delete("/thoughts/{thought_id}")
async def delete_thought(thought_id: str):
    store = get_thought_store()
    try:
        await store.delete_thought(thought_id)
    except ThoughtNotFoundError as e:
        raise _not_found(e)
    await store.refresh_powerful_scores()
    return {"status": "deleted", "id": thought_id}


@router.post("/thoughts/{thought_id}/park", response_model=ThoughtResponse)
async def park_thought(thought_id: str):
    try:
        thought = await get_thought_store().park(thought_id)
    except ThoughtNotFoundError as e:
        raise _not_found(e)
    return await _refreshed(thought)


@router.post("/thoughts/{thought_id}/unpark", response_model=ThoughtResponse)
async def unpark_thought(thought_id: str):
    try:
        thought = await get_thought_store().unpark(thought_id)
    except ThoughtNotFoundError as e:
        raise _not_found(e)
    return await _refreshed(thought)


@router.post("/thoughts/{thought_id}/classify", response_model=ThoughtResponse)
async def classify_thought(thought_id: str):
    """Re-run AI classification for a thought."""
    try:
        thought = await get_thought_processor().reclassify(thought_id)
    except ThoughtNotFoundError as e:
        raise _not_found(e)
    return _to_response(ThoughtRecord.from_model(thought))


# Share drafts


@router.post("/thoughts/{thought_id}/posts")
async def generate_posts(thought_id: str):
    """Draft LinkedIn, Twitter, and Instagram posts for a thought."""
    store = get_thought_store()
    try:
        thought = await store.get_thought(thought_id)
    except ThoughtNotFoundError as e:
        raise _not_found(e)

    records = await _records()
    previous = [r.original_text for r in records if r.id != thought_id]
    drafts = await get_post_drafter().generate(ThoughtRecord.from_model(thought), previous)
    await store.save_post_drafts(thought_id, drafts.as_dict())
    return {"id": thought_id, "drafts": drafts.as_dict()}


@router.post("/thoughts/{thought_id}/posts/{platform}/shared", response_model=ThoughtResponse)
async def mark_shared(thought_id: str, platform: str, shared: bool = True):
    """Record that a draft was (or was not) shared on a platform."""
    try:
        thought = await get_thought_store().mark_shared(thought_id, platform, shared)
    except ThoughtNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _refreshed(thought)


# Views


@router.get("/powerful", response_model=list[ThoughtResponse])
async def get_powerful(max_count: int | None = Query(default=None, ge=1)):
    """What matters now: pinned thoughts first, then by powerful score."""
    count = max_count or get_settings().powerful_max_count
    return [_to_response(r) for r in get_powerful_thoughts(await _records(), count)]


@router.get("/todo", response_model=list[ThoughtResponse])
async def get_todo(include_completed: bool = True):
    records = todo_view(await _records(), include_completed=include_completed)
    return [_to_response(r) for r in records]


@router.get("/share", response_model=list[ThoughtResponse])
async def get_share_queue(
    queue_filter: Literal["all", "draft", "shared"] = Query(default="all", alias="filter"),
    sort: Literal["potential", "latest"] = "potential",
):
    """Thoughts marked Share, filtered by draft/shared state."""
    records = share_queue(await _records(), queue_filter=queue_filter, sort=sort)
    return [_to_response(r) for r in records]


@router.get("/explore", response_model=list[ExploreItemResponse])
async def get_explore(
    sort: Literal["potential", "latest"] = "potential",
    q: str | None = None,
):
    """Parked and high-scoring thoughts, each with at most one recommendation."""
    threshold = get_settings().explore_score_threshold
    records = explore_view(await _records(), sort=sort, query=q, threshold=threshold)

    items = []
    for record in records:
        rec = explore_recommendation(record)
        items.append(
            ExploreItemResponse(
                **_to_response(record).model_dump(),
                recommendation=RecommendationResponse(
                    type=rec.type,
                    explanation=rec.explanation,
                    value=rec.value,
                    confidence=rec.confidence,
                )
                if rec
                else None,
            )
        )
    return items


@router.get("/park", response_model=list[ThoughtResponse])
async def get_parked(
    q: str | None = None,
    since: datetime | None = None,
    sort: Literal["latest", "oldest"] = "latest",
):
    records = park_view(await _records(), query=q, since=since, sort=sort)
    return [_to_response(r) for r in records]


# Tags and stats


@router.get("/tags")
async def list_tags():
    """Catalog tags plus any user tags, with thought counts."""
    counts = await get_thought_store().tag_counts()
    slugs = list(TAG_CATALOG) + sorted(t for t in counts if t not in TAG_CATALOG)
    return [{"tag": slug, "thought_count": counts.get(slug, 0)} for slug in slugs]


@router.get("/stats", response_model=StatsResponse)
async def get_stats():
    records = await _records()
    active = [r for r in records if not r.is_parked]
    scores = [r.powerful_score for r in records if r.powerful_score is not None]
    return StatsResponse(
        total_thoughts=len(records),
        active_count=len(active),
        parked_count=len(records) - len(active),
        spark_count=sum(1 for r in records if r.is_spark),
        open_todo_count=len(todo_view(records, include_completed=False)),
        shared_count=sum(1 for r in records if r.shared_count > 0),
        average_score=round(sum(scores) / len(scores), 1) if scores else 0.0,
    )


@router.post("/rescore")
async def rescore():
    """Recompute cached powerful scores for every thought."""
    updated = await get_thought_store().refresh_powerful_scores()
    return {"status": "completed", "thoughts_updated": updated}


@router.get("/usage")
async def get_usage(days: int = Query(default=30, ge=1)):
    """Claude API usage per service over the last ``days`` days."""
    usage = await usage_by_service(since=utcnow() - timedelta(days=days))
    return {
        "days": days,
        "total_cost_usd": round(sum(u.cost_usd for u in usage), 4),
        "services": [asdict(u) for u in usage],
    }
