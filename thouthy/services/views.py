"""List views over the thought corpus: library, park, to-do, share queue, explore.

All functions are pure: they take ``ThoughtRecord`` snapshots and return new
lists without touching the database.
"""

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone
from functools import cmp_to_key

from thouthy.services.powerful_score import calculate_powerful_score
from thouthy.services.records import Potential, ThoughtRecord, as_utc

EXPLORE_SCORE_THRESHOLD = 50
# Scores closer than this are treated as equal and ordered by recency
SCORE_SORT_TOLERANCE = 10

LIBRARY_SORTS = ("latest", "oldest")
SHARE_FILTERS = ("all", "draft", "shared")
POTENTIAL_SORTS = ("potential", "latest")


def matches_query(thought: ThoughtRecord, query: str | None) -> bool:
    """Case-insensitive search over text, summary, and tags."""
    if not query or not query.strip():
        return True
    q = query.strip().lower()
    return (
        q in thought.original_text.lower()
        or q in (thought.summary or "").lower()
        or any(q in tag.lower() for tag in thought.tags)
    )


def _by_date(thoughts: list[ThoughtRecord], sort: str) -> list[ThoughtRecord]:
    if sort not in LIBRARY_SORTS:
        raise ValueError(f"Unknown sort {sort!r}")
    return sorted(thoughts, key=lambda t: t.created_at, reverse=sort == "latest")


def _with_fresh_scores(
    thoughts: Sequence[ThoughtRecord], corpus: Sequence[ThoughtRecord], now: datetime | None
) -> list[ThoughtRecord]:
    return [
        replace(t, powerful_score=calculate_powerful_score(t, corpus, now)) for t in thoughts
    ]


def _compare_potential(a: ThoughtRecord, b: ThoughtRecord) -> int:
    """Higher score first when the gap is significant, otherwise newer first."""
    score_a = a.powerful_score or 0
    score_b = b.powerful_score or 0
    if abs(score_a - score_b) > SCORE_SORT_TOLERANCE:
        return score_b - score_a
    if a.created_at == b.created_at:
        return 0
    return -1 if a.created_at > b.created_at else 1


def _by_potential(thoughts: list[ThoughtRecord], sort: str) -> list[ThoughtRecord]:
    if sort not in POTENTIAL_SORTS:
        raise ValueError(f"Unknown sort {sort!r}")
    if sort == "latest":
        return sorted(thoughts, key=lambda t: t.created_at, reverse=True)
    return sorted(thoughts, key=cmp_to_key(_compare_potential))


def library_view(
    thoughts: Sequence[ThoughtRecord],
    *,
    archived: bool = False,
    query: str | None = None,
    sort: str = "latest",
) -> list[ThoughtRecord]:
    """Active thoughts, or parked ones when ``archived`` is set."""
    selected = [t for t in thoughts if t.is_parked == archived and matches_query(t, query)]
    return _by_date(selected, sort)


def park_view(
    thoughts: Sequence[ThoughtRecord],
    *,
    query: str | None = None,
    since: datetime | None = None,
    sort: str = "latest",
) -> list[ThoughtRecord]:
    """Parked thoughts, optionally only those captured at or after ``since``."""
    start = as_utc(since) if since else None
    selected = [
        t
        for t in thoughts
        if t.is_parked and matches_query(t, query) and (start is None or t.created_at >= start)
    ]
    return _by_date(selected, sort)


def todo_view(
    thoughts: Sequence[ThoughtRecord], *, include_completed: bool = True
) -> list[ThoughtRecord]:
    """Unparked To-Do thoughts: open items first, newest first within each group."""
    todos = [
        t
        for t in thoughts
        if not t.is_parked
        and t.effective_potential == Potential.TODO.value
        and (include_completed or not t.todo_completed)
    ]
    todos.sort(key=lambda t: t.created_at, reverse=True)
    todos.sort(key=lambda t: bool(t.todo_completed))
    return todos


def share_queue(
    thoughts: Sequence[ThoughtRecord],
    *,
    queue_filter: str = "all",
    sort: str = "potential",
    now: datetime | None = None,
) -> list[ThoughtRecord]:
    """Unparked Share thoughts for the share studio.

    ``draft`` keeps thoughts with drafts not yet shared anywhere; ``shared``
    keeps thoughts shared on at least one platform.
    """
    if queue_filter not in SHARE_FILTERS:
        raise ValueError(f"Unknown share filter {queue_filter!r}")

    selected = [
        t for t in thoughts if t.potential == Potential.SHARE.value and not t.is_parked
    ]
    if queue_filter == "draft":
        selected = [t for t in selected if t.shared is not None and t.shared_count == 0]
    elif queue_filter == "shared":
        selected = [t for t in selected if t.shared_count > 0]

    return _by_potential(_with_fresh_scores(selected, thoughts, now), sort)


def explore_view(
    thoughts: Sequence[ThoughtRecord],
    *,
    sort: str = "potential",
    query: str | None = None,
    threshold: int = EXPLORE_SCORE_THRESHOLD,
    now: datetime | None = None,
) -> list[ThoughtRecord]:
    """Thoughts worth revisiting.

    Includes parked thoughts (they can be revived) and high-scoring thoughts
    that are not already headed for Share or To-Do.
    """
    now = now or datetime.now(timezone.utc)
    selected = []
    for t in _with_fresh_scores(thoughts, thoughts, now):
        potential = t.effective_potential
        high = (t.powerful_score or 0) >= threshold
        not_routed = potential not in (Potential.SHARE.value, Potential.TODO.value)
        if t.is_parked or (high and not_routed):
            if matches_query(t, query):
                selected.append(t)
    return _by_potential(selected, sort)
