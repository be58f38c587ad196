"""Heuristic "powerful" score for thoughts.

A thought's score (0-100) combines five additive components:

- recency (0-30): how long ago it was captured
- repetition (0-25): how many other thoughts share a tag or several words with it
- emotional language (0-25): intensity and commitment words in the text
- engagement (0-20): shared drafts and Share / To-Do potentials
- spark (0-10): the spark flag

Everything here is pure and synchronous; callers pass the full corpus in.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from thouthy.services.records import Potential, ThoughtRecord, as_utc

MAX_SCORE = 100

# Recency bucket (0-30): (max age in days, points), checked in order
RECENCY_THRESHOLDS = [(1, 30), (7, 20), (30, 10)]
RECENCY_FLOOR_POINTS = 5

# Repetition bucket (0-25): (min similar thoughts, points)
REPETITION_THRESHOLDS = [(3, 25), (2, 15), (1, 8)]
MIN_SHARED_WORD_LENGTH = 4  # shared words must be longer than 3 characters
MIN_SHARED_WORDS = 3

# Emotional language bucket (0-25): (min lexicon matches, points)
EMOTIONAL_THRESHOLDS = [(5, 25), (3, 15), (1, 8)]
EMOTIONAL_WORDS = [
    # Strong positive
    "love",
    "amazing",
    "incredible",
    "fantastic",
    "brilliant",
    "excellent",
    "wonderful",
    "perfect",
    # Strong negative
    "hate",
    "terrible",
    "awful",
    "horrible",
    "disaster",
    "crisis",
    "urgent",
    "critical",
    # Intensity markers
    "very",
    "extremely",
    "absolutely",
    "completely",
    "totally",
    "really",
    "truly",
    # Action/commitment
    "must",
    "need",
    "essential",
    "crucial",
    "important",
    "vital",
    "key",
    "priority",
]

# Engagement bucket (0-20)
SHARED_PLATFORM_POINTS = 7
SHARED_PLATFORM_CAP = 15
SHARE_POTENTIAL_POINTS = 5
TODO_COMPLETED_POINTS = 10
TODO_OPEN_POINTS = 5

SPARK_POINTS = 10

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class PowerfulScore:
    """Per-component breakdown of a powerful score."""

    recency: int  # 0-30
    repetition: int  # 0-25
    emotional: int  # 0-25
    engagement: int  # 0-20
    spark: int  # 0-10
    similar_count: int = 0
    emotional_matches: int = 0

    @property
    def total(self) -> int:
        """Total score, capped at 100."""
        raw = self.recency + self.repetition + self.emotional + self.engagement + self.spark
        return min(raw, MAX_SCORE)


def _bucket(value: float, thresholds: list[tuple[int, int]]) -> int:
    """Points for the first threshold that ``value`` reaches, else 0."""
    for minimum, points in thresholds:
        if value >= minimum:
            return points
    return 0


def days_since(created_at: datetime, now: datetime) -> float:
    """Fractional days between capture and ``now`` (negative for future timestamps)."""
    return (as_utc(now) - as_utc(created_at)).total_seconds() / _SECONDS_PER_DAY


def recency_points(created_at: datetime, now: datetime) -> int:
    age = days_since(created_at, now)
    for max_days, points in RECENCY_THRESHOLDS:
        if age <= max_days:
            return points
    return RECENCY_FLOOR_POINTS


def _significant_words(text: str) -> set[str]:
    return {w for w in text.lower().split() if len(w) >= MIN_SHARED_WORD_LENGTH}


def is_similar(thought: ThoughtRecord, other: ThoughtRecord) -> bool:
    """True when the two thoughts share a tag or at least three long words."""
    if thought.tags & other.tags:
        return True
    shared = _significant_words(thought.original_text) & _significant_words(other.original_text)
    return len(shared) >= MIN_SHARED_WORDS


def count_similar(thought: ThoughtRecord, all_thoughts: Iterable[ThoughtRecord]) -> int:
    """Number of other thoughts similar to ``thought`` (itself excluded by id)."""
    return sum(1 for other in all_thoughts if other.id != thought.id and is_similar(thought, other))


def count_emotional_words(text: str) -> int:
    """Lexicon words contained in the text; substring match, so "needed" counts "need"."""
    lowered = text.lower()
    return sum(1 for word in EMOTIONAL_WORDS if word in lowered)


def engagement_points(thought: ThoughtRecord) -> int:
    points = 0
    if thought.shared is not None:
        points += min(thought.shared_count * SHARED_PLATFORM_POINTS, SHARED_PLATFORM_CAP)

    if thought.has_potential(Potential.SHARE):
        points += SHARE_POTENTIAL_POINTS

    if thought.has_potential(Potential.TODO):
        points += TODO_COMPLETED_POINTS if thought.todo_completed else TODO_OPEN_POINTS

    return points


def score_breakdown(
    thought: ThoughtRecord,
    all_thoughts: Iterable[ThoughtRecord],
    now: datetime | None = None,
) -> PowerfulScore:
    """Compute every component of the powerful score for one thought."""
    now = now or datetime.now(timezone.utc)
    similar = count_similar(thought, all_thoughts)
    matches = count_emotional_words(thought.original_text)
    return PowerfulScore(
        recency=recency_points(thought.created_at, now),
        repetition=_bucket(similar, REPETITION_THRESHOLDS),
        emotional=_bucket(matches, EMOTIONAL_THRESHOLDS),
        engagement=engagement_points(thought),
        spark=SPARK_POINTS if thought.is_spark else 0,
        similar_count=similar,
        emotional_matches=matches,
    )


def calculate_powerful_score(
    thought: ThoughtRecord,
    all_thoughts: Iterable[ThoughtRecord],
    now: datetime | None = None,
) -> int:
    """Powerful score (0-100) of ``thought`` relative to ``all_thoughts``."""
    return score_breakdown(thought, all_thoughts, now).total


def resolve_score(
    thought: ThoughtRecord,
    all_thoughts: Sequence[ThoughtRecord],
    now: datetime | None = None,
) -> int:
    """Cached score when present, otherwise computed on demand."""
    if thought.powerful_score is not None:
        return thought.powerful_score
    return calculate_powerful_score(thought, all_thoughts, now)


def get_powerful_thoughts(
    all_thoughts: Sequence[ThoughtRecord],
    max_count: int = 3,
    now: datetime | None = None,
) -> list[ThoughtRecord]:
    """Top thoughts for "what matters now".

    Parked thoughts are excluded. Order: manual pins first, then score,
    then most recent.
    """
    scored = [
        (thought, resolve_score(thought, all_thoughts, now))
        for thought in all_thoughts
        if not thought.is_parked
    ]
    scored.sort(
        key=lambda item: (item[0].is_powerful, item[1], item[0].created_at),
        reverse=True,
    )
    return [thought for thought, _ in scored[:max_count]]
