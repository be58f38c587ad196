"""In-memory thought snapshots used by scoring and view logic."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

PLATFORMS = ("linkedin", "twitter", "instagram")


class Potential(str, Enum):
    """What a thought could become."""

    SHARE = "Share"
    TODO = "To-Do"
    INSIGHT = "Insight"
    JUST_A_THOUGHT = "Just a thought"


POTENTIAL_VALUES = [p.value for p in Potential]


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class ThoughtRecord:
    """Detached view of a thought with optional fields defaulted."""

    id: str
    original_text: str
    created_at: datetime
    tags: frozenset[str] = field(default_factory=frozenset)
    summary: str | None = None
    is_spark: bool = False
    is_parked: bool = False
    is_powerful: bool = False
    potential: str | None = None
    best_potential: str | None = None
    shared: dict[str, bool] | None = None  # platform -> shared, None when no drafts exist
    todo_completed: bool | None = None
    powerful_score: int | None = None

    def __post_init__(self):
        self.tags = frozenset(self.tags or ())
        self.created_at = as_utc(self.created_at)
        # Absent flags read as false
        self.is_spark = bool(self.is_spark)
        self.is_parked = bool(self.is_parked)
        self.is_powerful = bool(self.is_powerful)

    @property
    def effective_potential(self) -> str | None:
        """User choice wins over the AI suggestion."""
        return self.potential or self.best_potential

    def has_potential(self, potential: Potential) -> bool:
        return self.potential == potential.value or self.best_potential == potential.value

    @property
    def shared_count(self) -> int:
        return sum(1 for v in (self.shared or {}).values() if v)

    @classmethod
    def from_model(cls, thought) -> "ThoughtRecord":
        """Build a record from a loaded ``Thought`` ORM instance."""
        shared = {p.platform: bool(p.shared) for p in thought.posts} if thought.posts else None
        return cls(
            id=thought.id,
            original_text=thought.original_text,
            created_at=thought.created_at,
            tags=frozenset(t.tag for t in thought.tags),
            summary=thought.summary,
            is_spark=bool(thought.is_spark),
            is_parked=bool(thought.is_parked),
            is_powerful=bool(thought.is_powerful),
            potential=thought.potential,
            best_potential=thought.best_potential,
            shared=shared,
            todo_completed=thought.todo_completed,
            powerful_score=thought.powerful_score,
        )
