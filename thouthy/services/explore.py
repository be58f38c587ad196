"""Heuristic recommendations shown next to thoughts in the Explore view."""

import re
from dataclasses import dataclass

from thouthy.services.records import Potential, ThoughtRecord

WORTH_SHARING_SCORE = 60

_ACTION = re.compile(
    r"\b(need to|should|must|do|create|build|make|call|meet|schedule|plan|task|action)\b", re.I
)
_BUSINESS = re.compile(
    r"\b(business|startup|product|service|market|customer|revenue|profit|company|venture"
    r"|idea|opportunity)\b",
    re.I,
)
_SHARING = re.compile(
    r"\b(learned|realized|discovered|insight|think|believe|opinion|should know|worth|valuable)\b",
    re.I,
)


@dataclass(frozen=True)
class ExploreRecommendation:
    """What a thought could turn into, and how sure we are (0-100)."""

    type: str  # "Action Item", "Business Idea", "Worth Sharing"
    explanation: str
    value: str
    confidence: int


def explore_recommendation(thought: ThoughtRecord) -> ExploreRecommendation | None:
    """At most one recommendation, checked in priority order.

    Action Item > Business Idea > Worth Sharing. Returns None for plain notes.
    """
    text = thought.original_text
    score = thought.powerful_score or 0

    if _ACTION.search(text) or thought.has_potential(Potential.TODO):
        return ExploreRecommendation(
            type="Action Item",
            explanation="Contains clear, actionable tasks to complete",
            value="Identifies specific actions or next steps that need to be taken.",
            confidence=75,
        )

    if _BUSINESS.search(text) or "business" in thought.tags:
        return ExploreRecommendation(
            type="Business Idea",
            explanation="Suggests a product or business opportunity",
            value="Identifies a potential product, service, or market opportunity worth exploring.",
            confidence=65,
        )

    if (
        _SHARING.search(text)
        or thought.best_potential == Potential.SHARE.value
        or score >= WORTH_SHARING_SCORE
    ):
        return ExploreRecommendation(
            type="Worth Sharing",
            explanation="Contains valuable insights others could benefit from",
            value="This thought shares learnings or perspectives that could resonate with others.",
            confidence=70,
        )

    return None
