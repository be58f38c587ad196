"""Thought classification: summary, tags, spark detection, and best potential."""

import json
import logging
import re
from dataclasses import dataclass, field

from anthropic import Anthropic
from anthropic.types import TextBlock

from thouthy.services.records import Potential
from thouthy.services.usage import log_usage
from thouthy.tracing import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

CLASSIFIER_MODEL = "claude-haiku-4-5-20251001"

TAG_CATALOG = ["work", "soccer", "family", "spirituality", "business", "tech", "health", "other"]
MAX_TAGS = 3
SUMMARY_FALLBACK_LENGTH = 100

# Labels Claude may answer with -> stored potential
BEST_POTENTIAL_MAP = {
    "Share": Potential.SHARE,
    "To-Do": Potential.TODO,
    "ToDo": Potential.TODO,
    "Do": Potential.TODO,
    "Insight": Potential.INSIGHT,
    "Conversation": Potential.JUST_A_THOUGHT,
    "Just a thought": Potential.JUST_A_THOUGHT,
}

_CLASSIFY_PROMPT = """Analyze this captured thought.

A thought is a Spark when it is significant: it mentions a recurring pattern ("always", "every time"), names a clear problem, states a strong opinion, or expresses a moment of clarity.

Pick the single best potential for it:
- "Share": an insight, learning, or observation worth sharing publicly
- "To-Do": contains clear action items or things that need to be done
- "Insight": a reflection or realization worth keeping
- "Just a thought": a question, discussion topic, or passing note

Available tags: {tag_catalog}

Thought:
{text}

Respond with ONLY a JSON object (no markdown, no extra text):
{{"summary": "<one short sentence>", "tags": ["<tag>"], "is_spark": <true or false>, "best_potential": "<Share|To-Do|Insight|Just a thought>"}}"""

# Heuristic fallback patterns
_RECURRING = re.compile(r"\b(always|often|usually|every time|pattern|habit|routine)\b", re.I)
_PROBLEM = re.compile(r"\b(problem|issue|challenge|difficulty|struggle|need to fix)\b", re.I)
_OPINION = re.compile(r"\b(think|believe|opinion|should|must|important|critical)\b", re.I)
_CLARITY = re.compile(r"\b(realized|learned|discovered|insight|understand|clear|obvious)\b", re.I)
_ACTION = re.compile(r"\b(need to|should|must|do|create|build|make|call|meet|schedule|plan)\b", re.I)
_QUESTION = re.compile(r"\b(how|what|why|when|where|who)\b", re.I)
_DISCUSSION = re.compile(r"\b(discuss|talk|explore|wonder|reflect|journal)\b", re.I)


@dataclass
class Classification:
    """Classifier output for a single thought."""

    summary: str
    tags: list[str] = field(default_factory=list)
    is_spark: bool = False
    best_potential: Potential = Potential.SHARE
    source: str = "heuristic"  # "claude" or "heuristic"


def detect_spark(text: str) -> bool:
    """Recurring pattern, clear problem, or opinion backed by clarity."""
    if _RECURRING.search(text) or _PROBLEM.search(text):
        return True
    return bool(_OPINION.search(text) and _CLARITY.search(text))


def suggest_potential(text: str) -> Potential:
    has_question = "?" in text or bool(_QUESTION.search(text))
    if _ACTION.search(text) and not has_question:
        return Potential.TODO
    if has_question or _DISCUSSION.search(text):
        return Potential.JUST_A_THOUGHT
    return Potential.SHARE


def heuristic_classification(text: str) -> Classification:
    return Classification(
        summary=text[:SUMMARY_FALLBACK_LENGTH],
        tags=[],
        is_spark=detect_spark(text),
        best_potential=suggest_potential(text),
        source="heuristic",
    )


def _parse_json_block(raw: str) -> dict:
    text = raw.strip()
    if text.startswith("```"):
        text = re.sub(r"```(?:json)?\n?", "", text)
        text = text.strip()
    return json.loads(text)


def _validate_tags(raw_tags: object) -> list[str]:
    if not isinstance(raw_tags, list):
        return []
    valid = [t for t in raw_tags if isinstance(t, str) and t in TAG_CATALOG]
    if len(valid) != len(raw_tags):
        logger.warning("Dropped invalid tags: %s", set(map(str, raw_tags)) - set(valid))
    return list(dict.fromkeys(valid))[:MAX_TAGS]


async def classify_thought(
    text: str,
    anthropic_client: Anthropic | None = None,
    thought_id: str | None = None,
) -> Classification:
    """Classify a thought with Claude, falling back to heuristics.

    Args:
        text: The raw thought text.
        anthropic_client: Anthropic client; None skips the API entirely.
        thought_id: ID used for usage logging.

    Returns:
        Classification, never None.
    """
    if anthropic_client is None:
        return heuristic_classification(text)

    prompt = _CLASSIFY_PROMPT.format(tag_catalog=", ".join(TAG_CATALOG), text=text)

    try:
        with tracer.start_as_current_span("classify_thought") as span:
            span.set_attribute("llm.model", CLASSIFIER_MODEL)
            response = anthropic_client.messages.create(
                model=CLASSIFIER_MODEL,
                max_tokens=300,
                messages=[{"role": "user", "content": prompt}],
            )
            span.set_attribute("llm.output_tokens", response.usage.output_tokens)

        await log_usage(
            service="classifier",
            model=CLASSIFIER_MODEL,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            thought_id=thought_id,
        )

        first_block = response.content[0]
        assert isinstance(first_block, TextBlock)
        data = _parse_json_block(first_block.text)

        return Classification(
            summary=data.get("summary") or text[:SUMMARY_FALLBACK_LENGTH],
            tags=_validate_tags(data.get("tags", [])),
            is_spark=data.get("is_spark") is True,
            best_potential=BEST_POTENTIAL_MAP.get(data.get("best_potential", ""), Potential.SHARE),
            source="claude",
        )
    except Exception as e:
        logger.error("Error classifying thought %s, using heuristics: %s", thought_id, e)
        return heuristic_classification(text)
