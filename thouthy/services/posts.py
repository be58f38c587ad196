"""Social post drafting for thoughts worth sharing."""

import json
import logging
import re
from dataclasses import asdict, dataclass

from anthropic import Anthropic
from anthropic.types import TextBlock

from thouthy.config import get_settings
from thouthy.services.records import ThoughtRecord
from thouthy.services.usage import log_usage

logger = logging.getLogger(__name__)

POSTS_MODEL = "claude-sonnet-4-20250514"
MAX_VOICE_SAMPLES = 10
NO_API_KEY_MESSAGE = "AI post generation requires API key configuration."


@dataclass
class PostDrafts:
    """One draft per platform."""

    linkedin: str
    twitter: str
    instagram: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def filled(cls, message: str) -> "PostDrafts":
        return cls(linkedin=message, twitter=message, instagram=message)


class PostDrafter:
    """Drafts LinkedIn, Twitter, and Instagram posts from a thought using Claude."""

    DRAFT_PROMPT = """Turn this raw thought into authentic social posts.

{voice_context}Structure every post as:
1. A sharp, honest hook in the first line or two
2. The real, specific insight behind the thought
3. A human takeaway that invites recognition rather than debate

Platform guidance:
- LinkedIn: 200-400 words, professional but human, 2-3 hashtags
- Twitter: under 280 characters, punchy
- Instagram: 100-200 words, personal, 3-5 hashtags at the end

Raw thought: "{text}"
Summary: {summary}
Tags: {tags}

Respond with ONLY a JSON object (no markdown, no extra text):
{{"linkedin": "<post>", "twitter": "<post>", "instagram": "<post>"}}"""

    def __init__(self):
        settings = get_settings()
        self._anthropic = (
            Anthropic(api_key=settings.anthropic_api_key) if settings.anthropic_api_key else None
        )

    async def generate(
        self, thought: ThoughtRecord, previous_texts: list[str] | None = None
    ) -> PostDrafts:
        """Generate drafts. Never raises; failures come back as message drafts."""
        if self._anthropic is None:
            return PostDrafts.filled(NO_API_KEY_MESSAGE)

        voice_context = ""
        samples = [t for t in (previous_texts or []) if t != thought.original_text]
        if samples:
            lines = "\n".join(
                f"{i}. {t}" for i, t in enumerate(samples[:MAX_VOICE_SAMPLES], start=1)
            )
            voice_context = f"Previous thoughts, to match the author's voice:\n{lines}\n\n"

        prompt = self.DRAFT_PROMPT.format(
            voice_context=voice_context,
            text=thought.original_text,
            summary=thought.summary or "",
            tags=", ".join(sorted(thought.tags)) or "none",
        )

        try:
            response = self._anthropic.messages.create(
                model=POSTS_MODEL,
                max_tokens=2000,
                messages=[{"role": "user", "content": prompt}],
            )

            await log_usage(
                service="posts",
                model=POSTS_MODEL,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                thought_id=thought.id,
            )

            first_block = response.content[0]
            assert isinstance(first_block, TextBlock)
            text = first_block.text.strip()
            if text.startswith("```"):
                text = re.sub(r"```(?:json)?\n?", "", text)
                text = text.strip()

            data = json.loads(text)
            return PostDrafts(
                linkedin=data.get("linkedin") or "Failed to generate LinkedIn post.",
                twitter=data.get("twitter") or "Failed to generate Twitter post.",
                instagram=data.get("instagram") or "Failed to generate Instagram post.",
            )
        except Exception as e:
            logger.error("Error generating post drafts for %s: %s", thought.id, e)
            return PostDrafts(
                linkedin=f"Error generating LinkedIn post: {e}",
                twitter=f"Error generating Twitter post: {e}",
                instagram=f"Error generating Instagram post: {e}",
            )


# Singleton instance
_drafter: PostDrafter | None = None


def get_post_drafter() -> PostDrafter:
    """Get or create the post drafter singleton."""
    global _drafter
    if _drafter is None:
        _drafter = PostDrafter()
    return _drafter
