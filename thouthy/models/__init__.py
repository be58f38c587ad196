"""Database models."""

from thouthy.models.thought import (
    ApiUsageLog,
    Base,
    SharePost,
    Thought,
    ThoughtTag,
)

__all__ = [
    "ApiUsageLog",
    "Base",
    "SharePost",
    "Thought",
    "ThoughtTag",
]
