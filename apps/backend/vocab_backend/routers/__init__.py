"""Router package exports."""

from . import health, review, unknown_words, vocabulary

__all__ = [
    "health",
    "review",
    "unknown_words",
    "vocabulary",
]
