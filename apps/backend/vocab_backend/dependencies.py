from __future__ import annotations

from .config import settings
from .events import VocabularyBroadcaster
from .flows.review import VocabularyFlow
from .store import store

broadcaster = VocabularyBroadcaster()

vocabulary_flow = VocabularyFlow(
    store,
    broadcaster=broadcaster,
    points_per_correct=settings.review_points_per_correct,
)


def get_vocabulary_flow() -> VocabularyFlow:
    """FastAPI dependency returning the shared flow (override in tests)."""
    return vocabulary_flow
