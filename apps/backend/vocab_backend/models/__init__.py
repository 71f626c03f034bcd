from .vocabulary import (
    CONTENT_FIELDS,
    DailyStats,
    VocabularyItem,
    WordStatus,
    ensure_utc,
)

__all__ = [
    "CONTENT_FIELDS",
    "DailyStats",
    "VocabularyItem",
    "WordStatus",
    "ensure_utc",
]
