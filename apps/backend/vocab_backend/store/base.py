from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol

from ..models.vocabulary import DailyStats, VocabularyItem


class VocabularyRepository(Protocol):
    """Persistence contract consumed by the review flow.

    実装はすべての I/O 失敗を `PersistenceFailureError` として送出すること。
    """

    def save_item(self, item: VocabularyItem) -> None: ...

    def save_items(self, items: Iterable[VocabularyItem]) -> None: ...

    def save_review(
        self,
        item: VocabularyItem,
        *,
        daily_stats: DailyStats | None = None,
        unknown: VocabularyItem | None = None,
    ) -> None:
        """Persist a review result atomically: all writes land or none do."""
        ...

    def get_item(self, identifier: str | int) -> VocabularyItem | None: ...

    def list_items(self) -> list[VocabularyItem]: ...

    def delete_item(self, identifier: str | int) -> bool: ...

    def count_items(self) -> int: ...

    def add_unknown_word(self, item: VocabularyItem) -> bool: ...

    def remove_unknown_word(self, word: str) -> bool: ...

    def list_unknown_words(self) -> list[VocabularyItem]: ...

    def load_daily_stats(self) -> DailyStats: ...

    def save_daily_stats(self, stats: DailyStats) -> None: ...

    def reset_progress(self, now: datetime) -> int: ...
