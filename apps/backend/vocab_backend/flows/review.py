from __future__ import annotations

import json
import threading
from collections.abc import Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from ..errors import InvalidArgumentError, ItemNotFoundError, PersistenceFailureError
from ..events import VocabularyBroadcaster
from ..id_factory import generate_word_id
from ..logging import logger
from ..models.vocabulary import (
    CONTENT_FIELDS,
    KNOWN_STATUSES,
    DailyStats,
    DailyStatsResponse,
    VocabularyItem,
    VocabularyStatsResponse,
    WordStatus,
)
from ..normalize import normalize_raw_word
from ..search import filter_items
from ..srs import SpacedRepetitionScheduler
from ..stats import advance_daily_stats, current_daily_stats, vocabulary_statistics
from ..store.base import VocabularyRepository


class VocabularyFlow:
    """Coordinate the scheduler with persistence, broadcasting and progress stats.

    - 同一 identifier への更新はロックで直列化する（復習結果の適用は可換でないため）
    - 書き込みが成功した後にのみ購読者へ publish する
    - 永続化の失敗は PersistenceFailureError としてそのまま呼び出し元へ伝播する
    """

    def __init__(
        self,
        store: VocabularyRepository,
        *,
        scheduler: SpacedRepetitionScheduler | None = None,
        broadcaster: VocabularyBroadcaster | None = None,
        points_per_correct: int = 10,
    ) -> None:
        self.store = store
        self.scheduler = scheduler or SpacedRepetitionScheduler()
        self.broadcaster = broadcaster or VocabularyBroadcaster()
        self.points_per_correct = points_per_correct
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._stats_lock = threading.Lock()

    # --- helpers ---
    @contextmanager
    def _item_lock(self, identifier: str | int) -> Iterator[None]:
        key = str(identifier)
        with self._locks_guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            yield

    def _require(self, identifier: str | int) -> VocabularyItem:
        item = self.store.get_item(identifier)
        if item is None:
            raise ItemNotFoundError(identifier)
        return item

    def _persist(
        self,
        item: VocabularyItem,
        operation: str,
        *,
        daily_stats: DailyStats | None = None,
        unknown: VocabularyItem | None = None,
    ) -> None:
        try:
            if daily_stats is None and unknown is None:
                self.store.save_item(item)
            else:
                self.store.save_review(item, daily_stats=daily_stats, unknown=unknown)
        except PersistenceFailureError as exc:
            logger.error(
                "vocabulary_persist_failed",
                operation=operation,
                identifier=item.key,
                error=str(exc),
            )
            raise

    def publish(self) -> None:
        """Broadcast the current word list to subscribers."""
        self.broadcaster.publish(self.store.list_items())

    # --- reviews ---
    def record_review(self, identifier: str | int, success: bool) -> VocabularyItem:
        """Apply a review outcome to a stored item and persist the result.

        正解時は連続学習日数・ポイントを更新し、不正解時は「わからない単語」一覧へ追加する。
        語の更新とこれらの副作用は 1 トランザクションで書き込む。
        """
        with self._item_lock(identifier):
            item = self._require(identifier)
            now = self.scheduler.now()
            updated = self.scheduler.record_review_outcome(item, success, now)
            if success:
                with self._stats_lock:
                    stats = advance_daily_stats(
                        self.store.load_daily_stats(), now.date(), self.points_per_correct
                    )
                    self._persist(updated, "record_review", daily_stats=stats)
            else:
                self._persist(updated, "record_review", unknown=updated)

        logger.info(
            "review_recorded",
            identifier=updated.key,
            success=success,
            mastery_level=updated.mastery_level,
            next_review_at=updated.next_review_at.isoformat() if updated.next_review_at else None,
        )
        self.publish()
        return updated

    def due_items(self) -> list[VocabularyItem]:
        return self.scheduler.select_due_items(self.store.list_items())

    def statistics(self) -> VocabularyStatsResponse:
        return vocabulary_statistics(self.store.list_items(), self.scheduler.now())

    def daily_stats(self) -> DailyStatsResponse:
        return current_daily_stats(self.store.load_daily_stats(), self.scheduler.now().date())

    # --- vocabulary CRUD ---
    def list_items(self, term: str | None = None) -> list[VocabularyItem]:
        return filter_items(self.store.list_items(), term)

    def get_item(self, identifier: str | int) -> VocabularyItem:
        return self._require(identifier)

    def create_item(self, payload: Mapping[str, Any]) -> VocabularyItem:
        """Register a new word in its initial scheduling state."""
        now = self.scheduler.now()
        raw = normalize_raw_word(payload, now)
        identifier = raw.identifier if raw.identifier not in (None, "") else generate_word_id()
        if not raw.word.strip():
            raise InvalidArgumentError("word is required")
        fields = {name: getattr(raw, name) for name in CONTENT_FIELDS}
        item = self.scheduler.new_item(identifier, **{**fields, "word": raw.word.strip()})
        with self._item_lock(identifier):
            if self.store.get_item(identifier) is not None:
                raise InvalidArgumentError(f"vocabulary item already exists: {identifier!r}")
            self._persist(item, "create_item")
        logger.info("vocabulary_created", identifier=item.key, word=item.word)
        self.publish()
        return item

    def update_item(self, identifier: str | int, changes: Mapping[str, Any]) -> VocabularyItem:
        """Update content fields. Scheduling fields only change through reviews."""
        unexpected = sorted(set(changes) - set(CONTENT_FIELDS))
        if unexpected:
            raise InvalidArgumentError(f"fields cannot be updated directly: {', '.join(unexpected)}")
        # null は「変更なし」として扱う
        provided = {name: value for name, value in changes.items() if value is not None}
        with self._item_lock(identifier):
            item = self._require(identifier)
            try:
                updated = VocabularyItem.model_validate({**item.model_dump(), **provided})
            except ValidationError as exc:
                raise InvalidArgumentError(f"invalid vocabulary fields: {exc}") from exc
            self._persist(updated, "update_item")
        self.publish()
        return updated

    def update_status(self, identifier: str | int, status: WordStatus) -> VocabularyItem:
        with self._item_lock(identifier):
            item = self._require(identifier)
            updated = item.model_copy(update={"status": status, "is_known": status in KNOWN_STATUSES})
            self._persist(updated, "update_status")
        logger.info("vocabulary_status_updated", identifier=updated.key, status=status.value)
        self.publish()
        return updated

    def delete_item(self, identifier: str | int) -> None:
        with self._item_lock(identifier):
            if not self.store.delete_item(identifier):
                raise ItemNotFoundError(identifier)
        with self._locks_guard:
            self._locks.pop(str(identifier), None)
        logger.info("vocabulary_deleted", identifier=str(identifier))
        self.publish()

    def reset_progress(self) -> int:
        count = self.store.reset_progress(self.scheduler.now())
        logger.info("vocabulary_progress_reset", count=count)
        self.publish()
        return count

    # --- unknown words ---
    def unknown_words(self) -> list[VocabularyItem]:
        return self.store.list_unknown_words()

    def add_unknown_word(self, identifier: str | int) -> bool:
        return self.store.add_unknown_word(self._require(identifier))

    def remove_unknown_word(self, word: str) -> bool:
        return self.store.remove_unknown_word(word)

    # --- seeding ---
    def seed_items(self, raw_words: list[Any]) -> int:
        """Load raw words into an empty store, each in its initial scheduling state.

        既に語彙が存在する場合は何もしない。戻り値は投入件数。
        """
        if self.store.count_items() > 0:
            return 0
        now = self.scheduler.now()
        items: list[VocabularyItem] = []
        seen: set[str] = set()
        for raw in raw_words:
            normalized = normalize_raw_word(raw, now)
            identifier = normalized.identifier
            if identifier in (None, "") or str(identifier) in seen:
                identifier = generate_word_id()
            seen.add(str(identifier))
            items.append(
                normalized.model_copy(
                    update={
                        "identifier": identifier,
                        "mastery_level": 0,
                        "next_review_at": now,
                        "last_reviewed_at": None,
                    }
                )
            )
        self.store.save_items(items)
        logger.info("vocabulary_seeded", count=len(items))
        self.publish()
        return len(items)

    def seed_from_file(self, path: Path) -> int:
        if not path.exists():
            raise FileNotFoundError(f"seed file not found: {path}")
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, list):
            raise InvalidArgumentError("seed file must contain a JSON array of words")
        return self.seed_items(data)
