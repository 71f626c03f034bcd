"""Spaced repetition scheduling for vocabulary items.

固定の間隔テーブルに基づく単純な SRS:

- 正解: mastery_level を +1 し、テーブルの日数だけ次回復習を先送り
- 不正解: mastery_level を 0 に戻し、即時に再出題
- level がテーブル長を超えた場合は最後の間隔（30日）を使い続ける

ここにある関数は純粋関数で、永続化や変更通知は呼び出し側（flows）が担う。
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable

from .errors import InvalidArgumentError
from .models.vocabulary import VocabularyItem, ensure_utc

INTERVAL_DAYS: tuple[int, ...] = (0, 1, 3, 7, 14, 30)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def interval_days(level: int) -> int:
    """Return the review interval (days) for a mastery level, clamped to the table."""
    if level < 0:
        raise InvalidArgumentError(f"mastery level must be non-negative: {level}")
    return INTERVAL_DAYS[min(level, len(INTERVAL_DAYS) - 1)]


def _resolve_now(now: datetime | None, clock: Clock) -> datetime:
    return ensure_utc(now) if now is not None else ensure_utc(clock())


def new_vocabulary_item(
    identifier: str | int,
    word: str = "",
    now: datetime | None = None,
    *,
    clock: Clock = utc_now,
    **fields: Any,
) -> VocabularyItem:
    """Create an item in its initial state: level 0, due immediately, never reviewed."""
    if identifier is None:
        raise InvalidArgumentError("identifier is required")
    current = _resolve_now(now, clock)
    return VocabularyItem(
        identifier=identifier,
        word=word,
        mastery_level=0,
        next_review_at=current,
        last_reviewed_at=None,
        **fields,
    )


def record_review_outcome(
    item: VocabularyItem,
    success: bool,
    now: datetime | None = None,
    *,
    clock: Clock = utc_now,
) -> VocabularyItem:
    """Apply a pass/fail review outcome and return the updated item.

    - success: level + 1, next_review_at = now + interval_days(level + 1)
    - failure: level = 0, next_review_at = now
    - last_reviewed_at は常に now

    識別子の無いアイテムは永続化時にキーが壊れるため InvalidArgumentError。
    """
    if item.identifier is None or (isinstance(item.identifier, str) and not item.identifier.strip()):
        raise InvalidArgumentError("vocabulary item has no identifier")

    current = _resolve_now(now, clock)
    if success:
        level = item.mastery_level + 1
        next_review_at = current + timedelta(days=interval_days(level))
    else:
        level = 0
        next_review_at = current

    return item.model_copy(
        update={
            "mastery_level": level,
            "next_review_at": next_review_at,
            "last_reviewed_at": current,
        }
    )


def is_due(item: VocabularyItem, now: datetime) -> bool:
    """True when the item has no schedule yet or its review time has come (inclusive)."""
    if item.next_review_at is None:
        return True
    return item.next_review_at <= ensure_utc(now)


def select_due_items(
    items: Iterable[VocabularyItem],
    now: datetime | None = None,
    *,
    clock: Clock = utc_now,
) -> list[VocabularyItem]:
    """Return the items due for review, preserving input order."""
    current = _resolve_now(now, clock)
    return [item for item in items if is_due(item, current)]


class SpacedRepetitionScheduler:
    """Scheduler bound to a clock.

    テストや複数の協調オブジェクトで同じ時刻源を共有するためのラッパー。
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self.clock = clock

    def now(self) -> datetime:
        return ensure_utc(self.clock())

    def new_item(self, identifier: str | int, word: str = "", **fields: Any) -> VocabularyItem:
        return new_vocabulary_item(identifier, word, self.now(), **fields)

    def record_review_outcome(
        self, item: VocabularyItem, success: bool, now: datetime | None = None
    ) -> VocabularyItem:
        return record_review_outcome(item, success, now, clock=self.clock)

    def select_due_items(
        self, items: Iterable[VocabularyItem], now: datetime | None = None
    ) -> list[VocabularyItem]:
        return select_due_items(items, now, clock=self.clock)
