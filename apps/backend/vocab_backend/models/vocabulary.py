from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WordStatus(str, Enum):
    """Learning status shown on flashcards."""

    new = "new"
    learned = "learned"
    mastered = "mastered"
    review = "review"


KNOWN_STATUSES = frozenset({WordStatus.learned, WordStatus.mastered})


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class VocabularyItem(BaseModel):
    """A vocabulary word together with its spaced-repetition state.

    語彙カード1件。`mastery_level` と `next_review_at` は復習結果の記録
    （`srs.record_review_outcome`）でのみ同時に更新される。インスタンスは
    不変で、更新は `model_copy(update=...)` で新しい値を作る。
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    identifier: str | int | None = None
    word: str = ""
    pos: str = ""
    meaning: str = ""
    example_en: str = ""
    example_tr: str = ""
    synonyms: list[str] = Field(default_factory=list)
    antonyms: list[str] = Field(default_factory=list)
    other_forms: Any = None
    status: WordStatus = WordStatus.new
    is_known: bool = False

    mastery_level: int = Field(default=0, ge=0)
    next_review_at: datetime | None = None
    last_reviewed_at: datetime | None = None

    @field_validator("next_review_at", "last_reviewed_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @property
    def key(self) -> str:
        """Storage key derived from the identifier."""
        return str(self.identifier)


CONTENT_FIELDS = (
    "word",
    "pos",
    "meaning",
    "example_en",
    "example_tr",
    "synonyms",
    "antonyms",
    "other_forms",
)


class DailyStats(BaseModel):
    """Persisted streak/points counters (one row per learner)."""

    model_config = ConfigDict(frozen=True)

    daily_streak: int = Field(default=0, ge=0)
    total_points: int = Field(default=0, ge=0)
    last_study_date: date | None = None


class DailyStatsResponse(BaseModel):
    daily_streak: int
    total_points: int
    studied_today: bool


class VocabularyStatsResponse(BaseModel):
    """語彙全体の進捗統計。

    - total_words: 登録語数
    - learned_words: 1 回以上正答した語（level > 0）
    - mastered_words: 定着済みとみなす語（level >= 5）
    - words_to_review: 現在時点で復習対象の語数
    """

    total_words: int
    learned_words: int
    mastered_words: int
    words_to_review: int


class VocabularyCreateRequest(BaseModel):
    """Request model for registering a new word.

    identifier を省略した場合はサーバ側で採番する。
    """

    identifier: str | int | None = None
    word: str = Field(min_length=1, max_length=128)
    pos: str = ""
    meaning: str = ""
    example_en: str = ""
    example_tr: str = ""
    synonyms: list[str] = Field(default_factory=list)
    antonyms: list[str] = Field(default_factory=list)
    other_forms: Any = None


class VocabularyUpdateRequest(BaseModel):
    """Partial update of a word's content. Scheduling fields are not accepted."""

    model_config = ConfigDict(extra="forbid")

    word: str | None = Field(default=None, min_length=1, max_length=128)
    pos: str | None = None
    meaning: str | None = None
    example_en: str | None = None
    example_tr: str | None = None
    synonyms: list[str] | None = None
    antonyms: list[str] | None = None
    other_forms: Any = None


class StatusUpdateRequest(BaseModel):
    status: WordStatus


class VocabularyListResponse(BaseModel):
    items: list[VocabularyItem]


class ReviewOutcomeRequest(BaseModel):
    """Request model for submitting a pass/fail review result."""

    identifier: str | int
    success: bool


class ReviewOutcomeResponse(BaseModel):
    ok: bool
    item: VocabularyItem


class UnknownWordRequest(BaseModel):
    identifier: str | int
