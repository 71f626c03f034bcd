"""Normalisation of raw word payloads.

外部ソース（シード JSON や旧クライアント）から届く語彙データはキー名が
揺れているため、ここで `VocabularyItem` の形に揃える。
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from .errors import InvalidArgumentError
from .models.vocabulary import VocabularyItem, WordStatus, ensure_utc


def normalize_non_negative_int(value: Any) -> int:
    """与えられた値を非負整数に正規化する。数値以外・小数・負数は 0。"""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not value.is_integer():
        return 0
    ivalue = int(value)
    return ivalue if ivalue >= 0 else 0


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        text = value.strip()
        # JavaScript の toISOString() は末尾 "Z"
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError as exc:
            raise InvalidArgumentError(f"invalid timestamp: {value!r}") from exc
    raise InvalidArgumentError(f"invalid timestamp: {value!r}")


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def _status(value: Any) -> WordStatus:
    try:
        return WordStatus(value)
    except ValueError:
        return WordStatus.new


def normalize_raw_word(raw: Mapping[str, Any], now: datetime) -> VocabularyItem:
    """Convert a raw word mapping into a `VocabularyItem`.

    - id/ID, word/word_en, meaning_tr/definition_tr/meaning などの別名を吸収
    - 配列でない synonyms/antonyms は空配列
    - level が整数でない・負の場合は 0
    - 次回復習日時が無ければ now（即時出題）
    """

    if not isinstance(raw, Mapping):
        raise InvalidArgumentError("word payload must be an object")

    status = _status(_first(raw, "status") or WordStatus.new.value)
    next_review_at = parse_timestamp(_first(raw, "next_review_at", "nextReviewDate"))
    return VocabularyItem(
        identifier=_first(raw, "identifier", "id", "ID"),
        word=str(_first(raw, "word", "word_en") or ""),
        pos=str(_first(raw, "pos") or ""),
        meaning=str(_first(raw, "meaning", "meaning_tr", "definition_tr") or ""),
        example_en=str(_first(raw, "example_en", "example") or ""),
        example_tr=str(_first(raw, "example_tr") or ""),
        synonyms=_string_list(raw.get("synonyms")),
        antonyms=_string_list(raw.get("antonyms")),
        other_forms=_first(raw, "other_forms", "otherForms"),
        status=status,
        is_known=bool(raw.get("isKnown", raw.get("is_known", False))),
        mastery_level=normalize_non_negative_int(_first(raw, "mastery_level", "level")),
        next_review_at=next_review_at or ensure_utc(now),
        last_reviewed_at=parse_timestamp(_first(raw, "last_reviewed_at", "lastReviewDate")),
    )
