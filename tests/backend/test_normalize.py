from datetime import datetime, timedelta, timezone

import pytest

from tests.vocab_fakes import T0
from vocab_backend.errors import InvalidArgumentError
from vocab_backend.models.vocabulary import WordStatus
from vocab_backend.normalize import normalize_non_negative_int, normalize_raw_word, parse_timestamp


def test_alternate_keys_are_mapped():
    raw = {
        "ID": 7,
        "word_en": "feasible",
        "definition_tr": "yapılabilir",
        "example": "It is feasible.",
        "otherForms": {"adv": "feasibly"},
        "synonyms": ["possible"],
        "antonyms": "impossible",
        "level": 3,
        "status": "learned",
        "isKnown": True,
    }
    item = normalize_raw_word(raw, T0)
    assert item.identifier == 7
    assert item.word == "feasible"
    assert item.meaning == "yapılabilir"
    assert item.example_en == "It is feasible."
    assert item.other_forms == {"adv": "feasibly"}
    assert item.synonyms == ["possible"]
    assert item.antonyms == []
    assert item.mastery_level == 3
    assert item.status is WordStatus.learned
    assert item.is_known is True


def test_missing_next_review_is_due_now():
    item = normalize_raw_word({"id": "a", "word": "via"}, T0)
    assert item.next_review_at == T0
    assert item.last_reviewed_at is None
    assert item.mastery_level == 0


def test_javascript_iso_strings_are_parsed():
    item = normalize_raw_word(
        {
            "id": "a",
            "word": "via",
            "nextReviewDate": "2024-03-11T09:30:00.000Z",
            "lastReviewDate": "2024-03-10T09:30:00.000Z",
        },
        T0,
    )
    assert item.next_review_at == T0 + timedelta(days=1)
    assert item.last_reviewed_at == T0


def test_unknown_status_falls_back_to_new():
    item = normalize_raw_word({"id": "a", "word": "via", "status": "forgotten"}, T0)
    assert item.status is WordStatus.new


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3), (4.0, 4), ("4", 0), (2.7, 0), (-2, 0), ("x", 0), (None, 0), (True, 0)],
)
def test_normalize_non_negative_int(value, expected):
    assert normalize_non_negative_int(value) == expected


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(InvalidArgumentError):
        parse_timestamp("not-a-date")
    with pytest.raises(InvalidArgumentError):
        parse_timestamp(12345)


def test_parse_timestamp_accepts_naive_and_offsets():
    assert parse_timestamp("2024-03-10T09:30:00") == T0
    assert parse_timestamp("2024-03-10T18:30:00+09:00") == T0
    assert parse_timestamp(datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)) == T0
    assert parse_timestamp("") is None


def test_non_mapping_payload_is_rejected():
    with pytest.raises(InvalidArgumentError):
        normalize_raw_word(["not", "a", "dict"], T0)  # type: ignore[arg-type]
