from __future__ import annotations

import json
import threading
from datetime import date, timedelta
from pathlib import Path

import pytest

from tests.vocab_fakes import (
    T0,
    FailingStatsVocabularyStore,
    FailingUnknownListStore,
    FailingVocabularyStore,
    FixedClock,
    InMemoryVocabularyStore,
)
from vocab_backend.errors import InvalidArgumentError, ItemNotFoundError, PersistenceFailureError
from vocab_backend.events import VocabularyBroadcaster
from vocab_backend.flows.review import VocabularyFlow
from vocab_backend.models.vocabulary import VocabularyItem, WordStatus
from vocab_backend.srs import SpacedRepetitionScheduler


def _flow(store=None, clock=None) -> tuple[VocabularyFlow, FixedClock, list]:
    clock = clock or FixedClock()
    published: list = []
    broadcaster = VocabularyBroadcaster()
    broadcaster.subscribe(published.append)
    flow = VocabularyFlow(
        store if store is not None else InMemoryVocabularyStore(),
        scheduler=SpacedRepetitionScheduler(clock=clock),
        broadcaster=broadcaster,
    )
    return flow, clock, published


def _word(identifier, word="converge", **extra) -> VocabularyItem:
    return VocabularyItem(identifier=identifier, word=word, next_review_at=T0, **extra)


def test_successful_review_persists_publishes_and_scores():
    store = InMemoryVocabularyStore([_word("w1")])
    flow, _, published = _flow(store)

    updated = flow.record_review("w1", True)

    assert updated.mastery_level == 1
    assert updated.next_review_at == T0 + timedelta(days=1)
    assert store.get_item("w1") == updated
    assert published and published[-1] == (updated,)
    daily = store.load_daily_stats()
    assert daily.total_points == 10
    assert daily.daily_streak == 1
    assert daily.last_study_date == date(2024, 3, 10)
    assert store.list_unknown_words() == []


def test_failed_review_resets_and_marks_unknown():
    store = InMemoryVocabularyStore([_word("w1", mastery_level=3)])
    flow, _, _ = _flow(store)

    updated = flow.record_review("w1", False)

    assert updated.mastery_level == 0
    assert updated.next_review_at == T0
    assert [it.word for it in store.list_unknown_words()] == ["converge"]
    assert store.load_daily_stats().total_points == 0


def test_unknown_identifier_raises_not_found():
    flow, _, published = _flow()
    with pytest.raises(ItemNotFoundError):
        flow.record_review("missing", True)
    assert published == []


def test_persistence_failure_propagates_without_publishing():
    store = FailingVocabularyStore([_word("w1")])
    flow, _, published = _flow(store)

    with pytest.raises(PersistenceFailureError):
        flow.record_review("w1", True)

    assert published == []
    assert store.get_item("w1").mastery_level == 0
    assert store.load_daily_stats().total_points == 0


def test_due_items_follow_the_clock():
    store = InMemoryVocabularyStore([_word("a"), _word("b", word="robust")])
    flow, clock, _ = _flow(store)

    flow.record_review("a", True)
    assert [it.identifier for it in flow.due_items()] == ["b"]

    clock.advance(days=1)
    assert [it.identifier for it in flow.due_items()] == ["a", "b"]


def test_statistics_and_daily_stats():
    store = InMemoryVocabularyStore([_word("a"), _word("b", word="robust", mastery_level=4)])
    flow, clock, _ = _flow(store)
    flow.record_review("b", True)

    stats = flow.statistics()
    assert stats.total_words == 2
    assert stats.learned_words == 1
    assert stats.mastered_words == 1
    assert stats.words_to_review == 1

    clock.advance(days=3)
    daily = flow.daily_stats()
    assert daily.daily_streak == 0
    assert daily.total_points == 10
    assert daily.studied_today is False


def test_create_item_assigns_id_and_initial_schedule():
    flow, _, published = _flow()
    item = flow.create_item({"word": "  insight ", "meaning_tr": "içgörü", "level": 4})

    assert isinstance(item.identifier, str) and item.identifier.startswith("w:")
    assert item.word == "insight"
    assert item.meaning == "içgörü"
    assert item.mastery_level == 0
    assert item.next_review_at == T0
    assert item.last_reviewed_at is None
    assert published[-1] == (item,)


def test_create_item_rejects_duplicates_and_blank_words():
    flow, _, _ = _flow(InMemoryVocabularyStore([_word(1)]))
    with pytest.raises(InvalidArgumentError):
        flow.create_item({"id": 1, "word": "again"})
    with pytest.raises(InvalidArgumentError):
        flow.create_item({"word": "   "})


def test_update_item_changes_content_only():
    store = InMemoryVocabularyStore([_word("w1", mastery_level=2)])
    flow, _, _ = _flow(store)

    updated = flow.update_item("w1", {"meaning": "to meet", "synonyms": ["meet"]})
    assert updated.meaning == "to meet"
    assert updated.synonyms == ["meet"]
    assert updated.mastery_level == 2

    with pytest.raises(InvalidArgumentError):
        flow.update_item("w1", {"mastery_level": 9})


def test_update_status_sets_is_known():
    flow, _, _ = _flow(InMemoryVocabularyStore([_word("w1")]))
    assert flow.update_status("w1", WordStatus.mastered).is_known is True
    assert flow.update_status("w1", WordStatus.review).is_known is False


def test_delete_item():
    store = InMemoryVocabularyStore([_word("w1")])
    flow, _, published = _flow(store)
    flow.delete_item("w1")
    assert store.count_items() == 0
    assert published[-1] == ()
    with pytest.raises(ItemNotFoundError):
        flow.delete_item("w1")


def test_unknown_words_management():
    flow, _, _ = _flow(InMemoryVocabularyStore([_word("w1")]))
    assert flow.add_unknown_word("w1") is True
    assert flow.add_unknown_word("w1") is False
    assert [it.word for it in flow.unknown_words()] == ["converge"]
    assert flow.remove_unknown_word("converge") is True
    assert flow.unknown_words() == []


def test_reset_progress():
    store = InMemoryVocabularyStore([_word("w1", mastery_level=3)])
    flow, clock, _ = _flow(store)
    clock.advance(hours=5)
    assert flow.reset_progress() == 1
    item = store.get_item("w1")
    assert item.mastery_level == 0
    assert item.next_review_at == clock.current


def test_search_delegates_to_filter():
    flow, _, _ = _flow(InMemoryVocabularyStore([_word("a"), _word("b", word="robust")]))
    assert [it.identifier for it in flow.list_items("rob")] == ["b"]
    assert len(flow.list_items()) == 2


def test_seed_from_file_only_fills_empty_store(tmp_path: Path):
    seed = tmp_path / "words.json"
    seed.write_text(
        json.dumps(
            [
                {"id": 1, "word": "converge", "level": 3, "nextReviewDate": "2030-01-01T00:00:00Z"},
                {"word": "robust"},
                {"id": 1, "word": "duplicate id"},
            ]
        ),
        encoding="utf-8",
    )
    store = InMemoryVocabularyStore()
    flow, _, _ = _flow(store)

    assert flow.seed_from_file(seed) == 3
    items = store.list_items()
    assert len({it.key for it in items}) == 3
    assert all(it.mastery_level == 0 and it.next_review_at == T0 for it in items)
    assert store.get_item(1).word == "converge"

    assert flow.seed_from_file(seed) == 0


def test_seed_from_file_rejects_non_array(tmp_path: Path):
    seed = tmp_path / "words.json"
    seed.write_text(json.dumps({"word": "converge"}), encoding="utf-8")
    flow, _, _ = _flow()
    with pytest.raises(InvalidArgumentError):
        flow.seed_from_file(seed)
    with pytest.raises(FileNotFoundError):
        flow.seed_from_file(tmp_path / "missing.json")


def test_concurrent_reviews_of_same_item_are_serialised():
    store = InMemoryVocabularyStore([_word("w1")])
    flow, _, _ = _flow(store)
    barrier = threading.Barrier(8)

    def _review() -> None:
        barrier.wait()
        flow.record_review("w1", True)

    threads = [threading.Thread(target=_review) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get_item("w1").mastery_level == 8
    assert store.load_daily_stats().total_points == 80


def test_failing_listener_does_not_block_others():
    store = InMemoryVocabularyStore([_word("w1")])
    received: list = []
    broadcaster = VocabularyBroadcaster()

    def _broken(items) -> None:
        raise RuntimeError("listener down")

    broadcaster.subscribe(_broken)
    unsubscribe = broadcaster.subscribe(received.append)
    flow = VocabularyFlow(store, scheduler=SpacedRepetitionScheduler(clock=FixedClock()), broadcaster=broadcaster)

    flow.record_review("w1", True)
    assert len(received) == 1

    unsubscribe()
    assert broadcaster.listener_count == 1
    flow.record_review("w1", True)
    assert len(received) == 1


def test_stats_write_failure_leaves_item_unchanged():
    store = FailingStatsVocabularyStore([_word("w1", mastery_level=2)])
    flow, _, published = _flow(store)

    with pytest.raises(PersistenceFailureError):
        flow.record_review("w1", True)

    assert store.get_item("w1").mastery_level == 2
    assert store.get_item("w1").last_reviewed_at is None
    assert store.load_daily_stats().total_points == 0
    assert published == []


def test_unknown_list_write_failure_leaves_item_unchanged():
    store = FailingUnknownListStore([_word("w1", mastery_level=3)])
    flow, _, published = _flow(store)

    with pytest.raises(PersistenceFailureError):
        flow.record_review("w1", False)

    assert store.get_item("w1").mastery_level == 3
    assert store.list_unknown_words() == []
    assert published == []


def test_update_item_ignores_null_and_rejects_invalid_values():
    store = InMemoryVocabularyStore([_word("w1", synonyms=["meet"])])
    flow, _, _ = _flow(store)

    updated = flow.update_item("w1", {"synonyms": None, "meaning": "to meet"})
    assert updated.synonyms == ["meet"]
    assert updated.meaning == "to meet"

    with pytest.raises(InvalidArgumentError):
        flow.update_item("w1", {"synonyms": 5})
    assert store.get_item("w1").synonyms == ["meet"]


def test_delete_item_releases_its_lock():
    flow, _, _ = _flow(InMemoryVocabularyStore([_word("w1"), _word("w2", word="robust")]))
    flow.record_review("w1", True)
    flow.record_review("w2", True)

    flow.delete_item("w1")

    assert "w1" not in flow._locks
    assert "w2" in flow._locks
