from __future__ import annotations

from typing import Iterable

from .models.vocabulary import VocabularyItem


def _contains(text: str | None, term: str) -> bool:
    return term in (text or "").lower()


def filter_items(items: Iterable[VocabularyItem], term: str | None) -> list[VocabularyItem]:
    """Case-insensitive search over word, meaning, part of speech, synonyms and antonyms.

    空の検索語はフィルタせずに全件を返す。
    """
    materialised = list(items)
    if not term or not term.strip():
        return materialised

    needle = term.strip().lower()
    return [
        it
        for it in materialised
        if _contains(it.word, needle)
        or _contains(it.meaning, needle)
        or _contains(it.pos, needle)
        or any(_contains(s, needle) for s in it.synonyms)
        or any(_contains(a, needle) for a in it.antonyms)
    ]
