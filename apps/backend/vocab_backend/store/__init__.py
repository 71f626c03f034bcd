from __future__ import annotations

from ..config import settings
from .base import VocabularyRepository
from .sqlite_store import VocabularySQLiteStore


def _create_store() -> VocabularySQLiteStore:
    """アプリ全体で共有する SQLite ベースのストアを初期化する。"""

    return VocabularySQLiteStore(db_path=settings.vocab_db_path)


store = _create_store()

__all__ = [
    "VocabularyRepository",
    "VocabularySQLiteStore",
    "store",
]
