from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Iterator

from ..errors import PersistenceFailureError
from ..logging import logger
from ..models.vocabulary import DailyStats, VocabularyItem, ensure_utc
from ..srs import utc_now


class VocabularySQLiteStore:
    """SQLite-backed store for vocabulary items and learner progress.

    Responsibilities:
    - vocabulary items (JSON 本体 + 挿入順 position)
    - unknown words list (word テキストで重複排除)
    - daily streak / points（1行のみ）

    Notes:
    - 1 操作ごとに接続を開閉する（WAL モード）
    - sqlite3.Error はすべて PersistenceFailureError に変換して送出する
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._ensure_dirs()
        self._init_db()

    # --- low-level helpers ---
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10.0, isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("pragma journal_mode=WAL;")
        return conn

    def _ensure_dirs(self) -> None:
        p = Path(self.db_path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _session(self, operation: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            logger.error("vocabulary_store_error", operation=operation, error=repr(exc))
            raise PersistenceFailureError(operation, str(exc)) from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            logger.error("vocabulary_store_error", operation=operation, error=repr(exc))
            raise PersistenceFailureError(operation, str(exc)) from exc
        finally:
            conn.close()

    @contextmanager
    def _transaction(self, conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
        # BEGIN IMMEDIATE to avoid concurrent writers on the same rows
        conn.execute("BEGIN IMMEDIATE;")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK;")
            raise
        conn.execute("COMMIT;")

    def _init_db(self) -> None:
        with self._session("init_db") as conn, self._transaction(conn):
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS vocabulary_items (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_vocabulary_items_position ON vocabulary_items(position);")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS unknown_words (
                    word TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    added_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS daily_stats (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    daily_streak INTEGER NOT NULL DEFAULT 0,
                    total_points INTEGER NOT NULL DEFAULT 0,
                    last_study_date TEXT
                );
                """
            )

    @staticmethod
    def _upsert(conn: sqlite3.Connection, item: VocabularyItem, now: str) -> None:
        conn.execute(
            """
            INSERT INTO vocabulary_items(id, position, data, created_at, updated_at)
            VALUES (?, (SELECT COALESCE(MAX(position), -1) + 1 FROM vocabulary_items), ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at;
            """,
            (item.key, item.model_dump_json(), now, now),
        )

    @staticmethod
    def _insert_unknown(conn: sqlite3.Connection, item: VocabularyItem, now: str) -> bool:
        cur = conn.execute(
            "INSERT OR IGNORE INTO unknown_words(word, data, added_at) VALUES (?, ?, ?);",
            (item.word, item.model_dump_json(), now),
        )
        return cur.rowcount > 0

    @staticmethod
    def _write_daily_stats(conn: sqlite3.Connection, stats: DailyStats) -> None:
        last = stats.last_study_date.isoformat() if stats.last_study_date else None
        conn.execute(
            """
            INSERT INTO daily_stats(id, daily_streak, total_points, last_study_date)
            VALUES (1, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                daily_streak = excluded.daily_streak,
                total_points = excluded.total_points,
                last_study_date = excluded.last_study_date;
            """,
            (stats.daily_streak, stats.total_points, last),
        )

    # --- vocabulary items ---
    def save_item(self, item: VocabularyItem) -> None:
        """Insert or replace an item keyed by its identifier."""
        now = utc_now().isoformat()
        with self._session("save_item") as conn, self._transaction(conn):
            self._upsert(conn, item, now)

    def save_items(self, items: Iterable[VocabularyItem]) -> None:
        """Write a batch of items in a single transaction."""
        now = utc_now().isoformat()
        with self._session("save_items") as conn, self._transaction(conn):
            for item in items:
                self._upsert(conn, item, now)

    def save_review(
        self,
        item: VocabularyItem,
        *,
        daily_stats: DailyStats | None = None,
        unknown: VocabularyItem | None = None,
    ) -> None:
        """Write a reviewed item together with its stats/unknown-list side effects.

        いずれかの書き込みが失敗した場合はすべてロールバックされる。
        """
        now = utc_now().isoformat()
        with self._session("save_review") as conn, self._transaction(conn):
            self._upsert(conn, item, now)
            if daily_stats is not None:
                self._write_daily_stats(conn, daily_stats)
            if unknown is not None:
                self._insert_unknown(conn, unknown, now)

    def get_item(self, identifier: str | int) -> VocabularyItem | None:
        with self._session("get_item") as conn:
            row = conn.execute(
                "SELECT data FROM vocabulary_items WHERE id = ?;", (str(identifier),)
            ).fetchone()
            if row is None:
                return None
            return VocabularyItem.model_validate_json(row["data"])

    def list_items(self) -> list[VocabularyItem]:
        with self._session("list_items") as conn:
            cur = conn.execute("SELECT data FROM vocabulary_items ORDER BY position ASC, id ASC;")
            return [VocabularyItem.model_validate_json(row["data"]) for row in cur.fetchall()]

    def delete_item(self, identifier: str | int) -> bool:
        with self._session("delete_item") as conn, self._transaction(conn):
            cur = conn.execute("DELETE FROM vocabulary_items WHERE id = ?;", (str(identifier),))
            return cur.rowcount > 0

    def count_items(self) -> int:
        with self._session("count_items") as conn:
            row = conn.execute("SELECT COUNT(1) AS c FROM vocabulary_items;").fetchone()
            return int(row["c"])

    # --- unknown words ---
    def add_unknown_word(self, item: VocabularyItem) -> bool:
        """Add a word to the unknown list. Returns False if the word is already listed."""
        now = utc_now().isoformat()
        with self._session("add_unknown_word") as conn, self._transaction(conn):
            return self._insert_unknown(conn, item, now)

    def remove_unknown_word(self, word: str) -> bool:
        with self._session("remove_unknown_word") as conn, self._transaction(conn):
            cur = conn.execute("DELETE FROM unknown_words WHERE word = ?;", (word,))
            return cur.rowcount > 0

    def list_unknown_words(self) -> list[VocabularyItem]:
        with self._session("list_unknown_words") as conn:
            cur = conn.execute("SELECT data FROM unknown_words ORDER BY added_at ASC, rowid ASC;")
            return [VocabularyItem.model_validate_json(row["data"]) for row in cur.fetchall()]

    # --- daily stats ---
    def load_daily_stats(self) -> DailyStats:
        with self._session("load_daily_stats") as conn:
            row = conn.execute(
                "SELECT daily_streak, total_points, last_study_date FROM daily_stats WHERE id = 1;"
            ).fetchone()
            if row is None:
                return DailyStats()
            last = row["last_study_date"]
            return DailyStats(
                daily_streak=int(row["daily_streak"]),
                total_points=int(row["total_points"]),
                last_study_date=date.fromisoformat(last) if last else None,
            )

    def save_daily_stats(self, stats: DailyStats) -> None:
        with self._session("save_daily_stats") as conn, self._transaction(conn):
            self._write_daily_stats(conn, stats)

    # --- maintenance ---
    def reset_progress(self, now: datetime) -> int:
        """Return every item to its initial schedule and clear the unknown list.

        戻り値はリセットした語数。連続学習日数・ポイントは保持する。
        """
        current = ensure_utc(now)
        stamp = utc_now().isoformat()
        with self._session("reset_progress") as conn, self._transaction(conn):
            rows = conn.execute("SELECT data FROM vocabulary_items;").fetchall()
            for row in rows:
                item = VocabularyItem.model_validate_json(row["data"])
                reset = item.model_copy(
                    update={"mastery_level": 0, "next_review_at": current, "last_reviewed_at": None}
                )
                self._upsert(conn, reset, stamp)
            conn.execute("DELETE FROM unknown_words;")
            return len(rows)
