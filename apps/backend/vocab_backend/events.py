from __future__ import annotations

import threading
from typing import Callable, Sequence

from .logging import logger
from .models.vocabulary import VocabularyItem

Listener = Callable[[Sequence[VocabularyItem]], None]


class VocabularyBroadcaster:
    """Fan out the current word list to subscribers after each committed change.

    スケジューラ自体は副作用を持たないため、永続化が成功した後に flow が
    明示的に `publish` を呼ぶ。
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, items: Sequence[VocabularyItem]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        snapshot = tuple(items)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as exc:
                # 1つの購読者の失敗で他の購読者への通知を止めない
                logger.warning("vocabulary_listener_failed", error=repr(exc))
