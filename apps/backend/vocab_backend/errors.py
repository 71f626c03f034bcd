"""Error kinds raised by the vocabulary backend.

スケジューリングのプログラミングエラー（識別子欠落など）と、永続化層の
失敗を別の型で表現し、呼び出し側が混同せずに扱えるようにする。
"""

from __future__ import annotations


class VocabularyError(Exception):
    """Base class for all vocabulary backend errors."""


class InvalidArgumentError(VocabularyError, ValueError):
    """Raised when an operation receives input it cannot act on."""


class ItemNotFoundError(VocabularyError, LookupError):
    """Raised when no vocabulary item exists for an identifier."""

    def __init__(self, identifier: object) -> None:
        super().__init__(f"vocabulary item not found: {identifier!r}")
        self.identifier = identifier


class PersistenceFailureError(VocabularyError, RuntimeError):
    """Raised when the persistence collaborator fails to read or write.

    元の例外は ``__cause__`` に保持される。
    """

    def __init__(self, operation: str, detail: str = "") -> None:
        message = f"persistence failure during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
