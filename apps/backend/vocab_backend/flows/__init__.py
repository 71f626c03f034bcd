"""Application flows combining the scheduler with its collaborators."""

from .review import VocabularyFlow

__all__ = ["VocabularyFlow"]
