"""Vocabulary spaced-repetition backend."""
