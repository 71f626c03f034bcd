"""Vocabulary progress statistics and daily streak bookkeeping."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Sequence

from .models.vocabulary import (
    DailyStats,
    DailyStatsResponse,
    VocabularyItem,
    VocabularyStatsResponse,
)
from .srs import select_due_items

MASTERED_LEVEL = 5


def vocabulary_statistics(items: Sequence[VocabularyItem], now: datetime) -> VocabularyStatsResponse:
    return VocabularyStatsResponse(
        total_words=len(items),
        learned_words=sum(1 for it in items if it.mastery_level > 0),
        mastered_words=sum(1 for it in items if it.mastery_level >= MASTERED_LEVEL),
        words_to_review=len(select_due_items(items, now)),
    )


def current_daily_stats(stats: DailyStats, today: date) -> DailyStatsResponse:
    """Return the streak as it should be displayed on ``today``.

    最終学習日が今日でも昨日でもなければ連続記録は途切れているため 0 とする
    （保存値は次の学習時に更新される）。
    """

    last = stats.last_study_date
    streak = stats.daily_streak
    if last is not None and last != today and last != today - timedelta(days=1):
        streak = 0
    return DailyStatsResponse(
        daily_streak=streak,
        total_points=stats.total_points,
        studied_today=last == today,
    )


def advance_daily_stats(stats: DailyStats, today: date, points: int = 10) -> DailyStats:
    """Record one study activity: add points and extend the streak once per day."""

    streak = stats.daily_streak
    last = stats.last_study_date
    if last != today:
        if last is not None and last == today - timedelta(days=1):
            streak += 1
        else:
            streak = 1
    return DailyStats(
        daily_streak=streak,
        total_points=stats.total_points + max(0, points),
        last_study_date=today,
    )
