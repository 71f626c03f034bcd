import anyio
from fastapi import APIRouter, Depends

from ..dependencies import get_vocabulary_flow
from ..flows.review import VocabularyFlow
from ..models.vocabulary import (
    DailyStatsResponse,
    ReviewOutcomeRequest,
    ReviewOutcomeResponse,
    VocabularyListResponse,
    VocabularyStatsResponse,
)

router = APIRouter(tags=["review"])


@router.get("/due", response_model=VocabularyListResponse, summary="復習対象の語彙を取得")
async def review_due(flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> VocabularyListResponse:
    """Return every word whose next review time has come (input order preserved)."""
    items = await anyio.to_thread.run_sync(flow.due_items)
    return VocabularyListResponse(items=items)


@router.post("/outcome", response_model=ReviewOutcomeResponse, summary="正誤を記録して次回出題日時を更新")
async def review_outcome(
    req: ReviewOutcomeRequest, flow: VocabularyFlow = Depends(get_vocabulary_flow)
) -> ReviewOutcomeResponse:
    """Record a pass/fail result using the fixed interval table.

    - success=true: level+1、間隔テーブル [0, 1, 3, 7, 14, 30] 日後に再出題
    - success=false: level=0、即時に再出題
    """
    updated = await anyio.to_thread.run_sync(flow.record_review, req.identifier, req.success)
    return ReviewOutcomeResponse(ok=True, item=updated)


@router.get("/stats", response_model=VocabularyStatsResponse, summary="語彙の進捗統計")
async def review_stats(flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> VocabularyStatsResponse:
    return await anyio.to_thread.run_sync(flow.statistics)


@router.get("/daily", response_model=DailyStatsResponse, summary="連続学習日数とポイント")
async def review_daily(flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> DailyStatsResponse:
    return await anyio.to_thread.run_sync(flow.daily_stats)
