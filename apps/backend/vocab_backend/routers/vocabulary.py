from functools import partial

import anyio
from fastapi import APIRouter, Depends, Query, Response

from ..dependencies import get_vocabulary_flow
from ..flows.review import VocabularyFlow
from ..models.vocabulary import (
    StatusUpdateRequest,
    VocabularyCreateRequest,
    VocabularyItem,
    VocabularyListResponse,
    VocabularyUpdateRequest,
)

router = APIRouter(tags=["vocabulary"])


@router.get("", response_model=VocabularyListResponse, summary="語彙一覧（検索対応）")
async def list_vocabulary(
    q: str | None = Query(default=None, max_length=128, description="検索語（単語・意味・品詞・類義語・反義語）"),
    flow: VocabularyFlow = Depends(get_vocabulary_flow),
) -> VocabularyListResponse:
    items = await anyio.to_thread.run_sync(flow.list_items, q)
    return VocabularyListResponse(items=items)


@router.post("", response_model=VocabularyItem, status_code=201, summary="語彙を登録")
async def create_vocabulary(
    req: VocabularyCreateRequest, flow: VocabularyFlow = Depends(get_vocabulary_flow)
) -> VocabularyItem:
    """Register a word. New words are due for review immediately."""
    return await anyio.to_thread.run_sync(flow.create_item, req.model_dump())


@router.post("/reset", summary="学習進捗をリセット")
async def reset_vocabulary(flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> dict[str, int]:
    """全語の level・次回復習日時を初期状態へ戻し、わからない単語一覧を空にする。"""
    count = await anyio.to_thread.run_sync(flow.reset_progress)
    return {"reset": count}


@router.get("/{identifier}", response_model=VocabularyItem, summary="語彙を取得")
async def get_vocabulary(identifier: str, flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> VocabularyItem:
    return await anyio.to_thread.run_sync(flow.get_item, identifier)


@router.put("/{identifier}", response_model=VocabularyItem, summary="語彙の内容を更新")
async def update_vocabulary(
    identifier: str,
    req: VocabularyUpdateRequest,
    flow: VocabularyFlow = Depends(get_vocabulary_flow),
) -> VocabularyItem:
    """Update word content. level や次回復習日時はこの API では変更できない。"""
    changes = req.model_dump(exclude_unset=True)
    return await anyio.to_thread.run_sync(flow.update_item, identifier, changes)


@router.put("/{identifier}/status", response_model=VocabularyItem, summary="学習ステータスを更新")
async def update_vocabulary_status(
    identifier: str,
    req: StatusUpdateRequest,
    flow: VocabularyFlow = Depends(get_vocabulary_flow),
) -> VocabularyItem:
    return await anyio.to_thread.run_sync(partial(flow.update_status, identifier, req.status))


@router.delete("/{identifier}", status_code=204, summary="語彙を削除")
async def delete_vocabulary(identifier: str, flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> Response:
    await anyio.to_thread.run_sync(flow.delete_item, identifier)
    return Response(status_code=204)
