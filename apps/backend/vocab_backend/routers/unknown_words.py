import anyio
from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_vocabulary_flow
from ..flows.review import VocabularyFlow
from ..models.vocabulary import UnknownWordRequest, VocabularyListResponse

router = APIRouter(tags=["unknown-words"])


@router.get("", response_model=VocabularyListResponse, summary="わからない単語一覧")
async def list_unknown_words(flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> VocabularyListResponse:
    items = await anyio.to_thread.run_sync(flow.unknown_words)
    return VocabularyListResponse(items=items)


@router.post("", summary="わからない単語に追加")
async def add_unknown_word(
    req: UnknownWordRequest, flow: VocabularyFlow = Depends(get_vocabulary_flow)
) -> dict[str, bool]:
    """同じ単語（word テキスト）が既にある場合は added=false を返す。"""
    added = await anyio.to_thread.run_sync(flow.add_unknown_word, req.identifier)
    return {"added": added}


@router.delete("/{word:path}", status_code=204, summary="わからない単語から削除")
async def remove_unknown_word(word: str, flow: VocabularyFlow = Depends(get_vocabulary_flow)) -> None:
    removed = await anyio.to_thread.run_sync(flow.remove_unknown_word, word)
    if not removed:
        raise HTTPException(status_code=404, detail="unknown word not found")
