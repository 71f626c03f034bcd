"""ID 生成ユーティリティ。

クライアントが識別子を指定せずに登録した語彙には prefix "w:" 付きの UUID を割り当てる。
"""

from __future__ import annotations

import uuid


def generate_word_id() -> str:
    """語彙アイテムの新規 ID を生成する。"""

    return f"w:{uuid.uuid4().hex}"
