#!/usr/bin/env python
"""語彙 JSON（単語オブジェクトの配列）を SQLite ストアへ投入するユーティリティ。"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "words_path",
        type=Path,
        help="投入する語彙 JSON のパス",
    )
    parser.add_argument(
        "--db-path",
        default=os.environ.get("VOCAB_DB_PATH", ".data/vocabulary.sqlite3"),
        help="投入先 SQLite DB のパス（既定: VOCAB_DB_PATH または .data/vocabulary.sqlite3）",
    )
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # 設定クラスは import 時点で環境変数を読むため、先に上書きしてから読み込む。
    os.environ["VOCAB_DB_PATH"] = str(args.db_path)

    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root / "apps" / "backend"))

    from vocab_backend.flows.review import VocabularyFlow
    from vocab_backend.logging import configure_logging
    from vocab_backend.store import store

    configure_logging()
    count = VocabularyFlow(store).seed_from_file(args.words_path)
    if count == 0:
        print("Vocabulary already present. Skipping seed.")
    else:
        print(f"Seeded {count} words into {args.db_path}.")


if __name__ == "__main__":
    main()
