"""Pytest configuration: isolate the SQLite store and expose the backend package."""

import os
import sys
import tempfile
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "apps" / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

# モジュール読み込み時に生成される共有ストアがリポジトリ直下へ DB を作らないよう、
# import 前に一時ディレクトリを指す。
os.environ.setdefault(
    "VOCAB_DB_PATH", str(Path(tempfile.mkdtemp(prefix="vocab-test-")) / "vocabulary.sqlite3")
)
os.environ.setdefault("STRICT_MODE", "false")

import pytest
from fastapi.testclient import TestClient


def _reload_backend_app(monkeypatch: pytest.MonkeyPatch, *, db_path: Path, seed_path: Path | None = None):
    """テスト用に vocab_backend.* を再読み込みしてクリーンな状態を準備する補助関数。"""

    import importlib

    monkeypatch.setenv("VOCAB_DB_PATH", str(db_path))
    if seed_path is not None:
        monkeypatch.setenv("SEED_WORDS_PATH", str(seed_path))
    else:
        monkeypatch.delenv("SEED_WORDS_PATH", raising=False)

    # vocab_backend.* を一度破棄して設定と永続層のキャッシュをリセット
    for name in list(sys.modules.keys()):
        if name == "vocab_backend" or name.startswith("vocab_backend."):
            sys.modules.pop(name)

    importlib.import_module("vocab_backend.config")
    importlib.import_module("vocab_backend.store")
    return importlib.import_module("vocab_backend.main")


@pytest.fixture()
def backend_app(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    return _reload_backend_app(monkeypatch, db_path=tmp_path / "store.sqlite3")


@pytest.fixture()
def client(backend_app):
    with TestClient(backend_app.app) as test_client:
        yield test_client
