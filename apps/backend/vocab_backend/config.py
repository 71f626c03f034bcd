from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources.types import NoDecode


DEFAULT_DB_PATH = ".data/vocabulary.sqlite3"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数から読み込まれるアプリ設定クラス。
    - vocab_db_path: 語彙と復習状態を保存する SQLite のパス
    - seed_words_path: 空ストア起動時に投入する語彙 JSON
    """

    # --- データ永続化設定 ---
    vocab_db_path: str = Field(
        default=DEFAULT_DB_PATH,
        description="Path to SQLite database for vocabulary persistence / 語彙用SQLite DBパス",
    )
    seed_words_path: str | None = Field(
        default=None,
        description=(
            "Optional JSON array of words seeded into an empty store on startup / "
            "起動時に空のストアへ投入する語彙JSON"
        ),
    )

    # --- 学習統計 ---
    review_points_per_correct: int = Field(
        default=10,
        ge=0,
        description="Points awarded per correct review / 正答1回あたりの獲得ポイント",
    )

    allowed_cors_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(),
        description=(
            "Comma separated CORS origins / CORS で許可するオリジンのカンマ区切り一覧"
        ),
        validation_alias=AliasChoices("allowed_cors_origins", "cors_allowed_origins"),
    )

    # --- Strict mode ---
    strict_mode: bool = Field(
        default=True,
        description="Abort startup when the configured seed file cannot be loaded (disable only for tests)",
    )

    # Pydantic v2 settings config
    # - env_file: .env を読み込む
    # - extra: .env に存在する未使用キーを無視
    # - case_sensitive: 環境変数キーの大小文字を区別しない
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("vocab_db_path", mode="after")
    @classmethod
    def _validate_db_path(cls, value: str) -> str:
        path = (value or "").strip()
        if not path:
            raise ValueError("VOCAB_DB_PATH must be a non-empty path")
        return path

    @field_validator("allowed_cors_origins", mode="before")
    @classmethod
    def _normalise_allowed_cors_origins(
        cls, raw_origins: object
    ) -> tuple[str, ...] | object:  # pragma: no cover - pydantic handles typing
        """Convert environment input into a deduplicated tuple of origins.

        `.env` で管理するときに空白や重複が混ざりやすいため、FastAPI へ渡す前に
        トリムと重複排除を行って配列へ正規化する。
        """

        if raw_origins is None:
            candidates: list[str] = []
        elif isinstance(raw_origins, str):
            candidates = raw_origins.split(",")
        else:
            try:
                candidates = list(raw_origins)
            except TypeError:
                return raw_origins

        normalised: list[str] = []
        seen: set[str] = set()
        for candidate in candidates:
            if not isinstance(candidate, str):
                continue
            trimmed = candidate.strip()
            if not trimmed or trimmed in seen:
                continue
            seen.add(trimmed)
            normalised.append(trimmed)

        return tuple(normalised)


settings = Settings()
