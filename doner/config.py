import logging
from pathlib import Path
from typing import Optional
from functools import lru_cache
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリケーション設定"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # GitHub
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com/graphql"
    GITHUB_API_TIMEOUT_SECONDS: float = 30.0

    # Project board のカスタムフィールド名
    DONER_STATUS_FIELD: str = "Status"
    DONER_ITERATION_FIELD: str = "Iteration"

    # 要約
    DONER_LLM_CMD: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None

    # 認証情報の保存先（未指定なら ~/.config/doner）
    DONER_CONFIG_DIR: Optional[str] = None

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FILE: Optional[str] = None

    @field_validator("GITHUB_TOKEN", "DONER_LLM_CMD", "GEMINI_API_KEY")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        """前後の空白を除去し、空文字列はNoneとして扱う"""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """ログレベル名の検証"""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(
                f"Invalid LOG_LEVEL '{v}'. Use one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )
        return level

    @property
    def config_dir(self) -> Path:
        """認証情報などを保存するディレクトリ"""
        if self.DONER_CONFIG_DIR:
            return Path(self.DONER_CONFIG_DIR).expanduser()
        return Path.home() / ".config" / "doner"


class BoardFieldConfig(BaseModel):
    """Project board 上のカスタムフィールド名

    ステータス列とイテレーションのフィールド名はボードごとに異なるため、
    fetcherの生成時に明示的に渡す。
    """

    model_config = ConfigDict(frozen=True)

    status_field: str = "Status"
    iteration_field: str = "Iteration"

    @classmethod
    def from_settings(cls, settings: "Settings") -> "BoardFieldConfig":
        return cls(
            status_field=settings.DONER_STATUS_FIELD,
            iteration_field=settings.DONER_ITERATION_FIELD,
        )


@lru_cache()
def get_settings() -> Settings:
    """設定のシングルトンインスタンスを取得"""
    return Settings()


settings = get_settings()
