import json
import os
from pathlib import Path
from typing import Optional
from doner.config import Settings, settings
from doner.utils.logger import get_logger

logger = get_logger(__name__)

TOKEN_KEY = "github_token"


class CredentialError(Exception):
    """認証情報の読み書きエラー"""

    pass


class CredentialStore:
    """GitHubトークンをローカルのJSONファイルで管理"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else settings.config_dir / "credentials.json"

    def _load(self) -> dict:
        """認証情報ファイルを読み込み"""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load credentials from {self.path}: {e}")
            raise CredentialError(
                f"Failed to read stored credentials from {self.path}: {e}"
            ) from e

    def _save(self, credentials: dict):
        """認証情報ファイルを保存（所有者のみ読み書き可能）"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(credentials, f, indent=2)
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.error(f"Failed to save credentials to {self.path}: {e}")
            raise CredentialError(f"Failed to store token in {self.path}: {e}") from e

    def store_token(self, token: str):
        credentials = self._load()
        credentials[TOKEN_KEY] = token
        self._save(credentials)
        logger.info(f"Stored GitHub token in {self.path}")

    def get_token(self) -> str:
        """保存済みトークンを取得

        Raises:
            CredentialError: トークンが保存されていない場合
        """
        token = self._load().get(TOKEN_KEY)
        if not token:
            raise CredentialError(f"No GitHub token stored in {self.path}")
        return token

    def delete_token(self):
        """保存済みトークンを削除（未保存でもエラーにしない）"""
        credentials = self._load()
        if TOKEN_KEY not in credentials:
            return

        del credentials[TOKEN_KEY]
        if credentials:
            self._save(credentials)
        else:
            self.path.unlink()
        logger.info(f"Removed GitHub token from {self.path}")

    def has_token(self) -> bool:
        try:
            self.get_token()
        except CredentialError:
            return False
        return True


def resolve_token(app_settings: Settings, store: CredentialStore) -> str:
    """使用するトークンを決定

    優先順位: GITHUB_TOKEN 環境変数 > 保存済みトークン

    Raises:
        CredentialError: どちらにもトークンが無い場合
    """
    if app_settings.GITHUB_TOKEN:
        logger.debug("Using token from GITHUB_TOKEN")
        return app_settings.GITHUB_TOKEN

    try:
        return store.get_token()
    except CredentialError as e:
        raise CredentialError(
            "No GitHub token found. Either:\n"
            "  1. Run 'doner auth login' to authenticate\n"
            "  2. Set the GITHUB_TOKEN environment variable"
        ) from e
