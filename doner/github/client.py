import requests
import asyncio
from typing import Dict, Any, Optional
from doner.config import settings
from doner.utils.logger import get_logger

logger = get_logger(__name__)


class GitHubError(Exception):
    """GitHub API呼び出しのエラー"""

    pass


class GitHubTransportError(GitHubError):
    """接続失敗、または成功以外のHTTPステータス"""

    pass


class GitHubGraphQLError(GitHubError):
    """レスポンスにerrorsが含まれていた場合"""

    def __init__(self, messages):
        self.messages = list(messages)
        super().__init__(f"GitHub API error: {', '.join(self.messages)}")


class GitHubAuthError(GitHubError):
    """GitHub認証エラー"""

    pass


class ProjectNotFoundError(GitHubError):
    """Organization / User / Project が見つからない"""

    pass


class GitHubClient:
    """GitHub GraphQL APIクライアント"""

    API_URL = "https://api.github.com/graphql"
    USER_AGENT = "doner-cli"

    def __init__(
        self,
        token: str,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_url = api_url or settings.GITHUB_API_URL or self.API_URL
        self.timeout = timeout or settings.GITHUB_API_TIMEOUT_SECONDS
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "User-Agent": self.USER_AGENT,
        }

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        return requests.post(
            self.api_url, json=payload, headers=self.headers, timeout=self.timeout
        )

    async def execute_query(
        self,
        query: str,
        variables: Dict[str, Any] = None,
        operation: str = "GitHub API request",
    ) -> Dict[str, Any]:
        """GraphQLクエリを実行

        Args:
            query: GraphQLクエリ文字列
            variables: クエリ変数
            operation: エラーメッセージに含める処理名

        Returns:
            Dict[str, Any]: レスポンスの data 部分

        Raises:
            GitHubTransportError: 接続エラーまたはHTTPエラー
            GitHubGraphQLError: レスポンスにerrorsが含まれる場合
        """
        payload = {"query": query, "variables": variables or {}}

        # requestsは同期ライブラリなので、非同期コンテキストで実行
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, self._post, payload)
        except requests.RequestException as e:
            logger.error(f"{operation} failed: {e}")
            raise GitHubTransportError(
                f"{operation} failed: could not reach {self.api_url}: {e}"
            ) from e

        if not response.ok:
            logger.error(f"{operation} failed with HTTP {response.status_code}")
            raise GitHubTransportError(
                f"{operation} failed: GitHub API error "
                f"({response.status_code}): {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GitHubTransportError(
                f"{operation} failed: could not parse GitHub response"
            ) from e

        if not isinstance(data, dict):
            raise GitHubTransportError(
                f"{operation} failed: unexpected GitHub response: {data!r}"
            )

        errors = data.get("errors") or []
        if errors:
            messages = [str(err.get("message", err)) for err in errors]
            logger.error(f"GraphQL errors: {messages}")
            raise GitHubGraphQLError(messages)

        result = data.get("data")
        if result is None:
            raise GitHubError(f"{operation} failed: response contained no data")
        return result

    async def validate_token(self) -> str:
        """トークンの有効性を検証

        Returns:
            str: トークンの持ち主のログイン名

        Raises:
            GitHubAuthError: トークンが無効な場合
        """
        from doner.github.queries import VALIDATE_TOKEN

        try:
            result = await self.execute_query(
                VALIDATE_TOKEN, operation="Token validation"
            )
            login = result["viewer"]["login"]
        except (GitHubError, KeyError, TypeError) as e:
            logger.error(f"GitHub token validation failed: {e}")
            raise GitHubAuthError(
                f"Invalid token or authentication failed: {e}"
            ) from e

        logger.info(f"GitHub token valid for user: {login}")
        return login
