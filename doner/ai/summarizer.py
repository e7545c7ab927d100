import asyncio
import shlex
import shutil
import subprocess
from enum import Enum
from typing import List, Optional
from google import genai
from doner.config import Settings
from doner.utils.logger import get_logger

logger = get_logger(__name__)

GEMINI_MODEL = "gemini-3-flash-preview"

SYSTEM_PROMPT = """You are a technical writer summarizing completed software development tasks.
Your goal is to create clear, concise summaries that highlight:
- What was accomplished
- The impact or value of the work
- Any patterns or themes across multiple tasks

Write in a professional but accessible tone. Group related work together when it makes sense.
Use bullet points for clarity. Keep the summary focused and avoid unnecessary jargon.
Include links to the issues in the summary if available.
Use heading 4 for each theme and avoid using heading 1 to 3. Do not use bold formatting on headings."""


class SummarizerError(Exception):
    """要約の生成に失敗した場合のエラー"""

    pass


class Provider(str, Enum):
    GEMINI_CLI = "gemini"
    CURSOR_CLI = "cursor"
    CUSTOM = "custom"
    GEMINI_API = "gemini-api"


def build_prompt(formatted_issues: str) -> str:
    """整形済みのIssue一覧から要約用プロンプトを作成"""
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"Summarize the following completed tasks:\n\n{formatted_issues}\n\n"
        "Provide a rich summary that:\n"
        "1. Groups related work into themes\n"
        "2. Highlights key accomplishments\n"
        "3. Notes any significant patterns"
    )


class Summarizer:
    """外部のLLMツールでIssue一覧を要約する"""

    def __init__(
        self,
        provider: Provider,
        command: Optional[List[str]] = None,
        api_key: Optional[str] = None,
    ):
        self.provider = provider
        self.command = command or []
        self.api_key = api_key

    @classmethod
    def from_env(cls, settings: Settings) -> "Summarizer":
        """利用可能なLLMツールを自動検出

        優先順位: DONER_LLM_CMD > gemini CLI > cursor CLI > GEMINI_API_KEY

        Raises:
            SummarizerError: どれも利用できない場合
        """
        if settings.DONER_LLM_CMD:
            command = shlex.split(settings.DONER_LLM_CMD)
            if not command:
                raise SummarizerError("DONER_LLM_CMD is empty")
            return cls(Provider.CUSTOM, command=command)

        if shutil.which("gemini"):
            return cls(Provider.GEMINI_CLI, command=["gemini", "-p"])

        if shutil.which("cursor"):
            return cls(Provider.CURSOR_CLI, command=["cursor", "--prompt"])

        if settings.GEMINI_API_KEY:
            return cls(Provider.GEMINI_API, api_key=settings.GEMINI_API_KEY)

        raise SummarizerError(
            "No LLM CLI tool found. Install one of:\n"
            "  - gemini-cli (https://github.com/google-gemini/gemini-cli)\n"
            "  - cursor CLI\n"
            "Or set DONER_LLM_CMD to a custom command, or GEMINI_API_KEY to use the Gemini API"
        )

    async def summarize(self, formatted_issues: str) -> str:
        """Issue一覧の要約を生成

        Args:
            formatted_issues: format_list / format_grouped の出力

        Returns:
            str: 要約テキスト

        Raises:
            SummarizerError: ツールの実行に失敗した場合
        """
        prompt = build_prompt(formatted_issues)
        logger.info(f"Generating summary with provider: {self.provider.value}")

        loop = asyncio.get_running_loop()
        if self.provider == Provider.GEMINI_API:
            return await loop.run_in_executor(None, self._call_gemini_api, prompt)
        return await loop.run_in_executor(None, self._call_cli, prompt)

    def _call_cli(self, prompt: str) -> str:
        name = self.command[0]
        try:
            result = subprocess.run(
                self.command + [prompt],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            logger.error(f"Failed to execute {name}: {e}")
            raise SummarizerError(f"Failed to execute {name}: {e}") from e

        if result.returncode != 0:
            logger.error(f"{name} exited with status {result.returncode}")
            raise SummarizerError(f"{name} failed: {result.stderr.strip()}")

        return result.stdout.strip()

    def _call_gemini_api(self, prompt: str) -> str:
        try:
            client = genai.Client(api_key=self.api_key)
            response = client.models.generate_content(
                model=GEMINI_MODEL, contents=prompt
            )
        except Exception as e:
            logger.error(f"Gemini API request failed: {e}", exc_info=True)
            raise SummarizerError(f"Gemini API request failed: {e}") from e

        return (response.text or "").strip()
