import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional
from doner.ai.summarizer import Summarizer, SummarizerError
from doner.config import BoardFieldConfig, Settings, get_settings
from doner.github.client import GitHubAuthError, GitHubClient, GitHubError
from doner.github.fetcher import ProjectItemFetcher
from doner.github.resolver import ProjectResolver
from doner.output.formatter import (
    OutputFormat,
    format_grouped,
    format_list,
    format_stats,
)
from doner.utils.credential_store import (
    CredentialError,
    CredentialStore,
    resolve_token,
)
from doner.utils.logger import get_logger, set_level
from doner.utils.time_filter import parse_time_filter

logger = get_logger(__name__)

DEFAULT_COLUMN = "Done"
DEFAULT_ITERATION_FILTER = "@current,@previous"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doner",
        description="Summarize issues from a GitHub project board column",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # auth
    auth = subparsers.add_parser("auth", help="Authenticate with GitHub")
    auth_actions = auth.add_subparsers(dest="action", required=True)

    login = auth_actions.add_parser("login", help="Log in to GitHub (interactive)")
    login.add_argument(
        "--with-token",
        dest="with_token",
        help="Provide token directly instead of interactive prompt",
    )
    login.add_argument(
        "--skip-validation",
        dest="skip_validation",
        action="store_true",
        help=argparse.SUPPRESS,
    )
    auth_actions.add_parser("logout", help="Log out and remove stored credentials")
    auth_actions.add_parser("status", help="Check authentication status")

    # summarize
    summarize = subparsers.add_parser(
        "summarize",
        aliases=["sum"],
        help="Fetch and summarize issues from a project board column",
    )
    summarize.add_argument(
        "project_id",
        help="GitHub Project identifier (owner/number or GraphQL node ID)",
    )
    summarize.add_argument(
        "-c", "--col", dest="column", default=DEFAULT_COLUMN,
        help="Column name to fetch issues from (default: %(default)s)",
    )
    summarize.add_argument(
        "-s", "--since",
        help="Filter issues by time (e.g., 7d, 24h, yesterday, this-week)",
    )
    summarize.add_argument(
        "-i", "--iteration", default=DEFAULT_ITERATION_FILTER,
        help="Filter by iteration (e.g., @current, @previous, @all, or an iteration name)"
        " (default: %(default)s)",
    )
    summarize.add_argument(
        "-f", "--format", dest="format", default=OutputFormat.TEXT.value,
        choices=[f.value for f in OutputFormat],
        help="Output format (default: %(default)s)",
    )
    summarize.add_argument(
        "-w", "--wrap", action="store_true", help="Group issues by parent issue"
    )
    summarize.add_argument(
        "--ai", action="store_true",
        help="Use an LLM CLI tool (or the Gemini API) to generate a rich summary",
    )
    summarize.add_argument(
        "--debug", action="store_true",
        help="Show debug information about fetched items",
    )
    return parser


async def handle_login(args: argparse.Namespace, store: CredentialStore):
    token = args.with_token
    if token is None:
        print("Paste your GitHub personal access token:")
        print(
            "(Create one at https://github.com/settings/tokens with "
            "'read:project' and 'repo' scopes)"
        )
        token = getpass.getpass(prompt="")

    token = token.strip()
    if not token:
        raise CredentialError("Token cannot be empty")

    if args.skip_validation:
        print("Skipping validation (test mode)")
        username = "test-user"
    else:
        print("Validating token... ", end="", flush=True)
        username = await GitHubClient(token).validate_token()
        print("OK")

    print("Storing token... ", end="", flush=True)
    store.store_token(token)
    print("OK")
    print(f"Logged in as {username}")


def handle_logout(store: CredentialStore):
    if store.has_token():
        store.delete_token()
        print("Logged out. Stored token removed.")
    else:
        print("Not logged in.")


async def handle_status(settings: Settings, store: CredentialStore):
    if settings.GITHUB_TOKEN:
        print("Using token from GITHUB_TOKEN environment variable")
        return

    if not store.has_token():
        print("Not logged in.")
        print("Run 'doner auth login' to authenticate.")
        return

    try:
        username = await GitHubClient(store.get_token()).validate_token()
    except GitHubAuthError:
        print("Stored token appears invalid or expired.")
        print("Run 'doner auth login' to re-authenticate.")
        return
    print(f"Logged in as {username} (token stored in {store.path})")


async def handle_auth(
    args: argparse.Namespace, settings: Settings, store: CredentialStore
):
    if args.action == "login":
        await handle_login(args, store)
    elif args.action == "logout":
        handle_logout(store)
    else:
        await handle_status(settings, store)


async def handle_summarize(
    args: argparse.Namespace, settings: Settings, store: CredentialStore
):
    token = resolve_token(settings, store)

    # ネットワークに出る前に入力を検証する
    since = parse_time_filter(args.since) if args.since else None
    fmt = OutputFormat(args.format)
    fields = BoardFieldConfig.from_settings(settings)

    client = GitHubClient(token)
    project_node_id = await ProjectResolver(client).resolve(args.project_id)

    fetcher = ProjectItemFetcher(client, fields=fields)
    issues, stats = await fetcher.fetch_project_issues(
        project_node_id,
        args.column,
        since=since,
        iteration_filter=args.iteration,
        collect_stats=args.debug,
    )

    if args.debug:
        print(
            format_stats(
                stats,
                len(issues),
                project_node_id,
                args.column,
                fields.status_field,
                args.iteration,
            ),
            file=sys.stderr,
        )
        print(file=sys.stderr)

    if not issues:
        print(f'No issues found in column "{args.column}"')
        return

    output = format_grouped(issues, fmt) if args.wrap else format_list(issues, fmt)

    if not args.ai:
        print(output)
        return

    summarizer = Summarizer.from_env(settings)
    print("Generating AI summary... ", end="", file=sys.stderr, flush=True)
    summary = await summarizer.summarize(output)
    print("done", file=sys.stderr)
    print(file=sys.stderr)
    print(summary)


async def main(argv: Optional[List[str]] = None) -> int:
    """メインエントリーポイント"""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    store = CredentialStore()

    if getattr(args, "debug", False):
        set_level(logging.DEBUG)

    try:
        if args.command == "auth":
            await handle_auth(args, settings, store)
        else:
            await handle_summarize(args, settings, store)
    except (GitHubError, CredentialError, SummarizerError, ValueError) as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
