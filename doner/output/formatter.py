from enum import Enum
from typing import Dict, List, Optional, Tuple
from doner.github.models import FetchStats, Issue, ParentIssue

CLOSED_FORMAT = "%Y-%m-%d %H:%M"


class OutputFormat(str, Enum):
    TEXT = "text"
    MARKDOWN = "markdown"


def format_list(issues: List[Issue], fmt: OutputFormat = OutputFormat.TEXT) -> str:
    """Issueを一覧形式で整形"""
    if fmt == OutputFormat.MARKDOWN:
        return _format_list_markdown(issues)
    return _format_list_text(issues)


def format_grouped(issues: List[Issue], fmt: OutputFormat = OutputFormat.TEXT) -> str:
    """Issueを親Issueごとにまとめて整形"""
    if fmt == OutputFormat.MARKDOWN:
        return _format_grouped_markdown(issues)
    return _format_grouped_text(issues)


def _ref(issue: Issue) -> str:
    return f"{issue.repository}#{issue.number}"


def _format_list_text(issues: List[Issue]) -> str:
    lines = [f"Found {len(issues)} issue(s):", ""]

    for issue in issues:
        lines.append(f"• [{_ref(issue)}] {issue.title}")
        lines.append(f"  {issue.url}")
        if issue.parent:
            lines.append(f"  Parent: {issue.parent.title} ({issue.parent.url})")
        if issue.closed_at:
            lines.append(f"  Closed: {issue.closed_at.strftime(CLOSED_FORMAT)}")
        lines.append("")

    return "\n".join(lines).rstrip()


def _format_list_markdown(issues: List[Issue]) -> str:
    lines = [f"## Summary ({len(issues)} issues)", ""]

    for issue in issues:
        lines.append(f"- **[{_ref(issue)}]({issue.url})**: {issue.title}")
        if issue.parent:
            lines.append(f"  - Parent: [{issue.parent.title}]({issue.parent.url})")
        if issue.closed_at:
            lines.append(f"  - Closed: {issue.closed_at.strftime(CLOSED_FORMAT)}")

    return "\n".join(lines).rstrip()


def group_by_parent(
    issues: List[Issue],
) -> Tuple[Dict[str, Tuple[ParentIssue, List[Issue]]], List[Issue]]:
    """親Issueのタイトルでグループ化（出現順を保持）

    Returns:
        (親タイトル -> (親Issue, 子Issue一覧), 親の無いIssue一覧)
    """
    groups: Dict[str, Tuple[ParentIssue, List[Issue]]] = {}
    orphans: List[Issue] = []

    for issue in issues:
        if issue.parent is None:
            orphans.append(issue)
            continue
        groups.setdefault(issue.parent.title, (issue.parent, []))[1].append(issue)

    return groups, orphans


def _format_grouped_text(issues: List[Issue]) -> str:
    groups, orphans = group_by_parent(issues)
    lines = [f"Found {len(issues)} issue(s):", ""]

    for title, (parent, children) in groups.items():
        lines.append(f"▶ {title}")
        lines.append(f"  {parent.url}")
        lines.append("  Completed:")
        for issue in children:
            lines.append(f"    • [{_ref(issue)}] {issue.title}")
        lines.append("")

    if orphans:
        lines.append("▶ Standalone Issues")
        for issue in orphans:
            lines.append(f"  • [{_ref(issue)}] {issue.title}")
            lines.append(f"    {issue.url}")

    return "\n".join(lines).rstrip()


def _format_grouped_markdown(issues: List[Issue]) -> str:
    groups, orphans = group_by_parent(issues)
    lines = [f"## Summary ({len(issues)} issues)", ""]

    for title, (parent, children) in groups.items():
        lines.append(f"### [{title}]({parent.url})")
        lines.append("")
        for issue in children:
            lines.append(f"- [{_ref(issue)}]({issue.url}): {issue.title}")
        lines.append("")

    if orphans:
        lines.append("### Standalone Issues")
        lines.append("")
        for issue in orphans:
            lines.append(f"- [{_ref(issue)}]({issue.url}): {issue.title}")

    return "\n".join(lines).rstrip()


def format_stats(
    stats: FetchStats,
    issue_count: int,
    project_node_id: str,
    column_name: str,
    status_field: str,
    iteration_filter: Optional[str] = None,
) -> str:
    """--debug 用の診断情報を整形"""
    lines = [
        f"Debug: Project node ID: {project_node_id}",
        f'Debug: Looking for column: "{column_name}"',
        f'Debug: Status field: "{status_field}"',
    ]
    if iteration_filter is not None:
        lines.append(f'Debug: Iteration filter: "{iteration_filter}"')
    lines += [
        f"Debug: Total items fetched: {stats.total_items}",
        f"Debug: Archived items (skipped): {stats.archived}",
        f"Debug: Wrong column (skipped): {stats.wrong_column}",
        f"Debug: Not an issue (skipped): {stats.not_issue}",
        f"Debug: Filtered by iteration (skipped): {stats.filtered_by_iteration}",
        f"Debug: Filtered by time (skipped): {stats.filtered_by_time}",
        f"Debug: Final count: {issue_count}",
    ]
    if stats.columns_seen:
        lines.append(f"Debug: Columns seen: {sorted(stats.columns_seen)}")
    if stats.iterations_seen:
        lines.append(f"Debug: Iterations seen: {sorted(stats.iterations_seen)}")
    return "\n".join(lines)
