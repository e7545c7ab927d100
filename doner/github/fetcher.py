from datetime import date, datetime
from typing import Callable, List, Optional, Tuple
from doner.config import BoardFieldConfig
from doner.github.client import GitHubClient, GitHubError, ProjectNotFoundError
from doner.github.models import (
    NO_ITERATION,
    NO_STATUS,
    FetchStats,
    Issue,
    PageInfo,
    ProjectItemsPage,
    RawProjectItem,
)
from doner.github.queries import GET_PROJECT_ITEMS_PAGE
from doner.utils.iteration_matcher import IterationMatcher
from doner.utils.logger import get_logger

logger = get_logger(__name__)

PAGE_SIZE = 100


def classify_item(
    item: RawProjectItem,
    column_name: str,
    stats: FetchStats,
    matcher: Optional[IterationMatcher] = None,
    collect_stats: bool = False,
) -> Optional[Issue]:
    """アイテムを1件分類し、採用するならIssueを返す

    判定順は固定で、最初に外れた条件が除外理由としてstatsに記録される:
    アーカイブ済み → 列違い → イテレーション → Issue以外
    """
    if item.is_archived:
        stats.archived += 1
        return None

    item_column = item.column_name()
    if collect_stats:
        stats.columns_seen.add(item_column if item_column is not None else NO_STATUS)

    if item_column != column_name:
        stats.wrong_column += 1
        return None

    iteration_title = item.iteration_title()
    if collect_stats:
        stats.iterations_seen.add(
            iteration_title if iteration_title is not None else NO_ITERATION
        )

    if matcher is not None and not matcher.matches(
        iteration_title, item.iteration_start()
    ):
        stats.filtered_by_iteration += 1
        return None

    content = item.issue_content()
    if content is None:
        stats.not_issue += 1
        return None

    return content.to_issue()


def apply_time_cutoff(
    issues: List[Issue], since: Optional[datetime], stats: FetchStats
) -> List[Issue]:
    """since以降にクローズされたIssueだけを残す

    クローズ日時が無いIssueはフィルタ指定時には除外する。
    """
    if since is None:
        return issues

    kept = []
    for issue in issues:
        if issue.closed_at is None or issue.closed_at < since:
            stats.filtered_by_time += 1
            continue
        kept.append(issue)
    return kept


class ProjectItemFetcher:
    """Projectのアイテムをページングしながらすべて取得して分類する"""

    def __init__(
        self,
        client: GitHubClient,
        fields: BoardFieldConfig = None,
        clock: Callable[[], date] = None,
        page_size: int = PAGE_SIZE,
    ):
        self.client = client
        self.fields = fields or BoardFieldConfig()
        self.clock = clock
        self.page_size = page_size

    async def fetch_page(
        self, project_node_id: str, cursor: Optional[str]
    ) -> ProjectItemsPage:
        """アイテムを1ページ分取得

        Raises:
            ProjectNotFoundError: ノードIDがProjectとして解決できない場合
        """
        variables = {
            "projectId": project_node_id,
            "cursor": cursor,
            "pageSize": self.page_size,
            "statusField": self.fields.status_field,
            "iterationField": self.fields.iteration_field,
        }
        data = await self.client.execute_query(
            GET_PROJECT_ITEMS_PAGE,
            variables,
            operation=f"Fetching items of project {project_node_id}",
        )

        node = data.get("node")
        if not node or "items" not in node:
            raise ProjectNotFoundError(
                f"Project '{project_node_id}' not found. Make sure the project ID is "
                "correct and your token has the 'read:project' scope."
            )
        return ProjectItemsPage.model_validate(node["items"])

    async def fetch_project_issues(
        self,
        project_node_id: str,
        column_name: str,
        since: Optional[datetime] = None,
        iteration_filter: Optional[str] = None,
        collect_stats: bool = False,
    ) -> Tuple[List[Issue], FetchStats]:
        """指定した列のIssueをすべて取得

        Args:
            project_node_id: ProjectのノードID
            column_name: 対象の列名（Statusフィールドの値）
            since: この時刻以降にクローズされたIssueのみ対象
            iteration_filter: イテレーションのフィルタ式
            collect_stats: 見つかった列名・イテレーション名を記録する

        Returns:
            Tuple[List[Issue], FetchStats]: サーバーの返却順のIssueと統計情報

        Raises:
            GitHubError: いずれかのページ取得に失敗した場合（途中結果は返さない）
        """
        matcher = None
        if iteration_filter is not None:
            matcher = IterationMatcher(iteration_filter, clock=self.clock)

        all_issues: List[Issue] = []
        stats = FetchStats()
        cursor: Optional[str] = None
        page_number = 0

        while True:
            page_number += 1
            page = await self.fetch_page(project_node_id, cursor)
            logger.debug(
                f"Fetched page {page_number} of {project_node_id}: {len(page.nodes)} items"
            )

            page_stats = FetchStats(total_items=len(page.nodes))
            accepted = []
            for item in page.nodes:
                issue = classify_item(
                    item, column_name, page_stats, matcher, collect_stats
                )
                if issue is not None:
                    accepted.append(issue)

            all_issues.extend(apply_time_cutoff(accepted, since, page_stats))
            stats.merge(page_stats)

            if not page.page_info.has_next_page:
                break
            cursor = self._next_cursor(page.page_info)

        logger.info(
            f"Fetched {stats.total_items} items in {page_number} page(s), "
            f"{len(all_issues)} issue(s) matched column '{column_name}'"
        )
        return all_issues, stats

    @staticmethod
    def _next_cursor(page_info: PageInfo) -> str:
        if not page_info.end_cursor:
            raise GitHubError(
                "GitHub reported another page of project items but returned no cursor"
            )
        return page_info.end_cursor
