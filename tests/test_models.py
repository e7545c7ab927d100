"""Tests for decoding GraphQL project items."""

from datetime import datetime, timezone

from doner.github.models import (
    FetchStats,
    IssueContent,
    IterationFieldValue,
    ProjectItemsPage,
    RawProjectItem,
    SingleSelectValue,
    UnknownContent,
    UnknownFieldValue,
    UnknownIterationValue,
)


class TestFieldValueDecoding:
    def test_single_select_yields_name(self, make_item):
        item = RawProjectItem.model_validate(make_item(column="Done"))
        assert isinstance(item.status, SingleSelectValue)
        assert item.column_name() == "Done"

    def test_missing_field_is_absent(self, make_item):
        item = RawProjectItem.model_validate(make_item(column=None))
        assert item.status is None
        assert item.column_name() is None

    def test_other_field_type_is_absent(self):
        # fragment mismatch comes back as an empty object
        item = RawProjectItem.model_validate(
            {"isArchived": False, "fieldValueByName": {}}
        )
        assert isinstance(item.status, UnknownFieldValue)
        assert item.column_name() is None

    def test_unknown_typename_is_absent(self):
        item = RawProjectItem.model_validate(
            {
                "isArchived": False,
                "fieldValueByName": {
                    "__typename": "ProjectV2ItemFieldTextValue",
                    "name": "Done",
                },
            }
        )
        assert item.column_name() is None


class TestIterationDecoding:
    def test_iteration_variant(self, make_item):
        item = RawProjectItem.model_validate(
            make_item(iteration="Sprint 5", start_date="2024-01-01")
        )
        assert isinstance(item.iteration, IterationFieldValue)
        assert item.iteration_title() == "Sprint 5"
        assert item.iteration_start() == "2024-01-01"

    def test_other_variant_has_no_title_or_date(self):
        item = RawProjectItem.model_validate({"isArchived": False, "iteration": {}})
        assert isinstance(item.iteration, UnknownIterationValue)
        assert item.iteration_title() is None
        assert item.iteration_start() is None


class TestContentDecoding:
    def test_issue_content(self, make_item):
        item = RawProjectItem.model_validate(
            make_item(
                number=42,
                title="Fix login",
                closed_at="2024-01-05T10:00:00Z",
                parent={"number": 7, "title": "Auth epic", "url": "https://x/7"},
            )
        )
        assert isinstance(item.content, IssueContent)

        issue = item.issue_content().to_issue()
        assert issue.number == 42
        assert issue.title == "Fix login"
        assert issue.repository == "acme/app"
        assert issue.closed_at == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)
        assert issue.parent.number == 7
        assert issue.parent.title == "Auth epic"

    def test_open_issue_has_no_closed_at(self, make_item):
        item = RawProjectItem.model_validate(make_item(closed_at=None))
        assert item.issue_content().to_issue().closed_at is None

    def test_draft_issue_is_not_an_issue(self, make_item):
        item = RawProjectItem.model_validate(make_item(content="DraftIssue"))
        assert isinstance(item.content, UnknownContent)
        assert item.issue_content() is None

    def test_pull_request_is_not_an_issue(self, make_item):
        item = RawProjectItem.model_validate(make_item(content="PullRequest"))
        assert item.issue_content() is None

    def test_missing_content(self, make_item):
        item = RawProjectItem.model_validate(make_item(content=None))
        assert item.content is None
        assert item.issue_content() is None


class TestProjectItemsPage:
    def test_page_info(self, make_page, make_item):
        data = make_page([make_item()], has_next=True, cursor="Y3Vyc29yOjEwMA==")
        page = ProjectItemsPage.model_validate(data["node"]["items"])
        assert page.page_info.has_next_page is True
        assert page.page_info.end_cursor == "Y3Vyc29yOjEwMA=="
        assert len(page.nodes) == 1

    def test_null_nodes_are_skipped(self, make_item):
        page = ProjectItemsPage.model_validate(
            {
                "pageInfo": {"hasNextPage": False, "endCursor": None},
                "nodes": [None, make_item()],
            }
        )
        assert len(page.nodes) == 1


class TestFetchStats:
    def test_merge_sums_counters_and_unions_sets(self):
        first = FetchStats(total_items=3, archived=1, columns_seen={"Done"})
        second = FetchStats(
            total_items=2,
            wrong_column=1,
            filtered_by_time=1,
            columns_seen={"Todo", "Done"},
            iterations_seen={"Sprint 1"},
        )

        first.merge(second)

        assert first.total_items == 5
        assert first.archived == 1
        assert first.wrong_column == 1
        assert first.filtered_by_time == 1
        assert first.columns_seen == {"Done", "Todo"}
        assert first.iterations_seen == {"Sprint 1"}

    def test_accepted_before_time_filter(self):
        stats = FetchStats(
            total_items=10, archived=1, wrong_column=2, filtered_by_iteration=3, not_issue=1
        )
        assert stats.accepted_before_time_filter == 3
