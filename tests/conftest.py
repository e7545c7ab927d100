"""Pytest configuration for doner tests."""
import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

# Add project root to path so 'doner' can be imported
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def make_item():
    """Build a raw project item node as returned by the items query."""

    def _make(
        column="Done",
        iteration=None,
        start_date=None,
        archived=False,
        content="issue",
        number=1,
        title=None,
        closed_at="2024-01-05T10:00:00Z",
        repository="acme/app",
        parent=None,
    ):
        item = {"id": f"PVTI_{number}", "isArchived": archived}

        if column is None:
            item["fieldValueByName"] = None
        else:
            item["fieldValueByName"] = {
                "__typename": "ProjectV2ItemFieldSingleSelectValue",
                "name": column,
            }

        if iteration is None:
            item["iteration"] = None
        else:
            item["iteration"] = {
                "__typename": "ProjectV2ItemFieldIterationValue",
                "title": iteration,
                "startDate": start_date,
            }

        if content == "issue":
            item["content"] = {
                "__typename": "Issue",
                "number": number,
                "title": title or f"Issue {number}",
                "url": f"https://github.com/{repository}/issues/{number}",
                "closedAt": closed_at,
                "repository": {"nameWithOwner": repository},
                "parent": parent,
            }
        elif content is None:
            item["content"] = None
        else:
            item["content"] = {"__typename": content}
        return item

    return _make


@pytest.fixture
def make_page():
    """Wrap item nodes in the node/items response envelope."""

    def _make(nodes, has_next=False, cursor=None):
        return {
            "node": {
                "items": {
                    "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
                    "nodes": nodes,
                }
            }
        }

    return _make


@pytest.fixture
def fake_client():
    """GitHubClient stand-in whose execute_query is an AsyncMock."""
    client = Mock()
    client.execute_query = AsyncMock()
    return client
