import re
from typing import Tuple
from doner.github.client import (
    GitHubClient,
    GitHubError,
    GitHubGraphQLError,
    ProjectNotFoundError,
)
from doner.github.queries import GET_ORG_PROJECT_ID, GET_USER_PROJECT_ID
from doner.utils.logger import get_logger

logger = get_logger(__name__)

NODE_ID_PREFIX = "PVT_"


class InvalidProjectIdError(ValueError):
    """Project ID の書式エラー"""

    pass


def parse_project_id(project_id: str) -> Tuple[str, int]:
    """'owner/number' 形式を分解

    Raises:
        InvalidProjectIdError: 形式が不正、または番号が正の整数でない場合
    """
    parts = project_id.split("/")
    if len(parts) != 2 or not parts[0]:
        raise InvalidProjectIdError(
            f"Invalid project ID format: '{project_id}'. Use 'owner/number' "
            f"(e.g., 'myorg/5') or a GraphQL node ID (starting with '{NODE_ID_PREFIX}')"
        )

    owner, number_text = parts
    if not re.fullmatch(r"[0-9]+", number_text) or int(number_text) <= 0:
        raise InvalidProjectIdError(
            f"Invalid project number '{number_text}' in '{project_id}'. "
            "Project number must be a positive integer"
        )
    return owner, int(number_text)


class ProjectResolver:
    """Project識別子をGraphQLのノードIDに解決する"""

    def __init__(self, client: GitHubClient):
        self.client = client

    async def resolve(self, project_id: str) -> str:
        """Project識別子をノードIDに変換

        Args:
            project_id: ノードID（PVT_で始まる）または 'owner/number'

        Returns:
            str: ProjectのノードID

        Raises:
            InvalidProjectIdError: 識別子の形式が不正な場合
            ProjectNotFoundError: Organization / User どちらでも見つからない場合
        """
        project_id = project_id.strip()
        if project_id.startswith(NODE_ID_PREFIX):
            return project_id

        owner, number = parse_project_id(project_id)
        return await self.lookup_project_id(owner, number)

    async def lookup_project_id(self, owner: str, number: int) -> str:
        """Organization → User の順でProjectを探す"""
        try:
            return await self.lookup_org_project(owner, number)
        except GitHubError as e:
            logger.debug(f"Organization lookup for {owner}/{number} failed: {e}")

        return await self.lookup_user_project(owner, number)

    async def lookup_org_project(self, org: str, number: int) -> str:
        data = await self.client.execute_query(
            GET_ORG_PROJECT_ID,
            {"org": org, "number": number},
            operation=f"Organization project lookup ({org}/{number})",
        )

        organization = data.get("organization")
        if organization is None:
            raise ProjectNotFoundError(
                f"Organization '{org}' not found or not accessible. "
                "Check the org name and your token permissions."
            )

        project = organization.get("projectV2")
        if project is None:
            raise ProjectNotFoundError(
                f"Project #{number} not found in organization '{org}'. Check the project "
                "number and your token permissions (needs 'read:project' scope)."
            )

        logger.info(f"Resolved {org}/{number} as organization project {project['id']}")
        return project["id"]

    async def lookup_user_project(self, user: str, number: int) -> str:
        not_found = ProjectNotFoundError(
            f"Project '{user}/{number}' not found as an organization or user project. "
            "Check that the owner and project number are correct and that your token "
            "has the 'read:project' scope."
        )

        try:
            data = await self.client.execute_query(
                GET_USER_PROJECT_ID,
                {"user": user, "number": number},
                operation=f"User project lookup ({user}/{number})",
            )
        except GitHubGraphQLError as e:
            raise not_found from e

        project = (data.get("user") or {}).get("projectV2")
        if project is None:
            raise not_found

        logger.info(f"Resolved {user}/{number} as user project {project['id']}")
        return project["id"]
