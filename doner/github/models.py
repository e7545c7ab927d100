from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Literal, Optional, Set, Union

NO_STATUS = "<no status>"
NO_ITERATION = "<no iteration>"


def _coerce_variant(value: Any, known: Set[str]) -> Any:
    """GraphQLのunion値を既知のvariantか"Other"に寄せる

    inline fragmentに一致しない値は空オブジェクトで返ってくるので、
    __typenameが無いものや未知のものはすべて"Other"として扱う。
    """
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value
    if not isinstance(value, dict) or value.get("__typename") not in known:
        return {"__typename": "Other"}
    return value


class ParentIssue(BaseModel):
    """親Issue（Epicなど）への参照"""

    number: int
    title: str
    url: str


class Issue(BaseModel):
    """ボードから抽出したIssue"""

    number: int
    title: str
    url: str
    closed_at: Optional[datetime] = None
    parent: Optional[ParentIssue] = None
    repository: str  # owner/name


# --- GraphQLレスポンスの構造 ---


class GraphQLModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SingleSelectValue(GraphQLModel):
    """単一選択フィールドの値（Statusなど）"""

    typename: Literal["ProjectV2ItemFieldSingleSelectValue"] = Field(
        alias="__typename"
    )
    name: Optional[str] = None

    def column_name(self) -> Optional[str]:
        return self.name


class UnknownFieldValue(GraphQLModel):
    """単一選択以外、またはフィールド未設定"""

    typename: Literal["Other"] = Field(default="Other", alias="__typename")

    def column_name(self) -> Optional[str]:
        return None


FieldValue = Union[SingleSelectValue, UnknownFieldValue]


class IterationFieldValue(GraphQLModel):
    """イテレーションフィールドの値"""

    typename: Literal["ProjectV2ItemFieldIterationValue"] = Field(alias="__typename")
    title: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")

    def iteration_title(self) -> Optional[str]:
        return self.title

    def iteration_start(self) -> Optional[str]:
        return self.start_date


class UnknownIterationValue(GraphQLModel):
    typename: Literal["Other"] = Field(default="Other", alias="__typename")

    def iteration_title(self) -> Optional[str]:
        return None

    def iteration_start(self) -> Optional[str]:
        return None


IterationValue = Union[IterationFieldValue, UnknownIterationValue]


class RepositoryRef(GraphQLModel):
    name_with_owner: str = Field(alias="nameWithOwner")


class IssueContent(GraphQLModel):
    """アイテムの中身がIssueの場合"""

    typename: Literal["Issue"] = Field(alias="__typename")
    number: int
    title: str
    url: str
    closed_at: Optional[datetime] = Field(default=None, alias="closedAt")
    repository: RepositoryRef
    parent: Optional[ParentIssue] = None

    def to_issue(self) -> Issue:
        return Issue(
            number=self.number,
            title=self.title,
            url=self.url,
            closed_at=self.closed_at,
            parent=self.parent,
            repository=self.repository.name_with_owner,
        )


class UnknownContent(GraphQLModel):
    """DraftIssue、PullRequestなどIssue以外の中身"""

    typename: Literal["Other"] = Field(default="Other", alias="__typename")


ItemContent = Union[IssueContent, UnknownContent]


class RawProjectItem(GraphQLModel):
    """分類前のProjectアイテム"""

    id: Optional[str] = None
    is_archived: bool = Field(default=False, alias="isArchived")
    status: Optional[FieldValue] = Field(default=None, alias="fieldValueByName")
    iteration: Optional[IterationValue] = None
    content: Optional[ItemContent] = None

    @field_validator("status", mode="before")
    @classmethod
    def _decode_status(cls, v: Any) -> Any:
        return _coerce_variant(v, {"ProjectV2ItemFieldSingleSelectValue"})

    @field_validator("iteration", mode="before")
    @classmethod
    def _decode_iteration(cls, v: Any) -> Any:
        return _coerce_variant(v, {"ProjectV2ItemFieldIterationValue"})

    @field_validator("content", mode="before")
    @classmethod
    def _decode_content(cls, v: Any) -> Any:
        return _coerce_variant(v, {"Issue"})

    def column_name(self) -> Optional[str]:
        return self.status.column_name() if self.status else None

    def iteration_title(self) -> Optional[str]:
        return self.iteration.iteration_title() if self.iteration else None

    def iteration_start(self) -> Optional[str]:
        return self.iteration.iteration_start() if self.iteration else None

    def issue_content(self) -> Optional[IssueContent]:
        if isinstance(self.content, IssueContent):
            return self.content
        return None


class PageInfo(GraphQLModel):
    """ページネーションのカーソル情報"""

    has_next_page: bool = Field(alias="hasNextPage")
    end_cursor: Optional[str] = Field(default=None, alias="endCursor")


class ProjectItemsPage(GraphQLModel):
    """items コネクションの1ページ分"""

    page_info: PageInfo = Field(alias="pageInfo")
    nodes: List[RawProjectItem] = []

    @field_validator("nodes", mode="before")
    @classmethod
    def _drop_null_nodes(cls, v: Any) -> Any:
        if v is None:
            return []
        return [node for node in v if node is not None]


class FetchStats(BaseModel):
    """取得処理の診断用カウンタ"""

    total_items: int = 0
    archived: int = 0
    wrong_column: int = 0
    not_issue: int = 0
    filtered_by_time: int = 0
    filtered_by_iteration: int = 0
    columns_seen: Set[str] = Field(default_factory=set)
    iterations_seen: Set[str] = Field(default_factory=set)

    @property
    def accepted_before_time_filter(self) -> int:
        """分類を通過したアイテム数（時間フィルタ適用前）"""
        return (
            self.total_items
            - self.archived
            - self.wrong_column
            - self.filtered_by_iteration
            - self.not_issue
        )

    def merge(self, other: "FetchStats"):
        """別ページの統計を加算する"""
        self.total_items += other.total_items
        self.archived += other.archived
        self.wrong_column += other.wrong_column
        self.not_issue += other.not_issue
        self.filtered_by_time += other.filtered_by_time
        self.filtered_by_iteration += other.filtered_by_iteration
        self.columns_seen |= other.columns_seen
        self.iterations_seen |= other.iterations_seen
