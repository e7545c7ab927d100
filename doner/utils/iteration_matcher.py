from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

# スプリントは一律2週間とみなす（ボードの実際の設定は参照しない）
SPRINT_LENGTH_DAYS = 14

ALL = "@all"
CURRENT = "@current"
PREVIOUS = "@previous"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _parse_start(start_date: Optional[str]) -> Optional[date]:
    if not start_date:
        return None
    try:
        return datetime.strptime(start_date, "%Y-%m-%d").date()
    except ValueError:
        return None


def is_current_iteration(start_date: Optional[str], today: date) -> bool:
    """start <= today < start + スプリント長 なら現在のイテレーション"""
    start = _parse_start(start_date)
    if start is None:
        return False
    return start <= today < start + timedelta(days=SPRINT_LENGTH_DAYS)


def is_previous_iteration(start_date: Optional[str], today: date) -> bool:
    """開始日が2〜4週間前なら直前のイテレーションとみなす

    全イテレーションの一覧は参照しないため、スプリント長が不規則な
    ボードでは誤判定することがある。
    """
    start = _parse_start(start_date)
    if start is None:
        return False
    window_start = today - timedelta(days=SPRINT_LENGTH_DAYS * 2)
    window_end = today - timedelta(days=SPRINT_LENGTH_DAYS)
    return window_start <= start < window_end


def matches_iteration_filter(
    title: Optional[str],
    start_date: Optional[str],
    filter_expr: str,
    today: date,
) -> bool:
    """アイテムのイテレーションがフィルタに一致するか判定

    対応するフィルタ:
        @all                 すべて一致（フィルタ無効）
        @current             今日を含むイテレーション
        @previous            直前のイテレーション（ヒューリスティック）
        @current,@previous   いずれか
        <イテレーション名>   タイトルの完全一致

    Args:
        title: イテレーションのタイトル
        start_date: 開始日（YYYY-MM-DD）
        filter_expr: フィルタ式
        today: 判定に使う今日の日付

    Returns:
        bool: 一致すればTrue
    """
    for token in (part.strip() for part in filter_expr.split(",")):
        if token == ALL:
            return True
        # @で始まるトークンはイテレーション未設定のアイテムに一致しない
        if token.startswith("@") and title is None:
            continue
        if token == CURRENT:
            if is_current_iteration(start_date, today):
                return True
        elif token == PREVIOUS:
            if is_previous_iteration(start_date, today):
                return True
        elif title is not None and token == title:
            return True

    return False


class IterationMatcher:
    """フィルタ式と日付の取得元を束ねたマッチャー"""

    def __init__(self, filter_expr: str, clock: Callable[[], date] = None):
        self.filter_expr = filter_expr
        self.clock = clock or utc_today

    def matches(self, title: Optional[str], start_date: Optional[str]) -> bool:
        return matches_iteration_filter(
            title, start_date, self.filter_expr, self.clock()
        )
