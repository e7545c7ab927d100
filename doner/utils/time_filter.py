"""--since で指定する時間フィルタの解析"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

SUPPORTED_FORMATS = "7d, 24h, 30m, 2w, yesterday, today, this-week, this-month"

# 単位 -> timedelta のキーワード引数名
DURATION_UNITS = {
    "d": "days",
    "day": "days",
    "days": "days",
    "h": "hours",
    "hour": "hours",
    "hours": "hours",
    "m": "minutes",
    "min": "minutes",
    "mins": "minutes",
    "minute": "minutes",
    "minutes": "minutes",
    "w": "weeks",
    "week": "weeks",
    "weeks": "weeks",
}

DURATION_PATTERN = re.compile(r"^(\d+)([a-z]+)$")


class TimeFilterError(ValueError):
    """時間フィルタの書式エラー"""

    pass


def _invalid(text: str) -> TimeFilterError:
    return TimeFilterError(
        f"Invalid time filter: '{text}'. Use formats like: {SUPPORTED_FORMATS}"
    )


def _local_midnight(day: date, original: str) -> datetime:
    """ローカル日付の0時をUTCの時刻に変換

    夏時間の切り替えなどで0時が存在しない・2回ある場合はエラーにする。
    """
    naive = datetime.combine(day, time.min)
    first = naive.replace(fold=0).astimezone(timezone.utc)
    second = naive.replace(fold=1).astimezone(timezone.utc)
    if first != second:
        raise TimeFilterError(
            f"Invalid time filter: '{original}'. Local midnight of {day.isoformat()} "
            f"is ambiguous or does not exist. Use formats like: {SUPPORTED_FORMATS}"
        )
    return first


def parse_duration(text: str) -> Optional[timedelta]:
    """'7d' や '24h' のような相対時間を解析

    Returns:
        Optional[timedelta]: 解析できない、または範囲外ならNone
    """
    match = DURATION_PATTERN.match(text.strip())
    if not match:
        return None

    unit = DURATION_UNITS.get(match.group(2))
    if unit is None:
        return None
    try:
        return timedelta(**{unit: int(match.group(1))})
    except OverflowError:
        return None


def parse_time_filter(text: str, now: Optional[datetime] = None) -> datetime:
    """時間フィルタ文字列を絶対時刻に変換

    この時刻以降にクローズされたIssueがフィルタを通過する。

    Args:
        text: "7d", "24h", "yesterday", "this-week" など
        now: 現在時刻（テスト用。省略時は現在のローカル時刻）

    Returns:
        datetime: UTCのaware datetime

    Raises:
        TimeFilterError: 書式が不正な場合
    """
    normalized = text.strip().lower()
    if now is None:
        now = datetime.now(timezone.utc)
    local_today = now.astimezone().date()

    if normalized == "today":
        return _local_midnight(local_today, text)
    if normalized == "yesterday":
        return _local_midnight(local_today - timedelta(days=1), text)
    if normalized == "this-week":
        monday = local_today - timedelta(days=local_today.weekday())
        return _local_midnight(monday, text)
    if normalized == "this-month":
        return _local_midnight(local_today.replace(day=1), text)

    duration = parse_duration(normalized)
    if duration is None:
        raise _invalid(text)
    try:
        return now.astimezone(timezone.utc) - duration
    except OverflowError as e:
        raise _invalid(text) from e
