"""
성과 집계 기간 계산

모든 경계값은 naive UTC datetime으로 반환합니다 (거래 기록의 trade_date와 같은 기준).
'today'의 자정은 서버 설정 시간대(TIMEZONE) 기준입니다.
"""
import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.common.utils.exceptions import ValidationError

TODAY = "today"
WEEK = "week"
MONTH = "month"
YEAR = "year"
ALL = "all"
CUSTOM = "custom"

PERIODS = (TODAY, WEEK, MONTH, YEAR, ALL, CUSTOM)


def _zone(tz_name: str):
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {tz_name}")


def to_naive_utc(value: datetime) -> datetime:
    """aware datetime은 UTC로 변환하고, naive datetime은 이미 UTC로 간주한다."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def shift_months(value: datetime, months: int) -> datetime:
    """달력 기준으로 months만큼 이동한다. 말일은 대상 월의 말일로 맞춘다 (3/31 - 1개월 = 2/28)."""
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_period(
    period: str,
    now: Optional[datetime] = None,
    tz_name: str = "UTC",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Tuple[Optional[datetime], datetime]:
    """
    기간 이름을 [start, end] 구간으로 변환한다.

    - today: 설정 시간대 기준 오늘 자정 ~ 현재
    - week: 현재 - 7일 ~ 현재
    - month: 1개월 전 같은 날짜의 자정 ~ 현재 (달력 기준 1개월)
    - year: 1년 전 같은 날짜의 자정 ~ 현재
    - all: 시작 제한 없음 (start=None)
    - custom: start/end 직접 지정 (다른 기간에 start/end를 주면 ValidationError)

    Returns:
        (start, end): naive UTC. start가 None이면 하한이 없다.
    """
    if not isinstance(period, str) or period.strip().lower() not in PERIODS:
        raise ValidationError(f"Invalid period: {period!r}. Use one of {', '.join(PERIODS)}")
    period = period.strip().lower()

    if period != CUSTOM and (start is not None or end is not None):
        raise ValidationError(f"start/end can only be used with the custom period, not {period!r}")

    now_utc = to_naive_utc(now) if now is not None else datetime.utcnow()

    if period == CUSTOM:
        if start is None and end is None:
            raise ValidationError("Custom period requires a start or end date")
        start_utc = to_naive_utc(start) if start is not None else None
        end_utc = to_naive_utc(end) if end is not None else now_utc
        if start_utc is not None and start_utc > end_utc:
            raise ValidationError("Period start must not be after its end")
        return start_utc, end_utc

    if period == ALL:
        return None, now_utc

    if period == WEEK:
        return now_utc - timedelta(days=7), now_utc

    zone = _zone(tz_name)
    local_now = now_utc.replace(tzinfo=timezone.utc).astimezone(zone)

    if period == TODAY:
        local_start = _start_of_day(local_now)
    elif period == MONTH:
        local_start = _start_of_day(shift_months(local_now, -1))
    else:
        local_start = _start_of_day(shift_months(local_now, -12))

    return to_naive_utc(local_start), now_utc


def month_bounds(now: datetime, months_ago: int, tz_name: str = "UTC") -> Tuple[datetime, datetime, str]:
    """현재 기준 months_ago 개월 전 달력 월의 [시작, 끝)과 'Mon YYYY' 라벨을 반환한다."""
    zone = _zone(tz_name)
    local_now = to_naive_utc(now).replace(tzinfo=timezone.utc).astimezone(zone)
    month_start = shift_months(_start_of_day(local_now).replace(day=1), -months_ago)
    next_month_start = shift_months(month_start, 1)
    label = month_start.strftime("%b %Y")
    return (
        to_naive_utc(month_start),
        to_naive_utc(next_month_start),
        label,
    )
