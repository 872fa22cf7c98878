"""
타임존 유틸리티

내부 저장은 UTC 원칙. DB에는 고정 정밀도 ISO-8601 문자열로 저장하여
문자열 정렬 = 시간 정렬이 되도록 한다.
"""

from datetime import date, datetime, time, timedelta, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def to_utc(value: datetime | str) -> datetime:
    """datetime 또는 ISO 문자열을 UTC datetime으로 정규화

    naive datetime은 UTC로 간주.

    Args:
        value: datetime 객체 또는 ISO-8601 문자열 ("Z" 접미사 허용)

    Returns:
        UTC datetime

    Raises:
        ValueError: 파싱할 수 없는 문자열
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db_ts(value: datetime | str) -> str:
    """DB 저장용 타임스탬프 문자열

    항상 마이크로초까지 포함: 2026-02-21T01:00:00.000000+00:00

    Example:
        >>> to_db_ts(datetime(2026, 2, 21, 1, 0, tzinfo=timezone.utc))
        '2026-02-21T01:00:00.000000+00:00'
    """
    return to_utc(value).isoformat(timespec="microseconds")


def from_db_ts(value: str) -> datetime:
    """DB 타임스탬프 문자열을 UTC datetime으로 변환"""
    return to_utc(value)


def utc_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC 기준 하루 구간 [시작, 다음날 시작)

    Example:
        >>> start, end = utc_day_bounds(date(2026, 2, 21))
        >>> start.isoformat(), end.isoformat()
        ('2026-02-21T00:00:00+00:00', '2026-02-22T00:00:00+00:00')
    """
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)
