"""
타임존 유틸리티

내부 저장: UTC | 외부 표시: ICT(UTC+7) 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, time, timedelta, timezone

# ICT 타임존 (UTC+7, 베트남)
ICT = timezone(timedelta(hours=7))


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | date) -> datetime:
    """datetime/date를 UTC aware datetime으로 정규화

    - naive datetime은 UTC로 간주
    - date는 ICT 자정으로 간주 (UI에서 날짜만 입력하는 경우)

    Example:
        >>> ensure_utc(date(2026, 3, 1))
        datetime(2026, 2, 28, 17, 0, tzinfo=timezone.utc)
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min, tzinfo=ICT)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db(value: datetime | date) -> str:
    """DB 저장용 ISO 문자열 (UTC, 마이크로초 고정)

    문자열 비교가 시간 순서와 일치하도록 형식을 고정.
    """
    return ensure_utc(value).isoformat(timespec="microseconds")


def from_db(value: str) -> datetime:
    """DB ISO 문자열 → UTC datetime"""
    return ensure_utc(datetime.fromisoformat(value))


def to_ict(dt: datetime) -> datetime:
    """UTC datetime을 ICT로 변환"""
    return ensure_utc(dt).astimezone(ICT)


def format_ict(dt: datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """UTC datetime을 ICT 문자열로 포맷

    Example:
        >>> format_ict(datetime(2026, 2, 20, 17, 0, tzinfo=timezone.utc))
        '2026-02-21 00:00:00'
    """
    return to_ict(dt).strftime(fmt)


def month_start_ict(now: datetime | None = None) -> datetime:
    """ICT 기준 이번 달 1일 00:00 (UTC로 반환)

    사용 현황 요약의 기본 조회 시작일.
    """
    local = to_ict(now or now_utc())
    start = datetime(local.year, local.month, 1, tzinfo=ICT)
    return start.astimezone(timezone.utc)
