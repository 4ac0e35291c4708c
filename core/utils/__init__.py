"""
유틸리티 패키지

전표 번호 생성, 타임존 처리 등 공통 유틸리티
"""

from core.utils.codes import make_code, next_code, parse_code
from core.utils.timezone import (
    ICT,
    ensure_utc,
    format_ict,
    from_db,
    month_start_ict,
    now_utc,
    to_db,
    to_ict,
)

__all__ = [
    "make_code",
    "next_code",
    "parse_code",
    "ICT",
    "ensure_utc",
    "format_ict",
    "from_db",
    "month_start_ict",
    "now_utc",
    "to_db",
    "to_ict",
]
