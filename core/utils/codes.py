"""
전표 번호 유틸리티

전표/지갑 번호 생성 및 파싱 기능 제공
규칙: {prefix}{4자리 일련번호} (예: PT0001, CK0012, W0003)
"""

from typing import Iterable

from core.constants import CodePrefix


def make_code(prefix: str, number: int, width: int = CodePrefix.WIDTH) -> str:
    """번호 문자열 생성

    Args:
        prefix: 접두사 (PT, PC, DC, CK, W ...)
        number: 일련번호 (1부터)
        width: 0 채움 자리수

    Returns:
        code: 접두사 + 0 채움 번호

    Example:
        >>> make_code("PT", 12)
        'PT0012'
    """
    if not prefix:
        raise ValueError("prefix는 비어 있을 수 없습니다")
    if number < 1:
        raise ValueError(f"number는 1 이상이어야 합니다: {number}")

    return f"{prefix}{number:0{width}d}"


def parse_code(code: str, prefix: str) -> int | None:
    """번호 문자열에서 일련번호 추출

    Args:
        code: PT0012 형식 문자열
        prefix: 기대하는 접두사

    Returns:
        일련번호 또는 None (형식 불일치 시)

    Example:
        >>> parse_code("PT0012", "PT")
        12
        >>> parse_code("PC0012", "PT")
        None
    """
    if not code or not code.startswith(prefix):
        return None

    numeric = code[len(prefix) :]
    if not numeric.isdigit():
        return None

    return int(numeric)


def next_code(prefix: str, existing: Iterable[str | None]) -> str:
    """기존 번호 중 최대값 + 1 번호 생성

    형식이 맞지 않는 번호는 무시.

    Args:
        prefix: 접두사
        existing: 기존 번호 목록

    Returns:
        다음 번호
    """
    highest = 0
    for code in existing:
        if code is None:
            continue
        number = parse_code(code, prefix)
        if number is not None and number > highest:
            highest = number

    return make_code(prefix, highest + 1)
