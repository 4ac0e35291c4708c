"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → cashbook/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 베트남 영업일 기준 (ICT, UTC+7)
    TZ_OFFSET_HOURS: int = 7

    # 조회 API 기본 페이지 크기
    LIST_LIMIT: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    SCRIPT_LOGS_DIR: Path = LOGS_DIR / "scripts"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "cashbook_prod.db"
    DEV_DB: Path = DATA_DIR / "cashbook_dev.db"


class CodePrefix:
    """전표 번호 접두사

    접두사 + 4자리 일련번호 (예: PT0001)
    """

    INCOME: str = "PT"  # Phiếu thu (입금 전표)
    EXPENSE: str = "PC"  # Phiếu chi (출금 전표)
    ADJUSTMENT: str = "DC"  # Điều chỉnh (잔액 조정)
    TRANSFER: str = "CK"  # Chuyển khoản (내부 이체)
    WALLET: str = "W"
    ORDER: str = "DH"  # Đơn hàng
    WORKSHOP_JOB: str = "GC"  # Gia công

    WIDTH: int = 4


class Notes:
    """시스템이 자동으로 붙이는 메모 문구 (UI 표시용, 베트남어)"""

    OPENING_BALANCE: str = "Số dư ban đầu"
    WORKSHOP_PAYMENT: str = "Thanh toán gia công"
