"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths
from core.types import Environment


@dataclass(frozen=True)
class AppSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    environment: Environment
    db_path: Path
    web_host: str
    web_port: int
    log_level: str
    tz_offset_hours: int

    @classmethod
    def default(cls) -> "AppSettings":
        """파일이 없을 때 사용하는 기본 설정"""
        return cls(
            environment=Environment.DEVELOPMENT,
            db_path=Paths.DEV_DB,
            web_host=Defaults.WEB_HOST,
            web_port=Defaults.WEB_PORT,
            log_level=Defaults.LOG_LEVEL,
            tz_offset_hours=Defaults.TZ_OFFSET_HOURS,
        )


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def get_default_db_path(environment: Environment) -> Path:
    """환경에 따른 기본 DB 경로 반환

    Args:
        environment: 실행 환경

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if environment == Environment.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """하위 섹션 조회 (없으면 빈 dict)"""
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션 형식이 잘못되었습니다")
    return value


def load_settings(path: Path | None = None) -> AppSettings:
    """settings.yaml 파일 로드

    파일이 없으면 기본 설정 반환.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppSettings 인스턴스

    Raises:
        SettingsLoadError: 형식이 잘못된 경우
        ValueError: 유효하지 않은 environment인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        return AppSettings.default()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return AppSettings.default()
    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    # environment 검증
    env_str = data.get("environment", Environment.DEVELOPMENT.value)
    try:
        environment = Environment(env_str)
    except ValueError as e:
        valid = [env.value for env in Environment]
        raise ValueError(
            f"유효하지 않은 environment입니다: '{env_str}'. "
            f"유효한 값: {valid}"
        ) from e

    database = _section(data, "database")
    web = _section(data, "web")
    logging_conf = _section(data, "logging")

    # DB 경로 (상대 경로는 프로젝트 루트 기준)
    db_value = database.get("path")
    if db_value:
        db_path = Path(db_value)
        if not db_path.is_absolute() and str(db_value) != ":memory:":
            db_path = PROJECT_ROOT / db_path
    else:
        db_path = get_default_db_path(environment)

    try:
        web_port = int(web.get("port", Defaults.WEB_PORT))
        tz_offset = int(data.get("timezone_offset_hours", Defaults.TZ_OFFSET_HOURS))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"settings.yaml 숫자 설정 형식 오류: {e}") from e

    return AppSettings(
        environment=environment,
        db_path=db_path,
        web_host=str(web.get("host", Defaults.WEB_HOST)),
        web_port=web_port,
        log_level=str(logging_conf.get("level", Defaults.LOG_LEVEL)).upper(),
        tz_offset_hours=tz_offset,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: AppSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            type(self)._settings = load_settings(settings_path)

    @property
    def environment(self) -> Environment:
        """현재 실행 환경"""
        assert self._settings is not None
        return self._settings.environment

    @property
    def db_path(self) -> Path:
        """현재 환경의 DB 경로"""
        assert self._settings is not None
        return self._settings.db_path

    @property
    def web_host(self) -> str:
        assert self._settings is not None
        return self._settings.web_host

    @property
    def web_port(self) -> int:
        assert self._settings is not None
        return self._settings.web_port

    @property
    def log_level(self) -> str:
        """로그 레벨 이름 (INFO, DEBUG ...)"""
        assert self._settings is not None
        return self._settings.log_level

    @property
    def tz_offset_hours(self) -> int:
        assert self._settings is not None
        return self._settings.tz_offset_hours

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
