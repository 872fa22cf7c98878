"""
설정 로더

secrets.yaml 로드 및 Ledger/Web 설정 생성
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from core.constants import Defaults, LedgerLimits, Paths
from core.types import Environment


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger 동기화 설정"""

    candidate_page_size: int = LedgerLimits.CANDIDATE_PAGE_SIZE
    lookup_chunk_size: int = LedgerLimits.LOOKUP_CHUNK_SIZE


@dataclass(frozen=True)
class Secrets:
    """보안 설정 (secrets.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    environment: Environment
    web_secret_key: str
    jwt_algorithm: str = Defaults.JWT_ALGORITHM
    database_path: Path | None = None
    ledger: LedgerConfig = field(default_factory=LedgerConfig)


class SecretsLoadError(Exception):
    """Secrets 로드 실패 예외"""

    pass


def _load_ledger_config(data: dict) -> LedgerConfig:
    """ledger 섹션 파싱 (없으면 기본값)"""
    ledger_data = data.get("ledger") or {}

    page_size = ledger_data.get(
        "candidate_page_size", LedgerLimits.CANDIDATE_PAGE_SIZE
    )
    chunk_size = ledger_data.get("lookup_chunk_size", LedgerLimits.LOOKUP_CHUNK_SIZE)

    if not isinstance(page_size, int) or page_size <= 0:
        raise SecretsLoadError(
            f"ledger.candidate_page_size는 양의 정수여야 합니다: {page_size!r}"
        )
    if (
        not isinstance(chunk_size, int)
        or chunk_size <= 0
        or chunk_size > LedgerLimits.MAX_LOOKUP_CHUNK_SIZE
    ):
        raise SecretsLoadError(
            f"ledger.lookup_chunk_size는 1~{LedgerLimits.MAX_LOOKUP_CHUNK_SIZE} "
            f"범위여야 합니다: {chunk_size!r}"
        )

    return LedgerConfig(
        candidate_page_size=page_size,
        lookup_chunk_size=chunk_size,
    )


def load_secrets(path: Path | None = None) -> Secrets:
    """secrets.yaml 파일 로드

    Args:
        path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Secrets 인스턴스

    Raises:
        SecretsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 environment인 경우
    """
    if path is None:
        path = Paths.SECRETS_FILE

    if not path.exists():
        raise SecretsLoadError(f"secrets.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SecretsLoadError(f"secrets.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SecretsLoadError("secrets.yaml이 비어 있습니다")

    # environment 검증
    env_str = data.get("environment")
    if env_str is None:
        raise SecretsLoadError("secrets.yaml에 'environment' 필드가 없습니다")

    try:
        environment = Environment(env_str)
    except ValueError as e:
        valid = [e.value for e in Environment]
        raise ValueError(
            f"유효하지 않은 environment입니다: '{env_str}'. "
            f"유효한 값: {valid}"
        ) from e

    # Web secret key 로드
    web_config = data.get("web") or {}
    web_secret_key = web_config.get("secret_key", "")

    if not web_secret_key:
        raise SecretsLoadError(
            "secrets.yaml의 web 섹션에 'secret_key'가 없습니다"
        )

    jwt_algorithm = web_config.get("jwt_algorithm", Defaults.JWT_ALGORITHM)

    # DB 경로 (선택)
    database_config = data.get("database") or {}
    database_path = database_config.get("path")

    return Secrets(
        environment=environment,
        web_secret_key=web_secret_key,
        jwt_algorithm=jwt_algorithm,
        database_path=Path(database_path) if database_path else None,
        ledger=_load_ledger_config(data),
    )


def get_db_path(secrets: Secrets) -> Path:
    """DB 경로 반환

    database.path가 지정되면 그 경로, 아니면 환경별 기본 경로.

    Args:
        secrets: Secrets 인스턴스

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if secrets.database_path is not None:
        return secrets.database_path
    if secrets.environment == Environment.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    secrets.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _secrets: Secrets | None = None

    def __new__(cls, secrets_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, secrets_path: Path | None = None) -> None:
        if self._secrets is None:
            self._secrets = load_secrets(secrets_path)

    @property
    def environment(self) -> Environment:
        """현재 실행 환경"""
        assert self._secrets is not None
        return self._secrets.environment

    @property
    def web_secret_key(self) -> str:
        """Web JWT Secret Key"""
        assert self._secrets is not None
        return self._secrets.web_secret_key

    @property
    def jwt_algorithm(self) -> str:
        """JWT 서명 알고리즘"""
        assert self._secrets is not None
        return self._secrets.jwt_algorithm

    @property
    def ledger(self) -> LedgerConfig:
        """Ledger 동기화 설정"""
        assert self._secrets is not None
        return self._secrets.ledger

    @property
    def db_path(self) -> Path:
        """현재 환경의 DB 경로"""
        assert self._secrets is not None
        return get_db_path(self._secrets)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._secrets = None


def get_settings(secrets_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        secrets_path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(secrets_path)
