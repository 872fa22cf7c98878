"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    CURRENCY: str = "USD"

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    JWT_ALGORITHM: str = "HS256"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    CLI_LOGS_DIR: Path = LOGS_DIR / "cli"

    # 설정 파일
    SECRETS_FILE: Path = CONFIG_DIR / "secrets.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "ledger_prod.db"
    DEV_DB: Path = DATA_DIR / "ledger_dev.db"


class LedgerLimits:
    """Ledger 동기화 한도"""

    # 후보 주문 조회 페이지 크기 (동기화는 모든 페이지를 순회)
    CANDIDATE_PAGE_SIZE: int = 500

    # IN (...) 조회 1회당 최대 ID 수 (쿼리 파라미터 한도)
    LOOKUP_CHUNK_SIZE: int = 80

    # SQLite 기본 SQLITE_MAX_VARIABLE_NUMBER 하한
    MAX_LOOKUP_CHUNK_SIZE: int = 999

    # 원장 조회 API 최대 페이지 크기
    MAX_PAGE_SIZE: int = 500
