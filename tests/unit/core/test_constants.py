"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from pathlib import Path

from core.constants import PROJECT_ROOT, Defaults, LedgerLimits, Paths


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_absolute_path(self) -> None:
        assert isinstance(PROJECT_ROOT, Path)
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        assert (PROJECT_ROOT / "core").is_dir()


class TestPaths:
    """Paths 테스트"""

    def test_all_paths_are_path_type(self) -> None:
        for name in ("CONFIG_DIR", "DATA_DIR", "LOGS_DIR", "WEB_LOGS_DIR", "CLI_LOGS_DIR",
                     "SECRETS_FILE", "PROD_DB", "DEV_DB"):
            assert isinstance(getattr(Paths, name), Path), name

    def test_db_files_in_data_dir(self) -> None:
        assert Paths.PROD_DB.parent == Paths.DATA_DIR
        assert Paths.DEV_DB.parent == Paths.DATA_DIR
        assert Paths.PROD_DB != Paths.DEV_DB


class TestLedgerLimits:
    def test_defaults(self) -> None:
        assert LedgerLimits.CANDIDATE_PAGE_SIZE == 500
        assert LedgerLimits.LOOKUP_CHUNK_SIZE == 80
        assert LedgerLimits.LOOKUP_CHUNK_SIZE <= LedgerLimits.MAX_LOOKUP_CHUNK_SIZE


def test_default_currency() -> None:
    assert Defaults.CURRENCY == "USD"
    assert Defaults.JWT_ALGORITHM == "HS256"
