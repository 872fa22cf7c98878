"""
유틸리티 패키지

배치 분할, 타임존 처리 등 공통 유틸리티
"""

from core.utils.dedup import (
    chunked,
    unique_preserving_order,
)
from core.utils.numeric import to_decimal
from core.utils.timezone import (
    from_db_ts,
    now_utc,
    to_db_ts,
    to_utc,
    utc_day_bounds,
)

__all__ = [
    "chunked",
    "unique_preserving_order",
    "to_decimal",
    "from_db_ts",
    "now_utc",
    "to_db_ts",
    "to_utc",
    "utc_day_bounds",
]
