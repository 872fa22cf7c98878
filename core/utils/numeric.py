"""
숫자 변환 유틸리티

금액은 Decimal로만 다룬다 (float 누적 오차 방지).
"""

from decimal import Decimal, InvalidOperation
from typing import Any


def to_decimal(value: Any) -> Decimal:
    """숫자 값을 Decimal로 변환 (None은 0)

    float는 str을 거쳐 변환하여 이진 오차가 그대로 유입되지 않도록 한다.

    Example:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal(None)
        Decimal('0')

    Raises:
        ValueError: 숫자로 해석할 수 없는 값
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"숫자가 아닌 값: {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"숫자가 아닌 값: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"유한한 숫자가 아닙니다: {value!r}")
    return result
