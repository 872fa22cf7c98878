"""
배치 조회 유틸리티

IN (...) 조회용 청크 분할과 중복 제거.
"""

from collections.abc import Iterable, Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """시퀀스를 최대 size 개씩 분할

    IN (...) 조회의 파라미터 개수 제한 대응.

    Example:
        >>> list(chunked([1, 2, 3, 4, 5], 2))
        [[1, 2], [3, 4], [5]]
    """
    if size <= 0:
        raise ValueError(f"chunk size는 양수여야 합니다: {size}")

    for i in range(0, len(items), size):
        yield list(items[i : i + size])


def unique_preserving_order(items: Iterable[T]) -> list[T]:
    """중복 제거 (첫 등장 순서 유지)

    Example:
        >>> unique_preserving_order(["b", "a", "b", "c"])
        ['b', 'a', 'c']
    """
    seen: set[T] = set()
    result: list[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result
