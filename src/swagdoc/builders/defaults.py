from __future__ import annotations

from typing import Iterable, Mapping, Optional, TypeVar

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


def default_if_absent(new_value: Optional[T], default_value: Optional[T]) -> Optional[T]:
    return default_value if new_value is None else new_value


def null_to_empty_list(values: Optional[Iterable[T]]) -> list[T]:
    return [] if values is None else list(values)


def null_to_empty_set(values: Optional[Iterable[T]]) -> set[T]:
    return set() if values is None else set(values)


def null_to_empty_map(values: Optional[Mapping[K, V]]) -> dict[K, V]:
    return {} if values is None else dict(values)
