from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 50


def chunkRecords(records: Sequence[T], size: int = DEFAULT_BATCH_SIZE) -> list[list[T]]:
    """
    Назначение:
        Делит записи на последовательные пакеты не длиннее size, сохраняя порядок.
        Только последний пакет может быть короче.
    """
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [list(records[i : i + size]) for i in range(0, len(records), size)]
