from __future__ import annotations

import math

import pytest

from namestone_sync.domain.transform.batcher import chunkRecords


@pytest.mark.parametrize("count", [0, 1, 49, 50, 51, 100, 101, 137])
def test_chunks_cover_all_records_in_order(count: int):
    records = list(range(count))

    batches = chunkRecords(records, 50)

    assert len(batches) == math.ceil(count / 50)
    assert all(len(batch) == 50 for batch in batches[:-1])
    if batches:
        assert 1 <= len(batches[-1]) <= 50
    assert [item for batch in batches for item in batch] == records


def test_default_size_is_fifty():
    batches = chunkRecords(list(range(120)))

    assert [len(b) for b in batches] == [50, 50, 20]


def test_rejects_non_positive_size():
    with pytest.raises(ValueError):
        chunkRecords([1, 2, 3], 0)
