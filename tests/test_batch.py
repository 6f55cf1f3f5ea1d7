"""Tests for batch module."""

import pytest

from seeder.batch import BatchAccumulator


@pytest.mark.parametrize(
    "records,chunk_size,expected_sizes",
    [
        (7, 3, [3, 3, 1]),
        (6, 3, [3, 3]),
        (5, 50, [5]),
        (1, 1, [1]),
        (0, 3, []),
    ],
)
def test_flush_sizes(records, chunk_size, expected_sizes):
    flushed = []
    accumulator = BatchAccumulator(chunk_size, flushed.append)

    for i in range(records):
        accumulator.add({"id": i})
    accumulator.finish()

    assert [len(batch) for batch in flushed] == expected_sizes
    assert accumulator.flush_count == len(expected_sizes)
    assert accumulator.record_count == records
    assert [record["id"] for batch in flushed for record in batch] == list(range(records))


def test_empty_records_are_ignored():
    flushed = []
    accumulator = BatchAccumulator(2, flushed.append)
    accumulator.add({})
    accumulator.add({"id": 1})
    accumulator.add({})
    assert len(accumulator) == 1
    accumulator.finish()
    assert flushed == [[{"id": 1}]]


def test_finish_twice_does_not_reinsert():
    flushed = []
    accumulator = BatchAccumulator(2, flushed.append)
    accumulator.add({"id": 1})
    accumulator.finish()
    accumulator.finish()
    assert flushed == [[{"id": 1}]]


def test_each_flush_gets_a_new_list():
    flushed = []
    accumulator = BatchAccumulator(1, flushed.append)
    accumulator.add({"id": 1})
    accumulator.add({"id": 2})
    assert flushed[0] is not flushed[1]
    assert flushed == [[{"id": 1}], [{"id": 2}]]
    assert len(accumulator) == 0


def test_flushed_batches_are_not_retained():
    accumulator = BatchAccumulator(10, lambda batch: batch)
    for i in range(1000):
        accumulator.add({"id": i})
    accumulator.finish()

    assert accumulator.flush_count == 100
    held = [value for value in vars(accumulator).values() if isinstance(value, list)]
    assert held == [[]]


@pytest.mark.parametrize("chunk_size", [0, -1])
def test_invalid_chunk_size(chunk_size):
    with pytest.raises(ValueError):
        BatchAccumulator(chunk_size, lambda batch: None)
