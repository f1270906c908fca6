import threading

import pytest

from hooksheet.errors import DuplicateRowError, ShapeError
from hooksheet.schemas import ProcessedRow
from hooksheet.store import RecordStore


def make_row(data, row_id=None, timestamp=None, payload="{}"):
    kwargs = {"original_payload": payload, "data": data}
    if row_id is not None:
        kwargs["id"] = row_id
    if timestamp is not None:
        kwargs["timestamp"] = timestamp
    return ProcessedRow(**kwargs)


def test_column_union_is_sorted_union_of_keys():
    store = RecordStore()
    store.append(make_row({"b": 1, "a": 2}))
    store.append(make_row({"c": 3, "b": 4}))
    assert store.column_union() == ["a", "b", "c"]


def test_all_defaults_to_newest_first_and_supports_insertion_order():
    store = RecordStore()
    for i in range(3):
        store.append(make_row({"n": i}, row_id=f"R{i}"))
    assert [r.id for r in store.all()] == ["R2", "R1", "R0"]
    assert [r.id for r in store.all(newest_first=False)] == ["R0", "R1", "R2"]


def test_clear_empties_store_and_is_idempotent():
    store = RecordStore()
    store.append(make_row({"a": 1}))
    store.append(make_row({"b": 1}))
    assert store.clear() == 2
    assert store.all() == []
    assert store.column_union() == []
    assert len(store) == 0
    # clearing an empty store is a no-op
    assert store.clear() == 0
    assert store.all() == []


def test_duplicate_id_rejected_even_after_clear():
    store = RecordStore()
    store.append(make_row({"a": 1}, row_id="R1"))
    with pytest.raises(DuplicateRowError):
        store.append(make_row({"a": 2}, row_id="R1"))
    store.clear()
    with pytest.raises(DuplicateRowError):
        store.append(make_row({"a": 3}, row_id="R1"))
    assert len(store) == 0


def test_non_flat_row_is_refused():
    store = RecordStore()
    row = ProcessedRow.model_construct(id="X", timestamp="T", originalPayload="{}", data={"a": {"b": 1}})
    with pytest.raises(ShapeError):
        store.append(row)
    assert len(store) == 0
    assert store.column_union() == []


def test_timestamps_never_go_backwards():
    store = RecordStore()
    store.append(make_row({"a": 1}, timestamp="2025-01-02T00:00:00.000Z"))
    stored = store.append(make_row({"a": 2}, timestamp="2025-01-01T00:00:00.000Z"))
    assert stored.timestamp == "2025-01-02T00:00:00.000Z"
    later = store.append(make_row({"a": 3}, timestamp="2025-01-03T00:00:00.000Z"))
    assert later.timestamp == "2025-01-03T00:00:00.000Z"


def test_caller_mutation_does_not_reach_stored_row():
    store = RecordStore()
    data = {"a": 1}
    store.append(make_row(data))
    data["sneaky"] = 2
    assert store.all()[0].data == {"a": 1}
    assert store.column_union() == ["a"]


def test_reader_mutation_does_not_reach_stored_row():
    store = RecordStore()
    store.append(make_row({"a": 1}))
    store.all()[0].data["zzz"] = {"nested": [1]}
    rows, _ = store.snapshot()
    rows[0].data["yyy"] = 2
    assert store.all()[0].data == {"a": 1}
    assert store.snapshot()[0][0].data == {"a": 1}
    assert store.column_union() == ["a"]


def test_infinite_value_is_refused():
    store = RecordStore()
    row = ProcessedRow.model_construct(id="X", timestamp="T", originalPayload="{}", data={"amount": float("inf")})
    with pytest.raises(ShapeError):
        store.append(row)
    assert len(store) == 0


def test_snapshot_pairs_rows_with_their_columns():
    store = RecordStore()
    store.append(make_row({"x": 1}, row_id="R1"))
    store.append(make_row({"y": 1}, row_id="R2"))
    rows, columns = store.snapshot(newest_first=False)
    assert [r.id for r in rows] == ["R1", "R2"]
    assert columns == ["x", "y"]


def test_concurrent_appends_keep_every_row():
    store = RecordStore()

    def worker(k):
        for i in range(50):
            store.append(make_row({f"k{k}": i}))

    threads = [threading.Thread(target=worker, args=(k,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(store) == 200
    assert store.column_union() == ["k0", "k1", "k2", "k3"]
    assert len({r.id for r in store.all()}) == 200
