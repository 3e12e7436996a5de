import json

from models.document import HISTORY_KEY, MAPPING_KEY, LabelDocument


def test_store_uses_the_two_logical_keys():
    doc = LabelDocument({"active-price": "Price"}, [{"id": "h1", "product": "Weller"}])
    store = doc.to_store()
    assert set(store) == {"std_mapping", "std_history"}
    assert store[MAPPING_KEY] == {"active-price": "Price"}
    assert store[HISTORY_KEY] == [{"id": "h1", "product": "Weller"}]


def test_store_round_trip_is_lossless():
    doc = LabelDocument(
        {"active-price": "Price", "was-price": "MSRP", "product-name-1": "Name (EN) ✓"},
        [{"id": "a", "price": "$1", "nested": {"k": [1, 2]}}],
    )
    assert LabelDocument.from_store(json.loads(json.dumps(doc.to_store()))) == doc


def test_save_and_load_json(tmp_path):
    path = str(tmp_path / "doc.json")
    doc = LabelDocument({"was-price": "MSRP"})
    doc.record_print("label-1", "Weller", "$24.99", printed_at="2026-01-01T00:00:00+00:00")
    doc.save_json(path)
    loaded = LabelDocument.load_json(path)
    assert loaded == doc
    assert loaded.history[0]["product"] == "Weller"


def test_missing_file_loads_empty(tmp_path):
    doc = LabelDocument.load_json(str(tmp_path / "nope.json"))
    assert doc.column_mapping == {}
    assert doc.history == []


def test_from_store_tolerates_missing_keys():
    assert LabelDocument.from_store({}) == LabelDocument()


def test_update_history_record():
    doc = LabelDocument()
    record = doc.record_print("label-1", "Weller", "$24.99")
    old_history = doc.history
    assert doc.update_history_record(record["id"], "price", "$22.99")
    assert doc.history[0]["price"] == "$22.99"
    # previous list left as it was
    assert old_history[0]["price"] == "$24.99"
    assert not doc.update_history_record("unknown", "price", "$1")
