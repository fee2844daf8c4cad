from datetime import datetime, timezone

import pytest
from firebase_admin import firestore
from google.api_core.exceptions import NotFound

from app.config.mock_firestore import MockFirestore
from app.utils.firestore_helpers import count_query, snapshot_to_dict, where_filter


@pytest.fixture
def store():
    db = MockFirestore()
    reports = db.collection("reports")
    reports.document("a").set({"status": "pending", "rank": 3, "tags": ["road"], "location": {"ward": "1"}})
    reports.document("b").set({"status": "assigned", "rank": 1, "tags": ["water", "road"]})
    reports.document("c").set({"status": "resolved", "rank": 2, "tags": []})
    return db


def ids(query):
    return [doc.id for doc in query.stream()]


def test_where_and_order(store):
    query = where_filter(store.collection("reports"), "status", "in", ["pending", "assigned"])

    assert ids(query.order_by("rank")) == ["b", "a"]
    assert ids(query.order_by("rank", direction=firestore.Query.DESCENDING)) == ["a", "b"]


def test_array_and_nested_filters(store):
    reports = store.collection("reports")

    assert sorted(ids(reports.where("tags", "array-contains", "road"))) == ["a", "b"]
    assert ids(reports.where("location.ward", "==", "1")) == ["a"]


def test_offset_limit_and_count(store):
    query = store.collection("reports").order_by("rank")

    assert ids(query.offset(1).limit(1)) == ["c"]
    assert count_query(query) == 3


def test_order_by_drops_documents_without_field(store):
    store.collection("reports").document("d").set({"status": "pending"})

    assert "d" not in ids(store.collection("reports").order_by("rank"))


def test_update_missing_document_raises(store):
    with pytest.raises(NotFound):
        store.collection("reports").document("missing").update({"status": "resolved"})


def test_snapshot_get_missing_field_raises(store):
    snapshot = store.collection("reports").document("c").get()

    assert snapshot.get("status") == "resolved"
    with pytest.raises(KeyError):
        snapshot.get("location")


def test_returned_data_is_a_copy(store):
    data = store.collection("reports").document("a").get().to_dict()
    data["tags"].append("mutated")

    assert store.collection("reports").document("a").get().to_dict()["tags"] == ["road"]


def test_sentinels(store):
    ref = store.collection("reports").document("a")
    ref.update({"updated_at": firestore.SERVER_TIMESTAMP, "rank": firestore.DELETE_FIELD})

    data = snapshot_to_dict(ref.get())
    assert isinstance(data["updated_at"], datetime)
    assert "rank" not in data
    assert data["id"] == "a"


def test_persists_to_json(tmp_path):
    path = str(tmp_path / "mock_db.json")
    created = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)

    MockFirestore(path).collection("reports").document("a").set({"created_at": created})

    reloaded = MockFirestore(path)
    assert reloaded.collection("reports").document("a").get().to_dict() == {"created_at": created}
