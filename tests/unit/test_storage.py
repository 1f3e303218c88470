import json

import pytest

from prd_stream.errors import StorageUnavailableError, UnknownDocumentKindError
from prd_stream.models import Document, Section
from prd_stream.storage import FileSnapshotStore, InMemorySnapshotStore, build_store


def _doc(title: str = "Plan") -> Document:
    return Document(title=title, sections=[Section(title="1. A", content="alpha")])


def test_in_memory_store_roundtrip_and_isolation():
    store = InMemorySnapshotStore()
    assert store.load("prd") is None
    doc = _doc()
    store.save("prd", doc)
    loaded = store.load("prd")
    assert loaded is not None and loaded.same_content(doc)
    loaded.sections[0].content = "mutated"
    assert store.load("prd").sections[0].content == "alpha"


def test_in_memory_store_slots_per_kind():
    store = InMemorySnapshotStore()
    store.save("prd", _doc("P"))
    store.save("ticket", _doc("T"))
    assert store.load("prd").title == "P"
    assert store.load("ticket").title == "T"
    assert store.clear("prd") is True
    assert store.clear("prd") is False
    assert store.load("prd") is None
    assert store.load("ticket") is not None


def test_in_memory_store_rejects_unknown_kind():
    with pytest.raises(UnknownDocumentKindError):
        InMemorySnapshotStore().load("roadmap")


def test_file_store_roundtrip(tmp_path):
    store = FileSnapshotStore(tmp_path / "snaps")
    assert store.load("prd") is None
    doc = _doc()
    store.save("prd", doc)
    path = tmp_path / "snaps" / "prd.json"
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8"))["title"] == "Plan"
    loaded = store.load("prd")
    assert loaded is not None and loaded.same_content(doc)
    assert loaded.sections[0].id == doc.sections[0].id
    assert store.clear("prd") is True
    assert store.load("prd") is None
    assert store.clear("prd") is False


def test_file_store_corrupt_snapshot_raises(tmp_path):
    store = FileSnapshotStore(tmp_path)
    store.path_for("prd").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageUnavailableError):
        store.load("prd")
    store.path_for("ticket").write_text(json.dumps({"sections": [{"content": "no title"}]}), encoding="utf-8")
    with pytest.raises(StorageUnavailableError):
        store.load("ticket")


def test_build_store_backends(tmp_path):
    assert isinstance(build_store("memory", tmp_path), InMemorySnapshotStore)
    file_store = build_store("file", tmp_path)
    assert isinstance(file_store, FileSnapshotStore)
    assert file_store.root == tmp_path
