from __future__ import annotations

import json

import pytest

from quiz_studio.core.services.document_store import (
    JsonFileDocumentStore,
    MemoryDocumentStore,
    StorageError,
)

PATH = "artifacts/test-app/public/data/quizzes"
OTHER_PATH = "artifacts/other-app/public/data/quizzes"


class Recorder:
    def __init__(self) -> None:
        self.snapshots: list[list[str]] = []
        self.errors: list[Exception] = []

    def on_next(self, documents) -> None:
        self.snapshots.append([document.id for document in documents])

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)


def test_subscriber_gets_initial_and_full_snapshots():
    store = MemoryDocumentStore()
    recorder = Recorder()
    first = store.add(PATH, {"title": "Cells"})

    store.on_snapshot(PATH, recorder.on_next, recorder.on_error)
    second = store.add(PATH, {"title": "Atoms"})

    assert recorder.snapshots == [[first], [first, second]]
    assert recorder.errors == []


def test_unsubscribe_stops_delivery():
    store = MemoryDocumentStore()
    recorder = Recorder()
    subscription = store.on_snapshot(PATH, recorder.on_next)

    subscription.unsubscribe()
    subscription.unsubscribe()
    store.add(PATH, {"title": "Cells"})

    assert not subscription.active
    assert recorder.snapshots == [[]]
    assert store.listener_count(PATH) == 0


def test_paths_are_isolated():
    store = MemoryDocumentStore()
    recorder = Recorder()
    store.on_snapshot(OTHER_PATH, recorder.on_next)

    store.add(PATH, {"title": "Cells"})

    assert recorder.snapshots == [[]]
    assert store.get_documents(OTHER_PATH) == []


def test_stored_documents_are_copies():
    store = MemoryDocumentStore()
    fields = {"title": "Cells", "questions": [{"question": "Q?"}]}
    document_id = store.add(PATH, fields)

    fields["questions"][0]["question"] = "Changed"
    snapshot = store.get_documents(PATH)
    snapshot[0].data["title"] = "Changed too"

    stored = store.get_documents(PATH)[0]
    assert stored.id == document_id
    assert stored.data == {"title": "Cells", "questions": [{"question": "Q?"}]}


def test_raising_listener_does_not_break_add():
    store = MemoryDocumentStore()
    recorder = Recorder()

    def broken(_documents) -> None:
        raise RuntimeError("boom")

    store.add(PATH, {"title": "Seed"})
    store.on_snapshot(PATH, broken)
    store.on_snapshot(PATH, recorder.on_next)

    store.add(PATH, {"title": "Cells"})

    assert len(recorder.snapshots[-1]) == 2


def test_file_store_persists_across_instances(tmp_path):
    store = JsonFileDocumentStore(tmp_path)
    document_id = store.add(PATH, {"title": "Cells"})

    reopened = JsonFileDocumentStore(tmp_path)

    documents = reopened.get_documents(PATH)
    assert [document.id for document in documents] == [document_id]
    assert documents[0].data == {"title": "Cells"}
    assert json.loads(store.file_path.read_text(encoding="utf-8"))[PATH][document_id] == {
        "title": "Cells"
    }


def test_corrupt_file_is_reported_and_not_overwritten(tmp_path):
    file_path = tmp_path / JsonFileDocumentStore.FILE_NAME
    file_path.write_text("[broken", encoding="utf-8")
    store = JsonFileDocumentStore(tmp_path)
    recorder = Recorder()

    store.on_snapshot(PATH, recorder.on_next, recorder.on_error)

    assert recorder.snapshots == []
    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], StorageError)
    with pytest.raises(StorageError):
        store.add(PATH, {"title": "Cells"})
    assert file_path.read_text(encoding="utf-8") == "[broken"
    assert store.get_documents(PATH) == []


def test_unserialisable_document_is_rolled_back(tmp_path):
    store = JsonFileDocumentStore(tmp_path)

    with pytest.raises(StorageError):
        store.add(PATH, {"title": object()})

    assert store.get_documents(PATH) == []
