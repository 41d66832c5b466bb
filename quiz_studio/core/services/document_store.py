"""Document collections with live snapshot subscriptions.

Every subscriber of a collection path receives the complete current set of
documents whenever anything in that path changes. The in-memory store is the
reference behaviour; the JSON file store adds persistence across restarts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
import copy
from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from threading import RLock
from uuid import uuid4

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the document store cannot read or write documents."""


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """A stored document together with its storage-assigned id."""

    id: str
    data: dict[str, object]


SnapshotCallback = Callable[[list[DocumentSnapshot]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """Handle returned by ``on_snapshot``; call ``unsubscribe`` to release it."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


@dataclass(slots=True)
class _Listener:
    on_next: SnapshotCallback
    on_error: ErrorCallback | None


class DocumentStore(ABC):
    """Interface consumed by the quiz collection."""

    @abstractmethod
    def add(self, path: str, fields: Mapping[str, object]) -> str:
        """Create a document under ``path`` and return its new id."""

    @abstractmethod
    def on_snapshot(
        self,
        path: str,
        on_next: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """Subscribe to full-collection snapshots of ``path``."""


class MemoryDocumentStore(DocumentStore):
    """Process-local document store."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._collections: dict[str, dict[str, dict[str, object]]] = {}
        self._listeners: dict[str, list[_Listener]] = {}

    def add(self, path: str, fields: Mapping[str, object]) -> str:
        document_id = uuid4().hex
        with self._lock:
            collection = self._collections.setdefault(path, {})
            collection[document_id] = copy.deepcopy(dict(fields))
            try:
                self._persist()
            except (OSError, TypeError, ValueError) as exc:
                del collection[document_id]
                raise StorageError(f"Could not write document: {exc}") from exc
            snapshot = self._snapshot(path)
            listeners = list(self._listeners.get(path, []))
        logger.info("Created document %s in %s", document_id, path)
        for listener in listeners:
            self._deliver(listener, snapshot)
        return document_id

    def on_snapshot(
        self,
        path: str,
        on_next: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        listener = _Listener(on_next=on_next, on_error=on_error)
        with self._lock:
            self._listeners.setdefault(path, []).append(listener)
            load_error = self._load_error()
            snapshot = self._snapshot(path) if load_error is None else []

        if load_error is not None:
            self._fail(listener, load_error)
        else:
            self._deliver(listener, snapshot)

        def release() -> None:
            with self._lock:
                listeners = self._listeners.get(path, [])
                if listener in listeners:
                    listeners.remove(listener)

        return Subscription(release)

    def get_documents(self, path: str) -> list[DocumentSnapshot]:
        with self._lock:
            return self._snapshot(path)

    def listener_count(self, path: str) -> int:
        with self._lock:
            return len(self._listeners.get(path, []))

    def _snapshot(self, path: str) -> list[DocumentSnapshot]:
        collection = self._collections.get(path, {})
        return [
            DocumentSnapshot(id=document_id, data=copy.deepcopy(data))
            for document_id, data in collection.items()
        ]

    def _persist(self) -> None:
        """Hook for stores that write through to durable storage."""

    def _load_error(self) -> Exception | None:
        return None

    @staticmethod
    def _deliver(listener: _Listener, snapshot: list[DocumentSnapshot]) -> None:
        try:
            listener.on_next(snapshot)
        except Exception:  # noqa: BLE001
            logger.exception("Snapshot listener raised")

    @staticmethod
    def _fail(listener: _Listener, error: Exception) -> None:
        if listener.on_error is None:
            logger.error("Unhandled subscription error: %s", error)
            return
        try:
            listener.on_error(error)
        except Exception:  # noqa: BLE001
            logger.exception("Snapshot error listener raised")


class JsonFileDocumentStore(MemoryDocumentStore):
    """Document store persisted to a single JSON file.

    The file maps collection paths to ``{document_id: fields}``. It is
    rewritten atomically after every successful add. A file that cannot be
    read is reported to subscribers as an error instead of being overwritten.
    """

    FILE_NAME = "documents.json"

    def __init__(self, data_dir: Path) -> None:
        super().__init__()
        self._file_path = Path(data_dir) / self.FILE_NAME
        self._read_error: StorageError | None = None
        self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _load(self) -> None:
        if not self._file_path.exists():
            return
        try:
            raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._read_error = StorageError(f"Could not read {self._file_path}: {exc}")
            logger.error("%s", self._read_error)
            return
        if not isinstance(raw, dict):
            self._read_error = StorageError(f"{self._file_path} does not contain a collection map.")
            logger.error("%s", self._read_error)
            return
        for path, documents in raw.items():
            if isinstance(documents, dict):
                self._collections[path] = {
                    str(document_id): data
                    for document_id, data in documents.items()
                    if isinstance(data, dict)
                }

    def _load_error(self) -> Exception | None:
        return self._read_error

    def _persist(self) -> None:
        if self._read_error is not None:
            raise OSError(str(self._read_error))
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self._collections, indent=2, ensure_ascii=False)
        temp_path = self._file_path.with_suffix(".tmp")
        temp_path.write_text(payload, encoding="utf-8")
        os.replace(temp_path, self._file_path)
