"""Storage module.

This module belongs to `prd_stream` in the prd-stream codebase.

One snapshot slot per document kind: the document-of-record that the next
merge uses as its baseline.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from prd_stream.errors import StorageUnavailableError
from prd_stream.models import Document, from_dict, get_document_kind, to_dict

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    def load(self, kind: str) -> Optional[Document]: ...

    def save(self, kind: str, document: Document) -> None: ...

    def clear(self, kind: str) -> bool: ...


class InMemorySnapshotStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: dict[str, Document] = {}

    def load(self, kind: str) -> Optional[Document]:
        key = get_document_kind(kind).kind
        with self._lock:
            doc = self._slots.get(key)
        return doc.model_copy(deep=True) if doc is not None else None

    def save(self, kind: str, document: Document) -> None:
        key = get_document_kind(kind).kind
        with self._lock:
            self._slots[key] = document.model_copy(deep=True)

    def clear(self, kind: str) -> bool:
        key = get_document_kind(kind).kind
        with self._lock:
            return self._slots.pop(key, None) is not None


class FileSnapshotStore:
    """JSON file per kind under `root`; I/O and decode failures raise StorageUnavailableError."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._lock = threading.Lock()

    def path_for(self, kind: str) -> Path:
        return self.root / f"{get_document_kind(kind).kind}.json"

    def load(self, kind: str) -> Optional[Document]:
        path = self.path_for(kind)
        with self._lock:
            if not path.exists():
                return None
            try:
                raw = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise StorageUnavailableError(f"cannot read snapshot {path}: {exc}") from exc
        try:
            return from_dict(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            raise StorageUnavailableError(f"corrupt snapshot {path}: {exc}") from exc

    def save(self, kind: str, document: Document) -> None:
        path = self.path_for(kind)
        payload = json.dumps(to_dict(document), ensure_ascii=False, indent=2)
        tmp = path.with_suffix(".json.tmp")
        with self._lock:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                tmp.write_text(payload, encoding="utf-8")
                tmp.replace(path)
            except OSError as exc:
                raise StorageUnavailableError(f"cannot write snapshot {path}: {exc}") from exc
        logger.debug("saved %s snapshot with %d sections", kind, len(document.sections))

    def clear(self, kind: str) -> bool:
        path = self.path_for(kind)
        with self._lock:
            try:
                if not path.exists():
                    return False
                path.unlink()
                return True
            except OSError as exc:
                raise StorageUnavailableError(f"cannot remove snapshot {path}: {exc}") from exc


def build_store(backend: str, data_dir: Path) -> SnapshotStore:
    if backend == "file":
        return FileSnapshotStore(data_dir)
    return InMemorySnapshotStore()
