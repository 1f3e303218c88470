"""Document Service module.

This module belongs to `prd_stream.web.services` in the prd-stream codebase.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException

from prd_stream.document.markdown_parse import extract_block
from prd_stream.document.markup_document import from_markup, to_markup
from prd_stream.document.merge_engine import merge
from prd_stream.document.normalize import delete_section, reorder_sections
from prd_stream.document.recovery import recover
from prd_stream.errors import StorageUnavailableError, UnknownDocumentKindError
from prd_stream.models import Document, get_document_kind, to_dict, utc_now

from .base import app_module

logger = logging.getLogger(__name__)


@contextmanager
def _http_errors() -> Iterator[None]:
    try:
        yield
    except UnknownDocumentKindError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StorageUnavailableError as exc:
        logger.warning("snapshot storage unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="snapshot storage unavailable") from exc


class DocumentService:
    def _load(self, kind: str) -> Document | None:
        return app_module().store.load(kind)

    def _require(self, kind: str) -> Document:
        doc = self._load(kind)
        if doc is None:
            raise HTTPException(status_code=404, detail="document not found")
        return doc

    def _save(self, kind: str, doc: Document) -> None:
        app_module().store.save(kind, doc)

    def get_doc(self, kind: str) -> dict:
        with _http_errors():
            doc = self._require(kind)
        return {"kind": get_document_kind(kind).kind, "document": to_dict(doc)}

    def get_markup(self, kind: str) -> dict:
        with _http_errors():
            doc = self._require(kind)
        return {"kind": kind, "html": to_markup(doc)}

    def put_markup(self, kind: str, html: str) -> dict:
        with _http_errors():
            existing = self._load(kind)
            doc = from_markup(html, existing, kind=kind)
            if doc is None:
                raise HTTPException(status_code=400, detail="markup has no document structure")
            changed = doc is not existing
            if changed:
                self._save(kind, doc)
        return {"ok": 1, "changed": changed, "document": to_dict(doc)}

    def merge_text(self, kind: str, text: str) -> dict:
        with _http_errors():
            block = extract_block(text, kind)
            if block is None:
                spec = get_document_kind(kind)
                raise HTTPException(status_code=400, detail=f"no {spec.open_marker} block in text")
            existing = self._load(kind)
            recovered = recover(block, kind=kind, load_snapshot=lambda _kind: existing)
            doc = merge(recovered, existing, kind=kind)
            if doc is None:
                raise HTTPException(status_code=422, detail="text has no usable heading structure")
            changed = doc is not existing
            if changed:
                self._save(kind, doc)
        return {"ok": 1, "changed": changed, "closed": block.closed, "document": to_dict(doc)}

    def delete_section(self, kind: str, section_id: str) -> dict:
        with _http_errors():
            existing = self._require(kind)
            if existing.section_by_id(section_id) is None:
                raise HTTPException(status_code=404, detail="section not found")
            doc = delete_section(existing, section_id)
            self._save(kind, doc)
        return {"ok": 1, "document": to_dict(doc)}

    def reorder_sections(self, kind: str, order: list[str]) -> dict:
        with _http_errors():
            existing = self._require(kind)
            sections = reorder_sections(existing.sections, order)
            doc = Document(
                title=existing.title,
                description=existing.description,
                sections=sections,
                last_updated=utc_now(),
            )
            self._save(kind, doc)
        return {"ok": 1, "document": to_dict(doc)}

    def clear(self, kind: str) -> dict:
        with _http_errors():
            removed = app_module().store.clear(kind)
        return {"ok": 1, "removed": bool(removed)}
