"""Document Flow module.

This module belongs to `prd_stream.web.api` in the prd-stream codebase.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from prd_stream.web.services.document_service import DocumentService

router = APIRouter()
service = DocumentService()


class MarkupBody(BaseModel):
    html: str = ""


class MergeBody(BaseModel):
    text: str = ""


class ReorderBody(BaseModel):
    order: List[str] = Field(default_factory=list)


@router.get("/api/doc/{kind}")
def get_doc_flow(kind: str) -> dict:
    return service.get_doc(kind)


@router.get("/api/doc/{kind}/markup")
def get_markup_flow(kind: str) -> dict:
    return service.get_markup(kind)


@router.put("/api/doc/{kind}/markup")
def put_markup_flow(kind: str, body: MarkupBody) -> dict:
    return service.put_markup(kind, body.html)


@router.post("/api/doc/{kind}/merge")
def merge_flow(kind: str, body: MergeBody) -> dict:
    return service.merge_text(kind, body.text)


@router.post("/api/doc/{kind}/sections/reorder")
def reorder_sections_flow(kind: str, body: ReorderBody) -> dict:
    return service.reorder_sections(kind, body.order)


@router.post("/api/doc/{kind}/sections/{section_id}/delete")
def delete_section_flow(kind: str, section_id: str) -> dict:
    return service.delete_section(kind, section_id)


@router.delete("/api/doc/{kind}")
def clear_doc_flow(kind: str) -> dict:
    return service.clear(kind)
