"""Markup Document module.

This module belongs to `prd_stream.document` in the prd-stream codebase.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from prd_stream.document.markdown_parse import is_numeric_heading
from prd_stream.document.markup_markdown import MarkdownSerializer
from prd_stream.document.markup_nodes import ROOT_TAG, MarkupNode, parse_markup
from prd_stream.document.markup_render import esc, esc_attr, markdown_to_markup
from prd_stream.document.normalize import sort_by_numeric_prefix
from prd_stream.errors import ConversionError
from prd_stream.models import Document, Section, get_document_kind, new_section_id, utc_now

logger = logging.getLogger(__name__)


def _plain_paragraphs(text: str) -> str:
    paras = [p for p in (text or "").split("\n\n") if p.strip()]
    return "".join(f"<p>{esc(p).replace(chr(10), '<br>')}</p>" for p in paras)


def to_markup(document: Document) -> str:
    try:
        parts = [f"<h1>{esc(document.title)}</h1>", markdown_to_markup(document.description)]
        for sec in document.sections:
            parts.append(f'<h2 data-section-id="{esc_attr(sec.id)}">{esc(sec.title)}</h2>')
            parts.append(markdown_to_markup(sec.content))
        return "".join(parts)
    except Exception:
        logger.warning("to_markup failed, falling back to plain paragraphs", exc_info=True)
        parts = [f"<h1>{esc(document.title)}</h1>", _plain_paragraphs(document.description)]
        for sec in document.sections:
            parts.append(f"<h2>{esc(sec.title)}</h2>{_plain_paragraphs(sec.content)}")
        return "".join(parts)


def _serialize(nodes: list[MarkupNode]) -> str:
    return MarkdownSerializer().serialize(MarkupNode(tag=ROOT_TAG, children=nodes))


def _split_sections(root: MarkupNode) -> tuple[str | None, list[MarkupNode], list[tuple[str, str, list[MarkupNode]]]]:
    title: str | None = None
    intro: list[MarkupNode] = []
    chunks: list[tuple[str, str, list[MarkupNode]]] = []
    for node in root.children:
        if node.tag == "h1" and title is None and not chunks:
            title = node.text_content().strip()
            continue
        if node.tag == "h2":
            heading = node.text_content().strip()
            if not heading or is_numeric_heading(heading):
                continue
            chunks.append((heading, node.attr("data-section-id"), []))
            continue
        (chunks[-1][2] if chunks else intro).append(node)
    return title, intro, chunks


def from_markup(
    raw_html: str,
    existing: Optional[Document],
    *,
    kind: str = "prd",
    clock: Callable[[], object] = utc_now,
) -> Optional[Document]:
    """Read edited markup back into a document, keeping section ids stable."""
    if not (raw_html or "").strip():
        return existing
    spec = get_document_kind(kind)
    try:
        root = parse_markup(raw_html)
        title, intro, chunks = _split_sections(root)
        if title is None and not chunks:
            raise ConversionError("markup has no h1 or h2 headings")
        description = _serialize(intro)
        parsed = [(heading, sid, _serialize(nodes)) for heading, sid, nodes in chunks]
    except (ConversionError, RecursionError) as exc:
        logger.warning("from_markup kept the existing document: %s", exc)
        return existing

    old_sections = list(existing.sections) if existing else []
    by_id = {sec.id: sec for sec in old_sections}
    by_title = {sec.title_key(): sec for sec in old_sections}
    used: set[str] = set()
    sections: list[Section] = []
    index_by_title: dict[str, int] = {}
    for heading, sid, content in parsed:
        key = heading.lower()
        if key in index_by_title:
            prev = sections[index_by_title[key]]
            joined = "\n\n".join(x for x in (prev.content, content) if x)
            sections[index_by_title[key]] = prev.model_copy(update={"content": joined})
            continue
        match = by_id.get(sid) if sid else None
        if match is None or match.id in used:
            match = by_title.get(key)
        if match is not None and match.id in used:
            match = None
        section_id = match.id if match is not None else new_section_id()
        used.add(section_id)
        index_by_title[key] = len(sections)
        sections.append(Section(id=section_id, title=heading, content=content))

    for sec in old_sections:
        if sec.id not in used and sec.title_key() not in index_by_title:
            logger.debug("from_markup: keeping section %s missing from markup", sec.id)
            sections.append(sec.model_copy())

    doc = Document(
        title=title or (existing.title if existing else "") or spec.default_title,
        description=description,
        sections=sort_by_numeric_prefix(sections),
        last_updated=clock(),
    )
    if existing is not None and doc.same_content(existing):
        return existing
    return doc
