"""Merge Engine module.

This module belongs to `prd_stream.document` in the prd-stream codebase.

A streamed turn only carries the sections the generator chose to rewrite;
everything it left out must survive untouched, ids included.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from prd_stream.document.markdown_parse import parse_partial
from prd_stream.document.normalize import dedupe_content, sort_by_numeric_prefix
from prd_stream.document.placeholder_rules import is_mostly_placeholder, strip_placeholders, trim_open_tail
from prd_stream.errors import DocumentStreamError, MalformedInputError
from prd_stream.models import (
    CandidateDocument,
    CandidateSection,
    Document,
    Section,
    get_document_kind,
    new_section_id,
    utc_now,
)
from prd_stream.settings import get_engine_settings

logger = logging.getLogger(__name__)


def _clean_content(text: str, *, threshold: float) -> str:
    value = strip_placeholders(text or "").strip()
    if not value or is_mostly_placeholder(value, threshold=threshold):
        return ""
    return dedupe_content(value).strip()


def _trim_trailing(candidate: CandidateDocument) -> CandidateDocument:
    if candidate.sections:
        last = candidate.sections[-1]
        trimmed = trim_open_tail(last.content)
        if trimmed == last.content:
            return candidate
        sections = candidate.sections[:-1] + [CandidateSection(title=last.title, content=trimmed)]
        return replace(candidate, sections=sections)
    return replace(candidate, description=trim_open_tail(candidate.description))


def merge_candidate(
    candidate: CandidateDocument,
    existing: Optional[Document],
    *,
    kind: str = "prd",
    clock: Callable[[], object] = utc_now,
    placeholder_threshold: float | None = None,
) -> Document:
    if candidate is None or candidate.is_degenerate():
        raise MalformedInputError("candidate has no title, sections or description")
    if not candidate.has_heading_structure():
        raise MalformedInputError("candidate has no heading structure")
    spec = get_document_kind(kind)
    threshold = placeholder_threshold if placeholder_threshold is not None else get_engine_settings().placeholder_ratio

    if candidate.trailing_open:
        candidate = _trim_trailing(candidate)

    title = (candidate.title or "").strip() or (existing.title if existing else "") or spec.default_title
    description = _clean_content(candidate.description, threshold=threshold)
    if not description and existing is not None:
        description = existing.description

    updates: dict[str, tuple[str, str]] = {}
    order: list[str] = []
    for cand in candidate.sections:
        key = (cand.title or "").strip().lower()
        if not key or key in updates:
            continue
        content = _clean_content(cand.content, threshold=threshold)
        if not content:
            logger.debug("merge: section %r elided", cand.title)
            continue
        updates[key] = (cand.title.strip(), content)
        order.append(key)

    sections: list[Section] = []
    used: set[str] = set()
    for sec in existing.sections if existing else []:
        key = sec.title_key()
        if key in updates and key not in used:
            new_title, content = updates[key]
            sections.append(Section(id=sec.id, title=new_title, content=content))
            used.add(key)
        else:
            sections.append(sec.model_copy())
    for key in order:
        if key in used:
            continue
        new_title, content = updates[key]
        sections.append(Section(id=new_section_id(), title=new_title, content=content))

    return Document(
        title=title,
        description=description,
        sections=sort_by_numeric_prefix(sections),
        last_updated=clock(),
    )


def merge(
    candidate_markdown: str,
    existing: Optional[Document],
    *,
    kind: str = "prd",
    clock: Callable[[], object] = utc_now,
    closed: bool = True,
) -> Optional[Document]:
    """Merge streamed markdown into `existing`; never lose the prior document.

    Pass `closed=False` while the block is still streaming so an unfinished
    last line that may become filler is held back.

    Returns `existing` (possibly None) when the text is empty, unparsable or
    the merge fails for any reason.
    """
    if not (candidate_markdown or "").strip():
        return existing
    try:
        candidate = parse_partial(strip_placeholders(candidate_markdown), closed=closed)
        merged = merge_candidate(candidate, existing, kind=kind, clock=clock)
    except MalformedInputError as exc:
        logger.debug("merge skipped: %s", exc)
        return existing
    except DocumentStreamError as exc:
        logger.warning("merge failed for kind=%s: %s", kind, exc)
        return existing
    except Exception:
        logger.exception("merge failed for kind=%s", kind)
        return existing
    if existing is not None and merged.same_content(existing):
        return existing
    return merged
