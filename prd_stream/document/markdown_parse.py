"""Markdown Parse module.

This module belongs to `prd_stream.document` in the prd-stream codebase.
"""

from __future__ import annotations

import re

from prd_stream.models import CandidateDocument, CandidateSection, Document, ExtractedBlock, get_document_kind

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*$")
_BARE_HEADING_RE = re.compile(r"^#{1,6}\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_NUMERIC_ONLY_RE = re.compile(r"^[\d\W_]+$")


def split_lines(text: str) -> list[str]:
    return (text or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")


def is_numeric_heading(title: str) -> bool:
    value = (title or "").strip()
    return bool(value) and bool(_NUMERIC_ONLY_RE.match(value))


def _trim_block(lines: list[str]) -> str:
    start = 0
    end = len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(line.rstrip() for line in lines[start:end])


def parse_partial(
    text: str,
    *,
    fallback_title: str | None = None,
    closed: bool | None = None,
) -> CandidateDocument:
    """Split possibly truncated markdown into title, description and sections.

    `closed` says whether the producer has finished the text; when unknown, a
    missing final newline marks the tail as still open.
    """
    lines = split_lines(text)
    title: str | None = None
    description: list[str] = []
    sections: list[tuple[str, list[str]]] = []
    in_fence = False

    def current() -> list[str]:
        return sections[-1][1] if sections else description

    for line in lines:
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            current().append(line)
            continue
        if in_fence:
            current().append(line)
            continue
        if _BARE_HEADING_RE.match(line):
            # a heading marker still waiting for its text
            continue
        m = _HEADING_RE.match(line)
        if not m:
            current().append(line)
            continue
        level = len(m.group(1))
        heading = m.group(2).strip()
        if is_numeric_heading(heading):
            current().append(heading)
            continue
        if level == 1 and title is None and not sections:
            title = heading
            continue
        if level == 2:
            sections.append((heading, []))
            continue
        current().append(line)

    still_writing = not closed if closed is not None else not (text or "").endswith("\n")
    trailing_open = in_fence or still_writing
    return CandidateDocument(
        title=title if title is not None else fallback_title,
        description=_trim_block(description),
        sections=[CandidateSection(title=t, content=_trim_block(body)) for t, body in sections],
        trailing_open=trailing_open,
    )


def _cut_partial_marker(text: str, marker: str) -> str:
    for size in range(len(marker) - 1, 0, -1):
        if text.endswith(marker[:size]):
            return text[:-size]
    return text


def extract_block(text: str, kind: str) -> ExtractedBlock | None:
    """Return the markdown of the last delimited block of `kind` in a turn.

    A missing closing marker is tolerated; a half-written one at the very end
    of the text is dropped.
    """
    spec = get_document_kind(kind)
    src = (text or "").replace("\r\n", "\n")
    start = src.rfind(spec.open_marker)
    if start < 0:
        return None
    body = src[start + len(spec.open_marker):]
    end = body.find(spec.close_marker)
    if end >= 0:
        return ExtractedBlock(markdown=body[:end].strip(), closed=True)
    return ExtractedBlock(markdown=_cut_partial_marker(body, spec.close_marker).strip(), closed=False)


def to_markdown(doc: Document) -> str:
    parts = [f"# {doc.title}", ""]
    if doc.description.strip():
        parts.extend([doc.description.strip("\n"), ""])
    for sec in doc.sections:
        parts.extend([f"## {sec.title}", ""])
        if sec.content.strip():
            parts.extend([sec.content.strip("\n"), ""])
    return "\n".join(parts).rstrip() + "\n"
