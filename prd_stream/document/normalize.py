"""Normalize module.

This module belongs to `prd_stream.document` in the prd-stream codebase.

Ordering, renumbering and cleanup applied to sections after a merge or a
user edit.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Sequence, TypeVar

from prd_stream.models import Document, Section, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PREFIX_RE = re.compile(r"^(\d+)\.\s+")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_HR_RE = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")
_TABLE_ROW_RE = re.compile(r"^\s*\|")
_NUMBERED_ITEM_RE = re.compile(r"^(\s*)\d+[.)]\s+(.*)$")
_NESTED_BULLET_RE = re.compile(r"^(\s+)[-*+]\s+(.*)$")
_SECTION_REF_RE = re.compile(r"\b(Section|section|SECTION|§)(\s+)(\d+)\b")
_LEADING_NUM_RE = re.compile(r"^(\s*(?:#{1,6}\s+|[-*+]\s+)?)(\d+)(\.(?:\s|\d|$))", re.MULTILINE)


def numeric_prefix(title: str) -> int | None:
    m = _PREFIX_RE.match((title or "").strip())
    if not m:
        return None
    return int(m.group(1))


def strip_numeric_prefix(title: str) -> str:
    return _PREFIX_RE.sub("", (title or "").strip())


def sort_by_numeric_prefix(sections: Iterable[T], *, title_of: Callable[[T], str] | None = None) -> list[T]:
    get_title = title_of or (lambda s: getattr(s, "title", ""))

    def key(sec: T) -> tuple[int, int]:
        num = numeric_prefix(get_title(sec))
        if num is None:
            return (1, 0)
        return (0, num)

    return sorted(sections, key=key)


def reorder_sections(sections: Sequence[Section], order_ids: Sequence[str]) -> list[Section]:
    by_id = {sec.id: sec for sec in sections}
    out: list[Section] = []
    seen: set[str] = set()
    for sid in order_ids:
        sec = by_id.get(sid)
        if sec is None or sid in seen:
            continue
        seen.add(sid)
        out.append(sec)
    out.extend(sec for sec in sections if sec.id not in seen)
    return sort_by_numeric_prefix(out)


def renumber_after_deletion(sections: Sequence[Section]) -> list[Section]:
    numbered = [sec for sec in sections if numeric_prefix(sec.title) is not None]
    others = [sec for sec in sections if numeric_prefix(sec.title) is None]
    out: list[Section] = []
    for idx, sec in enumerate(numbered, start=1):
        title = f"{idx}. {strip_numeric_prefix(sec.title)}"
        out.append(sec if title == sec.title else sec.model_copy(update={"title": title}))
    out.extend(others)
    return out


def build_number_map(sections: Sequence[Section], old_sections: Sequence[Section]) -> dict[int, int]:
    by_id = {sec.id: sec for sec in sections}
    by_title = {strip_numeric_prefix(sec.title).lower(): sec for sec in sections}
    mapping: dict[int, int] = {}
    for old in old_sections:
        old_num = numeric_prefix(old.title)
        if old_num is None:
            continue
        new = by_id.get(old.id) or by_title.get(strip_numeric_prefix(old.title).lower())
        if new is None:
            continue
        new_num = numeric_prefix(new.title)
        if new_num is not None and new_num != old_num:
            mapping[old_num] = new_num
    return mapping


def apply_number_map(text: str, number_map: dict[int, int]) -> str:
    """Rewrite section numbers in `text` in a single pass per pattern.

    Touches "Section N" and a leading "N." at line start, whether it opens a
    list item, a heading or a dotted sub-number "N.m".
    """
    if not text or not number_map:
        return text

    def swap(num: str) -> str:
        return str(number_map.get(int(num), num))

    out = _SECTION_REF_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{swap(m.group(3))}", text)
    out = _LEADING_NUM_RE.sub(lambda m: f"{m.group(1)}{swap(m.group(2))}{m.group(3)}", out)
    return out


def rewrite_cross_references(sections: Sequence[Section], old_sections: Sequence[Section]) -> list[Section]:
    number_map = build_number_map(sections, old_sections)
    if not number_map:
        return list(sections)
    out: list[Section] = []
    for sec in sections:
        content = apply_number_map(sec.content, number_map)
        out.append(sec if content == sec.content else sec.model_copy(update={"content": content}))
    return out


def delete_section(
    document: Document,
    section_id: str,
    *,
    clock: Callable[[], object] = utc_now,
) -> Document:
    old = list(document.sections)
    remaining = [sec for sec in old if sec.id != section_id]
    if len(remaining) == len(old):
        logger.debug("delete_section: no section with id %s", section_id)
        return document
    renumbered = renumber_after_deletion(remaining)
    number_map = build_number_map(renumbered, old)
    return Document(
        title=document.title,
        description=apply_number_map(document.description, number_map),
        sections=rewrite_cross_references(renumbered, old),
        last_updated=clock(),
    )


def _norm_key(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").lower()).strip()


def _split_blocks(lines: list[str]) -> list[tuple[str, list[str]]]:
    blocks: list[tuple[str, list[str]]] = []
    in_fence = False
    for line in lines:
        if in_fence:
            blocks[-1][1].append(line)
            if _FENCE_RE.match(line):
                in_fence = False
            continue
        if _FENCE_RE.match(line):
            blocks.append(("fence", [line]))
            in_fence = True
            continue
        kind = "blank" if not line.strip() else "text"
        if blocks and blocks[-1][0] == kind:
            blocks[-1][1].append(line)
        else:
            blocks.append((kind, [line]))
    return blocks


def _collapse_repeats(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if out and line == out[-1] and not _HR_RE.match(line) and not _TABLE_ROW_RE.match(line):
            continue
        out.append(line)
    return out


def _sub_points(item_text: str) -> set[str]:
    tail = item_text.split(":", 1)[1] if ":" in item_text else item_text
    points = re.split(r"[,;]|\band\b", tail)
    return {_norm_key(p).strip(" .*_") for p in points if _norm_key(p).strip(" .*_")}


def _drop_repeated_sub_bullets(lines: list[str]) -> list[str]:
    out: list[str] = []
    points: set[str] = set()
    item_indent = -1
    for line in lines:
        item = _NUMBERED_ITEM_RE.match(line)
        if item:
            points = _sub_points(item.group(2))
            item_indent = len(item.group(1))
            out.append(line)
            continue
        bullet = _NESTED_BULLET_RE.match(line)
        if bullet and len(bullet.group(1)) > item_indent >= 0:
            if _norm_key(bullet.group(2)).strip(" .*_") in points:
                continue
            out.append(line)
            continue
        points = set()
        item_indent = -1
        out.append(line)
    return out


def dedupe_content(text: str) -> str:
    if not text:
        return text
    blocks = _split_blocks(text.replace("\r\n", "\n").split("\n"))
    seen: set[str] = set()
    out: list[str] = []
    skip_blank = False
    for kind, lines in blocks:
        if kind == "blank":
            if skip_blank:
                skip_blank = False
                continue
            out.extend(lines)
            continue
        skip_blank = False
        if kind == "fence":
            out.extend(lines)
            continue
        lines = _drop_repeated_sub_bullets(_collapse_repeats(lines))
        if len(lines) == 1 and _HR_RE.match(lines[0]):
            out.extend(lines)
            continue
        key = _norm_key("\n".join(lines))
        if key in seen:
            skip_blank = True
            continue
        seen.add(key)
        out.extend(lines)
    return "\n".join(out).strip("\n")
