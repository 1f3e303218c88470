"""Recovery module.

This module belongs to `prd_stream.document` in the prd-stream codebase.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from prd_stream.document.markdown_parse import extract_block, parse_partial, to_markdown
from prd_stream.document.merge_engine import merge
from prd_stream.document.placeholder_rules import is_mostly_placeholder, strip_placeholders, trim_open_tail
from prd_stream.errors import IncompleteStreamError, StorageUnavailableError
from prd_stream.models import Document, ExtractedBlock, utc_now
from prd_stream.settings import get_engine_settings

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[str], Optional[Document]]
BlockLike = Union[str, ExtractedBlock]


def _unpack(block: BlockLike) -> tuple[str, bool]:
    if isinstance(block, ExtractedBlock):
        return block.markdown, block.closed
    return str(block or ""), True


def is_complete(block: BlockLike, *, min_sections: int | None = None) -> bool:
    settings = get_engine_settings()
    text, closed = _unpack(block)
    if not closed or not text.strip():
        return False
    need = settings.min_complete_sections if min_sections is None else min_sections
    parsed = parse_partial(text)
    if not parsed.title or len(parsed.sections) < need:
        return False
    return not is_mostly_placeholder(text, threshold=settings.placeholder_ratio)


def require_complete(block: BlockLike, *, min_sections: int | None = None) -> str:
    if not is_complete(block, min_sections=min_sections):
        raise IncompleteStreamError("block lacks a title, enough sections or a closing marker")
    return _unpack(block)[0]


def _load_baseline(kind: str, load_snapshot: SnapshotLoader | None) -> Optional[Document]:
    if load_snapshot is None:
        return None
    try:
        return load_snapshot(kind)
    except StorageUnavailableError as exc:
        logger.warning("snapshot for %s unavailable, recovering without baseline: %s", kind, exc)
        return None


def recover(
    block: BlockLike,
    *,
    kind: str = "prd",
    load_snapshot: SnapshotLoader | None = None,
    clock: Callable[[], object] = utc_now,
) -> str:
    """Return markdown that is safe to show for `block`.

    A complete block only loses its placeholder lines. An incomplete one is
    merged over the last stored snapshot so elided sections come back; while
    it is still open, a last line that may turn into filler is held back.
    """
    text, closed = _unpack(block)
    if not closed:
        text = trim_open_tail(text)
    stripped = strip_placeholders(text).strip()
    try:
        require_complete(block)
    except IncompleteStreamError:
        logger.debug("block for %s incomplete, merging with snapshot", kind)
    else:
        return stripped
    baseline = _load_baseline(kind, load_snapshot)
    if baseline is None:
        return stripped
    merged = merge(text, baseline, kind=kind, clock=clock)
    if merged is None:
        return stripped
    return to_markdown(merged).strip()


def extract_and_recover(
    turn_text: str,
    *,
    kind: str = "prd",
    load_snapshot: SnapshotLoader | None = None,
    clock: Callable[[], object] = utc_now,
) -> Optional[str]:
    block = extract_block(turn_text, kind)
    if block is None:
        return None
    return recover(block, kind=kind, load_snapshot=load_snapshot, clock=clock)
