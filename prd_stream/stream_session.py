"""Stream Session module.

This module belongs to `prd_stream` in the prd-stream codebase.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from prd_stream.document.markdown_parse import extract_block
from prd_stream.document.markup_document import to_markup
from prd_stream.document.merge_engine import merge
from prd_stream.document.recovery import recover
from prd_stream.editor_state import EditorState
from prd_stream.errors import StorageUnavailableError
from prd_stream.models import Document, get_document_kind, utc_now
from prd_stream.settings import EngineSettings, get_engine_settings
from prd_stream.storage import SnapshotStore

logger = logging.getLogger(__name__)


class StreamingMergeSession:
    """Samples a growing generator turn and keeps the stored snapshot in step.

    The caller drives it: `poll()` on every tick while tokens arrive, then
    `finish()` once the stream reports completion.
    """

    def __init__(
        self,
        kind: str,
        store: SnapshotStore,
        get_latest_text: Callable[[], str],
        is_stream_finished: Callable[[], bool],
        *,
        settings: EngineSettings | None = None,
        editor_state: EditorState | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], object] = utc_now,
    ) -> None:
        self.kind = get_document_kind(kind).kind
        self.store = store
        self.get_latest_text = get_latest_text
        self.is_stream_finished = is_stream_finished
        self.settings = settings or get_engine_settings()
        self.editor_state = editor_state
        self.clock = clock
        self.now = now
        self.document: Optional[Document] = None
        self._last_poll_at: float | None = None
        self._last_text: str | None = None
        if self.editor_state is not None:
            self.editor_state.start_streaming()

    def _load_baseline(self) -> Optional[Document]:
        try:
            return self.store.load(self.kind)
        except StorageUnavailableError as exc:
            logger.warning("snapshot load failed for %s, merging without baseline: %s", self.kind, exc)
            return None

    def _save(self, document: Document) -> None:
        try:
            self.store.save(self.kind, document)
        except StorageUnavailableError as exc:
            logger.warning("snapshot save failed for %s: %s", self.kind, exc)

    def poll(self, force: bool = False) -> Optional[Document]:
        t = self.clock()
        if not force and self._last_poll_at is not None and t - self._last_poll_at < self.settings.sample_interval_s:
            return None
        self._last_poll_at = t
        if self.editor_state is not None and self.editor_state.user_edit_lock:
            logger.debug("poll skipped, user edit lock held")
            return None

        text = self.get_latest_text() or ""
        if text == self._last_text:
            return None
        self._last_text = text
        block = extract_block(text, self.kind)
        if block is None:
            return None

        baseline = self._load_baseline()
        recovered = recover(block, kind=self.kind, load_snapshot=lambda _kind: baseline, clock=self.now)
        merged = merge(recovered, baseline, kind=self.kind, clock=self.now)
        if merged is None or merged is baseline:
            return None

        if self.editor_state is not None and not self.editor_state.update_programmatically(to_markup(merged)):
            return None
        self._save(merged)
        self.document = merged
        logger.debug("merged %s snapshot: %d sections", self.kind, len(merged.sections))
        return merged

    def finish(self) -> Optional[Document]:
        if not self.is_stream_finished():
            return None
        self._last_text = None
        merged = self.poll(force=True)
        if self.editor_state is not None:
            self.editor_state.end_streaming()
        return merged if merged is not None else self.document
