"""Editor State module.

This module belongs to `prd_stream` in the prd-stream codebase.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class EditorState(BaseModel):
    """Tracks local user edits so streaming updates never overwrite them.

    A manual edit takes the user edit lock; programmatic updates are refused
    until `release_lock()` or `reset()` is called.
    """

    model_config = ConfigDict(validate_assignment=True)

    original_content: str = ""
    current_content: str = ""
    is_manually_edited: bool = False
    has_unsaved_changes: bool = False
    user_edit_lock: bool = False
    is_streaming: bool = False
    last_edit_at: Optional[float] = None

    def initialize(self, content: str) -> bool:
        if content == self.original_content or self.has_unsaved_changes:
            logger.debug("editor already initialized or holds unsaved changes")
            return False
        self.original_content = content
        self.current_content = content
        self.is_manually_edited = False
        self.has_unsaved_changes = False
        return True

    def register_manual_edit(self, content: str) -> bool:
        self.user_edit_lock = True
        self.current_content = content
        self.is_manually_edited = True
        self.has_unsaved_changes = content != self.original_content
        self.last_edit_at = time.time()
        logger.debug("manual edit registered, unsaved=%s", self.has_unsaved_changes)
        return self.has_unsaved_changes

    def save_content(self) -> str:
        self.original_content = self.current_content
        self.has_unsaved_changes = False
        return self.original_content

    def update_programmatically(self, content: str) -> bool:
        if self.user_edit_lock:
            logger.debug("programmatic update blocked by user edit lock")
            return False
        self.original_content = content
        self.current_content = content
        self.is_manually_edited = False
        self.has_unsaved_changes = False
        return True

    def release_lock(self) -> None:
        self.user_edit_lock = False

    def reset(self) -> None:
        self.current_content = self.original_content
        self.is_manually_edited = False
        self.has_unsaved_changes = False
        self.user_edit_lock = False

    def start_streaming(self) -> None:
        self.is_streaming = True

    def end_streaming(self) -> None:
        self.is_streaming = False
