"""Init module.

This module belongs to `prd_stream` in the prd-stream codebase.
"""

from prd_stream.document import (
    classify_placeholder,
    dedupe_content,
    delete_section,
    extract_and_recover,
    extract_block,
    from_markup,
    is_complete,
    is_placeholder,
    markdown_to_markup,
    markup_to_markdown,
    merge,
    merge_candidate,
    parse_partial,
    recover,
    renumber_after_deletion,
    rewrite_cross_references,
    sort_by_numeric_prefix,
    strip_placeholders,
    to_markdown,
    to_markup,
)
from prd_stream.editor_state import EditorState
from prd_stream.errors import (
    ConversionError,
    DocumentStreamError,
    IncompleteStreamError,
    MalformedInputError,
    StorageUnavailableError,
    UnknownDocumentKindError,
)
from prd_stream.models import CandidateDocument, CandidateSection, Document, DocumentKind, Section
from prd_stream.settings import EngineSettings, get_engine_settings
from prd_stream.storage import FileSnapshotStore, InMemorySnapshotStore, SnapshotStore
from prd_stream.stream_session import StreamingMergeSession

__all__ = [
    "CandidateDocument",
    "CandidateSection",
    "ConversionError",
    "Document",
    "DocumentKind",
    "DocumentStreamError",
    "EditorState",
    "EngineSettings",
    "FileSnapshotStore",
    "InMemorySnapshotStore",
    "IncompleteStreamError",
    "MalformedInputError",
    "Section",
    "SnapshotStore",
    "StorageUnavailableError",
    "StreamingMergeSession",
    "UnknownDocumentKindError",
    "classify_placeholder",
    "dedupe_content",
    "delete_section",
    "extract_and_recover",
    "extract_block",
    "from_markup",
    "get_engine_settings",
    "is_complete",
    "is_placeholder",
    "markdown_to_markup",
    "markup_to_markdown",
    "merge",
    "merge_candidate",
    "parse_partial",
    "recover",
    "renumber_after_deletion",
    "rewrite_cross_references",
    "sort_by_numeric_prefix",
    "strip_placeholders",
    "to_markdown",
    "to_markup",
]
