"""Errors module.

This module belongs to `prd_stream` in the prd-stream codebase.
"""

from __future__ import annotations


class DocumentStreamError(RuntimeError):
    pass


class MalformedInputError(DocumentStreamError):
    """Candidate text has no usable heading structure."""


class IncompleteStreamError(DocumentStreamError):
    """Extracted block lacks a title or enough sections."""


class ConversionError(DocumentStreamError):
    """Markup tree could not be converted."""


class StorageUnavailableError(DocumentStreamError):
    """Snapshot slot could not be read or written."""


class UnknownDocumentKindError(DocumentStreamError):
    pass
