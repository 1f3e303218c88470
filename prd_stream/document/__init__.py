"""Init module.

This module belongs to `prd_stream.document` in the prd-stream codebase.
"""

from prd_stream.document.markdown_parse import extract_block, parse_partial, to_markdown
from prd_stream.document.markup_document import from_markup, to_markup
from prd_stream.document.markup_markdown import MarkdownSerializer, markup_to_markdown
from prd_stream.document.markup_nodes import MarkupNode, parse_markup, render_node
from prd_stream.document.markup_render import markdown_to_markup, renumber_ordered_lists
from prd_stream.document.merge_engine import merge, merge_candidate
from prd_stream.document.normalize import (
    apply_number_map,
    build_number_map,
    dedupe_content,
    delete_section,
    renumber_after_deletion,
    reorder_sections,
    rewrite_cross_references,
    sort_by_numeric_prefix,
)
from prd_stream.document.placeholder_rules import (
    PLACEHOLDER_RULES,
    PlaceholderMatch,
    PlaceholderRule,
    classify_placeholder,
    is_mostly_placeholder,
    is_placeholder,
    is_placeholder_prefix,
    placeholder_ratio,
    strip_placeholders,
    trim_open_tail,
)
from prd_stream.document.recovery import extract_and_recover, is_complete, recover, require_complete

__all__ = [
    "MarkdownSerializer",
    "MarkupNode",
    "PLACEHOLDER_RULES",
    "PlaceholderMatch",
    "PlaceholderRule",
    "apply_number_map",
    "build_number_map",
    "classify_placeholder",
    "dedupe_content",
    "delete_section",
    "extract_and_recover",
    "extract_block",
    "from_markup",
    "is_complete",
    "is_mostly_placeholder",
    "is_placeholder",
    "is_placeholder_prefix",
    "markdown_to_markup",
    "markup_to_markdown",
    "merge",
    "merge_candidate",
    "parse_markup",
    "parse_partial",
    "placeholder_ratio",
    "recover",
    "render_node",
    "renumber_after_deletion",
    "renumber_ordered_lists",
    "reorder_sections",
    "require_complete",
    "rewrite_cross_references",
    "sort_by_numeric_prefix",
    "strip_placeholders",
    "to_markdown",
    "to_markup",
    "trim_open_tail",
]
