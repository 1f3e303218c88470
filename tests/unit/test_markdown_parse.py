import pytest

from prd_stream.document.markdown_parse import extract_block, parse_partial, to_markdown
from prd_stream.errors import UnknownDocumentKindError
from prd_stream.models import Document, Section


def _titles(candidate):
    return [s.title for s in candidate.sections]


def test_parse_partial_splits_title_description_and_sections():
    text = "# Title\n\nIntro text\n\n## 1. Goals\n\nShip it\n\n## 2. Scope\n\nIn progress"
    parsed = parse_partial(text)
    assert parsed.title == "Title"
    assert parsed.description == "Intro text"
    assert _titles(parsed) == ["1. Goals", "2. Scope"]
    assert parsed.sections[0].content == "Ship it"
    assert parsed.sections[1].content == "In progress"
    assert parsed.trailing_open is True


def test_parse_partial_closed_text_is_not_trailing_open():
    parsed = parse_partial("# T\n\n## A\n\nbody\n")
    assert parsed.trailing_open is False


def test_numeric_only_heading_folds_into_previous_block():
    parsed = parse_partial("# T\n\n## 1. A\n\nalpha\n## 2.")
    assert _titles(parsed) == ["1. A"]
    assert parsed.sections[0].content.endswith("2.")


def test_bare_heading_marker_is_ignored():
    parsed = parse_partial("# T\n\n## A\n\nalpha\n\n## ")
    assert _titles(parsed) == ["A"]
    assert parsed.sections[0].content == "alpha"


def test_headings_inside_code_fence_are_content():
    parsed = parse_partial("# T\n\n## A\n\n```\n## not heading\n```\n")
    assert _titles(parsed) == ["A"]
    assert "## not heading" in parsed.sections[0].content


def test_missing_title_uses_fallback():
    assert parse_partial("## A\n\nx").title is None
    assert parse_partial("## A\n\nx", fallback_title="Draft").title == "Draft"


def test_crlf_line_endings_are_normalised():
    parsed = parse_partial("# T\r\n\r\n## A\r\n\r\nline one\r\nline two\r\n")
    assert parsed.sections[0].content == "line one\nline two"


def test_deeper_headings_stay_in_section_content():
    parsed = parse_partial("# T\n\n## A\n\n### Detail\n\ntext\n")
    assert _titles(parsed) == ["A"]
    assert parsed.sections[0].content == "### Detail\n\ntext"


def test_extract_block_closed():
    turn = "Here you go <prd_document>\n# T\n## A\nx\n</prd_document> anything else?"
    block = extract_block(turn, "prd")
    assert block is not None
    assert block.closed is True
    assert block.markdown == "# T\n## A\nx"


def test_extract_block_open_drops_partial_closing_marker():
    block = extract_block("<prd_document>\n# T\n\n## A\n\npartial</prd_doc", "prd")
    assert block is not None
    assert block.closed is False
    assert block.markdown == "# T\n\n## A\n\npartial"


def test_extract_block_uses_last_opening_marker():
    turn = "<prd_document>old</prd_document>\nrevised:\n<prd_document>new"
    block = extract_block(turn, "prd")
    assert block is not None
    assert block.markdown == "new"
    assert block.closed is False


def test_extract_block_per_kind_and_missing_marker():
    assert extract_block("no markers here", "prd") is None
    assert extract_block("<prd_document># P</prd_document>", "ticket") is None
    block = extract_block("<ticket_document># Ticket</ticket_document>", "ticket")
    assert block is not None and block.markdown == "# Ticket"


def test_extract_block_unknown_kind_raises():
    with pytest.raises(UnknownDocumentKindError):
        extract_block("<x>", "roadmap")


def test_to_markdown_is_canonical():
    doc = Document(title="T", description="D", sections=[Section(title="A", content="x"), Section(title="B")])
    assert to_markdown(doc) == "# T\n\nD\n\n## A\n\nx\n\n## B\n"


def test_closed_flag_decides_trailing_open():
    assert parse_partial("# T\n\n## A\n\nx\n", closed=False).trailing_open is True
    assert parse_partial("# T\n\n## A\n\nx", closed=True).trailing_open is False
