import pytest

from prd_stream.document.recovery import extract_and_recover, is_complete, recover, require_complete
from prd_stream.errors import IncompleteStreamError, StorageUnavailableError
from prd_stream.models import Document, ExtractedBlock, Section

COMPLETE = "# Plan\n\nIntro\n\n## 1. Summary\n\nSummary body\n\n## 2. Scope\n\nScope body"


def _snapshot() -> Document:
    return Document(
        title="Plan",
        description="Intro",
        sections=[
            Section(title="1. Summary", content="Summary body"),
            Section(title="2. Scope", content="Scope body"),
        ],
    )


def _loader(doc):
    def load(kind):
        assert kind == "prd"
        return doc

    return load


def _broken_loader(kind):
    raise StorageUnavailableError("disk gone")


def test_is_complete_needs_title_and_two_sections():
    assert is_complete(COMPLETE)
    assert not is_complete("# Plan\n\n## 1. Summary\n\nonly one")
    assert not is_complete("## A\n\na\n\n## B\n\nb")
    assert not is_complete("")


def test_is_complete_respects_min_sections_override():
    assert is_complete("# Plan\n\n## 1. Summary\n\nonly one", min_sections=1)


def test_open_block_is_never_complete():
    assert not is_complete(ExtractedBlock(markdown=COMPLETE, closed=False))
    assert is_complete(ExtractedBlock(markdown=COMPLETE, closed=True))


def test_mostly_placeholder_block_is_incomplete():
    assert not is_complete("# T\n\n## A\n\n[unchanged]\n\n## B\n\n[unchanged]")


def test_require_complete_raises():
    with pytest.raises(IncompleteStreamError):
        require_complete("# Plan only")
    assert require_complete(COMPLETE) == COMPLETE


def test_recover_complete_block_only_strips_placeholders():
    text = COMPLETE + "\n\n[Rest of the document continues as before...]"
    assert recover(text, load_snapshot=_loader(None)) == COMPLETE


def test_recover_incomplete_block_merges_with_snapshot():
    block = ExtractedBlock(markdown="# Plan\n\n## 2. Scope\n\nNew scope", closed=False)
    out = recover(block, kind="prd", load_snapshot=_loader(_snapshot()))
    assert "## 1. Summary\n\nSummary body" in out
    assert "## 2. Scope\n\nNew scope" in out
    assert out.index("## 1. Summary") < out.index("## 2. Scope")


def test_recover_without_snapshot_returns_partial_text():
    block = ExtractedBlock(markdown="# Plan\n\n## 2. Scope\n\nNew scope", closed=False)
    assert recover(block, load_snapshot=_loader(None)) == "# Plan\n\n## 2. Scope\n\nNew scope"
    assert recover(block) == "# Plan\n\n## 2. Scope\n\nNew scope"


def test_recover_degrades_when_storage_fails():
    block = ExtractedBlock(markdown="# Plan\n\n## 2. Scope\n\nNew scope", closed=False)
    assert recover(block, load_snapshot=_broken_loader) == "# Plan\n\n## 2. Scope\n\nNew scope"


def test_extract_and_recover():
    assert extract_and_recover("nothing to see", load_snapshot=_loader(None)) is None
    turn = f"Sure.\n<prd_document>\n{COMPLETE}\n</prd_document>"
    assert extract_and_recover(turn, load_snapshot=_loader(None)) == COMPLETE


def test_open_block_holds_back_unfinished_filler_line():
    snapshot = _snapshot()
    block = ExtractedBlock(markdown="# Plan\n\n## 1. Summary\n\n[Section", closed=False)
    out = recover(block, load_snapshot=_loader(snapshot))
    assert "[Section" not in out
    assert "## 1. Summary\n\nSummary body" in out
    assert recover(block) == "# Plan\n\n## 1. Summary"
