from prd_stream.document.markup_document import from_markup, to_markup
from prd_stream.models import Document, Section


def _doc() -> Document:
    return Document(
        title="Plan",
        description="Intro",
        sections=[
            Section(title="1. Summary", content="Summary **body**"),
            Section(title="2. Scope", content="- a\n- b"),
        ],
    )


def test_to_markup_carries_title_and_section_ids():
    doc = _doc()
    html = to_markup(doc)
    assert html.startswith("<h1>Plan</h1><p>Intro</p>")
    assert f'<h2 data-section-id="{doc.sections[0].id}">1. Summary</h2>' in html
    assert "<strong>body</strong>" in html


def test_unchanged_markup_returns_existing_document():
    doc = _doc()
    assert from_markup(to_markup(doc), doc) is doc


def test_edit_keeps_section_ids():
    doc = _doc()
    html = to_markup(doc).replace("Summary <strong>body</strong>", "Edited summary")
    out = from_markup(html, doc)
    assert out is not None and out is not doc
    assert [s.id for s in out.sections] == [s.id for s in doc.sections]
    assert out.sections[0].content == "Edited summary"
    assert out.sections[1].content == "- a\n- b"


def test_sections_missing_from_markup_are_kept():
    doc = _doc()
    html = f'<h1>Plan</h1><p>Intro</p><h2 data-section-id="{doc.sections[0].id}">1. Summary</h2><p>New</p>'
    out = from_markup(html, doc)
    assert out is not None
    assert [s.title for s in out.sections] == ["1. Summary", "2. Scope"]
    assert out.sections[1].id == doc.sections[1].id


def test_ids_are_reused_by_title_without_attribute():
    doc = _doc()
    out = from_markup("<h1>Plan</h1><h2>2. scope</h2><p>changed</p>", doc)
    assert out is not None
    scope = out.section_by_title("2. scope")
    assert scope is not None and scope.id == doc.sections[1].id
    assert scope.content == "changed"


def test_numeric_only_heading_folds_into_previous_section():
    out = from_markup("<h1>T</h1><h2>A</h2><p>one</p><h2>2.</h2><p>two</p>", None)
    assert out is not None
    assert [s.title for s in out.sections] == ["A"]
    assert out.sections[0].content == "one\n\ntwo"


def test_duplicate_headings_are_concatenated():
    out = from_markup("<h1>T</h1><h2>A</h2><p>one</p><h2>a</h2><p>two</p>", None)
    assert out is not None
    assert len(out.sections) == 1
    assert out.sections[0].content == "one\n\ntwo"


def test_headingless_or_blank_markup_keeps_existing():
    doc = _doc()
    assert from_markup("<p>just text</p>", doc) is doc
    assert from_markup("", doc) is doc
    assert from_markup("<p>just text</p>", None) is None


def test_missing_title_falls_back_to_kind_default():
    out = from_markup("<h2>A</h2><p>x</p>", None, kind="ticket")
    assert out is not None and out.title == "Untitled Ticket"


def test_deeply_nested_markup_keeps_existing():
    doc = _doc()
    deep = "<h1>T</h1><h2>A</h2>" + "<div>" * 3000 + "x" + "</div>" * 3000
    assert from_markup(deep, doc) is doc
