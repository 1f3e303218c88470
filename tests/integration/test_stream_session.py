from __future__ import annotations

from prd_stream.document.markdown_parse import to_markdown
from prd_stream.editor_state import EditorState
from prd_stream.errors import StorageUnavailableError
from prd_stream.settings import EngineSettings
from prd_stream.storage import InMemorySnapshotStore
from prd_stream.stream_session import StreamingMergeSession

S1 = "Drafting now.\n<prd_document>\n# Plan\n\nIntro\n\n## 1. Summary\n\nFirst summary\n\n## 2. Scope\n\nIn scope"
S2 = (
    "Drafting now.\n<prd_document>\n# Plan\n\nIntro\n\n## 1. Summary\n\n[Section content unchanged...]\n\n"
    "## 2. Scope\n\nEdited scope\n\n## 3. Risks\n\nSome risk"
)
FINAL = (
    "# Plan\n\nIntro\n\n## 1. Summary\n\nFirst summary\n\n"
    "## 2. Scope\n\nFinal scope\n\n## 3. Risks\n\nSome risk"
)
S3 = f"Drafting now.\n<prd_document>\n{FINAL}\n</prd_document>\nDone."


class _Feed:
    def __init__(self, text: str = "") -> None:
        self.text = text
        self.finished = False

    def latest(self) -> str:
        return self.text

    def done(self) -> bool:
        return self.finished


class _Clock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


class _BrokenStore:
    def load(self, kind):
        raise StorageUnavailableError("offline")

    def save(self, kind, document):
        raise StorageUnavailableError("offline")

    def clear(self, kind):
        raise StorageUnavailableError("offline")


def _session(feed: _Feed, store=None, **kwargs) -> StreamingMergeSession:
    return StreamingMergeSession(
        "prd",
        store if store is not None else InMemorySnapshotStore(),
        feed.latest,
        feed.done,
        settings=EngineSettings(),
        **kwargs,
    )


def test_three_snapshots_converge_with_stable_ids() -> None:
    feed = _Feed(S1)
    store = InMemorySnapshotStore()
    session = _session(feed, store)

    first = session.poll(force=True)
    assert first is not None
    assert [s.title for s in first.sections] == ["1. Summary", "2. Scope"]
    summary_id, scope_id = [s.id for s in first.sections]

    feed.text = S2
    second = session.poll(force=True)
    assert second is not None
    assert [s.title for s in second.sections] == ["1. Summary", "2. Scope", "3. Risks"]
    assert [s.id for s in second.sections][:2] == [summary_id, scope_id]
    assert second.sections[0].content == "First summary"
    assert second.sections[1].content == "Edited scope"
    risks_id = second.sections[2].id

    feed.text = S3
    feed.finished = True
    final = session.finish()
    assert final is not None
    stored = store.load("prd")
    assert stored is not None and stored.same_content(final)
    assert to_markdown(stored) == FINAL + "\n"
    assert [s.id for s in stored.sections] == [summary_id, scope_id, risks_id]


def test_unchanged_text_is_not_merged_twice() -> None:
    feed = _Feed(S1)
    session = _session(feed)
    assert session.poll(force=True) is not None
    assert session.poll(force=True) is None
    feed.finished = True
    assert session.finish() is session.document


def test_finish_waits_for_stream_end() -> None:
    feed = _Feed(S1)
    session = _session(feed)
    assert session.finish() is None


def test_polls_are_throttled() -> None:
    feed = _Feed(S1)
    clock = _Clock()
    session = _session(feed, clock=clock)
    assert session.poll() is not None
    feed.text = S2
    clock.t = 0.05
    assert session.poll() is None
    clock.t = 0.2
    assert session.poll() is not None


def test_text_without_block_is_ignored() -> None:
    session = _session(_Feed("thinking about it"))
    assert session.poll(force=True) is None


def test_user_edit_lock_blocks_streaming_updates() -> None:
    feed = _Feed(S1)
    state = EditorState()
    store = InMemorySnapshotStore()
    session = _session(feed, store, editor_state=state)
    assert state.is_streaming

    state.register_manual_edit("<p>mine</p>")
    assert session.poll(force=True) is None
    assert store.load("prd") is None
    assert state.current_content == "<p>mine</p>"

    state.release_lock()
    merged = session.poll(force=True)
    assert merged is not None
    assert state.current_content.startswith("<h1>Plan</h1>")
    feed.finished = True
    session.finish()
    assert not state.is_streaming


def test_storage_failures_do_not_stop_streaming() -> None:
    feed = _Feed(S1)
    session = _session(feed, _BrokenStore())
    merged = session.poll(force=True)
    assert merged is not None
    assert session.document is merged


def test_token_by_token_filler_never_overwrites_stored_section() -> None:
    store = InMemorySnapshotStore()
    head = "<prd_document>\n# Plan\n\nIntro\n\n## 1. Summary\n\n"
    seed = _Feed(head + "Original summary body\n\n## 2. Scope\n\nScope body\n</prd_document>")
    assert _session(seed, store).poll(force=True) is not None
    summary_id = store.load("prd").sections[0].id

    filler = "[Section content remains unchanged]"
    feed = _Feed()
    session = _session(feed, store)
    for end in range(1, len(filler) + 1):
        feed.text = head + filler[:end]
        session.poll(force=True)
        stored = store.load("prd")
        assert stored.sections[0].content == "Original summary body"

    feed.text = head + filler + "\n\n## 2. Scope\n\nNew scope\n</prd_document>"
    feed.finished = True
    session.finish()
    stored = store.load("prd")
    assert stored.sections[0].id == summary_id
    assert stored.sections[0].content == "Original summary body"
    assert stored.sections[1].content == "New scope"
