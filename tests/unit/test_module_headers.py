from __future__ import annotations

import ast
from pathlib import Path

PACKAGE = Path(__file__).resolve().parents[2] / "prd_stream"


def _modules():
    for path in sorted(PACKAGE.rglob("*.py")):
        source = path.read_text(encoding="utf-8")
        if source.strip():
            yield path, source


def test_every_module_carries_a_docstring_header() -> None:
    missing = [
        str(path.relative_to(PACKAGE))
        for path, source in _modules()
        if ast.get_docstring(ast.parse(source)) is None
    ]
    assert missing == []
