"""Markup Render module.

This module belongs to `prd_stream.document` in the prd-stream codebase.

Renders canonical markdown into the editor's HTML dialect: task lists use
``data-type="taskList"``, code blocks carry a ``code-block-header`` div and
mermaid fences become ``div.mermaid``.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*(```|~~~)\s*([\w+#.-]*)\s*$")
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*$")
_HR_RE = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")
_QUOTE_RE = re.compile(r"^\s*>\s?(.*)$")
_TABLE_ROW_RE = re.compile(r"^\s*\|")
_TABLE_SEP_RE = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)*\|?\s*$")
_LIST_ITEM_RE = re.compile(r"^(\s*)([-*+]|\d+[.)])\s+(.*)$")
_ORDERED_ITEM_RE = re.compile(r"^(\s*)(\d+)([.)])(\s+.*)$")
_TASK_RE = re.compile(r"^\[([ xX])\]\s+(.*)$")

_CODE_SPAN_RE = re.compile(r"`([^`\n]+)`")
_IMAGE_RE = re.compile(r"!\[([^\]\n]*)\]\(([^)\s]+)(?:\s+\"([^\"]*)\")?\)")
_LINK_RE = re.compile(r"\[([^\]\n]+)\]\(([^)\s]+)\)")
_UNDERLINE_RE = re.compile(r"<u>(.+?)</u>")
_TOKEN_RE = re.compile(r"\x00(\d+)\x00")


def esc(text: str) -> str:
    return html.escape(text or "", quote=False)


def esc_attr(text: str) -> str:
    return html.escape(text or "", quote=True)


def render_inline(text: str) -> str:
    tokens: list[str] = []

    def stash(value: str) -> str:
        tokens.append(value)
        return f"\x00{len(tokens) - 1}\x00"

    src = _CODE_SPAN_RE.sub(lambda m: stash(f"<code>{esc(m.group(1))}</code>"), text or "")

    def image(m: re.Match[str]) -> str:
        title = f' title="{esc_attr(m.group(3))}"' if m.group(3) else ""
        return stash(f'<img src="{esc_attr(m.group(2))}" alt="{esc_attr(m.group(1))}"{title}>')

    src = _IMAGE_RE.sub(image, src)
    src = _LINK_RE.sub(lambda m: stash(f'<a href="{esc_attr(m.group(2))}">{render_inline(m.group(1))}</a>'), src)
    src = _UNDERLINE_RE.sub(lambda m: stash(f"<u>{render_inline(m.group(1))}</u>"), src)
    src = esc(src)
    src = re.sub(r"\*\*\*(?!\s)(.+?)(?<!\s)\*\*\*", r"<strong><em>\1</em></strong>", src)
    src = re.sub(r"\*\*(?!\s)(.+?)(?<!\s)\*\*", r"<strong>\1</strong>", src)
    src = re.sub(r"(?<![\w_])__(?!\s)(.+?)(?<!\s)__(?![\w_])", r"<strong>\1</strong>", src)
    src = re.sub(r"(?<![*\w])\*(?![\s*])(.+?)(?<![\s*])\*(?![*\w])", r"<em>\1</em>", src)
    src = re.sub(r"(?<![\w_])_(?![\s_])(.+?)(?<![\s_])_(?![\w_])", r"<em>\1</em>", src)
    src = re.sub(r"~~(?!\s)(.+?)(?<!\s)~~", r"<s>\1</s>", src)
    return _TOKEN_RE.sub(lambda m: tokens[int(m.group(1))], src)


def _indent_width(value: str) -> int:
    return len(value.replace("\t", "    "))


def _next_nonblank(lines: list[str], start: int) -> int:
    j = start
    while j < len(lines) and not lines[j].strip():
        j += 1
    return j


def _continues_list(lines: list[str], blank_at: int) -> bool:
    j = _next_nonblank(lines, blank_at)
    if j >= len(lines):
        return False
    nxt = lines[j]
    return bool(_LIST_ITEM_RE.match(nxt)) or (_indent_width(nxt) - _indent_width(nxt.lstrip()) > 0)


def renumber_ordered_lists(markdown: str) -> str:
    """Rewrite ordered markers so each contiguous run counts up from its first number."""
    lines = (markdown or "").split("\n")
    out: list[str] = []
    counters: dict[int, int] = {}
    in_fence = False
    for idx, line in enumerate(lines):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            counters.clear()
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        if not line.strip():
            if not _continues_list(lines, idx + 1):
                counters.clear()
            out.append(line)
            continue
        item = _LIST_ITEM_RE.match(line)
        if not item:
            if _indent_width(line) - _indent_width(line.lstrip()) == 0:
                counters.clear()
            out.append(line)
            continue
        depth = _indent_width(item.group(1))
        for key in [k for k in counters if k > depth]:
            del counters[key]
        ordered = _ORDERED_ITEM_RE.match(line)
        if not ordered:
            counters.pop(depth, None)
            out.append(line)
            continue
        number = counters.get(depth, int(ordered.group(2)))
        counters[depth] = number + 1
        out.append(f"{ordered.group(1)}{number}{ordered.group(3)}{ordered.group(4)}")
    return "\n".join(out)


@dataclass
class _ListItem:
    indent: int
    kind: str
    number: int = 1
    checked: bool = False
    lines: list[str] = field(default_factory=list)


def _parse_list_item(line: str) -> _ListItem:
    m = _LIST_ITEM_RE.match(line)
    assert m is not None
    indent = _indent_width(m.group(1))
    marker = m.group(2)
    body = m.group(3)
    if marker[0].isdigit():
        return _ListItem(indent=indent, kind="ol", number=int(marker[:-1]), lines=[body])
    task = _TASK_RE.match(body)
    if task:
        return _ListItem(indent=indent, kind="task", checked=task.group(1).lower() == "x", lines=[task.group(2)])
    return _ListItem(indent=indent, kind="ul", lines=[body])


def _render_item_body(item: _ListItem) -> str:
    return "<p>" + "<br>".join(render_inline(x) for x in item.lines) + "</p>"


def _render_list(items: list[_ListItem], i: int) -> tuple[str, int]:
    base = items[i].indent
    kind = items[i].kind
    if kind == "ol":
        start = f' start="{items[i].number}"' if items[i].number != 1 else ""
        parts = [f"<ol{start}>"]
    elif kind == "task":
        parts = ['<ul data-type="taskList">']
    else:
        parts = ["<ul>"]
    while i < len(items) and items[i].indent >= base:
        item = items[i]
        if item.indent == base and item.kind != kind:
            break
        if kind == "task":
            checked = "true" if item.checked else "false"
            parts.append(f'<li data-type="taskItem" data-checked="{checked}">')
        else:
            parts.append("<li>")
        parts.append(_render_item_body(item))
        i += 1
        while i < len(items) and items[i].indent > base:
            child, i = _render_list(items, i)
            parts.append(child)
        parts.append("</li>")
    parts.append("</ol>" if kind == "ol" else "</ul>")
    return "".join(parts), i


def _is_block_start(line: str) -> bool:
    return bool(
        _FENCE_RE.match(line)
        or _HEADING_RE.match(line)
        or _HR_RE.match(line)
        or _QUOTE_RE.match(line)
        or _TABLE_ROW_RE.match(line)
        or _LIST_ITEM_RE.match(line)
    )


def _split_row(line: str) -> list[str]:
    value = line.strip()
    if value.startswith("|"):
        value = value[1:]
    if value.endswith("|"):
        value = value[:-1]
    return [cell.strip().replace("\\|", "|") for cell in re.split(r"(?<!\\)\|", value)]


def _render_table(rows: list[str]) -> str:
    header: list[str] | None = None
    body = rows
    if len(rows) >= 2 and _TABLE_SEP_RE.match(rows[1]):
        header = _split_row(rows[0])
        body = rows[2:]
    parts = ["<table>"]
    if header is not None:
        parts.append("<thead><tr>" + "".join(f"<th>{render_inline(c)}</th>" for c in header) + "</tr></thead>")
    parts.append("<tbody>")
    for row in body:
        if _TABLE_SEP_RE.match(row):
            continue
        parts.append("<tr>" + "".join(f"<td>{render_inline(c)}</td>" for c in _split_row(row)) + "</tr>")
    parts.append("</tbody></table>")
    return "".join(parts)


def _render_blocks(lines: list[str]) -> list[str]:
    out: list[str] = []
    i = 0
    n = len(lines)
    while i < n:
        line = lines[i]
        if not line.strip():
            i += 1
            continue

        fence = _FENCE_RE.match(line)
        if fence:
            lang = fence.group(2) or ""
            code: list[str] = []
            i += 1
            while i < n and not _FENCE_RE.match(lines[i]):
                code.append(lines[i])
                i += 1
            i += 1
            body = esc("\n".join(code))
            if lang.lower() == "mermaid":
                out.append(f'<div class="mermaid">{body}</div>')
            elif lang:
                out.append(
                    f'<div class="code-block-header">{esc(lang)}</div>'
                    f'<pre><code class="language-{esc_attr(lang)}">{body}</code></pre>'
                )
            else:
                out.append(f"<pre><code>{body}</code></pre>")
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            level = len(heading.group(1))
            out.append(f"<h{level}>{render_inline(heading.group(2))}</h{level}>")
            i += 1
            continue

        if _HR_RE.match(line):
            out.append("<hr>")
            i += 1
            continue

        if _QUOTE_RE.match(line):
            quoted: list[str] = []
            while i < n and lines[i].strip() and _QUOTE_RE.match(lines[i]):
                quoted.append(_QUOTE_RE.match(lines[i]).group(1))
                i += 1
            out.append("<blockquote>" + "".join(_render_blocks(quoted)) + "</blockquote>")
            continue

        if _TABLE_ROW_RE.match(line):
            rows: list[str] = []
            while i < n and _TABLE_ROW_RE.match(lines[i]):
                rows.append(lines[i])
                i += 1
            out.append(_render_table(rows))
            continue

        if _LIST_ITEM_RE.match(line):
            items: list[_ListItem] = []
            while i < n:
                current = lines[i]
                if not current.strip():
                    if not _continues_list(lines, i):
                        break
                    i += 1
                    continue
                if _LIST_ITEM_RE.match(current):
                    items.append(_parse_list_item(current))
                elif items and _indent_width(current) - _indent_width(current.lstrip()) > 0:
                    items[-1].lines.append(current.strip())
                else:
                    break
                i += 1
            j = 0
            while j < len(items):
                html_list, j = _render_list(items, j)
                out.append(html_list)
            continue

        para: list[str] = []
        while i < n and lines[i].strip() and (not para or not _is_block_start(lines[i])):
            para.append(lines[i].strip())
            i += 1
        out.append("<p>" + "<br>".join(render_inline(x) for x in para) + "</p>")
    return out


def markdown_to_markup(markdown: str) -> str:
    src = (markdown or "").replace("\r\n", "\n").replace("\r", "\n")
    if not src.strip():
        return ""
    try:
        return "".join(_render_blocks(renumber_ordered_lists(src).split("\n")))
    except Exception:
        logger.warning("markdown_to_markup failed, wrapping input in a paragraph", exc_info=True)
        return f"<p>{esc(src)}</p>"
