"""Markup Markdown module.

This module belongs to `prd_stream.document` in the prd-stream codebase.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Final

from prd_stream.document.markup_nodes import MarkupNode, parse_markup
from prd_stream.errors import ConversionError

logger = logging.getLogger(__name__)

INDENT: Final[str] = "  "

_HEADINGS: Final[dict[str, int]] = {f"h{n}": n for n in range(1, 7)}
_BLOCK_TAGS: Final[set[str]] = {
    "p",
    "ul",
    "ol",
    "blockquote",
    "pre",
    "hr",
    "table",
    "div",
    "section",
    "article",
    "figure",
    *_HEADINGS,
}
_WRAPPERS: Final[dict[str, tuple[str, str]]] = {
    "strong": ("**", "**"),
    "b": ("**", "**"),
    "em": ("*", "*"),
    "i": ("*", "*"),
    "u": ("<u>", "</u>"),
    "s": ("~~", "~~"),
    "del": ("~~", "~~"),
    "strike": ("~~", "~~"),
}


def _code_language(node: MarkupNode) -> str:
    for cls in node.classes():
        if cls.startswith("language-"):
            return cls[len("language-"):]
    return ""


def _is_task_list(node: MarkupNode) -> bool:
    if node.attr("data-type") == "taskList":
        return True
    items = [c for c in node.element_children() if c.tag == "li"]
    return bool(items) and all("data-checked" in li.attributes for li in items)


class MarkdownSerializer:
    """Walks a MarkupNode tree and emits canonical markdown."""

    def serialize(self, root: MarkupNode) -> str:
        blocks = self.visit_blocks(root.children)
        text = "\n\n".join(b for b in blocks if b.strip())
        return re.sub(r"\n{3,}", "\n\n", text).strip("\n")

    # blocks

    def visit_blocks(self, nodes: list[MarkupNode]) -> list[str]:
        out: list[str] = []
        inline_run: list[MarkupNode] = []
        pending_lang = ""

        def flush() -> None:
            if not inline_run:
                return
            text = self.visit_inline(inline_run).strip()
            if text:
                out.append(text)
            inline_run.clear()

        for node in nodes:
            if node.is_text or node.tag not in _BLOCK_TAGS:
                if node.is_text and not node.text.strip() and not inline_run:
                    continue
                inline_run.append(node)
                continue
            flush()
            if node.tag == "div" and "code-block-header" in node.classes():
                pending_lang = node.text_content().strip()
                continue
            if node.tag == "pre":
                out.append(self.visit_pre(node, pending_lang))
                pending_lang = ""
                continue
            pending_lang = ""
            block = self.visit_block(node)
            if block:
                out.append(block)
        flush()
        return out

    def visit_block(self, node: MarkupNode) -> str:
        tag = node.tag
        if tag in _HEADINGS:
            return "#" * _HEADINGS[tag] + " " + self.visit_inline(node.children).strip()
        if tag == "p":
            return self.visit_inline(node.children).strip()
        if tag in {"ul", "ol"}:
            return "\n".join(self.visit_list(node, 0))
        if tag == "blockquote":
            inner = "\n\n".join(self.visit_blocks(node.children))
            return "\n".join(f"> {line}" if line.strip() else ">" for line in inner.split("\n"))
        if tag == "hr":
            return "---"
        if tag == "table":
            return self.visit_table(node)
        if tag == "div" and "mermaid" in node.classes():
            return "```mermaid\n" + node.text_content().strip("\n") + "\n```"
        return "\n\n".join(self.visit_blocks(node.children))

    def visit_pre(self, node: MarkupNode, header_lang: str = "") -> str:
        code = next((c for c in node.element_children() if c.tag == "code"), None)
        lang = (_code_language(code) if code is not None else "") or header_lang
        body = (code if code is not None else node).text_content()
        if body.endswith("\n"):
            body = body[:-1]
        return f"```{lang}\n{body}\n```"

    def visit_list(self, node: MarkupNode, depth: int) -> list[str]:
        lines: list[str] = []
        ordered = node.tag == "ol"
        task = not ordered and _is_task_list(node)
        try:
            number = int(node.attr("start") or 1)
        except ValueError:
            number = 1
        pad = INDENT * depth
        for li in node.element_children():
            if li.tag != "li":
                continue
            if ordered:
                marker = f"{number}. "
                number += 1
            elif task:
                checked = li.attr("data-checked").lower() in {"true", "1", "checked"}
                marker = "- [x] " if checked else "- [ ] "
            else:
                marker = "- "
            text, nested = self.visit_list_item(li, depth)
            item_lines = text.split("\n") if text else [""]
            lines.append(f"{pad}{marker}{item_lines[0]}".rstrip())
            lines.extend(f"{pad}{INDENT}{x}" for x in item_lines[1:] if x.strip())
            lines.extend(nested)
        return lines

    def visit_list_item(self, li: MarkupNode, depth: int) -> tuple[str, list[str]]:
        parts: list[str] = []
        nested: list[str] = []
        inline_run: list[MarkupNode] = []

        def flush() -> None:
            if inline_run:
                value = self.visit_inline(inline_run).strip()
                if value:
                    parts.append(value)
                inline_run.clear()

        def walk(children: list[MarkupNode]) -> None:
            for child in children:
                if child.tag in {"ul", "ol"}:
                    flush()
                    nested.extend(self.visit_list(child, depth + 1))
                elif child.tag == "label" or (child.tag == "input" and child.attr("type") == "checkbox"):
                    continue
                elif child.tag in {"p", "div"}:
                    flush()
                    walk(child.children)
                    flush()
                else:
                    inline_run.append(child)

        walk(li.children)
        flush()
        return "\n".join(parts), nested

    def visit_table(self, node: MarkupNode) -> str:
        rows: list[list[str]] = []
        header_row = False
        for el in node.iter():
            if el.tag != "tr":
                continue
            cells = [c for c in el.element_children() if c.tag in {"td", "th"}]
            if not rows and cells and all(c.tag == "th" for c in cells):
                header_row = True
            rows.append([self.visit_inline(c.children).strip().replace("\n", " ").replace("|", "\\|") for c in cells])
        if not rows:
            logger.debug("dropping table without rows")
            return ""
        width = max(len(r) for r in rows) or 1
        rows = [r + [""] * (width - len(r)) for r in rows]
        if not header_row:
            logger.debug("table without header row, promoting first row")
        lines = ["| " + " | ".join(rows[0]) + " |", "| " + " | ".join(["---"] * width) + " |"]
        lines.extend("| " + " | ".join(r) + " |" for r in rows[1:])
        return "\n".join(lines)

    # inline

    def visit_inline(self, nodes: list[MarkupNode]) -> str:
        return "".join(self.visit_inline_node(n) for n in nodes)

    def visit_inline_node(self, node: MarkupNode) -> str:
        if node.is_text:
            return node.text
        tag = node.tag
        if tag == "br":
            return "\n"
        if tag == "code":
            return f"`{node.text_content()}`"
        if tag == "img":
            return f"![{node.attr('alt')}]({node.attr('src')})"
        if tag == "a":
            label = self.visit_inline(node.children)
            href = node.attr("href")
            return f"[{label}]({href})" if href else label
        inner = self.visit_inline(node.children)
        wrap = _WRAPPERS.get(tag)
        if wrap is None:
            return inner
        if not inner.strip():
            return inner
        return f"{wrap[0]}{inner}{wrap[1]}"


def _strip_tags(raw_html: str) -> str:
    text = re.sub(r"<br\s*/?>", "\n", raw_html or "", flags=re.IGNORECASE)
    text = re.sub(r"</(?:p|h[1-6]|li|div|tr|blockquote|pre)>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    return html.unescape(re.sub(r"\n{3,}", "\n\n", text)).strip()


def markup_to_markdown(raw_html: str) -> str:
    if not (raw_html or "").strip():
        return ""
    try:
        return MarkdownSerializer().serialize(parse_markup(raw_html))
    except (ConversionError, RecursionError) as exc:
        logger.warning("markup_to_markdown fell back to plain text: %s", exc)
        return _strip_tags(raw_html)
