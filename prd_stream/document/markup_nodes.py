"""Markup Nodes module.

This module belongs to `prd_stream.document` in the prd-stream codebase.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Final, Iterator

from prd_stream.errors import ConversionError

ROOT_TAG: Final[str] = "#root"
TEXT_TAG: Final[str] = "#text"

VOID_TAGS: Final[set[str]] = {"br", "hr", "img", "input", "col", "wbr", "source", "meta", "link"}


@dataclass
class MarkupNode:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["MarkupNode"] = field(default_factory=list)
    text: str = ""

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT_TAG

    def attr(self, name: str, default: str = "") -> str:
        return self.attributes.get(name, default)

    def classes(self) -> list[str]:
        return [c for c in self.attr("class").split() if c]

    def element_children(self) -> list["MarkupNode"]:
        return [c for c in self.children if not c.is_text]

    def iter(self) -> Iterator["MarkupNode"]:
        yield self
        for child in self.children:
            yield from child.iter()

    def text_content(self) -> str:
        if self.is_text:
            return self.text
        if self.tag == "br":
            return "\n"
        return "".join(c.text_content() for c in self.children)


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = MarkupNode(tag=ROOT_TAG)
        self._stack: list[MarkupNode] = [self.root]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        tag = tag.lower()
        node = MarkupNode(tag=tag, attributes={k.lower(): (v if v is not None else "") for k, v in attrs})
        self._stack[-1].children.append(node)
        if tag not in VOID_TAGS:
            self._stack.append(node)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        tag = tag.lower()
        node = MarkupNode(tag=tag, attributes={k.lower(): (v if v is not None else "") for k, v in attrs})
        self._stack[-1].children.append(node)

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        if tag in VOID_TAGS:
            return
        for idx in range(len(self._stack) - 1, 0, -1):
            if self._stack[idx].tag == tag:
                del self._stack[idx:]
                return
        # stray end tag

    def handle_data(self, data: str) -> None:
        if not data:
            return
        parent = self._stack[-1]
        if parent.children and parent.children[-1].is_text:
            parent.children[-1].text += data
            return
        parent.children.append(MarkupNode(tag=TEXT_TAG, text=data))


def parse_markup(raw_html: str) -> MarkupNode:
    parser = _TreeBuilder()
    try:
        parser.feed(raw_html or "")
        parser.close()
    except Exception as exc:
        raise ConversionError(f"could not parse markup: {exc}") from exc
    return parser.root


def _render_attrs(attributes: dict[str, str]) -> str:
    return "".join(f' {k}="{html.escape(v, quote=True)}"' for k, v in attributes.items())


def render_node(node: MarkupNode) -> str:
    if node.is_text:
        return html.escape(node.text, quote=False)
    inner = "".join(render_node(c) for c in node.children)
    if node.tag == ROOT_TAG:
        return inner
    if node.tag in VOID_TAGS:
        return f"<{node.tag}{_render_attrs(node.attributes)}>"
    return f"<{node.tag}{_render_attrs(node.attributes)}>{inner}</{node.tag}>"
