"""Placeholder Rules module.

This module belongs to `prd_stream.document` in the prd-stream codebase.

Generators are told to elide unchanged sections, and they do it with short
filler such as ``[Previous sections continue unchanged...]``. The rule table
below decides whether a line is such filler. Rules are evaluated in order
and the first hit wins; the narrative guard runs before any rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

Tier = Literal["bracket", "phrase", "keyword", "template"]

_FLAGS = re.IGNORECASE

# A closing bracket followed by "(" is a markdown link or image, never filler.
_CLOSE = r"\](?!\()"
_INNER = r"[^\[\]\n]*"

_KEYWORDS = (
    r"\b(?:remain\w*|unchanged|continu\w*|same|skip(?:s|ped|ping)?|omit\w*|exactly|identical"
    r"|previous\w*|before|as is)\b"
)
_CONTEXT = r"\b(?:sections?|content|documents?|text|prd)\b"
_STRUCTURAL = r"(?:[\[\]]|\.{3}|…)"

SPECIFIC_PHRASES: tuple[str, ...] = (
    "rest of the document remains unchanged",
    "rest of the prd remains exactly the same",
    "previous content continues unchanged",
    "document continues as before",
    "content remains identical",
    "rest of the sections continue as before",
    "unchanged from previous version",
    "other sections remain the same",
    "previous sections continue exactly as before",
    "rest of the document continues exactly as before",
    "as previously described",
    "continues as above",
    "no changes to this section",
)


@dataclass(frozen=True)
class PlaceholderRule:
    rule_id: str
    pattern: re.Pattern[str]
    tier: Tier


@dataclass(frozen=True)
class PlaceholderMatch:
    is_placeholder: bool
    rule_id: str | None = None
    tier: Tier | None = None

    def __bool__(self) -> bool:
        return self.is_placeholder


def _rule(rule_id: str, pattern: str, tier: Tier) -> PlaceholderRule:
    return PlaceholderRule(rule_id=rule_id, pattern=re.compile(pattern, _FLAGS), tier=tier)


BRACKET_RULES: tuple[PlaceholderRule, ...] = (
    _rule("bracket_ellipsis", r"\[" + _INNER + r"(?:\.{3}|…)\s*" + _CLOSE, "bracket"),
    _rule(
        "bracket_keyword",
        r"\[" + _INNER + r"\b(?:unchanged|same|remain\w*|continu\w*|skip\w*|omit\w*|identical)\b" + _INNER + _CLOSE,
        "bracket",
    ),
    _rule("bracket_rest_of", r"\[\s*rest of\b" + _INNER + _CLOSE, "bracket"),
    _rule(
        "bracket_previous_content",
        r"\[" + _INNER + r"\b(?:previous\w*|existing|earlier)\b" + _INNER
        + r"\b(?:content|text|sections?|documents?|prd)\b" + _INNER + _CLOSE,
        "bracket",
    ),
    _rule(
        "bracket_as_before",
        r"\[" + _INNER + r"\bas (?:before|above|earlier|previously)\b" + _INNER + _CLOSE,
        "bracket",
    ),
    _rule(
        "bracket_no_change",
        r"\[" + _INNER + r"\bno (?:changes?|updates?|modifications?)\b" + _INNER + _CLOSE,
        "bracket",
    ),
)

PLACEHOLDER_RULES: tuple[PlaceholderRule, ...] = BRACKET_RULES + (
    _rule("phrase", r"(?:" + "|".join(re.escape(p) for p in SPECIFIC_PHRASES) + r")", "phrase"),
    _rule("template_remains_unchanged", r"\bremains?\s+unchanged\b", "template"),
    _rule("template_continues_as_before", r"\bcontinues?\s+as\s+before\b", "template"),
    _rule("template_stays_the_same", r"\bstays?\s+the\s+same\b", "template"),
    _rule("template_as_before", r"\bas\s+(?:before|above|earlier|previously)\b", "template"),
    _rule("keyword_context", r"^(?=.*" + _KEYWORDS + r")(?=.*" + _CONTEXT + r")", "keyword"),
    _rule("keyword_structural", r"^(?=.*" + _KEYWORDS + r")(?=.*" + _STRUCTURAL + r")", "keyword"),
)

_NARRATIVE_WORDS = re.compile(
    r"\b(?:customers?|clients?|features?|launch(?:ed|es|ing)?|revenue|markets?|marketing"
    r"|stakeholders?|teams?|sales|adoption|competitors?|pricing)\b",
    _FLAGS,
)
_NUMERIC_DURATION = re.compile(
    r"\b\d+(?:\.\d+)?\s+(?:[a-z]+\s+)?(?:minutes?|hours?|days?|weeks?|sprints?|months?|quarters?|years?)\b",
    _FLAGS,
)
# Two or more capitalised words after a lowercase word, e.g. "with Acme Corp".
_NAMED_ENTITY = re.compile(r"\b[a-z]+[,;]?\s+[A-Z][a-z0-9]+(?:\s+[A-Z][a-z0-9]+)+\b")

_LINK_RE = re.compile(r"!?\[([^\[\]\n]*)\]\([^)\n]*\)")
_CODE_SPAN_RE = re.compile(r"`[^`\n]*`")
_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s")
_TABLE_ROW_RE = re.compile(r"^\s*\|")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")


def has_narrative_indicator(line: str) -> bool:
    text = line or ""
    if _NARRATIVE_WORDS.search(text) or _NUMERIC_DURATION.search(text):
        return True
    stripped = text.strip()
    if stripped.startswith("[") and stripped.endswith("]"):
        return False
    return bool(_NAMED_ENTITY.search(text))


def _plain(line: str) -> str:
    value = _CODE_SPAN_RE.sub("", line or "")
    return _LINK_RE.sub(lambda m: m.group(1), value)


def classify_placeholder(line: str) -> PlaceholderMatch:
    text = (line or "").strip()
    if not text:
        return PlaceholderMatch(False)
    if _HEADING_RE.match(text) or _TABLE_ROW_RE.match(text):
        return PlaceholderMatch(False)
    if has_narrative_indicator(text):
        return PlaceholderMatch(False, "narrative_guard")
    for rule in BRACKET_RULES:
        if rule.pattern.search(text):
            return PlaceholderMatch(True, rule.rule_id, rule.tier)
    plain = _plain(text)
    for rule in PLACEHOLDER_RULES[len(BRACKET_RULES):]:
        if rule.pattern.search(plain):
            return PlaceholderMatch(True, rule.rule_id, rule.tier)
    return PlaceholderMatch(False)


def is_placeholder(line: str) -> bool:
    return classify_placeholder(line).is_placeholder


def _remove_bracket_spans(line: str) -> str:
    out = line
    for rule in BRACKET_RULES:
        out = rule.pattern.sub(lambda m: "" if not has_narrative_indicator(m.group(0)) else m.group(0), out)
    return out


def _filter_line(line: str) -> str | None:
    """Return the line with filler removed, or None when nothing real is left."""
    if not line.strip():
        return line
    if _HEADING_RE.match(line) or _TABLE_ROW_RE.match(line):
        return line
    reduced = _remove_bracket_spans(line)
    if reduced != line:
        if not reduced.strip():
            return None
        reduced = re.sub(r"[ \t]{2,}", " ", reduced).rstrip()
    if is_placeholder(reduced):
        return None
    return reduced


def strip_placeholders(text: str) -> str:
    lines = (text or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")
    out: list[str] = []
    in_fence = False
    removed = False
    for line in lines:
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            out.append(line)
            removed = False
            continue
        if in_fence:
            out.append(line)
            continue
        kept = _filter_line(line)
        if kept is None:
            removed = True
            continue
        if not kept.strip() and removed and (not out or not out[-1].strip()):
            removed = False
            continue
        removed = False
        out.append(kept)
    return "\n".join(out)


def placeholder_ratio(text: str) -> float:
    total = 0
    hits = 0
    in_fence = False
    for line in (text or "").replace("\r", "").split("\n"):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence or not line.strip() or _HEADING_RE.match(line):
            continue
        total += 1
        if _filter_line(line) is None:
            hits += 1
    if total == 0:
        return 0.0
    return hits / total


def is_mostly_placeholder(text: str, *, threshold: float = 0.5) -> bool:
    ratio = placeholder_ratio(text)
    return ratio > 0 and ratio >= threshold


_LEAD_MARKS = re.compile(r"^[\s>*_(-]+")


def is_placeholder_prefix(line: str) -> bool:
    """True when a still-streaming last line may yet turn into filler."""
    text = (line or "").strip()
    if not text or _HEADING_RE.match(text) or _TABLE_ROW_RE.match(text):
        return False
    if text.rfind("[") > text.rfind("]"):
        return True
    head = _LEAD_MARKS.sub("", text).lower()
    if head and any(phrase.startswith(head) for phrase in SPECIFIC_PHRASES):
        return True
    return is_placeholder(text)


def trim_open_tail(text: str) -> str:
    """Drop the unfinished last line of an open block when it could be filler.

    Lines inside an unterminated code fence are left alone.
    """
    lines = (text or "").replace("\r\n", "\n").replace("\r", "\n").rstrip("\n").split("\n")
    in_fence = False
    for line in lines:
        if _FENCE_RE.match(line):
            in_fence = not in_fence
    if in_fence or not is_placeholder_prefix(lines[-1]):
        return text
    return "\n".join(lines[:-1]).rstrip()
