"""
Template-section transformer.

The template is matched as text, line by line. Each record is planned on
the original section text, most specific rule first:

- static attribute: ``name="original"`` becomes the bound attribute
- quoted original: the exact quoted text from the hinted column
- plain original: quoted as ``'..'``, ``".."`` or backticks from the hinted
  column, then the bare text; text nodes only ever take the bare text
- the same rules on lines up to five away from the hint

A match has to sit where its context can: text nodes never inside a tag,
expressions never in a plain attribute value.

Matched spans are claimed so two records never take the same occurrence,
and spans already inside a translation call are claimed up front, which
keeps a second run from touching its own output. All edits are applied in
one back-to-front pass.
"""

import bisect
import logging
import re
from typing import Iterable, List, Optional, Pattern, Tuple

from .content import template_replacement
from .document import SourceDocument
from .libraries import LibraryAdapter
from .models import (
    ExtractedString,
    ReplacementInterval,
    TemplateContext,
    TransformResult,
    apply_replacements,
)

log = logging.getLogger(__name__)

FALLBACK_DISTANCE = 5
QUOTES = ("'", '"', "`")
BOUND_PREFIXES = (":", "@", "#", "v-")

RE_TAG_OPEN = re.compile(r"<[A-Za-z]")
RE_ATTRIBUTE_NAME = re.compile(r"([^\s=<>\"'/]+)\s*=\s*$")

Span = Tuple[int, int]


def _is_word(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def call_pattern(library: LibraryAdapter) -> Pattern[str]:
    """Opening of a translation call whose first argument is a quoted key."""
    names = {library.template_function_name, library.script_function_name}
    alternation = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
    return re.compile(rf"(?<![\w$.])(?:{alternation})\((?=\s*['\"`])")


def closing_paren(text: str, pos: int) -> Optional[int]:
    """Offset just past the ``)`` closing a call whose arguments start at ``pos``."""
    depth, quote = 1, None
    while pos < len(text):
        ch = text[pos]
        if quote:
            if ch == "\\":
                pos += 1
            elif ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return pos + 1
        pos += 1
    return None


class TemplatePlanner:
    def __init__(self, text: str, library: LibraryAdapter):
        self.text = text
        self.library = library
        self.starts = [0] + [m.end() for m in re.finditer(r"\n", text)]
        self.tag_opens = [m.start() for m in RE_TAG_OPEN.finditer(text)]
        self.claimed: List[Span] = self._existing_calls()

    # -------------------------
    # Bookkeeping
    # -------------------------
    def line_bounds(self, index: int) -> Span:
        start = self.starts[index]
        if index + 1 < len(self.starts):
            return start, self.starts[index + 1] - 1
        return start, len(self.text)

    def is_free(self, start: int, end: int) -> bool:
        return all(end <= s or e <= start for s, e in self.claimed)

    def _existing_calls(self) -> List[Span]:
        spans = []
        for m in call_pattern(self.library).finditer(self.text):
            end = closing_paren(self.text, m.end())
            if end is not None:
                spans.append((m.start(), end))
        return spans

    def attribute_at(self, pos: int) -> Optional[str]:
        """
        Where ``pos`` sits relative to markup: None outside any tag, the
        attribute name inside a quoted attribute value, "" elsewhere in a tag
        (including on the value's opening quote).
        """
        idx = bisect.bisect_left(self.tag_opens, pos) - 1
        if idx < 0:
            return None
        tag_start = self.tag_opens[idx]
        quote, value_start = None, tag_start
        for i in range(tag_start, pos):
            ch = self.text[i]
            if quote:
                if ch == quote:
                    quote = None
            elif ch in "\"'":
                quote, value_start = ch, i
            elif ch == ">":
                return None
        if quote is None:
            return ""
        m = RE_ATTRIBUTE_NAME.search(self.text[tag_start:value_start])
        return m.group(1) if m else ""

    def allows(self, record: ExtractedString, start: int) -> bool:
        context = record.template_context or TemplateContext.TEXT_NODE
        if context is TemplateContext.STATIC_ATTRIBUTE:
            return True
        attribute = self.attribute_at(start)
        if context is TemplateContext.TEXT_NODE:
            return attribute is None
        return attribute is None or attribute.startswith(BOUND_PREFIXES)

    # -------------------------
    # Searches
    # -------------------------
    def find(
        self,
        needle: str,
        line: int,
        column: Optional[int] = None,
        bare: bool = False,
        record: Optional[ExtractedString] = None,
    ) -> Optional[Span]:
        """First free occurrence of ``needle`` starting on ``line`` at or after ``column``."""
        line_start, line_end = self.line_bounds(line)
        lo = line_start if column is None else min(line_start + max(column - 1, 0), line_end)
        i = self.text.find(needle, lo)
        while i != -1 and i <= line_end:
            end = i + len(needle)
            if (
                self.is_free(i, end)
                and (not bare or self._on_word_boundary(i, end))
                and (record is None or self.allows(record, i))
            ):
                return i, end
            i = self.text.find(needle, i + 1)
        return None

    def _on_word_boundary(self, start: int, end: int) -> bool:
        text = self.text
        if start > 0 and _is_word(text[start]) and _is_word(text[start - 1]):
            return False
        if end < len(text) and _is_word(text[end - 1]) and _is_word(text[end]):
            return False
        return True

    def find_attribute(self, record: ExtractedString, line: int) -> Optional[Span]:
        name = re.escape(record.attribute_name) if record.attribute_name else r"[\w-]+"
        pattern = re.compile(rf"(?<![\w:@.#-]){name}\s*=\s*([\"']){re.escape(record.original)}\1")
        line_start, line_end = self.line_bounds(line)
        for m in pattern.finditer(self.text, line_start):
            if m.start() > line_end:
                break
            if self.is_free(m.start(), m.end()):
                return m.start(), m.end()
        return None

    def find_on_line(self, record: ExtractedString, line: int, column: Optional[int]) -> Optional[Span]:
        original = record.original
        text_node = (record.template_context or TemplateContext.TEXT_NODE) is TemplateContext.TEXT_NODE
        anchors = (column, None) if column is not None else (None,)
        for anchor in anchors:
            if record.is_quoted:
                span = self.find(original, line, anchor, record=record)
                if span:
                    return span
                continue
            for quote in () if text_node else QUOTES:
                span = self.find(f"{quote}{original}{quote}", line, anchor, record=record)
                if span:
                    return span
            span = self.find(original, line, anchor, bare=True, record=record)
            if span:
                return span
        return None

    def search(self, record: ExtractedString, line: int, column: Optional[int]) -> Optional[Span]:
        # a static attribute is only ever matched as a whole attribute token
        if record.template_context is TemplateContext.STATIC_ATTRIBUTE and record.attribute_name:
            return self.find_attribute(record, line)
        return self.find_on_line(record, line, column)

    def locate(self, record: ExtractedString, line: int) -> Optional[Span]:
        if 0 <= line < len(self.starts):
            span = self.search(record, line, record.column)
            if span:
                return span
        for delta in range(1, FALLBACK_DISTANCE + 1):
            for idx in (line + delta, line - delta):
                if 0 <= idx < len(self.starts):
                    span = self.search(record, idx, None)
                    if span:
                        log.debug("%s matched %+d lines from its hint", record.describe(), idx - line)
                        return span
        return None

    def claim(self, span: Span):
        self.claimed.append(span)


def transform_template(
    document: SourceDocument,
    records: Iterable[ExtractedString],
    library: LibraryAdapter,
) -> TransformResult:
    """Rewrite the template section of ``document``; the result text is the new section content."""
    section = document.template
    if section is None:
        return TransformResult(text="", unmatched=list(records))

    result = TransformResult(text=section.content)
    planner = TemplatePlanner(section.content, library)
    intervals: List[ReplacementInterval] = []

    # right to left, bottom to top
    ordered = sorted(dict.fromkeys(records), key=lambda r: (r.line, r.column), reverse=True)
    for record in ordered:
        span = planner.locate(record, section.local_line(record.line))
        if span is None:
            log.warning("No template match for %s", record.describe())
            result.unmatched.append(record)
            continue
        planner.claim(span)
        replacement = template_replacement(record, library)
        intervals.append(ReplacementInterval(span[0], span[1], replacement))
        result.applied.append(record)
        log.debug("template %s -> %s", record.describe(), replacement)

    result.text = apply_replacements(section.content, intervals)
    result.changed = result.text != section.content
    return result
