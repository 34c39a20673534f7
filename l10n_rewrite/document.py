"""
Source document splitter.

Script-only files are a single script section at offset 0. Single-file
components (.vue) are scanned for their top-level blocks; each section
records its content offsets and the 0-based file line its content starts
on, which both transformers need to turn absolute record lines into
section-local ones.
"""

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import List, Optional

from .errors import StructuralError
from .models import SectionKind

SCRIPT_EXTENSIONS = {".ts", ".mts", ".cts", ".js", ".mjs", ".cjs"}
TSX_EXTENSIONS = {".tsx", ".jsx"}
COMPONENT_EXTENSIONS = {".vue"}

# Top-level markup: comments are skipped, tags are block boundaries.
TOP_LEVEL_RE = re.compile(r"<!--.*?-->|<(/?)([A-Za-z][\w-]*)((?:\"[^\"]*\"|'[^']*'|[^'\">])*)>", re.S)
TEMPLATE_TAG_RE = re.compile(r"<!--.*?-->|<(/?)template\b((?:\"[^\"]*\"|'[^']*'|[^'\">])*)>", re.S)
SETUP_ATTR_RE = re.compile(r"(?:^|\s)setup(?:\s|=|/|$)")
LANG_ATTR_RE = re.compile(r"\blang\s*=\s*['\"]?([\w-]+)")


@dataclass(frozen=True)
class Section:
    kind: SectionKind
    content: str
    start: int          # offset of the content in the full text
    end: int
    line_offset: int    # 0-based file line on which the content starts
    attrs: str = ""

    @property
    def is_setup(self) -> bool:
        return bool(SETUP_ATTR_RE.search(self.attrs))

    @property
    def lang(self) -> str:
        m = LANG_ATTR_RE.search(self.attrs)
        return m.group(1).lower() if m else "js"

    @property
    def last_line(self) -> int:
        return self.line_offset + self.content.count("\n")

    def contains_line(self, line: int) -> bool:
        """``line`` is 1-based and absolute."""
        return self.line_offset <= line - 1 <= self.last_line

    def local_line(self, line: int) -> int:
        return line - 1 - self.line_offset


@dataclass(frozen=True)
class SourceDocument:
    path: str
    text: str
    is_component: bool
    script: Optional[Section] = None
    template: Optional[Section] = None

    @property
    def uses_tsx(self) -> bool:
        if self.is_component:
            return self.script is not None and self.script.lang in {"tsx", "jsx"}
        return PurePath(self.path).suffix.lower() in TSX_EXTENSIONS

    @property
    def sections(self) -> List[Section]:
        return [s for s in (self.script, self.template) if s is not None]


def split_document(path: str, text: str) -> SourceDocument:
    suffix = PurePath(path).suffix.lower()
    if suffix in SCRIPT_EXTENSIONS or suffix in TSX_EXTENSIONS:
        script = Section(SectionKind.SCRIPT, text, 0, len(text), 0)
        return SourceDocument(path, text, is_component=False, script=script)
    if suffix in COMPONENT_EXTENSIONS:
        return _split_component(path, text)
    raise StructuralError(f"unsupported file type {suffix or '(none)'}", path)


def _split_component(path: str, text: str) -> SourceDocument:
    scripts: List[Section] = []
    template: Optional[Section] = None
    pos = 0

    while True:
        m = TOP_LEVEL_RE.search(text, pos)
        if not m:
            break
        if m.group(0).startswith("<!--"):
            pos = m.end()
            continue

        closing, name, attrs = m.group(1), m.group(2).lower(), m.group(3)
        if closing:
            raise StructuralError(f"unexpected </{name}> at top level", path)
        if attrs.rstrip().endswith("/"):
            pos = m.end()
            continue

        content_start = m.end()
        if name == "template":
            content_end, pos = _find_template_end(path, text, content_start)
        else:
            close = re.compile(rf"</{re.escape(name)}\s*>", re.I).search(text, content_start)
            if not close:
                raise StructuralError(f"<{name}> block is never closed", path)
            content_end, pos = close.start(), close.end()

        if name not in ("template", "script"):
            continue

        kind = SectionKind.TEMPLATE if name == "template" else SectionKind.SCRIPT
        section = Section(
            kind,
            text[content_start:content_end],
            content_start,
            content_end,
            text.count("\n", 0, content_start),
            attrs,
        )
        if kind is SectionKind.TEMPLATE:
            if template is not None:
                raise StructuralError("more than one top-level <template>", path)
            template = section
        else:
            scripts.append(section)

    # <script setup> wins over a companion plain <script>
    script = next((s for s in scripts if s.is_setup), scripts[0] if scripts else None)
    return SourceDocument(path, text, is_component=True, script=script, template=template)


def _find_template_end(path: str, text: str, start: int):
    depth = 1
    for m in TEMPLATE_TAG_RE.finditer(text, start):
        if m.group(0).startswith("<!--"):
            continue
        if m.group(1):
            depth -= 1
            if depth == 0:
                return m.start(), m.end()
        elif not m.group(2).rstrip().endswith("/"):
            depth += 1
    raise StructuralError("<template> block is never closed", path)
