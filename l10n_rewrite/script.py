"""
Script-section transformer.

Every record is resolved to one text-bearing node of the parsed section (a
string, a template string or a JSX text run): the node must start within
five characters of the hinted position and its text must equal the record's
original. The closest candidate wins. Anything else is left alone and
reported.
"""

import logging
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from tree_sitter import Node

from .content import script_replacement
from .document import Section, SourceDocument
from .errors import StructuralError
from .libraries import LibraryAdapter
from .models import ExtractedString, ReplacementInterval, TransformResult, apply_replacements
from .syntax import JSX_TEXT, ScriptTree

log = logging.getLogger(__name__)

POSITION_DRIFT = 5

RE_JS_ESCAPE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


class Candidate(NamedTuple):
    node: Node
    start: int
    end: int


def unescape_js(s: str) -> str:
    def repl(m):
        esc = m.group(1)
        if esc.startswith("u{"):
            return chr(int(esc[2:-1], 16))
        if esc[0] in "ux" and len(esc) > 1:
            return chr(int(esc[1:], 16))
        if esc in ("\n", "\r\n"):
            return ""
        return SIMPLE_ESCAPES.get(esc, esc)
    return RE_JS_ESCAPE.sub(repl, s)


def _unquote(s: str) -> Optional[str]:
    if len(s) >= 2 and s[0] == s[-1] and s[0] in "'\"`":
        return s[1:-1]
    return None


def texts_match(node_text: str, original: str) -> bool:
    a = node_text.replace("\r\n", "\n")
    b = original.replace("\r\n", "\n")
    if a == b:
        return True
    inner = _unquote(a)
    if inner is None:
        return False
    expected = _unquote(b)
    if expected is None:
        expected = b
    return inner == expected or unescape_js(inner) == unescape_js(expected)


def jsx_texts_match(node_text: str, original: str) -> bool:
    # compared with whitespace runs folded
    return " ".join(node_text.split()) == " ".join(original.split())


def line_starts(text: str) -> List[int]:
    starts = [0]
    starts.extend(m.end() for m in re.finditer(r"\n", text))
    return starts


def _is_translation_key(tree: ScriptTree, node: Node, call_names: Iterable[str]) -> bool:
    """True for the key argument of an existing translation call."""
    args = node.parent
    if args is None or args.type != "arguments" or args.parent is None:
        return False
    callee = args.parent.child_by_field_name("function")
    return callee is not None and tree.node_text(callee).split(".")[-1] in call_names


def collect_candidates(tree: ScriptTree, call_names: Iterable[str]) -> List[Candidate]:
    candidates = [
        Candidate(n, tree.start(n), tree.end(n))
        for n in tree.string_nodes()
        if not _is_translation_key(tree, n, call_names)
    ]
    for node in tree.jsx_text_nodes():
        raw = tree.node_text(node)
        start = tree.start(node) + len(raw) - len(raw.lstrip())
        candidates.append(Candidate(node, start, start + len(raw.strip())))
    return candidates


def _wrap(tree: ScriptTree, node: Node, call: str) -> str:
    if node.type == JSX_TEXT:
        return "{" + call + "}"
    parent = node.parent
    if parent is None:
        return call
    if parent.type == "jsx_attribute":
        return "{" + call + "}"
    if parent.type == "pair":
        key = parent.child_by_field_name("key")
        if key is not None and key.start_byte == node.start_byte:
            return "[" + call + "]"
    return call


def find_node(
    tree: ScriptTree,
    candidates: List[Candidate],
    starts: List[int],
    section: Section,
    record: ExtractedString,
) -> Optional[Candidate]:
    local = section.local_line(record.line)
    if local < 0 or local >= len(starts):
        return None
    pos = starts[local] + record.column - 1

    best: Optional[Tuple[int, int, Candidate]] = None
    for cand in candidates:
        if abs(cand.start - pos) > POSITION_DRIFT:
            continue
        text = tree.text[cand.start:cand.end]
        matcher = jsx_texts_match if cand.node.type == JSX_TEXT else texts_match
        if not matcher(text, record.original):
            continue
        rank = (abs(cand.start - pos), cand.end - cand.start, cand)
        if best is None or rank[:2] < best[:2]:
            best = rank
    return best[2] if best else None


def transform_script(
    document: SourceDocument,
    records: Iterable[ExtractedString],
    library: LibraryAdapter,
) -> TransformResult:
    """
    Rewrite the script section of ``document``. The result text is the new
    section content, not the whole file.
    """
    section = document.script
    if section is None:
        return TransformResult(text="", unmatched=list(records))

    records = list(records)
    result = TransformResult(text=section.content)
    if not records:
        return result

    tree = ScriptTree(section.content, tsx=document.uses_tsx)
    if tree.has_error:
        raise StructuralError("script section does not parse", document.path)

    call_names = {library.script_function_name, library.template_function_name}
    candidates = collect_candidates(tree, call_names)
    starts = line_starts(section.content)
    setup_bodies = tree.component_setup_bodies() if document.is_component and not section.is_setup else []

    claimed: Dict[Tuple[int, int], ExtractedString] = {}
    intervals: List[ReplacementInterval] = []
    for record in sorted(records, key=lambda r: (r.line, r.column)):
        cand = find_node(tree, candidates, starts, section, record)
        if cand is None:
            log.warning("No script match for %s", record.describe())
            result.unmatched.append(record)
            continue

        span = (cand.start, cand.end)
        if span in claimed and claimed[span].semantic_id == record.semantic_id:
            continue
        clash = next((r for s, r in claimed.items() if s[0] < span[1] and span[0] < s[1]), None)
        if clash is not None:
            log.warning("%s overlaps a string already claimed by %s", record.describe(), clash.describe())
            result.unmatched.append(record)
            continue
        claimed[span] = record

        scoped = bool(library.hook_name) and (
            section.is_setup or tree.enclosing_setup_body(cand.node, setup_bodies) is not None
        )
        call = script_replacement(record, library, scoped)
        intervals.append(ReplacementInterval(span[0], span[1], _wrap(tree, cand.node, call)))
        result.applied.append(record)
        log.debug("script %s -> %s", record.describe(), call)

    result.text = apply_replacements(section.content, intervals)
    result.changed = result.text != section.content
    return result
