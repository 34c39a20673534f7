"""
Import / declaration manager.

Runs on an already transformed script section and makes sure every bare
``t(...)`` call it introduced has a binding: the adapter's hook declaration
in ``<script setup>``, an import of ``t`` from the configured module
elsewhere. Checks walk the syntax tree; the adapter's regexes are the
fallback for a section that does not parse cleanly.
"""

import logging
import re
from typing import List, Optional

from .config import TransformOptions
from .libraries import LibraryAdapter
from .syntax import ScriptTree

log = logging.getLogger(__name__)


def detect_newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def insert_after_imports(tree: ScriptTree, text: str, lines: List[str], gap: Optional[List[str]] = None) -> str:
    """
    Insert ``lines`` right after the last top-level import, then ``gap``
    lines after a blank line. Without imports, both go before the first
    line of code.
    """
    nl = detect_newline(text)
    gap = gap or []
    imports = tree.top_level_imports() if tree is not None else []

    if imports:
        pos = tree.end(imports[-1])
        block = "".join(nl + line for line in lines)
        if gap:
            block += nl + "".join(nl + line for line in gap)
        return text[:pos] + block + text[pos:]

    pos = len(text) - len(text.lstrip("\r\n"))
    groups = ["".join(line + nl for line in group) for group in (lines, gap) if group]
    return text[:pos] + nl.join(groups) + nl + text[pos:]


def has_library_import(tree: ScriptTree, library: LibraryAdapter) -> bool:
    return any(
        library.is_library_import(tree.import_source(node)) and library.hook_name in tree.imported_names(node)
        for node in tree.top_level_imports()
    )


def _regex_import_end(text: str) -> int:
    ends = [m.end() for m in re.finditer(r"^[ \t]*import\b[^;\n]*(?:;|$)", text, re.MULTILINE)]
    return ends[-1] if ends else -1


class ImportManager:
    def __init__(self, options: TransformOptions, tsx: bool = False):
        self.options = options
        self.library: LibraryAdapter = options.library
        self.tsx = tsx
        self.fn = self.library.script_function_name

    # -------------------------
    # Tree checks
    # -------------------------
    def call_import(self, tree: ScriptTree):
        for node in tree.top_level_imports():
            if tree.import_source(node) == self.options.call_import_path:
                return node
        return None

    # -------------------------
    # Entry point
    # -------------------------
    def ensure(self, text: str, is_setup: bool = False, is_component: bool = False, template_binding: bool = False) -> str:
        """
        ``template_binding`` marks a template that calls the script function
        name directly, so a <script setup> needs the binding even without
        script calls.
        """
        tree = ScriptTree(text, tsx=self.tsx)
        if tree.has_error:
            log.debug("script section has syntax errors, using regex checks")
            return self._ensure_by_regex(text, is_setup, template_binding)

        calls = tree.unbound_calls(self.fn)
        if is_component and not is_setup:
            bodies = tree.component_setup_bodies()
            calls = [c for c in calls if tree.enclosing_setup_body(c, bodies) is None]
        if template_binding and is_setup and not tree.declares(tree.root, self.fn):
            calls.append(tree.root)
        if not calls:
            return text

        if is_setup and self.library.hook_name:
            lines = [] if has_library_import(tree, self.library) else [self.library.generate_import_statement()]
            return insert_after_imports(tree, text, lines, [self.library.generate_hook_declaration()])
        return self._ensure_call_import(tree, text)

    def _ensure_call_import(self, tree: ScriptTree, text: str) -> str:
        node = self.call_import(tree)
        if node is not None:
            named = next(
                (part for clause in node.named_children if clause.type == "import_clause"
                 for part in clause.named_children if part.type == "named_imports"),
                None,
            )
            if named is not None:
                close = tree.end(named) - 1
                inner = text[tree.start(named) + 1:close]
                sep = ", " if inner.strip() and not inner.rstrip().endswith(",") else " "
                head = text[:close].rstrip(" ")
                return head + sep + self.fn + " " + text[close:]
        statement = f"import {{ {self.fn} }} from '{self.options.call_import_path}';"
        return insert_after_imports(tree, text, [statement])

    def _ensure_by_regex(self, text: str, is_setup: bool, template_binding: bool = False) -> str:
        if not (template_binding and is_setup) and not re.search(rf"(?<![\w$.]){re.escape(self.fn)}\(", text):
            return text
        lib = self.library
        nl = detect_newline(text)
        if is_setup and lib.hook_name:
            missing = []
            if not lib.get_import_check_regex().search(text):
                missing.append(lib.generate_import_statement())
            declared = bool(lib.get_hook_declaration_check_regex().search(text))
            if not missing and declared:
                return text
            block = "".join(nl + line for line in missing)
            if not declared:
                block += nl + nl + lib.generate_hook_declaration()
        else:
            path = re.escape(self.options.call_import_path)
            if re.search(rf"import\s*\{{[^}}]*\b{re.escape(self.fn)}\b[^}}]*\}}\s*from\s*['\"]{path}['\"]", text):
                return text
            block = nl + f"import {{ {self.fn} }} from '{self.options.call_import_path}';"

        pos = _regex_import_end(text)
        if pos < 0:
            pos = len(text) - len(text.lstrip("\r\n"))
            return text[:pos] + block.lstrip("\r\n") + nl + nl + text[pos:]
        return text[:pos] + block + text[pos:]


def strip_section_declarations(text: str, options: TransformOptions) -> str:
    """Remove the adapter import, hook declarations and the ``t`` import from the call module."""
    lib = options.library
    fn = re.escape(lib.script_function_name)
    path = re.escape(options.call_import_path)
    patterns = [
        re.compile(
            rf"^[ \t]*import\s*\{{\s*{fn}\s*\}}\s*from\s*['\"]{path}['\"];?[ \t]*(?:\r?\n)?",
            re.MULTILINE,
        )
    ]
    if lib.hook_name:
        patterns.insert(0, lib.get_hook_declaration_cleanup_regex())
        patterns.insert(0, lib.get_import_cleanup_regex())
    for pattern in patterns:
        text = pattern.sub("", text)
    return text
