"""Hook declarations for ``setup()`` of declaration-style components."""

import logging

from .imports import has_library_import, insert_after_imports
from .libraries import LibraryAdapter
from .models import ReplacementInterval, apply_replacements
from .syntax import ScriptTree

log = logging.getLogger(__name__)


class ComponentInjector:
    """
    Adds ``const { t } = useI18n();`` as the first statement of every
    component ``setup()`` that calls ``t`` without a binding, and the
    adapter import the declaration needs.
    """

    def __init__(self, library: LibraryAdapter, tsx: bool = False):
        self.library = library
        self.tsx = tsx

    def inject(self, text: str) -> str:
        lib = self.library
        if not lib.hook_name:
            return text
        tree = ScriptTree(text, tsx=self.tsx)
        if tree.has_error:
            log.debug("script section has syntax errors, setup() injection skipped")
            return text

        nl = "\r\n" if "\r\n" in text else "\n"
        declaration = lib.generate_hook_declaration()
        intervals = []
        for body in tree.component_setup_bodies():
            if not tree.unbound_calls(lib.script_function_name, within=body):
                continue
            pos = tree.start(body) + 1
            intervals.append(ReplacementInterval(pos, pos, nl + self._indent(tree, text, body) + declaration))

        if not intervals:
            return text
        log.debug("injecting %s into %d setup() bodies", declaration, len(intervals))
        text = apply_replacements(text, intervals)

        tree = ScriptTree(text, tsx=self.tsx)
        if has_library_import(tree, lib):
            return text
        return insert_after_imports(tree, text, [lib.generate_import_statement()])

    @staticmethod
    def _indent(tree: ScriptTree, text: str, body) -> str:
        statements = body.named_children
        anchor = tree.start(statements[0]) if statements else tree.start(body)
        line_start = text.rfind("\n", 0, anchor) + 1
        indent = text[line_start:anchor]
        if statements and not indent.strip():
            return indent
        # empty body or statement on the brace line: one level past the brace line
        brace_line = text.rfind("\n", 0, tree.start(body)) + 1
        lead = text[brace_line:len(text) - len(text[brace_line:].lstrip(" \t"))]
        return lead + "  "
