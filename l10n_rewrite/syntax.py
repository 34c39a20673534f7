"""
Script syntax trees.

Thin wrapper over a tree-sitter parse of a script section: char offsets
for nodes (tree-sitter reports UTF-8 byte offsets), and the scope queries
the transformers need: is a name bound where it is called, which bare calls
are unbound, where are the component ``setup()`` bodies.
"""

from typing import Dict, Iterator, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())
TSX = Language(tree_sitter_typescript.language_tsx())

STRING_TYPES = {"string", "template_string"}
JSX_TEXT = "jsx_text"
FUNCTION_TYPES = {
    "function_declaration",
    "function_expression",
    "function",
    "generator_function_declaration",
    "generator_function",
    "arrow_function",
    "method_definition",
}
COMPONENT_FACTORIES = {"defineComponent"}

_PARSERS: Dict[bool, Parser] = {}


def _parser(tsx: bool) -> Parser:
    if tsx not in _PARSERS:
        _PARSERS[tsx] = Parser(TSX if tsx else TYPESCRIPT)
    return _PARSERS[tsx]


class ScriptTree:
    def __init__(self, text: str, tsx: bool = False):
        self.text = text
        self.source = text.encode("utf-8")
        self.tree = _parser(tsx).parse(self.source)
        self.root = self.tree.root_node
        self._byte_to_char: Optional[List[int]] = None
        if len(self.source) != len(text):
            self._byte_to_char = self._build_offset_map()
        self._declared: Dict[Tuple[int, int, str], bool] = {}

    def _build_offset_map(self) -> List[int]:
        mapping: List[int] = []
        for i, ch in enumerate(self.text):
            mapping.extend([i] * len(ch.encode("utf-8")))
        mapping.append(len(self.text))
        return mapping

    @property
    def has_error(self) -> bool:
        return self.root.has_error

    # -------------------------
    # Offsets and text
    # -------------------------
    def char_offset(self, byte_offset: int) -> int:
        if self._byte_to_char is None:
            return byte_offset
        return self._byte_to_char[byte_offset]

    def start(self, node: Node) -> int:
        return self.char_offset(node.start_byte)

    def end(self, node: Node) -> int:
        return self.char_offset(node.end_byte)

    def node_text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.text[self.start(node):self.end(node)]

    # -------------------------
    # Traversal
    # -------------------------
    def walk(self, node: Optional[Node] = None) -> Iterator[Node]:
        stack = [self.root if node is None else node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def string_nodes(self) -> List[Node]:
        return [n for n in self.walk() if n.type in STRING_TYPES]

    def jsx_text_nodes(self) -> List[Node]:
        """JSX text children that carry more than whitespace."""
        return [n for n in self.walk() if n.type == JSX_TEXT and self.node_text(n).strip()]

    @staticmethod
    def ancestors(node: Node) -> Iterator[Node]:
        parent = node.parent
        while parent is not None:
            yield parent
            parent = parent.parent

    def top_level_imports(self) -> List[Node]:
        return [n for n in self.root.named_children if n.type == "import_statement"]

    def import_source(self, node: Node) -> str:
        return self.node_text(node.child_by_field_name("source"))[1:-1]

    def imported_names(self, node: Node) -> List[str]:
        names: List[str] = []
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    names.append(self.node_text(part))
                elif part.type == "namespace_import":
                    names.extend(self.node_text(c) for c in part.named_children if c.type == "identifier")
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type == "import_specifier":
                            local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                            names.append(self.node_text(local))
        return names

    # -------------------------
    # Scope analysis
    # -------------------------
    def is_bound(self, node: Node, name: str) -> bool:
        """True when ``name`` is declared, imported or a parameter in a scope enclosing ``node``."""
        for scope in self.ancestors(node):
            if scope.type in FUNCTION_TYPES or scope.type == "program":
                if self.declares(scope, name):
                    return True
        return False

    def declares(self, scope: Node, name: str) -> bool:
        key = (scope.start_byte, scope.end_byte, name)
        if key not in self._declared:
            self._declared[key] = name in self._scope_names(scope)
        return self._declared[key]

    def _scope_names(self, scope: Node) -> List[str]:
        names: List[str] = []
        if scope.type in FUNCTION_TYPES:
            params = scope.child_by_field_name("parameters") or scope.child_by_field_name("parameter")
            if params is not None:
                names.extend(self._pattern_names(params))
            body = scope.child_by_field_name("body")
            if body is None or body.type != "statement_block":
                return names
        else:
            body = scope

        stack = list(body.named_children)
        while stack:
            node = stack.pop()
            if node.type == "variable_declarator":
                names.extend(self._pattern_names(node.child_by_field_name("name")))
                continue
            if node.type in ("function_declaration", "generator_function_declaration", "class_declaration"):
                names.append(self.node_text(node.child_by_field_name("name")))
                continue
            if node.type == "import_statement":
                names.extend(self.imported_names(node))
                continue
            if node.type in FUNCTION_TYPES or node.type in ("class", "class_body"):
                continue
            stack.extend(node.named_children)
        return names

    def _pattern_names(self, node: Optional[Node]) -> List[str]:
        if node is None:
            return []
        if node.type in ("identifier", "shorthand_property_identifier_pattern"):
            return [self.node_text(node)]
        if node.type == "pair_pattern":
            return self._pattern_names(node.child_by_field_name("value"))
        if node.type in ("assignment_pattern", "object_assignment_pattern"):
            return self._pattern_names(node.child_by_field_name("left"))
        if node.type in ("required_parameter", "optional_parameter"):
            return self._pattern_names(node.child_by_field_name("pattern"))
        names: List[str] = []
        for child in node.named_children:
            if child.type in ("type_annotation", "accessibility_modifier"):
                continue
            names.extend(self._pattern_names(child))
        return names

    def unbound_calls(self, name: str, within: Optional[Node] = None) -> List[Node]:
        """Bare ``name(...)`` calls with no binding in scope. Member calls never count."""
        calls = []
        for node in self.walk(within):
            if node.type != "call_expression":
                continue
            callee = node.child_by_field_name("function")
            if callee is None or callee.type != "identifier" or self.node_text(callee) != name:
                continue
            if not self.is_bound(node, name):
                calls.append(node)
        return calls

    # -------------------------
    # Component shapes
    # -------------------------
    def component_setup_bodies(self) -> List[Node]:
        """``statement_block`` bodies of ``setup()`` in component definitions.

        A component definition is an object literal that is the default
        export or the first argument of ``defineComponent``.
        """
        bodies = []
        for node in self.walk():
            func = None
            if node.type == "method_definition":
                if self.node_text(node.child_by_field_name("name")) == "setup":
                    func = node
            elif node.type == "pair":
                if self.node_text(node.child_by_field_name("key")).strip("'\"") == "setup":
                    func = node.child_by_field_name("value")
            if func is None or func.type not in FUNCTION_TYPES:
                continue
            body = func.child_by_field_name("body")
            if body is None or body.type != "statement_block":
                continue
            if self._is_component_object(node.parent):
                bodies.append(body)
        return bodies

    def _is_component_object(self, node: Optional[Node]) -> bool:
        if node is None or node.type != "object":
            return False
        parent = node.parent
        if parent is None:
            return False
        if parent.type == "export_statement":
            return True
        if parent.type == "arguments":
            call = parent.parent
            callee = call.child_by_field_name("function") if call is not None else None
            return callee is not None and self.node_text(callee) in COMPONENT_FACTORIES
        return False

    def enclosing_setup_body(self, node: Node, bodies: List[Node]) -> Optional[Node]:
        start, end = node.start_byte, node.end_byte
        for body in bodies:
            if body.start_byte <= start and end <= body.end_byte:
                return body
        return None
