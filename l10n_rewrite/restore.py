"""
Restore: translation calls back to the text they stand for.

Keys are looked up in a ``{key: text}`` locale map; a namespaced key
(``ns:key``) is tried without its prefix first. A call whose key has no
text stays in place and is reported.

Template section:
- ``{{ $t('k') }}`` becomes the text, placeholders as ``{{ expr }}``
- ``:attr="$t('k')"`` becomes ``attr="text"``
- any other call becomes a string (or template) literal

Script section: calls become string literals, or template literals when
they carry values. A call that is a JSX child becomes JSX text again.
"""

import logging
import re
from typing import Callable, Dict, List, Mapping, Optional

from tree_sitter import Node

from .errors import StructuralError
from .libraries import LibraryAdapter
from .models import ReplacementInterval, RestoreResult, apply_replacements
from .script import unescape_js
from .syntax import ScriptTree
from .template import TemplatePlanner, call_pattern, closing_paren

log = logging.getLogger(__name__)

LOOKBACK = 256

RE_TEMPLATE_ARGS = re.compile(r"\s*(['\"])((?:\\.|(?!\1).)*)\1\s*(?:,\s*(\{.*\}))?\s*", re.S)
RE_VALUE = re.compile(r"(\w+)\s*:\s*([^,}]+)")
RE_PLACEHOLDER = re.compile(r"\{(\w+)\}")
RE_MUSTACHE_OPEN = re.compile(r"\{\{\s*$")
RE_MUSTACHE_CLOSE = re.compile(r"\s*\}\}")
RE_BOUND_OPEN = re.compile(r"(?<![\w-]):([\w.-]+)\s*=\s*\"$")
JSX_UNSAFE = set("{}<>")


def lookup(locale: Mapping[str, str], key: str, library: LibraryAdapter) -> Optional[str]:
    if library.supports_namespace and ":" in key:
        text = locale.get(key.split(":", 1)[1])
        if text:
            return text
    return locale.get(key) or None


def fill(message: str, values: Dict[str, str], render: Callable[[str], str]) -> str:
    """Replace ``{name}`` placeholders that have a value; leave the rest."""
    return RE_PLACEHOLDER.sub(
        lambda m: render(values[m.group(1)]) if m.group(1) in values else m.group(0),
        message,
    )


def js_string(message: str) -> str:
    escaped = (
        message.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def js_template(message: str, values: Dict[str, str]) -> str:
    escaped = message.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
    return "`" + fill(escaped, values, lambda expr: "${" + expr + "}") + "`"


# -------------------------
# Template section
# -------------------------
def restore_template(text: str, locale: Mapping[str, str], library: LibraryAdapter) -> RestoreResult:
    result = RestoreResult(text=text)
    planner = TemplatePlanner(text, library)
    intervals: List[ReplacementInterval] = []
    last_end = 0

    for m in call_pattern(library).finditer(text):
        start = m.start()
        if start < last_end:
            continue
        end = closing_paren(text, m.end())
        if end is None:
            continue
        args = RE_TEMPLATE_ARGS.fullmatch(text, m.end(), end - 1)
        if args is None:
            continue
        key = unescape_js(args.group(2))
        message = lookup(locale, key, library)
        if message is None:
            result.missing.append(key)
            continue
        values = {name: expr.strip() for name, expr in RE_VALUE.findall(args.group(3) or "")}

        lo = max(0, start - LOOKBACK)
        opening = RE_MUSTACHE_OPEN.search(text, lo, start)
        closing = RE_MUSTACHE_CLOSE.match(text, end)
        bound = RE_BOUND_OPEN.search(text, lo, start)
        if opening and closing:
            span = (opening.start(), closing.end())
            content = fill(message, values, lambda expr: "{{ " + expr + " }}")
        elif bound and not values and text.startswith('"', end):
            span = (bound.start(), end + 1)
            value = message.replace('"', "&quot;")
            content = f'{bound.group(1)}="{value}"'
        else:
            span = (start, end)
            content = js_template(message, values) if values else js_string(message)
            if planner.attribute_at(start):
                content = content.replace('"', "&quot;")

        intervals.append(ReplacementInterval(span[0], span[1], content))
        log.debug("template %r -> %s", key, content)
        result.restored += 1
        last_end = span[1]

    result.text = apply_replacements(text, intervals)
    result.changed = result.text != text
    return result


# -------------------------
# Script section
# -------------------------
def _call_name(tree: ScriptTree, callee: Node) -> Optional[str]:
    if callee.type == "identifier":
        return tree.node_text(callee)
    if callee.type == "member_expression":
        prop = callee.child_by_field_name("property")
        name = tree.node_text(prop) if prop is not None else ""
        # only the global helper is reached through a member (``this.$t``)
        return name if name.startswith("$") else None
    return None


def _call_values(tree: ScriptTree, args: List[Node]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if len(args) < 2 or args[1].type != "object":
        return values
    for prop in args[1].named_children:
        if prop.type == "pair":
            name = tree.node_text(prop.child_by_field_name("key")).strip("'\"")
            values[name] = tree.node_text(prop.child_by_field_name("value"))
        elif prop.type == "shorthand_property_identifier":
            name = tree.node_text(prop)
            values[name] = name
    return values


def _script_replacement(call: Node, message: str, values: Dict[str, str]):
    parent = call.parent
    if parent is not None and parent.type == "jsx_expression" and not values:
        holder = parent.parent
        if holder is not None and holder.type in ("jsx_element", "jsx_fragment") and not JSX_UNSAFE & set(message):
            return parent, message
        if holder is not None and holder.type == "jsx_attribute" and '"' not in message and "\n" not in message:
            return parent, f'"{message}"'
    return call, js_template(message, values) if values else js_string(message)


def restore_script(
    text: str,
    locale: Mapping[str, str],
    library: LibraryAdapter,
    tsx: bool = False,
    file_path: str = "",
) -> RestoreResult:
    result = RestoreResult(text=text)
    tree = ScriptTree(text, tsx=tsx)
    if tree.has_error:
        raise StructuralError("script section does not parse", file_path)

    names = {library.script_function_name, library.template_function_name}
    intervals: List[ReplacementInterval] = []
    last_end = -1
    for node in tree.walk():
        if node.type != "call_expression" or tree.start(node) < last_end:
            continue
        callee = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if callee is None or arguments is None or _call_name(tree, callee) not in names:
            continue
        args = arguments.named_children
        if not args or args[0].type != "string":
            continue

        key = unescape_js(tree.node_text(args[0])[1:-1])
        message = lookup(locale, key, library)
        if message is None:
            result.missing.append(key)
            continue
        target, content = _script_replacement(node, message, _call_values(tree, args))
        intervals.append(ReplacementInterval(tree.start(target), tree.end(target), content))
        log.debug("script %r -> %s", key, content)
        result.restored += 1
        last_end = tree.end(target)

    result.text = apply_replacements(text, intervals)
    result.changed = result.text != text
    return result
