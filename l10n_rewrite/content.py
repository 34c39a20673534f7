"""
Replacement content generator.

Turns one extracted string into the literal call text both transformers
splice in. The template context decides the surrounding syntax; variables
that survive literal filtering turn the call into its interpolated form.
"""

import re
from typing import Dict, Iterable, List, Optional

from .libraries import LibraryAdapter
from .models import ExtractedString, TemplateContext

# -------------------------
# Literal filtering
# -------------------------
RE_QUOTED = re.compile(r"^(['\"`]).*\1$", re.S)
RE_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")
LITERAL_KEYWORDS = {"true", "false", "null", "undefined"}

# -------------------------
# Placeholder naming
# -------------------------
NON_SEMANTIC_SUFFIXES = {
    "value", "toFixed", "toString", "valueOf", "toLocaleString", "toPrecision",
    "trim", "trimStart", "trimEnd", "toLowerCase", "toUpperCase",
    "replace", "replaceAll", "slice", "substring", "substr",
    "padStart", "padEnd", "join", "length",
}
RE_CALL_ARGS = re.compile(r"\([^()]*\)")
RE_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")


def is_literal_expression(expr: str) -> bool:
    e = expr.strip()
    return bool(RE_QUOTED.match(e) or RE_NUMBER.match(e)) or e in LITERAL_KEYWORDS


def filter_literal_variables(variables: Iterable[str]) -> List[str]:
    return [v.strip() for v in variables if v.strip() and not is_literal_expression(v)]


def placeholder_name(expr: str) -> str:
    """
    Synthetic key for an interpolated expression: the last meaningful
    member name, so ``user.name`` -> ``name`` and ``price.toFixed(2)`` -> ``price``.
    """
    e = expr.strip()
    prev = None
    while prev != e:
        prev, e = e, RE_CALL_ARGS.sub("", e)
    e = e.replace("?.", ".")

    for segment in reversed(e.split(".")):
        name = re.sub(r"\W", "", segment)
        if name and name not in NON_SEMANTIC_SUFFIXES:
            return f"val_{name}" if name[0].isdigit() else name

    m = RE_IDENTIFIER.search(expr)
    if m and m.group(0).replace("$", ""):
        return m.group(0).replace("$", "")
    return "val"


def build_placeholder_map(variables: Iterable[str]) -> Dict[str, str]:
    """Ordered expression -> key mapping, keys made unique as ``key``, ``key1``, ``key2`` ..."""
    mapping: Dict[str, str] = {}
    used = set()
    for expr in filter_literal_variables(variables):
        if expr in mapping:
            continue
        base = placeholder_name(expr)
        key, n = base, 0
        while key in used:
            n += 1
            key = f"{base}{n}"
        used.add(key)
        mapping[expr] = key
    return mapping


def format_values(mapping: Dict[str, str]) -> str:
    return "{ " + ", ".join(f"{key}: {expr}" for expr, key in mapping.items()) + " }"


def quote_key(key: str) -> str:
    return "'" + key.replace("\\", "\\\\").replace("'", "\\'") + "'"


def build_call(function_name: str, key: str, mapping: Optional[Dict[str, str]] = None) -> str:
    if mapping:
        return f"{function_name}({quote_key(key)}, {format_values(mapping)})"
    return f"{function_name}({quote_key(key)})"


# -------------------------
# Per-section replacements
# -------------------------
def script_replacement(record: ExtractedString, library: LibraryAdapter, scoped: bool) -> str:
    """
    Call text for a script-section string. A scoped call goes through the
    hook's local binding and never carries the namespace prefix.
    """
    key = record.semantic_id if scoped else library.qualify_key(record.semantic_id)
    mapping = build_placeholder_map(record.template_variables)
    return build_call(library.script_function_name, key, mapping)


def template_replacement(record: ExtractedString, library: LibraryAdapter) -> str:
    key = library.qualify_key(record.semantic_id)
    mapping = build_placeholder_map(record.template_variables)
    call = build_call(library.template_function_name, key, mapping)

    context = record.template_context or TemplateContext.TEXT_NODE
    if context is TemplateContext.TEXT_NODE:
        open_, close = library.interpolation_delimiters
        return f"{open_}{call}{close}"
    if context is TemplateContext.STATIC_ATTRIBUTE:
        if not record.attribute_name:
            # no attribute to rebind, the value sits in an expression already
            return call
        return f'{library.binding_prefix}{record.attribute_name}="{call}"'
    if context in (TemplateContext.INTERPOLATION, TemplateContext.DYNAMIC_ATTRIBUTE):
        return call
    raise ValueError(f"unknown template context {context!r}")
