"""Records exchanged with the scanner and the edit primitives shared by both transformers."""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigError


class SectionKind(str, Enum):
    SCRIPT = "script"
    TEMPLATE = "template"


class TemplateContext(str, Enum):
    TEXT_NODE = "text-node"
    STATIC_ATTRIBUTE = "static-attribute"
    INTERPOLATION = "interpolation"
    DYNAMIC_ATTRIBUTE = "dynamic-attribute"


class ExtractedString(BaseModel):
    """One piece of literal text the scanner wants localized.

    Accepts the scanner's camelCase JSON (``filePath``, ``semanticId`` ...)
    as well as snake_case keyword arguments.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    file_path: str
    original: str
    line: int                    # 1-based, absolute in the file
    column: int                  # 1-based, within the section's line
    context: SectionKind
    semantic_id: str
    is_template_string: bool = False
    template_variables: Tuple[str, ...] = ()
    template_context: Optional[TemplateContext] = None
    attribute_name: Optional[str] = None

    @field_validator("template_variables", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return () if value is None else value

    @property
    def is_quoted(self) -> bool:
        o = self.original
        return len(o) >= 2 and o[0] == o[-1] and o[0] in "'\"`"

    def describe(self) -> str:
        return f"{self.file_path}:{self.line}:{self.column} {self.original!r}"


@dataclass(frozen=True)
class ReplacementInterval:
    start: int                   # inclusive offset into the section text
    end: int                     # exclusive
    content: str


@dataclass
class TransformResult:
    text: str
    applied: List[ExtractedString] = field(default_factory=list)
    unmatched: List[ExtractedString] = field(default_factory=list)
    changed: bool = False


@dataclass
class RestoreResult:
    text: str
    restored: int = 0
    missing: List[str] = field(default_factory=list)   # keys with no locale text
    changed: bool = False


def apply_replacements(text: str, intervals: Iterable[ReplacementInterval]) -> str:
    """
    Apply non-overlapping edits to ``text`` and return the new text.
    Intervals are applied from the highest start offset down, so no edit
    moves the offsets of an edit still waiting to be applied.
    """
    ordered = sorted(intervals, key=lambda r: (r.start, r.end), reverse=True)
    if not ordered:
        return text

    pieces: List[str] = []
    limit = len(text)
    for rep in ordered:
        if rep.start < 0 or rep.end < rep.start:
            raise ValueError(f"invalid interval [{rep.start}, {rep.end})")
        if rep.end > limit:
            raise ValueError(f"overlapping interval [{rep.start}, {rep.end})")
        pieces.append(text[rep.end:limit])
        pieces.append(rep.content)
        limit = rep.start
    pieces.append(text[:limit])
    return "".join(reversed(pieces))


_RECORD_LIST = TypeAdapter(List[ExtractedString])


def load_records(path: Path) -> List[ExtractedString]:
    """Read the scanner's output: a JSON list, or an object with a ``strings`` list."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Records file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Records file is not valid JSON: {path} ({exc})") from exc

    if isinstance(raw, dict):
        raw = raw.get("strings")
    if not isinstance(raw, list):
        raise ConfigError("Records JSON must be a list or an object containing a `strings` list.")

    try:
        return _RECORD_LIST.validate_python(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid record in {path}: {exc}") from exc


def flatten_locale(tree: dict, prefix: str = "") -> Dict[str, str]:
    """Nested locale objects become dotted keys: ``{"a": {"b": "x"}}`` -> ``{"a.b": "x"}``."""
    flat: Dict[str, str] = {}
    for key, value in tree.items():
        full = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten_locale(value, full + "."))
        elif isinstance(value, str):
            flat[full] = value
        else:
            raise ConfigError(f"Locale entry `{full}` must be a string or an object, got {type(value).__name__}")
    return flat


def load_locale(path: Path) -> Dict[str, str]:
    """Read a locale file (flat or nested JSON object) into a ``{key: text}`` map."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Locale file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Locale file is not valid JSON: {path} ({exc})") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Locale JSON must be an object.")
    return flatten_locale(raw)
