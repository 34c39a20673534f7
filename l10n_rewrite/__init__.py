"""Rewrite hard-coded UI text in Vue and TS/JS sources into translation calls."""

from .config import DEFAULT_CALL_IMPORT_PATH, RewriteConfig, TransformOptions, load_config
from .errors import ConfigError, RewriteError, StructuralError
from .libraries import LIBRARIES, I18nextVueLibrary, LibraryAdapter, VueI18nLibrary, get_library
from .models import (
    ExtractedString,
    ReplacementInterval,
    RestoreResult,
    SectionKind,
    TemplateContext,
    TransformResult,
    apply_replacements,
    load_locale,
    load_records,
)
from .transformer import restore_source, rewrite_source, strip_declarations, transform_source

__version__ = "0.1.0"
