"""
File-level entry points.

split -> script and template transforms -> component injection ->
imports and declarations -> sections merged back into the file text.
Everything here works on strings; reading and writing files is the
driver's job.
"""

import logging
import posixpath
from typing import Iterable, List, Mapping, Optional

from .config import TransformOptions
from .document import split_document
from .imports import ImportManager, strip_section_declarations
from .injector import ComponentInjector
from .models import (
    ExtractedString,
    ReplacementInterval,
    RestoreResult,
    SectionKind,
    TransformResult,
    apply_replacements,
)
from .restore import restore_script, restore_template
from .script import transform_script
from .template import transform_template

log = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    return posixpath.normpath(str(path).replace("\\", "/"))


def same_file(a: str, b: str) -> bool:
    """Paths match when equal, or when one is a relative tail of the other."""
    a, b = normalize_path(a), normalize_path(b)
    return a == b or a.endswith("/" + b) or b.endswith("/" + a)


def records_for(file_path: str, records: Iterable[ExtractedString]) -> List[ExtractedString]:
    return [r for r in records if same_file(r.file_path, file_path)]


def rewrite_source(
    file_path: str,
    text: str,
    records: Iterable[ExtractedString],
    options: Optional[TransformOptions] = None,
) -> TransformResult:
    """
    Rewrite one file. Raises StructuralError when the file's sections can't
    be located or its script section doesn't parse; the text is then left
    to the caller untouched.
    """
    options = options or TransformOptions()
    library = options.library
    mine = records_for(file_path, records)
    result = TransformResult(text=text)
    if not mine:
        return result

    document = split_document(file_path, text)
    script_records = [r for r in mine if r.context is SectionKind.SCRIPT]
    template_records = [r for r in mine if r.context is SectionKind.TEMPLATE]

    edits: List[ReplacementInterval] = []
    template_changed = False
    if template_records:
        if document.template is None:
            for record in template_records:
                log.warning("No template section for %s", record.describe())
            result.unmatched.extend(template_records)
        else:
            partial = transform_template(document, template_records, library)
            result.applied.extend(partial.applied)
            result.unmatched.extend(partial.unmatched)
            if partial.changed:
                template_changed = True
                edits.append(ReplacementInterval(document.template.start, document.template.end, partial.text))

    section = document.script
    if section is None:
        if script_records:
            for record in script_records:
                log.warning("No script section for %s", record.describe())
            result.unmatched.extend(script_records)
    else:
        partial = transform_script(document, script_records, library)
        result.applied.extend(partial.applied)
        result.unmatched.extend(partial.unmatched)

        script_text = partial.text
        if partial.changed or template_changed:
            tsx = document.uses_tsx
            template_binding = template_changed and library.template_function_name == library.script_function_name
            # setup() bodies get their own binding before module-level imports are added
            if document.is_component and not section.is_setup:
                script_text = ComponentInjector(library, tsx=tsx).inject(script_text)
            script_text = ImportManager(options, tsx=tsx).ensure(
                script_text,
                is_setup=section.is_setup,
                is_component=document.is_component,
                template_binding=template_binding,
            )
        if script_text != section.content:
            edits.append(ReplacementInterval(section.start, section.end, script_text))

    result.text = apply_replacements(text, edits)
    result.changed = result.text != text
    log.info(
        "%s: %d applied, %d unmatched%s",
        file_path,
        len(result.applied),
        len(result.unmatched),
        "" if result.changed else " (unchanged)",
    )
    return result


def transform_source(
    file_path: str,
    text: str,
    records: Iterable[ExtractedString],
    options: Optional[TransformOptions] = None,
) -> str:
    return rewrite_source(file_path, text, records, options).text


def strip_declarations(file_path: str, text: str, options: Optional[TransformOptions] = None) -> str:
    """Undo the declarations a rewrite adds. Call sites are left as they are."""
    options = options or TransformOptions()
    section = split_document(file_path, text).script
    if section is None:
        return text
    stripped = strip_section_declarations(section.content, options)
    return text[:section.start] + stripped + text[section.end:]


def restore_source(
    file_path: str,
    text: str,
    locale: Mapping[str, str],
    options: Optional[TransformOptions] = None,
) -> RestoreResult:
    """
    Turn translation calls back into locale text, then drop the imports and
    hook declarations. The declarations stay while any call is left
    unresolved.
    """
    options = options or TransformOptions()
    library = options.library
    document = split_document(file_path, text)
    result = RestoreResult(text=text)
    edits: List[ReplacementInterval] = []

    section = document.template
    if section is not None:
        partial = restore_template(section.content, locale, library)
        result.restored += partial.restored
        result.missing.extend(partial.missing)
        if partial.changed:
            edits.append(ReplacementInterval(section.start, section.end, partial.text))

    section = document.script
    if section is not None:
        partial = restore_script(section.content, locale, library, tsx=document.uses_tsx, file_path=file_path)
        result.restored += partial.restored
        result.missing.extend(partial.missing)
        script_text = partial.text
        if not result.missing:
            script_text = strip_section_declarations(script_text, options)
        if script_text != section.content:
            edits.append(ReplacementInterval(section.start, section.end, script_text))

    for key in result.missing:
        log.warning("%s: no locale text for %r", file_path, key)
    result.text = apply_replacements(text, edits)
    result.changed = result.text != text
    log.info("%s: %d restored, %d missing", file_path, result.restored, len(result.missing))
    return result
