"""Tests for the source document splitter."""

import pytest

from l10n_rewrite.document import split_document
from l10n_rewrite.errors import StructuralError
from l10n_rewrite.models import SectionKind


SFC = (
    "<template>\n"
    "  <p>Hello</p>\n"
    "</template>\n"
    "\n"
    "<script setup lang=\"ts\">\n"
    "const a = 1;\n"
    "</script>\n"
    "\n"
    "<style scoped>\n"
    "p > span { color: red; }\n"
    "</style>\n"
)


class TestScriptFiles:
    @pytest.mark.parametrize("name", ["a.ts", "a.js", "a.mjs", "a.cts"])
    def test_whole_text_is_the_script(self, name):
        doc = split_document(name, "const a = 'x';\n")
        assert not doc.is_component
        assert doc.template is None
        assert doc.script.content == "const a = 'x';\n"
        assert (doc.script.start, doc.script.line_offset) == (0, 0)
        assert not doc.uses_tsx

    def test_tsx_grammar_for_jsx_files(self):
        assert split_document("Button.tsx", "").uses_tsx
        assert split_document("Button.jsx", "").uses_tsx

    def test_unsupported_extension(self):
        with pytest.raises(StructuralError, match="unsupported file type"):
            split_document("main.py", "print('hi')\n")


class TestComponents:
    def test_sections_and_line_offsets(self):
        doc = split_document("App.vue", SFC)
        assert doc.is_component

        template = doc.template
        assert template.kind is SectionKind.TEMPLATE
        assert template.content == "\n  <p>Hello</p>\n"
        assert SFC[template.start:template.end] == template.content
        assert template.line_offset == 0
        assert template.local_line(2) == 1

        script = doc.script
        assert script.kind is SectionKind.SCRIPT
        assert script.content == "\nconst a = 1;\n"
        assert script.line_offset == 4
        assert script.is_setup
        assert script.lang == "ts"
        assert script.contains_line(6)
        assert not script.contains_line(2)
        assert script.local_line(6) == 1

    def test_nested_templates_do_not_end_the_block(self):
        text = (
            "<template>\n"
            "  <template v-if=\"ok\"><p>A</p></template>\n"
            "  <p>B</p>\n"
            "</template>\n"
        )
        doc = split_document("A.vue", text)
        assert doc.template.content.endswith("<p>B</p>\n")
        assert doc.script is None

    def test_setup_script_wins(self):
        text = (
            "<script>\nexport default { name: 'A' };\n</script>\n"
            "<script setup>\nconst b = 2;\n</script>\n"
        )
        doc = split_document("A.vue", text)
        assert doc.script.is_setup
        assert doc.script.content == "\nconst b = 2;\n"

    def test_plain_script_is_not_setup(self):
        doc = split_document("A.vue", "<script lang=\"tsx\">\nexport default {};\n</script>\n")
        assert not doc.script.is_setup
        assert doc.uses_tsx

    def test_top_level_comments_are_skipped(self):
        text = "<!-- <template> old </template> -->\n<template><p>x</p></template>\n"
        doc = split_document("A.vue", text)
        assert doc.template.content == "<p>x</p>"
        assert doc.template.line_offset == 1

    def test_unclosed_block(self):
        with pytest.raises(StructuralError, match="never closed"):
            split_document("A.vue", "<template>\n  <p>x</p>\n")
        with pytest.raises(StructuralError):
            split_document("A.vue", "<script setup>\nconst a = 1;\n")

    def test_stray_closing_tag(self):
        with pytest.raises(StructuralError) as excinfo:
            split_document("A.vue", "</script>\n<template></template>\n")
        assert excinfo.value.file_path == "A.vue"

    def test_duplicate_templates(self):
        with pytest.raises(StructuralError):
            split_document("A.vue", "<template>a</template>\n<template>b</template>\n")
