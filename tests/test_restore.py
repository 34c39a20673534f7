"""Tests for turning translation calls back into locale text."""

import pytest

from l10n_rewrite.errors import StructuralError
from l10n_rewrite.libraries import get_library
from l10n_rewrite.restore import js_string, js_template, lookup, restore_script, restore_template


LOCALE = {
    "greeting.hello": "Hello",
    "greeting.withName": "Hello, {name}!",
    "dialog.confirm": "Confirm",
    "common.yes": "Yes",
    "common.no": "No",
    "button.save": "Save",
}


class TestHelpers:
    def test_lookup_drops_namespace_first(self):
        lib = get_library("i18next-vue", namespace="common")
        assert lookup({"ok": "OK", "common:ok": "Other"}, "common:ok", lib) == "OK"
        assert lookup({"common:ok": "Other"}, "common:ok", lib) == "Other"
        assert lookup({"ok": ""}, "ok", lib) is None

    def test_literals(self):
        assert js_string("It's\nfine") == "'It\\'s\\nfine'"
        assert js_template("Hi {name}, `x`", {"name": "user.name"}) == "`Hi ${user.name}, \\`x\\``"


class TestRestoreTemplate:
    def run(self, text, library=None):
        return restore_template(text, LOCALE, library or get_library("vue-i18n"))

    def test_text_node(self):
        result = self.run("<p>{{ $t('greeting.hello') }}</p>")
        assert result.text == "<p>Hello</p>"
        assert result.restored == 1

    def test_values_become_interpolations(self):
        result = self.run("<p>{{ $t('greeting.withName', { name: user.name }) }}</p>")
        assert result.text == "<p>Hello, {{ user.name }}!</p>"

    def test_bound_attribute_becomes_static(self):
        result = self.run("<button :title=\"$t('dialog.confirm')\">x</button>")
        assert result.text == "<button title=\"Confirm\">x</button>"

    def test_calls_inside_expressions_become_literals(self):
        result = self.run("<b>{{ ok ? $t('common.yes') : $t('common.no') }}</b>")
        assert result.text == "<b>{{ ok ? 'Yes' : 'No' }}</b>"
        assert result.restored == 2

    def test_unknown_key_is_kept(self):
        text = "<p>{{ $t('nope') }}</p>"
        result = self.run(text)
        assert result.text == text
        assert result.missing == ["nope"]
        assert not result.changed


class TestRestoreScript:
    def test_call_becomes_string(self):
        result = restore_script("const a = t('button.save');\n", LOCALE, get_library("vue-i18n"))
        assert result.text == "const a = 'Save';\n"

    def test_values_become_template_literal(self):
        text = "const a = t('greeting.withName', { name: user.name });\n"
        result = restore_script(text, LOCALE, get_library("vue-i18n"))
        assert result.text == "const a = `Hello, ${user.name}!`;\n"

    def test_member_helper_call(self):
        text = "export default { methods: { f() { return this.$t('common.yes'); } } };\n"
        result = restore_script(text, LOCALE, get_library("vue-i18n"))
        assert result.text == "export default { methods: { f() { return 'Yes'; } } };\n"

    def test_other_calls_are_left_alone(self):
        text = "const a = i18n.t('button.save');\nconst b = format('button.save');\n"
        result = restore_script(text, LOCALE, get_library("vue-i18n"))
        assert result.text == text
        assert result.restored == 0

    def test_jsx_child_and_attribute(self):
        text = "const el = <Button label={t('dialog.confirm')}>{t('button.save')}</Button>;\n"
        result = restore_script(text, LOCALE, get_library("vue-i18n"), tsx=True)
        assert result.text == "const el = <Button label=\"Confirm\">Save</Button>;\n"

    def test_syntax_error_is_structural(self):
        with pytest.raises(StructuralError):
            restore_script("const a = t('x'\n", LOCALE, get_library("vue-i18n"), file_path="a.ts")
