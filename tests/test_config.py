"""Tests for configuration loading."""

import json

import pytest

from l10n_rewrite.config import DEFAULT_CALL_IMPORT_PATH, TransformOptions, load_config
from l10n_rewrite.errors import ConfigError
from l10n_rewrite.libraries import I18nextVueLibrary, VueI18nLibrary


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()
        assert config.library == "vue-i18n"
        assert config.call_import_path == DEFAULT_CALL_IMPORT_PATH
        options = config.to_options()
        assert isinstance(options, TransformOptions)
        assert isinstance(options.library, VueI18nLibrary)

    def test_camel_case_file(self, tmp_path):
        path = tmp_path / "l10n.json"
        path.write_text(json.dumps({
            "library": "i18next-vue",
            "namespace": "common",
            "templateFunction": "t",
            "callImportPath": "@/i18n",
        }), encoding="utf-8")
        options = load_config(path).to_options()
        assert isinstance(options.library, I18nextVueLibrary)
        assert options.library.namespace == "common"
        assert options.library.template_function_name == "t"
        assert options.call_import_path == "@/i18n"

    def test_overrides_win_and_none_is_ignored(self, tmp_path):
        path = tmp_path / "l10n.json"
        path.write_text(json.dumps({"library": "i18next-vue", "namespace": "common"}), encoding="utf-8")
        config = load_config(path, namespace="admin", call_import_path=None)
        assert config.namespace == "admin"
        assert config.library == "i18next-vue"
        assert config.call_import_path == DEFAULT_CALL_IMPORT_PATH

    def test_unknown_library(self):
        with pytest.raises(ConfigError):
            load_config(library="react-intl")

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "l10n.json"
        path.write_text(json.dumps({"libary": "vue-i18n"}), encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_and_malformed_files(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.json")
        path = tmp_path / "bad.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)
