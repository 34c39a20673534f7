"""Shared fixtures."""

import pytest

from l10n_rewrite.config import TransformOptions
from l10n_rewrite.libraries import get_library
from l10n_rewrite.models import ExtractedString


@pytest.fixture
def make_record():
    """Build an ExtractedString with sensible defaults."""

    def _make(original, line, column, semantic_id, context="template", file_path="src/App.vue", **extra):
        return ExtractedString(
            file_path=file_path,
            original=original,
            line=line,
            column=column,
            context=context,
            semantic_id=semantic_id,
            **extra,
        )

    return _make


@pytest.fixture
def options():
    """vue-i18n with the default call module."""
    return TransformOptions(library=get_library("vue-i18n"))


@pytest.fixture
def setup_style_options():
    """vue-i18n with templates calling the setup binding ``t`` directly."""
    return TransformOptions(library=get_library("vue-i18n", template_function="t"))


@pytest.fixture
def namespaced_options():
    return TransformOptions(library=get_library("i18next-vue", namespace="common"))
