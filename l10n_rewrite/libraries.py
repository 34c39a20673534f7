"""
Target localization libraries.

An adapter describes one library's conventions (import text, hook binding,
template call name, namespace handling) so the transformers never branch
on library identity. One adapter is selected per run and shared by all
files; adapters hold no per-file state.
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, Optional, Pattern, Tuple, Type


class LibraryAdapter(ABC):
    package_name: str = ""
    hook_name: str = ""              # empty when the library has no hook
    supports_namespace: bool = False
    script_function_name: str = "t"
    default_template_function: str = "$t"
    interpolation_delimiters: Tuple[str, str] = ("{{ ", " }}")
    binding_prefix: str = ":"        # marks a dynamically bound attribute

    def __init__(self, namespace: Optional[str] = None, template_function: Optional[str] = None):
        self._namespace = namespace if self.supports_namespace else None
        self._template_function = template_function

    @property
    def namespace(self) -> Optional[str]:
        return self._namespace

    @property
    def template_function_name(self) -> str:
        return self._template_function or self.default_template_function

    @property
    def hook_declaration(self) -> str:
        return self.generate_hook_declaration()

    def qualify_key(self, semantic_id: str) -> str:
        """Key for a call made without a scoped binding (``ns:key`` when namespaced)."""
        if self._namespace:
            return f"{self._namespace}:{semantic_id}"
        return semantic_id

    # -------------------------
    # Detection
    # -------------------------
    def is_library_import(self, module_name: str) -> bool:
        return module_name == self.package_name

    def is_hook_declaration(self, callee_name: str) -> bool:
        return bool(self.hook_name) and callee_name == self.hook_name

    # -------------------------
    # Code generation
    # -------------------------
    def generate_import_statement(self) -> str:
        if not self.hook_name:
            return ""
        return f"import {{ {self.hook_name} }} from '{self.package_name}';"

    @abstractmethod
    def generate_hook_declaration(self) -> str:
        ...

    # -------------------------
    # Regex checks, used where no clean syntax tree is available
    # -------------------------
    def get_import_check_regex(self) -> Pattern[str]:
        hook = re.escape(self.hook_name)
        pkg = re.escape(self.package_name)
        return re.compile(rf"import\s*\{{[^}}]*\b{hook}\b[^}}]*\}}\s*from\s*['\"]{pkg}['\"]")

    def get_hook_declaration_check_regex(self) -> Pattern[str]:
        fn = re.escape(self.script_function_name)
        hook = re.escape(self.hook_name)
        return re.compile(rf"\b(?:const|let|var)\s*\{{[^}}]*\b{fn}\b[^}}]*\}}\s*=\s*{hook}\s*\(")

    def get_import_cleanup_regex(self) -> Pattern[str]:
        pkg = re.escape(self.package_name)
        return re.compile(
            rf"^[ \t]*import\s*\{{[^}}]*\}}\s*from\s*['\"]{pkg}['\"];?[ \t]*(?:\r?\n)?",
            re.MULTILINE,
        )

    def get_hook_declaration_cleanup_regex(self) -> Pattern[str]:
        fn = re.escape(self.script_function_name)
        hook = re.escape(self.hook_name)
        return re.compile(
            rf"^[ \t]*(?:const|let|var)\s*\{{\s*{fn}\s*\}}\s*=\s*{hook}\s*\([^)]*\);?[ \t]*(?:\r?\n)?",
            re.MULTILINE,
        )


class VueI18nLibrary(LibraryAdapter):
    """vue-i18n: ``const { t } = useI18n();`` in setup, ``$t`` in templates."""

    package_name = "vue-i18n"
    hook_name = "useI18n"

    def generate_hook_declaration(self) -> str:
        return f"const {{ {self.script_function_name} }} = {self.hook_name}();"


class I18nextVueLibrary(LibraryAdapter):
    """i18next-vue: ``useTranslation`` hook, keys may carry an ``ns:`` prefix."""

    package_name = "i18next-vue"
    hook_name = "useTranslation"
    supports_namespace = True

    def generate_hook_declaration(self) -> str:
        args = f"'{self.namespace}'" if self.namespace else ""
        return f"const {{ {self.script_function_name} }} = {self.hook_name}({args});"


LIBRARIES: Dict[str, Type[LibraryAdapter]] = {
    "vue-i18n": VueI18nLibrary,
    "i18next-vue": I18nextVueLibrary,
}


def get_library(
    name: str,
    namespace: Optional[str] = None,
    template_function: Optional[str] = None,
) -> LibraryAdapter:
    try:
        cls = LIBRARIES[name]
    except KeyError:
        known = ", ".join(sorted(LIBRARIES))
        raise ValueError(f"Unknown library {name!r} (expected one of: {known})") from None
    return cls(namespace=namespace, template_function=template_function)
