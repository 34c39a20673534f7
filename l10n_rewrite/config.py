"""Run configuration: the options the core recognizes and the JSON config that builds them."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .errors import ConfigError
from .libraries import LibraryAdapter, VueI18nLibrary, get_library

DEFAULT_CALL_IMPORT_PATH = "@/plugins/locale"


@dataclass(frozen=True)
class TransformOptions:
    call_import_path: str = DEFAULT_CALL_IMPORT_PATH
    library: LibraryAdapter = field(default_factory=VueI18nLibrary)


class RewriteConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    library: Literal["vue-i18n", "i18next-vue"] = "vue-i18n"
    namespace: Optional[str] = None
    template_function: Optional[str] = None
    call_import_path: str = DEFAULT_CALL_IMPORT_PATH

    def to_options(self) -> TransformOptions:
        adapter = get_library(
            self.library,
            namespace=self.namespace,
            template_function=self.template_function,
        )
        return TransformOptions(call_import_path=self.call_import_path, library=adapter)


def load_config(path: Optional[Path] = None, **overrides) -> RewriteConfig:
    """
    Load a JSON config file (optional) and apply non-None overrides on top.
    Overrides use the snake_case field names.
    """
    data = {}
    if path is not None:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigError(f"Config file not found: {path}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Config file is not valid JSON: {path} ({exc})") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a JSON object: {path}")

    try:
        config = RewriteConfig.model_validate(data)
        updates = {k: v for k, v in overrides.items() if v is not None}
        if updates:
            config = RewriteConfig.model_validate({**config.model_dump(), **updates})
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    return config
