"""Exceptions raised by the rewriter.

Unmatched records are not errors: they are reported through the transform
result and the log. Exceptions are reserved for input that cannot be
processed at all.
"""


class RewriteError(Exception):
    """Base class for all rewriter errors."""


class StructuralError(RewriteError):
    """A file whose sections cannot be located or parsed.

    The file is left unmodified and the driver decides whether to continue.
    """

    def __init__(self, message: str, file_path: str = ""):
        self.file_path = file_path
        super().__init__(f"{file_path}: {message}" if file_path else message)


class ConfigError(RewriteError):
    """Invalid configuration or record file."""
