"""Error types raised by the code generation pipeline.

Every error derives from CodegenError so callers can tell pipeline
failures apart from programming errors.
"""

from typing import Any


class CodegenError(Exception):
    """Base class for code generation failures."""


class ConfigurationError(CodegenError):
    """Raised for an invalid flag, argument or config file combination."""


class SchemaLoadError(CodegenError):
    """Raised when the schema could not be resolved."""


class NoDefinitionsError(CodegenError):
    """Raised when there are no operations or fragments to generate code for."""

    def __init__(self, message: str = "No operations or fragments found to generate code for."):
        super().__init__(message)


class ValidationError(CodegenError):
    """Raised when client documents are malformed or invalid against the schema."""

    def __init__(self, message: str, errors: list[Any] | None = None):
        self.message = message
        self.errors = list(errors or [])
        super().__init__(message)

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        details = "\n".join(f"  - {e}" for e in self.errors)
        return f"{self.message}\n{details}"


class GenerationError(CodegenError):
    """Raised when the generation backend fails."""
