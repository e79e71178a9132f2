"""Scalar type mapping for generated TypeScript and Flow code.

Maps GraphQL scalar names to target type expressions. Custom scalars map to
``any`` unless custom scalar passthrough is enabled, in which case the scalar
name (with an optional prefix) is emitted and the user supplies the type.

Example usage:
    from gql_clientgen.core.scalars import ScalarRegistry

    registry = ScalarRegistry()
    registry.register("DateTime", "string")

    registry.type_for("DateTime")  # "string"
    registry.type_for("Money")     # "any"
"""

from .request import OptionSet

BUILTIN_SCALARS = {
    "String": "string",
    "ID": "string",
    "Int": "number",
    "Float": "number",
    "Boolean": "boolean",
}


class ScalarRegistry:
    """Registry mapping GraphQL scalar names to target type expressions.

    Example:
        registry = ScalarRegistry(OptionSet(passthrough_custom_scalars=True,
                                            custom_scalars_prefix="Scalar"))
        registry.type_for("Date")  # "ScalarDate"
    """

    def __init__(self, options: OptionSet | None = None):
        self.options = options or OptionSet()
        self._types: dict[str, str] = {}
        # Register default mappings
        self._register_defaults()

    def _register_defaults(self):
        """Register the built-in GraphQL scalars."""
        for name, target_type in BUILTIN_SCALARS.items():
            self.register(name, target_type)

    def register(self, scalar_name: str, target_type: str):
        """Register the target type for a scalar."""
        self._types[scalar_name] = target_type

    def has(self, scalar_name: str) -> bool:
        """Check if a mapping is registered for a scalar."""
        return scalar_name in self._types

    def is_passthrough(self, scalar_name: str) -> bool:
        """Whether a scalar is emitted by name for the user to define."""
        return not self.has(scalar_name) and self.options.passthrough_custom_scalars

    def type_for(self, scalar_name: str) -> str:
        """Return the target type expression for a scalar."""
        if scalar_name in self._types:
            return self._types[scalar_name]
        if self.options.passthrough_custom_scalars:
            return f"{self.options.custom_scalars_prefix}{scalar_name}"
        return "any"
