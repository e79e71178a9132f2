"""Intermediate Representation (IR) for generated type declarations.

This module defines dataclasses describing the shapes emitted for client
operations and fragments, independent of TypeScript or Flow syntax details.
Type expressions are pre-rendered by the emitter; templates only lay them out.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class IRField:
    """Represents a property of a generated object type."""
    name: str
    type_expr: str
    # Rendered as an optional property (`name?:`)
    is_optional: bool = False
    description: str | None = None


@dataclass
class IRObject:
    """Represents a generated interface (TypeScript) or object type (Flow)."""
    name: str
    fields: list[IRField]
    description: str | None = None


@dataclass
class IREnumValue:
    """Represents a single value in a GraphQL enum."""
    name: str
    description: str | None = None
    is_deprecated: bool = False


@dataclass
class IREnum:
    """Represents a GraphQL enum type."""
    name: str
    values: list[IREnumValue]
    description: str | None = None


@dataclass
class IRDefinition:
    """One operation or fragment and the types generated for it.

    ``objects`` is ordered so nested types come before the types that
    reference them; the root type is last.
    """
    name: str
    kind: str  # 'query', 'mutation', 'subscription' or 'fragment'
    source_path: Path | None
    objects: list[IRObject] = field(default_factory=list)
    variables: IRObject | None = None
    global_types_used: set[str] = field(default_factory=set)

    @property
    def is_fragment(self) -> bool:
        return self.kind == "fragment"


@dataclass
class IRGlobalTypes:
    """Enums and input objects shared by all generated definitions."""
    enums: list[IREnum] = field(default_factory=list)
    inputs: list[IRObject] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.enums and not self.inputs
