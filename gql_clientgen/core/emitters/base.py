"""Shared types and document helpers for target emitters."""

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLSchema,
    NameNode,
    OperationDefinitionNode,
    SelectionSetNode,
    Visitor,
    print_ast,
    visit,
)

from ..request import OptionSet, Target


@dataclass
class GeneratedFile:
    """A file produced by an emitter, not yet written to disk."""
    path: Path
    content: str
    # Source document the file was generated from; None for shared outputs
    source_path: Path | None = None


@dataclass
class EmitContext:
    """Everything an emitter needs for one generation pass."""
    document: DocumentNode
    schema: GraphQLSchema
    output_path: str
    target: Target
    relativize_output: bool = True
    tag_name: str = "gql"
    options: OptionSet = field(default_factory=OptionSet)

    @property
    def operations(self) -> list[OperationDefinitionNode]:
        return [d for d in self.document.definitions if isinstance(d, OperationDefinitionNode)]

    @property
    def fragments(self) -> dict[str, FragmentDefinitionNode]:
        return {
            d.name.value: d
            for d in self.document.definitions
            if isinstance(d, FragmentDefinitionNode)
        }


@runtime_checkable
class Emitter(Protocol):
    """Protocol for target emitters.

    Example:
        class LineCountEmitter:
            def emit(self, context):
                lines = sum(len(print_ast(d).splitlines()) for d in context.document.definitions)
                return [GeneratedFile(Path(context.output_path), f"{lines}\\n")]
    """

    def emit(self, context: EmitContext) -> list[GeneratedFile]:
        """Produce the files for a generation pass."""
        ...


def source_path_of(node) -> Path | None:
    """Return the file a definition was parsed from, if known."""
    if node.loc is None or not node.loc.source.name:
        return None
    name = node.loc.source.name
    if name == "GraphQL request":
        return None
    return Path(name)


class _FragmentSpreadCollector(Visitor):
    def __init__(self):
        super().__init__()
        self.names: list[str] = []

    def enter_fragment_spread(self, node: FragmentSpreadNode, *_args):
        if node.name.value not in self.names:
            self.names.append(node.name.value)


def fragments_referenced(
    definition: OperationDefinitionNode | FragmentDefinitionNode,
    fragments: dict[str, FragmentDefinitionNode],
) -> list[str]:
    """Names of every fragment a definition uses, transitively, sorted."""
    found: set[str] = set()
    pending = [definition]
    while pending:
        collector = _FragmentSpreadCollector()
        visit(pending.pop(), collector)
        for name in collector.names:
            if name not in found and name in fragments:
                found.add(name)
                pending.append(fragments[name])
    if isinstance(definition, FragmentDefinitionNode):
        found.discard(definition.name.value)
    return sorted(found)


def source_with_fragments(
    definition: OperationDefinitionNode,
    fragments: dict[str, FragmentDefinitionNode],
) -> str:
    """Print a definition together with every fragment it references."""
    parts = [print_ast(definition)]
    parts.extend(print_ast(fragments[name]) for name in fragments_referenced(definition, fragments))
    return "\n".join(parts)


def operation_id(source: str) -> str:
    """Stable identifier for an operation's full source text."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


def _typename_field() -> FieldNode:
    return FieldNode(
        alias=None,
        name=NameNode(value="__typename"),
        arguments=(),
        directives=(),
        selection_set=None,
    )


class _AddTypename(Visitor):
    def leave_selection_set(self, node: SelectionSetNode, _key, parent, *_args):
        if isinstance(parent, OperationDefinitionNode):
            return None
        for selection in node.selections:
            if (
                isinstance(selection, FieldNode)
                and selection.name.value == "__typename"
                and selection.alias is None
            ):
                return None
        return SelectionSetNode(selections=(_typename_field(), *node.selections), loc=node.loc)


def add_typename_to_document(document: DocumentNode) -> DocumentNode:
    """Add ``__typename`` to every selection set except operation roots."""
    return visit(document, _AddTypename())
