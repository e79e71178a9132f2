"""Assembly of the single document handed to the generation backend."""

from typing import Protocol

from graphql import DocumentNode, FragmentDefinitionNode, OperationDefinitionNode

from .errors import NoDefinitionsError


class DocumentSource(Protocol):
    """The parts of project state the assembler reads."""

    operations: dict[str, OperationDefinitionNode]
    fragments: dict[str, FragmentDefinitionNode]

    def validate(self) -> None:
        ...


def assemble_document(project: DocumentSource) -> DocumentNode:
    """Build a generation document: all operations followed by all fragments.

    The project's own validity check runs first and any ValidationError it
    raises propagates unchanged.

    Raises:
        NoDefinitionsError: If the project has neither operations nor fragments.
    """
    project.validate()

    operations = list(project.operations.values())
    fragments = list(project.fragments.values())

    if not operations and not fragments:
        raise NoDefinitionsError()

    return DocumentNode(definitions=tuple(operations + fragments))
