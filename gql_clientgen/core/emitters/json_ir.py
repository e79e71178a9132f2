"""JSON manifest emitter.

Writes a single JSON file describing every operation and fragment, suitable
for persisted-query tooling or for feeding other generators.
"""

import json
from pathlib import Path

from graphql import OperationDefinitionNode, print_ast, type_from_ast

from ..errors import GenerationError
from .base import (
    EmitContext,
    GeneratedFile,
    fragments_referenced,
    operation_id,
    source_path_of,
    source_with_fragments,
)


class JSONEmitter:
    """Emits one JSON manifest at the output path."""

    def _root_type_name(self, context: EmitContext, operation: OperationDefinitionNode) -> str:
        root = context.schema.get_root_type(operation.operation)
        if root is None:
            raise GenerationError(
                f"Schema does not define a root type for {operation.operation.value} operations"
            )
        return root.name

    def _operation_entry(self, context: EmitContext, operation: OperationDefinitionNode) -> dict:
        fragments = context.fragments
        full_source = source_with_fragments(operation, fragments)
        variables = []
        for var in operation.variable_definitions or ():
            var_type = type_from_ast(context.schema, var.type)
            variables.append({
                "name": var.variable.name.value,
                "type": str(var_type) if var_type else print_ast(var.type),
            })
        source_path = source_path_of(operation)
        return {
            "operationName": operation.name.value,
            "operationType": operation.operation.value,
            "rootType": self._root_type_name(context, operation),
            "filePath": str(source_path) if source_path else None,
            "source": print_ast(operation),
            "sourceWithFragments": full_source,
            "fragmentsReferenced": fragments_referenced(operation, fragments),
            "variables": variables,
            "operationId": operation_id(full_source),
        }

    def emit(self, context: EmitContext) -> list[GeneratedFile]:
        fragments = context.fragments
        manifest = {
            "operations": [self._operation_entry(context, op) for op in context.operations],
            "fragments": [
                {
                    "fragmentName": name,
                    "typeCondition": fragment.type_condition.name.value,
                    "filePath": str(source_path_of(fragment)) if source_path_of(fragment) else None,
                    "source": print_ast(fragment),
                    "fragmentsReferenced": fragments_referenced(fragment, fragments),
                }
                for name, fragment in fragments.items()
            ],
        }
        content = json.dumps(manifest, indent=2) + "\n"
        return [GeneratedFile(path=Path(context.output_path), content=content)]
