"""TypeScript and Flow emitters.

Renders Jinja2 templates to produce type declarations for each operation and
fragment, plus a shared module for the enums and input objects they use.

Supports custom templates via the template_dir parameter:
    emitter = TypeScriptEmitter("typescript", template_dir="./my_templates")

Template lookup order:
1. User's template directory (if provided)
2. Package default templates
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLNamedType,
    GraphQLSchema,
    InlineFragmentNode,
    NamedTypeNode,
    OperationDefinitionNode,
    SelectionSetNode,
    get_named_type,
    is_abstract_type,
    is_composite_type,
    is_enum_type,
    is_input_object_type,
    is_list_type,
    is_non_null_type,
    print_ast,
    type_from_ast,
)
from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from ..errors import GenerationError
from ..ir import IRDefinition, IREnum, IREnumValue, IRField, IRGlobalTypes, IRObject
from ..request import OptionSet
from ..scalars import ScalarRegistry
from .base import EmitContext, GeneratedFile, source_path_of

FLAVORS = ("typescript", "flow")

DEFAULT_EXTENSIONS = {"typescript": "ts", "flow": "js"}


def safe_comment(text: str) -> str:
    """Make text safe for a single-line comment.

    Removes newlines and comment terminators, collapses whitespace and
    truncates very long descriptions.
    """
    if not text:
        return ""
    text = text.replace("\n", " ").replace("\r", "")
    text = text.replace("*/", "* /")
    text = re.sub(r"\s+", " ", text)
    if len(text) > 120:
        text = text[:117] + "..."
    return text.strip()


class TypeSyntax:
    """Renders GraphQL type wrappers as TypeScript type expressions."""

    def __init__(self, read_only: bool = False):
        self.read_only = read_only

    def nullable(self, expr: str) -> str:
        return f"{expr} | null"

    def list_of(self, expr: str) -> str:
        if self.read_only:
            return f"ReadonlyArray<{expr}>"
        if " " in expr:
            expr = f"({expr})"
        return f"{expr}[]"

    def render(self, gql_type, named: str) -> str:
        """Render a (possibly wrapped) GraphQL type around a named type expression."""
        if is_non_null_type(gql_type):
            return self._render_non_null(gql_type.of_type, named)
        return self.nullable(self._render_non_null(gql_type, named))

    def _render_non_null(self, gql_type, named: str) -> str:
        if is_list_type(gql_type):
            return self.list_of(self.render(gql_type.of_type, named))
        return named


class FlowSyntax(TypeSyntax):
    """Renders GraphQL type wrappers as Flow type expressions."""

    def nullable(self, expr: str) -> str:
        return f"?{expr}"

    def list_of(self, expr: str) -> str:
        if self.read_only:
            return f"$ReadOnlyArray<{expr}>"
        return f"Array<{expr}>"


@dataclass
class _FieldEntry:
    """A response key and every field node selecting it."""
    name: str
    parent_type: GraphQLNamedType
    nodes: list[FieldNode]
    conditional: bool


class _TypeBuilder:
    """Builds IR definitions for one generation pass."""

    def __init__(
        self,
        schema: GraphQLSchema,
        fragments: dict[str, FragmentDefinitionNode],
        syntax: TypeSyntax,
        options: OptionSet,
    ):
        self.schema = schema
        self.fragments = fragments
        self.syntax = syntax
        self.options = options
        self.scalars = ScalarRegistry(options)
        self._used: set[str] = set()
        self._all_globals: set[str] = set()

    def _use_global(self, name: str):
        self._used.add(name)
        self._all_globals.add(name)

    def build_operation(self, operation: OperationDefinitionNode) -> IRDefinition:
        root = self.schema.get_root_type(operation.operation)
        if root is None:
            raise GenerationError(
                f"Schema does not define a root type for {operation.operation.value} operations"
            )
        name = operation.name.value
        self._used = set()
        objects = self._build_object(name, root, [operation.selection_set])
        variables = self._build_variables(name, operation)
        return IRDefinition(
            name=name,
            kind=operation.operation.value,
            source_path=source_path_of(operation),
            objects=objects,
            variables=variables,
            global_types_used=self._used,
        )

    def build_fragment(self, fragment: FragmentDefinitionNode) -> IRDefinition:
        name = fragment.name.value
        parent_type = self.schema.get_type(fragment.type_condition.name.value)
        if parent_type is None or not is_composite_type(parent_type):
            raise GenerationError(
                f"Fragment '{name}' has unknown type condition '{fragment.type_condition.name.value}'"
            )
        self._used = set()
        objects = self._build_object(name, parent_type, [fragment.selection_set])
        return IRDefinition(
            name=name,
            kind="fragment",
            source_path=source_path_of(fragment),
            objects=objects,
            global_types_used=self._used,
        )

    def _build_object(
        self, name: str, parent_type: GraphQLNamedType, selection_sets: list[SelectionSetNode]
    ) -> list[IRObject]:
        entries: dict[str, _FieldEntry] = {}
        self._collect(parent_type, selection_sets, entries, False, frozenset())

        objects: list[IRObject] = []
        fields: list[IRField] = []
        for key, entry in entries.items():
            if entry.name == "__typename":
                fields.append(IRField(key, self._typename_expr(entry.parent_type), entry.conditional))
                continue

            field_def = self._field_def(entry.parent_type, entry.name)
            named = get_named_type(field_def.type)
            if is_composite_type(named):
                child_name = f"{name}_{key}"
                child_sets = [n.selection_set for n in entry.nodes if n.selection_set]
                objects.extend(self._build_object(child_name, named, child_sets))
                type_expr = self.syntax.render(field_def.type, child_name)
            else:
                type_expr = self.syntax.render(field_def.type, self._leaf_type(named))
            fields.append(IRField(key, type_expr, entry.conditional, field_def.description))

        objects.append(IRObject(name=name, fields=fields, description=parent_type.description))
        return objects

    def _collect(
        self,
        parent_type: GraphQLNamedType,
        selection_sets: list[SelectionSetNode],
        entries: dict[str, _FieldEntry],
        conditional: bool,
        visiting: frozenset,
    ):
        """Merge selections by response key, following inline fragments and spreads."""
        for selection_set in selection_sets:
            for selection in selection_set.selections:
                if isinstance(selection, FieldNode):
                    key = (selection.alias or selection.name).value
                    entry = entries.get(key)
                    if entry is None:
                        entries[key] = _FieldEntry(
                            selection.name.value, parent_type, [selection], conditional
                        )
                    else:
                        entry.nodes.append(selection)
                        entry.conditional = entry.conditional and conditional
                elif isinstance(selection, InlineFragmentNode):
                    target = self._condition_type(selection.type_condition, parent_type)
                    self._collect(
                        target,
                        [selection.selection_set],
                        entries,
                        conditional or not self._always_applies(target, parent_type),
                        visiting,
                    )
                elif isinstance(selection, FragmentSpreadNode):
                    fragment_name = selection.name.value
                    if fragment_name in visiting:
                        continue
                    fragment = self.fragments.get(fragment_name)
                    if fragment is None:
                        raise GenerationError(f"Unknown fragment '{fragment_name}'")
                    target = self._condition_type(fragment.type_condition, parent_type)
                    self._collect(
                        target,
                        [fragment.selection_set],
                        entries,
                        conditional or not self._always_applies(target, parent_type),
                        visiting | {fragment_name},
                    )

    def _condition_type(self, condition: NamedTypeNode | None, parent_type: GraphQLNamedType):
        if condition is None:
            return parent_type
        target = self.schema.get_type(condition.name.value)
        if target is None or not is_composite_type(target):
            raise GenerationError(f"Unknown type condition '{condition.name.value}'")
        return target

    def _always_applies(self, target: GraphQLNamedType, parent_type: GraphQLNamedType) -> bool:
        if target is parent_type:
            return True
        return (
            is_abstract_type(target)
            and not is_abstract_type(parent_type)
            and self.schema.is_sub_type(target, parent_type)
        )

    def _field_def(self, parent_type: GraphQLNamedType, name: str):
        fields = getattr(parent_type, "fields", None) or {}
        field_def = fields.get(name)
        if field_def is None:
            raise GenerationError(f"Cannot query field '{name}' on type '{parent_type.name}'")
        return field_def

    def _typename_expr(self, parent_type: GraphQLNamedType) -> str:
        if is_abstract_type(parent_type):
            names = sorted(t.name for t in self.schema.get_possible_types(parent_type))
            return " | ".join(f'"{n}"' for n in names) or "string"
        return f'"{parent_type.name}"'

    def _leaf_type(self, named: GraphQLNamedType) -> str:
        if is_enum_type(named):
            self._use_global(named.name)
            return named.name
        return self.scalars.type_for(named.name)

    def _input_type_expr(self, gql_type) -> str:
        named = get_named_type(gql_type)
        if is_input_object_type(named):
            self._use_global(named.name)
            return self.syntax.render(gql_type, named.name)
        return self.syntax.render(gql_type, self._leaf_type(named))

    def _build_variables(self, name: str, operation: OperationDefinitionNode) -> IRObject | None:
        if not operation.variable_definitions:
            return None
        fields = []
        for var in operation.variable_definitions:
            var_name = var.variable.name.value
            var_type = type_from_ast(self.schema, var.type)
            if var_type is None:
                raise GenerationError(f"Unknown type '{print_ast(var.type)}' for variable ${var_name}")
            fields.append(IRField(
                name=var_name,
                type_expr=self._input_type_expr(var_type),
                is_optional=not is_non_null_type(var_type),
            ))
        return IRObject(name=f"{name}Variables", fields=fields)

    def global_types(self) -> IRGlobalTypes:
        """Collect every enum and input object used, following input fields."""
        self._used = set()
        result = IRGlobalTypes()
        pending = sorted(self._all_globals)
        seen: set[str] = set()
        while pending:
            type_name = pending.pop(0)
            if type_name in seen:
                continue
            seen.add(type_name)
            gql_type = self.schema.get_type(type_name)
            if is_enum_type(gql_type):
                values = [
                    IREnumValue(
                        name=value_name,
                        description=value.description,
                        is_deprecated=value.deprecation_reason is not None,
                    )
                    for value_name, value in gql_type.values.items()
                    if not (self.options.omit_deprecated_enum_cases and value.deprecation_reason is not None)
                ]
                result.enums.append(IREnum(gql_type.name, values, gql_type.description))
            elif is_input_object_type(gql_type):
                fields = []
                for field_name, input_field in gql_type.fields.items():
                    fields.append(IRField(
                        name=field_name,
                        type_expr=self._input_type_expr(input_field.type),
                        is_optional=not is_non_null_type(input_field.type),
                        description=input_field.description,
                    ))
                    nested = get_named_type(input_field.type)
                    if (is_enum_type(nested) or is_input_object_type(nested)) and nested.name not in seen:
                        pending.append(nested.name)
                result.inputs.append(IRObject(gql_type.name, fields, gql_type.description))
        result.enums.sort(key=lambda e: e.name)
        result.inputs.sort(key=lambda i: i.name)
        return result


class TypeScriptEmitter:
    """Emits TypeScript (or Flow) type declarations for client documents.

    Supports custom templates via the template_dir parameter.
    Templates in template_dir take precedence over built-in templates.

    Available templates to override (per flavor directory):
        - definition.j2: one operation or fragment module
        - global_types.j2: shared enums and input objects
        - bundle.j2: everything in a single file
        - macros.j2: object, enum and input declarations
    """

    def __init__(self, flavor: str = "typescript", template_dir: str | None = None):
        if flavor not in FLAVORS:
            raise ValueError(f"Unsupported flavor: {flavor}")
        self.flavor = flavor
        self.template_dir = template_dir

        # Build template loader - custom templates take precedence
        loaders = []
        if template_dir:
            template_path = Path(template_dir)
            if template_path.is_dir():
                loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(PackageLoader("gql_clientgen", "templates"))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["safe_comment"] = safe_comment

    def _syntax(self, options: OptionSet) -> TypeSyntax:
        if self.flavor == "flow":
            return FlowSyntax(read_only=options.use_read_only_types)
        return TypeSyntax(read_only=options.use_read_only_types)

    def _extension(self, options: OptionSet) -> str:
        return (options.ts_file_extension or DEFAULT_EXTENSIONS[self.flavor]).lstrip(".")

    def _render(self, template_name: str, context: dict) -> str:
        template = self.env.get_template(f"{self.flavor}/{template_name}")
        return template.render(context)

    def emit(self, context: EmitContext) -> list[GeneratedFile]:
        options = context.options
        builder = _TypeBuilder(context.schema, context.fragments, self._syntax(options), options)
        definitions = [builder.build_operation(op) for op in context.operations]
        definitions.extend(builder.build_fragment(f) for f in context.fragments.values())
        global_types = builder.global_types()

        ext = self._extension(options)
        base_context = {
            "read_only": options.use_read_only_types,
            "exact": options.use_flow_exact_objects,
        }

        if not context.relativize_output and context.output_path.endswith(f".{ext}"):
            content = self._render("bundle.j2", {
                **base_context,
                "definitions": definitions,
                "global_types": global_types,
            })
            return [GeneratedFile(path=Path(context.output_path), content=content)]

        global_path = self._global_types_path(context, definitions, ext)
        files = []
        for definition in definitions:
            path = self._definition_path(context, definition, ext)
            content = self._render("definition.j2", {
                **base_context,
                "definition": definition,
                "imports": sorted(definition.global_types_used),
                "import_from": _module_specifier(path.parent, global_path, ext),
            })
            files.append(GeneratedFile(path=path, content=content, source_path=definition.source_path))

        if not global_types.is_empty:
            content = self._render("global_types.j2", {**base_context, "global_types": global_types})
            files.append(GeneratedFile(path=global_path, content=content))
        return files

    @staticmethod
    def _definition_path(context: EmitContext, definition: IRDefinition, ext: str) -> Path:
        if context.relativize_output and definition.source_path is not None:
            return definition.source_path.parent / context.output_path / f"{definition.name}.{ext}"
        return Path(context.output_path) / f"{definition.name}.{ext}"

    @staticmethod
    def _global_types_path(context: EmitContext, definitions: list[IRDefinition], ext: str) -> Path:
        if context.options.global_types_file:
            return Path(context.options.global_types_file)
        if context.relativize_output:
            dirs = [str(d.source_path.parent.resolve()) for d in definitions if d.source_path]
            base = Path(os.path.commonpath(dirs)) if dirs else Path.cwd()
            return base / context.output_path / f"globalTypes.{ext}"
        return Path(context.output_path) / f"globalTypes.{ext}"


def _module_specifier(from_dir: Path, target: Path, ext: str) -> str:
    """Relative import specifier for target as seen from from_dir, without extension."""
    target_str = str(target)
    suffix = f".{ext}"
    if target_str.endswith(suffix):
        target_str = target_str[: -len(suffix)]
    rel = os.path.relpath(target_str, start=str(from_dir)).replace(os.sep, "/")
    if not rel.startswith("."):
        rel = f"./{rel}"
    return rel
