"""Validation and normalization of code generation flags.

Turns the raw flag/argument values received from the command layer into a
GenerationRequest, or raises ConfigurationError naming the violated rule.
"""

import os
from dataclasses import dataclass
from enum import Enum

from .errors import ConfigurationError

GENERATED_DIRECTORY = "__generated__"


class Target(str, Enum):
    """Supported code generation targets."""
    JSON = "json"
    SWIFT = "swift"
    TYPESCRIPT = "typescript"
    FLOW = "flow"
    SCALA = "scala"


# Targets whose output is placed next to each source file by default
RELATIVE_OUTPUT_TARGETS = frozenset({Target.TYPESCRIPT, Target.FLOW})


@dataclass(frozen=True)
class CodegenFlags:
    """Raw flag and argument values, exactly as the command layer received them."""
    target: str
    output: str | None = None
    output_flat: bool = False
    only: str | None = None
    tag: str | None = None
    tag_name: str = "gql"
    add_typename: bool = True
    passthrough_custom_scalars: bool = False
    custom_scalars_prefix: str | None = None
    merge_in_fields_from_fragment_spreads: bool = False
    namespace: str | None = None
    omit_deprecated_enum_cases: bool = False
    operation_ids_path: str | None = None
    suppress_swift_multiline_string_literals: bool = False
    use_flow_exact_objects: bool = False
    use_flow_read_only_types: bool = False
    use_read_only_types: bool = False
    global_types_file: str | None = None
    ts_file_extension: str | None = None


@dataclass(frozen=True)
class OptionSet:
    """Target-specific generation toggles derived from validated flags."""
    passthrough_custom_scalars: bool = False
    custom_scalars_prefix: str = ""
    add_typename: bool = True
    namespace: str | None = None
    operation_ids_path: str | None = None
    generate_operation_ids: bool = False
    merge_in_fields_from_fragment_spreads: bool = False
    use_flow_exact_objects: bool = False
    use_read_only_types: bool = False
    global_types_file: str | None = None
    ts_file_extension: str | None = None
    suppress_swift_multiline_string_literals: bool = False
    omit_deprecated_enum_cases: bool = False

    @classmethod
    def from_flags(cls, flags: CodegenFlags) -> "OptionSet":
        return cls(
            passthrough_custom_scalars=(
                flags.passthrough_custom_scalars or bool(flags.custom_scalars_prefix)
            ),
            custom_scalars_prefix=flags.custom_scalars_prefix or "",
            add_typename=flags.add_typename,
            namespace=flags.namespace,
            operation_ids_path=flags.operation_ids_path,
            generate_operation_ids=bool(flags.operation_ids_path),
            merge_in_fields_from_fragment_spreads=flags.merge_in_fields_from_fragment_spreads,
            use_flow_exact_objects=flags.use_flow_exact_objects,
            use_read_only_types=flags.use_read_only_types or flags.use_flow_read_only_types,
            global_types_file=flags.global_types_file,
            ts_file_extension=flags.ts_file_extension,
            suppress_swift_multiline_string_literals=flags.suppress_swift_multiline_string_literals,
            omit_deprecated_enum_cases=flags.omit_deprecated_enum_cases,
        )


@dataclass(frozen=True)
class GenerationRequest:
    """A validated, normalized request for one generation pass."""
    target: Target
    output_path: str | None
    output_flat: bool
    only_file: str | None
    options: OptionSet
    tag: str | None = None
    tag_name: str = "gql"

    @property
    def resolved_output(self) -> str:
        """Output path handed to the backend, defaulting to the generated directory."""
        return self.output_path or GENERATED_DIRECTORY

    @property
    def relativize_output(self) -> bool:
        """Whether output is placed relative to each source file."""
        return not self.output_flat


def _path_segments(path: str) -> list[str]:
    if os.altsep:
        path = path.replace(os.altsep, os.sep)
    return path.split(os.sep)


def validate_request(flags: CodegenFlags) -> GenerationRequest:
    """Validate raw flags for the chosen target and build a GenerationRequest.

    Raises:
        ConfigurationError: If the target is unknown or the output path does
            not fit the target.
    """
    try:
        target = Target(flags.target)
    except ValueError:
        raise ConfigurationError(f"Unsupported target: {flags.target}") from None

    output = flags.output or None

    if output is None and target not in RELATIVE_OUTPUT_TARGETS:
        raise ConfigurationError(
            "The output path must be specified in the arguments for Swift, Scala and JSON"
        )

    if (
        target in RELATIVE_OUTPUT_TARGETS
        and not flags.output_flat
        and output is not None
        and (os.path.isabs(output) or len(_path_segments(output)) > 1)
    ):
        raise ConfigurationError(
            'For TypeScript and Flow generators, "output" must be empty or a single '
            'directory name, unless the "outputFlat" flag is set.'
        )

    return GenerationRequest(
        target=target,
        output_path=output,
        output_flat=flags.output_flat,
        only_file=flags.only,
        options=OptionSet.from_flags(flags),
        tag=flags.tag,
        tag_name=flags.tag_name,
    )
