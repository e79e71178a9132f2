"""Command-line interface for gql-clientgen."""

import asyncio
from dataclasses import replace
from pathlib import Path

import click

from .core.config import CONFIG_FILENAME, DEFAULT_CONFIG_TEMPLATE, ClientConfig, load_config
from .core.errors import CodegenError
from .core.project import ClientProject
from .core.request import CodegenFlags, Target, validate_request
from .core.runner import run_codegen
from .core.schema import resolver_from_config
from .logging import configure_logging


def parse_header(value: str) -> tuple[str, str]:
    """Split a ``Name: value`` header."""
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(f"Expected 'Name: value', got {value!r}", param_hint="--header")
    return name.strip(), header_value.strip()


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def apply_overrides(
    client: ClientConfig,
    local_schema_file: str | None,
    endpoint: str | None,
    headers: tuple[str, ...],
    includes: str | None,
    excludes: str | None,
    tag_name: str | None,
) -> ClientConfig:
    """Apply command-line overrides on top of the loaded client config."""
    schema = client.schema_source
    schema_updates = {}
    if local_schema_file:
        schema_updates["local_schema_files"] = _split_list(local_schema_file)
        schema_updates["endpoint"] = None
    elif endpoint:
        schema_updates["endpoint"] = endpoint
        schema_updates["local_schema_files"] = []
    if headers:
        schema_updates["headers"] = {**schema.headers, **dict(parse_header(h) for h in headers)}

    updates = {"schema_source": schema.model_copy(update=schema_updates)}
    if includes:
        updates["includes"] = _split_list(includes)
    if excludes:
        updates["excludes"] = _split_list(excludes)
    if tag_name:
        updates["tag_name"] = tag_name
    return client.model_copy(update=updates)


@click.group()
@click.version_option(package_name="gql-clientgen")
def main():
    """GraphQL client code generator.

    Generate typed code for the queries, mutations and fragments in a project.
    """
    pass


@main.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing config file.",
)
def init(force: bool):
    """Write a starter gql-clientgen.yaml to the current directory."""
    path = Path(CONFIG_FILENAME)
    if path.exists() and not force:
        raise click.ClickException(f"{CONFIG_FILENAME} already exists (use --force to overwrite)")
    path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    click.echo(f"Wrote {path}")


@main.command()
@click.argument("output", required=False)
@click.option(
    "--target",
    required=True,
    help=f"Type of code generator to use ({', '.join(t.value for t in Target)}).",
)
@click.option("--watch", is_flag=True, help="Regenerate whenever a client document changes.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help=f"Path to the config file (default: ./{CONFIG_FILENAME}).",
)
@click.option(
    "--localSchemaFile",
    "local_schema_file",
    help="Comma-separated schema files (SDL or introspection JSON).",
)
@click.option("--endpoint", help="GraphQL endpoint to fetch the schema from.")
@click.option(
    "--header",
    "headers",
    multiple=True,
    help="Extra header for the endpoint request, as 'Name: value'. Repeatable.",
)
@click.option("--includes", help="Comma-separated globs of files to search for documents.")
@click.option("--excludes", help="Comma-separated globs of files to ignore.")
@click.option("--tagName", "tag_name", help="Template literal tag that marks documents (default: gql).")
@click.option("--tag", help="Schema tag, for resolvers that support tagged schemas.")
@click.option(
    "--addTypename/--no-addTypename",
    "add_typename",
    default=True,
    help="Add __typename to every selection set (default: on).",
)
@click.option(
    "--passthroughCustomScalars",
    "passthrough_custom_scalars",
    is_flag=True,
    help="Emit custom scalars by name instead of 'any'.",
)
@click.option(
    "--customScalarsPrefix",
    "custom_scalars_prefix",
    help="Prefix for passed-through custom scalar names (implies --passthroughCustomScalars).",
)
@click.option(
    "--mergeInFieldsFromFragmentSpreads",
    "merge_in_fields_from_fragment_spreads",
    is_flag=True,
    help="Merge fragment fields into the parent selection.",
)
@click.option("--namespace", help="Namespace for generated declarations.")
@click.option(
    "--omitDeprecatedEnumCases",
    "omit_deprecated_enum_cases",
    is_flag=True,
    help="Leave deprecated values out of generated enums.",
)
@click.option(
    "--operationIdsPath",
    "operation_ids_path",
    help="Write a JSON map of operation ids to this path.",
)
@click.option("--only", help="Only write files generated from this source file.")
@click.option(
    "--suppressSwiftMultilineStringLiterals",
    "suppress_swift_multiline_string_literals",
    is_flag=True,
    help="Do not use multiline string literals in Swift output.",
)
@click.option(
    "--useFlowExactObjects",
    "use_flow_exact_objects",
    is_flag=True,
    help="Use exact object types in Flow output.",
)
@click.option(
    "--useFlowReadOnlyTypes",
    "use_flow_read_only_types",
    is_flag=True,
    help="Use read-only types in Flow output (same as --useReadOnlyTypes).",
)
@click.option(
    "--useReadOnlyTypes",
    "use_read_only_types",
    is_flag=True,
    help="Use read-only properties and arrays.",
)
@click.option(
    "--outputFlat",
    "output_flat",
    is_flag=True,
    help="Write every file into OUTPUT instead of next to its source.",
)
@click.option(
    "--globalTypesFile",
    "global_types_file",
    help="Path of the shared enums and input objects module.",
)
@click.option(
    "--tsFileExtension",
    "ts_file_extension",
    help="Extension for generated TypeScript files (default: ts).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def generate(
    output: str | None,
    target: str,
    watch: bool,
    config_path: str | None,
    local_schema_file: str | None,
    endpoint: str | None,
    headers: tuple[str, ...],
    includes: str | None,
    excludes: str | None,
    tag_name: str | None,
    tag: str | None,
    verbose: bool,
    **options,
):
    """Generate code for the GraphQL documents in a project.

    OUTPUT is the output file or directory. JSON, Swift and Scala need one;
    TypeScript and Flow default to a __generated__ directory next to each
    source file.

    Examples:

        gql-clientgen generate --target json --localSchemaFile schema.graphql operations.json

        gql-clientgen generate --target typescript --endpoint https://example.com/graphql

        gql-clientgen generate --target flow --watch
    """
    try:
        # Flag errors are reported before any file or network access
        request = validate_request(CodegenFlags(
            target=target,
            output=output,
            tag=tag,
            tag_name=tag_name or "gql",
            **options,
        ))

        config = load_config(config_path)
        client = apply_overrides(
            config.client, local_schema_file, endpoint, headers, includes, excludes, tag_name
        )
        request = replace(request, tag_name=client.tag_name)

        configure_logging(verbose=verbose or config.log_level == "debug")
        if verbose:
            click.echo(f"Target: {request.target.value}")
            click.echo(f"Output: {request.resolved_output}")
            click.echo(f"Includes: {', '.join(client.includes)}")

        project = ClientProject(client, resolver_from_config(client.schema_source))
        written = asyncio.run(run_codegen(request, project, watch=watch))
    except CodegenError as e:
        raise click.ClickException(str(e)) from e

    if written is not None:
        click.echo(f"Done! Wrote {written} files.")


if __name__ == "__main__":
    main()
