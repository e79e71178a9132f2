"""Generation backend: runs the target emitter and writes its files."""

import json
import os
import tempfile
from pathlib import Path

from graphql import DocumentNode, GraphQLSchema

from ..logging import get_logger
from .emitters import get_emitter
from .emitters.base import (
    EmitContext,
    GeneratedFile,
    add_typename_to_document,
    operation_id,
    source_with_fragments,
)
from .errors import GenerationError
from .request import OptionSet, Target

logger = get_logger("generate")


def write_file_atomic(path: Path, content: str):
    """Write content to path through a temporary file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def operation_ids_file(context: EmitContext, path: str) -> GeneratedFile:
    """Build the operation id map: id -> {name, source}."""
    fragments = context.fragments
    entries = {}
    for operation in context.operations:
        source = source_with_fragments(operation, fragments)
        entries[operation_id(source)] = {"name": operation.name.value, "source": source}
    return GeneratedFile(path=Path(path), content=json.dumps(entries, indent=2) + "\n")


def _matches_only(generated: GeneratedFile, only: str | None) -> bool:
    if not only or generated.source_path is None:
        return True
    return generated.source_path.resolve() == Path(only).resolve()


def generate(
    document: DocumentNode,
    schema: GraphQLSchema,
    output_path: str,
    only: str | None,
    target: Target | str,
    tag_name: str,
    relativize_output: bool,
    options: OptionSet,
) -> int:
    """Generate code for a document and return the number of files written.

    Args:
        document: Operations and fragments to generate code for
        schema: Schema the document is generated against
        output_path: Output file or directory (see the target's emitter)
        only: If set, only files generated from this source file are written
        target: Target language
        tag_name: Template tag used to find documents in scripts
        relativize_output: Place output next to each source file
        options: Target-specific toggles

    Raises:
        GenerationError: If no emitter is installed for the target or it fails
    """
    target = Target(target)
    emitter = get_emitter(target)
    if emitter is None:
        raise GenerationError(f"No emitter is installed for the '{target.value}' target")

    if options.add_typename:
        document = add_typename_to_document(document)

    context = EmitContext(
        document=document,
        schema=schema,
        output_path=output_path,
        target=target,
        relativize_output=relativize_output,
        tag_name=tag_name,
        options=options,
    )

    files = [f for f in emitter.emit(context) if _matches_only(f, only)]
    if options.generate_operation_ids and options.operation_ids_path:
        files.append(operation_ids_file(context, options.operation_ids_path))

    for generated in files:
        write_file_atomic(generated.path, generated.content)
        logger.debug("Wrote %s", generated.path)

    return len(files)
