"""Thin adapter between a generation request and the generation backend."""

from typing import Callable

from graphql import DocumentNode, GraphQLSchema

from .errors import CodegenError, GenerationError
from .generate import generate
from .request import GenerationRequest

Backend = Callable[..., int]


def dispatch(
    document: DocumentNode,
    schema: GraphQLSchema,
    request: GenerationRequest,
    backend: Backend = generate,
) -> int:
    """Run the backend once for the request and return the number of files written.

    Failures are not retried. Pipeline errors propagate as they are; anything
    else the backend raises is wrapped in GenerationError.
    """
    try:
        return backend(
            document,
            schema,
            request.resolved_output,
            request.only_file,
            request.target,
            request.tag_name,
            request.relativize_output,
            request.options,
        )
    except CodegenError:
        raise
    except Exception as e:
        raise GenerationError(f"Generating '{request.target.value}' output failed: {e}") from e
