"""One-shot and watch-mode entry points for code generation."""

import asyncio
from typing import Callable

from graphql import GraphQLSchema

from ..logging import get_logger
from .dispatcher import Backend, dispatch
from .document import assemble_document
from .generate import generate
from .globs import GlobSet
from .project import ClientProject
from .request import GenerationRequest
from .watch import ExitStrategy, FileSubscription, Subscription, WatchController, WatchState

logger = get_logger("runner")


class CodegenPipeline:
    """Resolve the schema, assemble the document and dispatch it to the backend.

    The schema is cached after the first successful resolution, so a schema
    that failed to load is retried on the next run.
    """

    def __init__(
        self,
        request: GenerationRequest,
        project: ClientProject,
        backend: Backend = generate,
    ):
        self.request = request
        self.project = project
        self.backend = backend
        self._schema: GraphQLSchema | None = None

    def resolve_schema(self) -> GraphQLSchema:
        if self._schema is None:
            self._schema = self.project.resolve_schema(self.request.tag)
        return self._schema

    def run(self) -> int:
        """Generate once and return the number of files written."""
        target = self.request.target.value
        logger.debug("Generating query files with '%s' target", target)
        schema = self.resolve_schema()
        document = assemble_document(self.project)
        written = dispatch(document, schema, self.request, self.backend)
        logger.info("Generating query files with '%s' target - wrote %d files", target, written)
        return written


def default_subscription(project: ClientProject) -> Callable[[WatchState], Subscription]:
    """Subscribe to the state's include patterns with the project's excludes."""
    def subscribe(state: WatchState) -> Subscription:
        globs = GlobSet(sorted(state.include_patterns), project.config.excludes, project.root)
        return FileSubscription(globs)
    return subscribe


async def run_codegen(
    request: GenerationRequest,
    project: ClientProject,
    *,
    watch: bool = False,
    backend: Backend = generate,
    is_tty: bool | None = None,
    subscribe: Callable[[WatchState], Subscription] | None = None,
    strategy: ExitStrategy | None = None,
) -> int | None:
    """Generate once, and keep regenerating on changes if watch is set.

    In one-shot mode any pipeline error propagates. In watch mode this only
    returns after an interactive exit (which normally ends the process) or if
    the file watcher stops on its own.
    """
    pipeline = CodegenPipeline(request, project, backend)
    if not watch:
        return await asyncio.to_thread(pipeline.run)

    state = WatchState.for_request(request, project.config.includes, is_tty=is_tty)
    controller = WatchController(
        pipeline,
        state,
        subscribe=subscribe or default_subscription(project),
        strategy=strategy,
    )
    await controller.run()
    return None
