"""Watch mode: regenerate whenever client documents change.

The WatchController owns the file-system subscription for its whole life:

    IDLE -> GENERATING -> IDLE ...        (a trigger passed the filter)
    IDLE -> AWAITING_EXIT -> CLOSED       (a key was pressed, interactive only)

Events whose path contains an exclude marker (the generated-output directory
or the configured output path) are dropped so generated files do not trigger
another pass. This is a substring heuristic: a source path that happens to
contain a marker is ignored as well.
"""

import asyncio
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Callable, Iterable, Protocol

import click
from watchfiles import awatch

from ..logging import get_logger
from .errors import CodegenError, ConfigurationError
from .globs import GlobSet
from .request import GENERATED_DIRECTORY, GenerationRequest

logger = get_logger("watch")


class WatchPhase(Enum):
    IDLE = "idle"
    GENERATING = "generating"
    AWAITING_EXIT = "awaiting_exit"
    CLOSED = "closed"


def stdin_is_tty() -> bool:
    return sys.stdin is not None and sys.stdin.isatty()


@dataclass(frozen=True)
class WatchState:
    """What to watch, which paths to ignore, and whether a terminal is attached."""
    include_patterns: frozenset[str]
    exclude_markers: frozenset[str]
    is_tty: bool

    @classmethod
    def for_request(
        cls,
        request: GenerationRequest,
        include_patterns: Iterable[str],
        is_tty: bool | None = None,
    ) -> "WatchState":
        markers = {GENERATED_DIRECTORY}
        if request.output_path:
            markers.add(request.output_path)
        return cls(
            include_patterns=frozenset(include_patterns),
            exclude_markers=frozenset(markers),
            is_tty=stdin_is_tty() if is_tty is None else is_tty,
        )

    def should_trigger(self, path: str) -> bool:
        """False if the path contains any exclude marker."""
        return not any(marker in path for marker in self.exclude_markers)


class Subscription(Protocol):
    """An async source of ``(event_kind, path)`` pairs that can be closed."""

    def __aiter__(self) -> AsyncIterator[tuple[str, str]]:
        ...

    def close(self) -> None:
        ...


class FileSubscription:
    """File-system change events for a glob set, backed by watchfiles."""

    def __init__(self, globs: GlobSet, debounce_ms: int = 200):
        self.globs = globs
        self.debounce_ms = debounce_ms
        self._stop = threading.Event()

    def _accepts(self, _change, path: str) -> bool:
        return self.globs.matches(path)

    async def __aiter__(self):
        roots = [str(root) for root in self.globs.watch_roots()]
        logger.debug("Watching directories: %s", ", ".join(roots))
        async for changes in awatch(
            *roots,
            watch_filter=self._accepts,
            stop_event=self._stop,
            debounce=self.debounce_ms,
        ):
            for change, path in sorted(changes, key=lambda c: c[1]):
                yield change.name.lower(), path

    def close(self):
        self._stop.set()


class Pipeline(Protocol):
    """The repeatable generation action the controller drives."""

    project: object

    def run(self) -> int:
        ...


class ExitStrategy(Protocol):
    async def run(self, controller: "WatchController") -> None:
        ...


def _read_one_key():
    try:
        click.getchar()
    except (KeyboardInterrupt, EOFError):
        # Ctrl+C / Ctrl+D count as a key press
        pass


class InteractiveExit:
    """Stop watching and exit with status 0 on the first key press."""

    def __init__(
        self,
        read_key: Callable[[], object] | None = None,
        exit_process: Callable[[int], object] = sys.exit,
    ):
        self._read_key = read_key or _read_one_key
        self._exit = exit_process

    async def run(self, controller: "WatchController"):
        click.echo("Press any key to stop.")
        await asyncio.to_thread(self._read_key)
        controller.phase = WatchPhase.AWAITING_EXIT
        await controller.shutdown()
        self._exit(0)


class RunUntilKilled:
    """Keep watching until the process is terminated from outside."""

    async def run(self, controller: "WatchController"):
        await controller.wait()


def select_exit_strategy(state: WatchState) -> ExitStrategy:
    return InteractiveExit() if state.is_tty else RunUntilKilled()


class WatchController:
    """Runs the pipeline once, then again for every relevant file change.

    At most one regeneration runs at a time. Changes that arrive while one is
    in flight are coalesced into a single follow-up pass.
    """

    def __init__(
        self,
        pipeline: Pipeline,
        state: WatchState,
        subscribe: Callable[[WatchState], Subscription],
        strategy: ExitStrategy | None = None,
    ):
        self.pipeline = pipeline
        self.state = state
        self.phase = WatchPhase.IDLE
        self._subscribe = subscribe
        self._strategy = strategy or select_exit_strategy(state)
        self._subscription: Subscription | None = None
        self._pump: asyncio.Task | None = None
        self._regeneration: asyncio.Task | None = None
        self._changed: list[str] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self):
        """Watch until the exit strategy finishes; always releases the subscription."""
        try:
            await self.start()
            await self._strategy.run(self)
        finally:
            await self.shutdown()

    async def start(self):
        """Run the initial generation, then open the subscription."""
        self.phase = WatchPhase.GENERATING
        try:
            await asyncio.to_thread(self.pipeline.run)
        except ConfigurationError:
            raise
        except CodegenError as e:
            logger.error("Initial generation failed, watching anyway: %s", e)
        self.phase = WatchPhase.IDLE

        self._subscription = self._subscribe(self.state)
        self._pump = asyncio.create_task(self._consume())
        logger.info("Watching for changes in %s", ", ".join(sorted(self.state.include_patterns)))

    async def _consume(self):
        try:
            async for event_kind, path in self._subscription:
                self.handle_change(event_kind, path)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Watching for changes failed, no further changes will be picked up")
            raise

    def handle_change(self, event_kind: str, path: str) -> bool:
        """Filter a change event and schedule a regeneration.

        Returns:
            True if the event will cause a regeneration
        """
        if self._closed:
            return False
        if not self.state.should_trigger(path):
            logger.debug("Ignoring %s event for generated path %s", event_kind, path)
            return False

        if path not in self._changed:
            self._changed.append(path)
        if self._regeneration is None or self._regeneration.done():
            self._regeneration = asyncio.create_task(self._regenerate())
        else:
            logger.debug("Generation in progress, queued %s", path)
        return True

    async def _regenerate(self):
        while self._changed and not self._closed:
            changed, self._changed = self._changed, []
            logger.info("Change detected, generating types...")
            self.phase = WatchPhase.GENERATING
            try:
                for path in changed:
                    self.pipeline.project.file_did_change(Path(path).resolve().as_uri())
                await asyncio.to_thread(self.pipeline.run)
            except CodegenError as e:
                logger.error("Generation failed: %s", e)
            except Exception:
                logger.exception("Unexpected failure while regenerating")
            finally:
                if not self._closed:
                    self.phase = WatchPhase.IDLE

    async def wait_idle(self):
        """Wait until no regeneration is in flight."""
        while self._regeneration is not None and not self._regeneration.done():
            await asyncio.gather(self._regeneration, return_exceptions=True)

    async def wait(self):
        """Wait for the event source to end; for file watches this is never."""
        if self._pump is not None:
            await self._pump

    async def shutdown(self):
        """Close the subscription exactly once and drop pending changes."""
        if self._closed:
            return
        self._closed = True
        self._changed.clear()
        if self._subscription is not None:
            self._subscription.close()
        if self._pump is not None:
            if not self._pump.done():
                self._pump.cancel()
            await asyncio.gather(self._pump, return_exceptions=True)
        self.phase = WatchPhase.CLOSED
        logger.debug("Stopped watching")
