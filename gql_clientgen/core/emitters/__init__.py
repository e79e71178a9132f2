"""Target emitters and the registry the generation backend looks them up in.

Swift and Scala have no built-in emitter; install one with register_emitter:

    from gql_clientgen.core.emitters import register_emitter
    from gql_clientgen.core.request import Target

    register_emitter(Target.SWIFT, MySwiftEmitter())
"""

from ..request import Target
from .base import EmitContext, Emitter, GeneratedFile
from .json_ir import JSONEmitter
from .typescript import TypeScriptEmitter

_EMITTERS: dict[Target, Emitter] = {}


def register_emitter(target: Target | str, emitter: Emitter):
    """Register (or replace) the emitter for a target."""
    _EMITTERS[Target(target)] = emitter


def unregister_emitter(target: Target | str):
    """Remove the emitter for a target, if any."""
    _EMITTERS.pop(Target(target), None)


def get_emitter(target: Target | str) -> Emitter | None:
    """Return the emitter for a target, or None if none is installed."""
    return _EMITTERS.get(Target(target))


def _register_defaults():
    register_emitter(Target.JSON, JSONEmitter())
    register_emitter(Target.TYPESCRIPT, TypeScriptEmitter("typescript"))
    register_emitter(Target.FLOW, TypeScriptEmitter("flow"))


_register_defaults()

__all__ = [
    "EmitContext",
    "Emitter",
    "GeneratedFile",
    "JSONEmitter",
    "TypeScriptEmitter",
    "get_emitter",
    "register_emitter",
    "unregister_emitter",
]
