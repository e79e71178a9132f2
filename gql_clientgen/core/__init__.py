"""Core modules for GraphQL client code generation."""

from .config import ClientConfig, CodegenConfig, SchemaConfig, load_config
from .dispatcher import dispatch
from .document import assemble_document
from .emitters import get_emitter, register_emitter, unregister_emitter
from .errors import (
    CodegenError,
    ConfigurationError,
    GenerationError,
    NoDefinitionsError,
    SchemaLoadError,
    ValidationError,
)
from .generate import generate
from .ir import IRDefinition, IREnum, IREnumValue, IRField, IRGlobalTypes, IRObject
from .project import ClientProject
from .request import CodegenFlags, GenerationRequest, OptionSet, Target, validate_request
from .runner import CodegenPipeline, run_codegen
from .scalars import ScalarRegistry
from .schema import EndpointSchemaResolver, LocalSchemaResolver, SchemaResolver, resolver_from_config
from .watch import InteractiveExit, RunUntilKilled, WatchController, WatchPhase, WatchState

__all__ = [
    # Errors
    "CodegenError",
    "ConfigurationError",
    "GenerationError",
    "NoDefinitionsError",
    "SchemaLoadError",
    "ValidationError",
    # Requests
    "CodegenFlags",
    "GenerationRequest",
    "OptionSet",
    "Target",
    "validate_request",
    # Config
    "ClientConfig",
    "CodegenConfig",
    "SchemaConfig",
    "load_config",
    # Schema
    "EndpointSchemaResolver",
    "LocalSchemaResolver",
    "SchemaResolver",
    "resolver_from_config",
    # Project and pipeline
    "ClientProject",
    "CodegenPipeline",
    "assemble_document",
    "dispatch",
    "run_codegen",
    # Backend
    "generate",
    "get_emitter",
    "register_emitter",
    "unregister_emitter",
    "ScalarRegistry",
    # IR types
    "IRDefinition",
    "IREnum",
    "IREnumValue",
    "IRField",
    "IRGlobalTypes",
    "IRObject",
    # Watch mode
    "InteractiveExit",
    "RunUntilKilled",
    "WatchController",
    "WatchPhase",
    "WatchState",
]
