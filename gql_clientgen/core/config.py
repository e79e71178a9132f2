"""Project configuration: pydantic models and YAML loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError

CONFIG_FILENAME = "gql-clientgen.yaml"

DEFAULT_INCLUDES = ["src/**/*.{ts,tsx,js,jsx,graphql,gql}"]
DEFAULT_EXCLUDES = ["**/node_modules", "**/__tests__"]


class SchemaConfig(BaseModel):
    local_schema_files: list[str] = []
    endpoint: str | None = None
    headers: dict[str, str] = {}
    timeout: float = 30.0


class ClientConfig(BaseModel):
    includes: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDES))
    excludes: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    tag_name: str = "gql"
    schema_source: SchemaConfig = Field(default_factory=SchemaConfig, alias="schema")

    model_config = {"populate_by_name": True}


class CodegenConfig(BaseModel):
    client: ClientConfig = Field(default_factory=ClientConfig)
    log_level: str = "info"


def load_config(cli_path: str | None = None) -> CodegenConfig:
    """Load config with resolution order: CLI > project-local > defaults."""
    if cli_path and not Path(cli_path).exists():
        raise ConfigurationError(f"Config file not found: {cli_path}")

    config_paths = [
        Path(cli_path) if cli_path else None,
        Path(".") / CONFIG_FILENAME,
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return CodegenConfig(**raw)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
            except PydanticValidationError as e:
                raise ConfigurationError(f"Invalid config in {path}: {e}") from e
            except TypeError as e:
                raise ConfigurationError(f"Invalid config in {path}: expected a mapping") from e

    return CodegenConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


DEFAULT_CONFIG_TEMPLATE = """\
# gql-clientgen.yaml

client:
  includes:
    - "src/**/*.{ts,tsx,js,jsx,graphql,gql}"
  excludes:
    - "**/node_modules"
    - "**/__tests__"
  tag_name: "gql"
  schema:
    # Either local files (SDL or introspection JSON) ...
    local_schema_files:
      - "schema.graphql"
    # ... or a live endpoint queried with introspection
    # endpoint: "https://example.com/graphql"
    # headers:
    #   Authorization: "Bearer ${GRAPHQL_TOKEN}"
    timeout: 30

log_level: "info"              # debug | info
"""
