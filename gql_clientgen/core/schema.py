"""Schema resolution from local files or a live GraphQL endpoint.

Local files may be SDL (``.graphql``, ``.graphqls``, ``.gql``) or an
introspection result (``.json``). Endpoints are queried with the standard
introspection query.
"""

import json
import os
from typing import Any, Protocol, runtime_checkable

import httpx
from graphql import GraphQLError, GraphQLSchema, build_client_schema, build_schema, get_introspection_query

from ..logging import get_logger
from .config import SchemaConfig
from .errors import ConfigurationError, SchemaLoadError

logger = get_logger("schema")

SDL_EXTENSIONS = (".graphql", ".graphqls", ".gql")


@runtime_checkable
class SchemaResolver(Protocol):
    """Protocol for schema resolvers.

    Example:
        class StaticResolver:
            def __init__(self, schema):
                self.schema = schema

            def resolve(self, tag=None):
                return self.schema
    """

    def resolve(self, tag: str | None = None) -> GraphQLSchema:
        """Return the resolved schema.

        Args:
            tag: Optional schema tag, meaningful only to registry-backed resolvers

        Raises:
            SchemaLoadError: If the schema could not be loaded
        """
        ...


def _introspection_to_schema(data: Any, source: str) -> GraphQLSchema:
    if isinstance(data, dict) and "data" in data:
        data = data["data"]
    if not isinstance(data, dict) or "__schema" not in data:
        raise SchemaLoadError(f"{source} does not contain an introspection result")
    try:
        return build_client_schema(data)
    except (TypeError, ValueError, GraphQLError) as e:
        raise SchemaLoadError(f"Invalid introspection result in {source}: {e}") from e


class LocalSchemaResolver:
    """Builds a schema from one or more local files or directories."""

    def __init__(self, paths: list[str]):
        if not paths:
            raise ConfigurationError("At least one local schema file is required")
        self.paths = list(paths)

    def _collect_schema_files(self) -> list[str]:
        """Collect schema files, walking directories for SDL files."""
        files = []
        for path in self.paths:
            if os.path.isfile(path):
                files.append(path)
            elif os.path.isdir(path):
                found = []
                for root, _, filenames in os.walk(path):
                    for filename in filenames:
                        if filename.endswith(SDL_EXTENSIONS):
                            found.append(os.path.join(root, filename))
                files.extend(sorted(found))
            else:
                raise SchemaLoadError(f"Schema file not found: {path}")
        return files

    def resolve(self, tag: str | None = None) -> GraphQLSchema:
        if tag:
            logger.debug("Ignoring schema tag %r for local schema files", tag)
        files = self._collect_schema_files()

        json_files = [f for f in files if f.endswith(".json")]
        if json_files:
            if len(files) > 1:
                raise SchemaLoadError(
                    "An introspection result cannot be combined with other schema files"
                )
            try:
                with open(json_files[0]) as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise SchemaLoadError(f"Could not read {json_files[0]}: {e}") from e
            return _introspection_to_schema(data, json_files[0])

        if not files:
            raise SchemaLoadError(f"No schema files found in {', '.join(self.paths)}")

        sources = []
        for file_path in files:
            try:
                with open(file_path) as f:
                    sources.append(f.read())
            except OSError as e:
                raise SchemaLoadError(f"Could not read {file_path}: {e}") from e

        try:
            return build_schema("\n".join(sources))
        except (GraphQLError, TypeError) as e:
            raise SchemaLoadError(f"Error loading schema: {e}") from e


class EndpointSchemaResolver:
    """Fetches a schema from a GraphQL endpoint via introspection."""

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        *,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        """Initialize the resolver.

        Args:
            url: GraphQL endpoint URL
            headers: Extra request headers (e.g. authorization)
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client, mostly for testing
        """
        self.url = url
        self.headers = dict(headers or {})
        self.timeout = timeout
        self._client = client

    def resolve(self, tag: str | None = None) -> GraphQLSchema:
        if tag:
            logger.debug("Ignoring schema tag %r for endpoint %s", tag, self.url)

        headers = {"Content-Type": "application/json"}
        headers.update(self.headers)
        payload = {"query": get_introspection_query(descriptions=True)}

        try:
            if self._client is not None:
                response = self._client.post(self.url, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            raise SchemaLoadError(f"Could not fetch schema from {self.url}: {e}") from e
        except ValueError as e:
            raise SchemaLoadError(f"Endpoint {self.url} did not return JSON: {e}") from e

        if isinstance(result, dict) and result.get("errors"):
            messages = "; ".join(e.get("message", str(e)) for e in result["errors"])
            raise SchemaLoadError(f"Introspection failed for {self.url}: {messages}")

        return _introspection_to_schema(result, self.url)


def resolver_from_config(config: SchemaConfig) -> SchemaResolver:
    """Pick a resolver for the configured schema source."""
    if config.local_schema_files:
        return LocalSchemaResolver(config.local_schema_files)
    if config.endpoint:
        return EndpointSchemaResolver(config.endpoint, config.headers, timeout=config.timeout)
    raise ConfigurationError(
        "No schema source configured: pass --localSchemaFile or --endpoint, "
        "or set client.schema in the config file"
    )
