"""Client project state: discovered documents, operations and fragments.

Documents come from ``.graphql``/``.gql`` files and from tagged template
literals (``gql`...```) embedded in JavaScript and TypeScript sources.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    GraphQLError,
    GraphQLSchema,
    KnownDirectivesRule,
    NoUnusedFragmentsRule,
    OperationDefinitionNode,
    Source,
    parse,
    specified_rules,
    validate,
)

from ..logging import get_logger
from .config import ClientConfig
from .errors import ValidationError
from .globs import GlobSet
from .schema import SchemaResolver

logger = get_logger("project")

SCRIPT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")

_INTERPOLATION = re.compile(r"\$\{[^}]*\}")

# Fragments may be defined for other files; client-only directives are allowed
VALIDATION_RULES = tuple(
    rule for rule in specified_rules if rule not in (NoUnusedFragmentsRule, KnownDirectivesRule)
)


def extract_tagged_templates(text: str, tag_name: str = "gql") -> list[str]:
    """Return the bodies of every ``tag_name`...``` template in a script.

    Interpolations such as ``${UserFragment}`` are removed, so fragment
    definitions are expected to live in the project's own documents.
    """
    pattern = re.compile(r"(?<![\w$.])" + re.escape(tag_name) + r"\s*`((?:\\.|[^`\\])*)`", re.S)
    return [_INTERPOLATION.sub("", match.group(1)) for match in pattern.finditer(text)]


def uri_to_path(uri: str) -> Path:
    """Convert a ``file://`` URI (or a plain path) to a Path."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return Path(uri)
    return Path(url2pathname(parsed.path))


@dataclass
class ProjectDocument:
    """One source file and the GraphQL documents parsed from it."""
    path: Path
    documents: list[DocumentNode] = field(default_factory=list)
    errors: list[GraphQLError] = field(default_factory=list)

    @property
    def definitions(self):
        for document in self.documents:
            yield from document.definitions


class ClientProject:
    """In-memory view of the client documents in a project."""

    def __init__(
        self,
        config: ClientConfig,
        resolver: SchemaResolver,
        root: str | Path = ".",
    ):
        self.config = config
        self.resolver = resolver
        self.globs = GlobSet(config.includes, config.excludes, root)
        self.root = self.globs.root
        self.schema: GraphQLSchema | None = None
        self._documents: dict[Path, ProjectDocument] = {}
        self._loaded = False

    def load(self):
        """Discover and parse every included file."""
        self._documents = {}
        for path in self.globs.files():
            self._documents[path.resolve()] = self._parse_file(path.resolve())
        self._loaded = True
        logger.debug("Loaded %d client documents from %s", len(self._documents), self.root)

    def _ensure_loaded(self):
        if not self._loaded:
            self.load()

    def _parse_file(self, path: Path) -> ProjectDocument:
        doc = ProjectDocument(path=path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            doc.errors.append(GraphQLError(f"Could not read {path}: {e}"))
            return doc

        if path.suffix in SCRIPT_EXTENSIONS:
            bodies = extract_tagged_templates(text, self.config.tag_name)
        else:
            bodies = [text]

        for body in bodies:
            if not body.strip():
                continue
            try:
                doc.documents.append(parse(Source(body, str(path))))
            except GraphQLError as e:
                doc.errors.append(e)
        return doc

    @property
    def documents(self) -> list[ProjectDocument]:
        self._ensure_loaded()
        return list(self._documents.values())

    @property
    def operations(self) -> dict[str, OperationDefinitionNode]:
        """Named operations, in file order then document order."""
        result: dict[str, OperationDefinitionNode] = {}
        for doc in self.documents:
            for definition in doc.definitions:
                if isinstance(definition, OperationDefinitionNode) and definition.name:
                    result.setdefault(definition.name.value, definition)
        return result

    @property
    def fragments(self) -> dict[str, FragmentDefinitionNode]:
        """Fragments, in file order then document order."""
        result: dict[str, FragmentDefinitionNode] = {}
        for doc in self.documents:
            for definition in doc.definitions:
                if isinstance(definition, FragmentDefinitionNode):
                    result.setdefault(definition.name.value, definition)
        return result

    def resolve_schema(self, tag: str | None = None) -> GraphQLSchema:
        """Resolve the schema and keep it for validation."""
        self.schema = self.resolver.resolve(tag)
        return self.schema

    def validate(self):
        """Check every document, raising ValidationError if any is invalid."""
        errors: list[GraphQLError] = []
        seen_operations: set[str] = set()
        seen_fragments: set[str] = set()

        for doc in self.documents:
            errors.extend(doc.errors)
            for definition in doc.definitions:
                if isinstance(definition, OperationDefinitionNode):
                    if not definition.name:
                        errors.append(GraphQLError(
                            f"Anonymous operations are not supported ({doc.path})",
                            definition,
                        ))
                        continue
                    name = definition.name.value
                    if name in seen_operations:
                        errors.append(GraphQLError(
                            f"There are multiple definitions for the '{name}' operation", definition
                        ))
                    seen_operations.add(name)
                elif isinstance(definition, FragmentDefinitionNode):
                    name = definition.name.value
                    if name in seen_fragments:
                        errors.append(GraphQLError(
                            f"There are multiple definitions for the '{name}' fragment", definition
                        ))
                    seen_fragments.add(name)

        if self.schema is not None and not errors:
            combined = DocumentNode(
                definitions=tuple(self.operations.values()) + tuple(self.fragments.values())
            )
            errors.extend(validate(self.schema, combined, VALIDATION_RULES))

        if errors:
            raise ValidationError("Validation of GraphQL query document failed", errors)

    def file_did_change(self, uri: str):
        """Invalidate cached parse state for a changed, added or removed file."""
        self._ensure_loaded()
        path = uri_to_path(uri).resolve()
        if path.is_file() and self.globs.matches(path):
            self._documents[path] = self._parse_file(path)
            # Keep documents in a stable, path-sorted order
            self._documents = dict(sorted(self._documents.items(), key=lambda item: str(item[0])))
            logger.debug("Reparsed %s", path)
        elif self._documents.pop(path, None) is not None:
            logger.debug("Dropped %s", path)
