"""Shared fixtures: a small schema and helpers for building client projects."""

import logging
from pathlib import Path

import pytest
from graphql import DocumentNode, Source, build_schema, parse

from gql_clientgen.core.config import ClientConfig, SchemaConfig
from gql_clientgen.core.project import ClientProject
from gql_clientgen.core.schema import LocalSchemaResolver

SCHEMA_SDL = '''
"""A custom date-time scalar."""
scalar DateTime

type Query {
  hero(episode: Episode): Character
  user(id: ID!): User
  search(filter: SearchFilter!): [SearchResult!]!
}

type Mutation {
  addReview(episode: Episode!, stars: Int!): Review
}

enum Episode {
  NEWHOPE
  EMPIRE
  JEDI @deprecated(reason: "Use EMPIRE")
}

interface Character {
  id: ID!
  name: String!
}

type Human implements Character {
  id: ID!
  name: String!
  height: Float
}

type Droid implements Character {
  id: ID!
  name: String!
  primaryFunction: String
}

"""A registered user."""
type User {
  id: ID!
  "Display name"
  name: String
  createdAt: DateTime
  friends: [User!]
}

type Review {
  stars: Int!
  commentary: String
}

input SearchFilter {
  text: String!
  episode: Episode
}

union SearchResult = Human | Droid
'''

HERO_QUERY = """
query HeroName($episode: Episode) {
  hero(episode: $episode) {
    name
  }
}
"""

USER_QUERY = """
query UserProfile($id: ID!) {
  user(id: $id) {
    ...UserFields
  }
}

fragment UserFields on User {
  id
  name
  createdAt
}
"""


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI installs so later tests do not log to closed streams."""
    yield
    logger = logging.getLogger("gql_clientgen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def schema():
    return build_schema(SCHEMA_SDL)


@pytest.fixture
def schema_file(tmp_path) -> Path:
    path = tmp_path / "schema.graphql"
    path.write_text(SCHEMA_SDL)
    return path


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def parse_file(path: Path, content: str):
    """Parse a document as if it was read from path."""
    return parse(Source(content, str(path)))


def combined(*documents) -> DocumentNode:
    """Operations first, then fragments, as the assembler orders them."""
    definitions = [d for doc in documents for d in doc.definitions]
    operations = [d for d in definitions if d.kind == "operation_definition"]
    fragments = [d for d in definitions if d.kind == "fragment_definition"]
    return DocumentNode(definitions=tuple(operations + fragments))


def make_project(root: Path, schema_file: Path, **config) -> ClientProject:
    client = ClientConfig(schema=SchemaConfig(local_schema_files=[str(schema_file)]), **config)
    return ClientProject(client, LocalSchemaResolver([str(schema_file)]), root=root)
