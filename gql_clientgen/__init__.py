"""Generate typed client code from GraphQL documents."""

__version__ = "0.1.0"
