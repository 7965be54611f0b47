"""Exceptions raised while building, sending and decoding GraphQL operations."""

from typing import Any


class GraphQLClientError(Exception):
    """Base class for all errors raised by gql-pyclient."""


class SchemaError(GraphQLClientError):
    """A query description does not match the type bundle.

    Raised synchronously while a selection set or operation is being built,
    never after a request has been sent.
    """


class DuplicateFieldError(SchemaError):
    """Two selections in one selection set share a response key."""


class UndeclaredVariableError(SchemaError):
    """An argument references a variable the operation does not declare."""


class UsageError(GraphQLClientError, ValueError):
    """The client was called in a way it does not support."""


class AmbiguousOperationError(SchemaError, UsageError):
    """A multi-operation document was sent without naming the operation."""


class GraphQLError(GraphQLClientError):
    """Exception raised for GraphQL errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]]):
        self.message = message
        self.errors = errors
        super().__init__(message)
