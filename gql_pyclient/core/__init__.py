"""Core modules for building, sending and decoding GraphQL operations."""

from .class_registry import ClassRegistry, ModelLookup
from .client import Client, GraphQLResponse
from .decoder import Decoder, decode
from .errors import (
    AmbiguousOperationError,
    DuplicateFieldError,
    GraphQLClientError,
    GraphQLError,
    SchemaError,
    UndeclaredVariableError,
    UsageError,
)
from .executor import Fetcher, HttpFetcher
from .loader import DocumentLoader, load_document
from .model import GraphModel, ModelMeta, PageInfo
from .operation import Document, Mutation, Operation, Query
from .parser import SchemaParser, parse_schema
from .schema import (
    FieldDescriptor,
    TypeBundle,
    TypeDescriptor,
    TypeKind,
    TypeRef,
)
from .selection_set import (
    ConnectionField,
    Field,
    FragmentDefinition,
    FragmentSpread,
    InlineFragment,
    SelectionSet,
)
from .tracker import (
    DEFAULT_TRACKER,
    NullTracker,
    Tracker,
    TypeTracker,
    pause_tracking,
    print_types,
    reset_tracker,
    start_tracking,
    tracked_types,
)
from .values import (
    Directive,
    EnumValue,
    VariableDefinition,
    enum_value,
    in_context,
    variable,
)

__all__ = [
    # Type bundle
    "FieldDescriptor",
    "TypeBundle",
    "TypeDescriptor",
    "TypeKind",
    "TypeRef",
    # Parsing
    "SchemaParser",
    "parse_schema",
    "DocumentLoader",
    "load_document",
    # Builders
    "ConnectionField",
    "Field",
    "FragmentDefinition",
    "FragmentSpread",
    "InlineFragment",
    "SelectionSet",
    "Document",
    "Mutation",
    "Operation",
    "Query",
    # Values
    "Directive",
    "EnumValue",
    "VariableDefinition",
    "enum_value",
    "in_context",
    "variable",
    # Tracking
    "DEFAULT_TRACKER",
    "NullTracker",
    "Tracker",
    "TypeTracker",
    "pause_tracking",
    "print_types",
    "reset_tracker",
    "start_tracking",
    "tracked_types",
    # Decoding
    "ClassRegistry",
    "Decoder",
    "GraphModel",
    "ModelLookup",
    "ModelMeta",
    "PageInfo",
    "decode",
    # Client
    "Client",
    "Fetcher",
    "GraphQLResponse",
    "HttpFetcher",
    # Errors
    "AmbiguousOperationError",
    "DuplicateFieldError",
    "GraphQLClientError",
    "GraphQLError",
    "SchemaError",
    "UndeclaredVariableError",
    "UsageError",
]
