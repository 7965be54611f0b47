"""Type bundle describing the schema queries are built and decoded against.

A type bundle is plain data: one ``TypeDescriptor`` per schema type, tagged
with its kind. Builders and decoders branch on the kind instead of relying on
per-type classes, and every descriptor is shared by reference between them.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from graphql import (
    GraphQLSyntaxError,
    ListTypeNode,
    NamedTypeNode,
    NonNullTypeNode,
    TypeNode,
    parse_type,
)

from .errors import SchemaError

BUILTIN_SCALARS = ("Boolean", "Float", "ID", "Int", "String")


class TypeKind(Enum):
    """Kinds of schema types."""
    OBJECT = "OBJECT"
    INTERFACE = "INTERFACE"
    UNION = "UNION"
    ENUM = "ENUM"
    SCALAR = "SCALAR"
    INPUT_OBJECT = "INPUT_OBJECT"


@dataclass(frozen=True)
class TypeRef:
    """A possibly wrapped reference to a named type, e.g. ``[Product!]!``."""
    kind: str  # 'NAMED', 'LIST' or 'NON_NULL'
    name: str | None = None
    of_type: "TypeRef | None" = None

    @classmethod
    def parse(cls, type_string: str) -> "TypeRef":
        """Parse GraphQL type notation into a TypeRef."""
        try:
            node = parse_type(type_string)
        except GraphQLSyntaxError as e:
            raise SchemaError(f"Invalid type reference '{type_string}': {e.message}") from e
        return cls.from_node(node)

    @classmethod
    def from_node(cls, node: TypeNode) -> "TypeRef":
        """Build a TypeRef from a graphql-core type node."""
        if isinstance(node, NonNullTypeNode):
            return cls("NON_NULL", of_type=cls.from_node(node.type))
        if isinstance(node, ListTypeNode):
            return cls("LIST", of_type=cls.from_node(node.type))
        if not isinstance(node, NamedTypeNode):
            raise SchemaError(f"Unsupported type node: {type(node).__name__}")
        return cls("NAMED", name=node.name.value)

    @property
    def named_type(self) -> str:
        """Name of the type once list and non-null wrappers are removed."""
        ref = self
        while ref.of_type is not None:
            ref = ref.of_type
        return ref.name

    @property
    def is_non_null(self) -> bool:
        return self.kind == "NON_NULL"

    @property
    def is_list(self) -> bool:
        ref = self.of_type if self.is_non_null else self
        return ref.kind == "LIST"

    def __str__(self) -> str:
        if self.kind == "NON_NULL":
            return f"{self.of_type}!"
        if self.kind == "LIST":
            return f"[{self.of_type}]"
        return self.name


@dataclass(frozen=True)
class FieldDescriptor:
    """A field on an object or interface type."""
    name: str
    type: TypeRef
    arguments: Mapping[str, TypeRef] = field(default_factory=dict)


TYPENAME_FIELD = FieldDescriptor(name="__typename", type=TypeRef.parse("String!"))


@dataclass(frozen=True)
class TypeDescriptor:
    """A named schema type.

    ``possible_types`` and ``interfaces`` hold type names; resolve them
    through the owning ``TypeBundle``.
    """
    name: str
    kind: TypeKind
    fields: Mapping[str, FieldDescriptor] = field(default_factory=dict)
    possible_types: tuple[str, ...] = ()
    interfaces: tuple[str, ...] = ()
    implements_node: bool = False

    @property
    def is_composite(self) -> bool:
        """True for types that take a sub-selection."""
        return self.kind in (TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.UNION)

    @property
    def is_abstract(self) -> bool:
        return self.kind in (TypeKind.INTERFACE, TypeKind.UNION)

    @property
    def is_leaf(self) -> bool:
        return self.kind in (TypeKind.SCALAR, TypeKind.ENUM)

    def field(self, name: str) -> FieldDescriptor | None:
        """Look up a field by name, including the ``__typename`` meta field."""
        if name == TYPENAME_FIELD.name and self.is_composite:
            return TYPENAME_FIELD
        return self.fields.get(name)


class TypeBundle:
    """Immutable collection of type descriptors plus the operation root types."""

    def __init__(
        self,
        types: Iterable[TypeDescriptor],
        query_type: str = "Query",
        mutation_type: str | None = None,
    ):
        registry = {name: TypeDescriptor(name=name, kind=TypeKind.SCALAR) for name in BUILTIN_SCALARS}
        for type_def in types:
            registry[type_def.name] = type_def
        self._types = MappingProxyType(registry)
        self.query_type = query_type
        self.mutation_type = mutation_type

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    @property
    def types(self) -> Mapping[str, TypeDescriptor]:
        return self._types

    def lookup(self, name: str) -> TypeDescriptor | None:
        """Return the descriptor for ``name``, or None if it is not in the bundle."""
        return self._types.get(name)

    def get(self, name: str) -> TypeDescriptor:
        """Return the descriptor for ``name``, raising SchemaError if unknown."""
        type_def = self._types.get(name)
        if type_def is None:
            raise SchemaError(f"No type of name '{name}' exists in the type bundle.")
        return type_def

    def root_type(self, operation_type: str) -> TypeDescriptor:
        """Return the root type for 'query' or 'mutation'."""
        name = self.query_type if operation_type == "query" else self.mutation_type
        if name is None:
            raise SchemaError(f"The type bundle does not define a {operation_type} root type.")
        return self.get(name)

    def possible_type_names(self, name: str) -> set[str]:
        """Concrete type names a value of type ``name`` may have."""
        type_def = self.get(name)
        if type_def.is_abstract:
            return set(type_def.possible_types)
        return {type_def.name}

    def can_spread(self, type_condition: str, scope: str) -> bool:
        """Whether a fragment on ``type_condition`` may appear in a ``scope`` selection set."""
        return bool(self.possible_type_names(type_condition) & self.possible_type_names(scope))

    def applies_to(self, type_condition: str, concrete_type: str) -> bool:
        """Whether a fragment on ``type_condition`` applies to an object of ``concrete_type``."""
        return concrete_type in self.possible_type_names(type_condition)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TypeBundle":
        """Load a bundle from its JSON form (see ``to_dict``)."""
        types = []
        for name, type_spec in data.get("types", {}).items():
            fields = {
                field_name: FieldDescriptor(
                    name=field_name,
                    type=TypeRef.parse(field_spec["type"]),
                    arguments={
                        arg_name: TypeRef.parse(arg_type)
                        for arg_name, arg_type in field_spec.get("args", {}).items()
                    },
                )
                for field_name, field_spec in type_spec.get("fields", {}).items()
            }
            types.append(
                TypeDescriptor(
                    name=name,
                    kind=TypeKind(type_spec["kind"]),
                    fields=fields,
                    possible_types=tuple(type_spec.get("possibleTypes", ())),
                    interfaces=tuple(type_spec.get("interfaces", ())),
                    implements_node=type_spec.get("implementsNode", False),
                )
            )
        return cls(
            types,
            query_type=data.get("queryType", "Query"),
            mutation_type=data.get("mutationType"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-friendly form of the bundle."""
        types = {}
        for name, type_def in self._types.items():
            type_spec: dict[str, Any] = {"kind": type_def.kind.value}
            if type_def.fields:
                type_spec["fields"] = {
                    field_name: {
                        "type": str(field_def.type),
                        "args": {arg: str(ref) for arg, ref in field_def.arguments.items()},
                    }
                    for field_name, field_def in type_def.fields.items()
                }
            if type_def.possible_types:
                type_spec["possibleTypes"] = list(type_def.possible_types)
            if type_def.interfaces:
                type_spec["interfaces"] = list(type_def.interfaces)
            if type_def.implements_node:
                type_spec["implementsNode"] = True
            types[name] = type_spec
        return {
            "queryType": self.query_type,
            "mutationType": self.mutation_type,
            "types": types,
        }
