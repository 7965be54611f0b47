"""GraphQL schema parser using graphql-core.

Parses SDL files and produces a TypeBundle.
"""

import logging
import os

from graphql import (
    DocumentNode,
    EnumTypeDefinitionNode,
    InputObjectTypeDefinitionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    SchemaDefinitionNode,
    UnionTypeDefinitionNode,
    parse,
)

from .schema import FieldDescriptor, TypeBundle, TypeDescriptor, TypeKind, TypeRef

logger = logging.getLogger(__name__)

SCHEMA_EXTENSIONS = (".graphqls", ".graphql")


class SchemaParser:
    """Parses GraphQL schema files into a TypeBundle."""

    def __init__(self, schema_path: str | None = None):
        """Initialize a parser with a path to a schema file or directory."""
        self.schema_path = schema_path
        self.current_file = ""
        self._kinds: dict[str, TypeKind] = {}
        self._fields: dict[str, dict[str, FieldDescriptor]] = {}
        self._interfaces: dict[str, list[str]] = {}
        self._members: dict[str, list[str]] = {}
        self._roots: dict[str, str] = {}

    def parse_all(self) -> TypeBundle:
        """Parse all schema files and return the complete bundle."""
        for file_path in self._collect_schema_files():
            self.current_file = os.path.basename(file_path)
            with open(file_path) as f:
                self.parse_source(f.read())
        return self.build()

    def parse_source(self, source: str) -> "SchemaParser":
        """Parse one chunk of SDL into the pending definitions."""
        try:
            ast = parse(source)
        except Exception as e:
            logger.error("Error parsing %s: %s", self.current_file or "<string>", e)
            raise
        self._process_ast(ast)
        return self

    def build(self) -> TypeBundle:
        """Resolve possible types and Node capability, then freeze the bundle."""
        implementors: dict[str, list[str]] = {}
        for name, interfaces in self._interfaces.items():
            if self._kinds[name] != TypeKind.OBJECT:
                continue
            for interface in interfaces:
                implementors.setdefault(interface, []).append(name)

        types = []
        for name, kind in self._kinds.items():
            interfaces = tuple(self._interfaces.get(name, ()))
            if kind == TypeKind.INTERFACE:
                possible_types = tuple(implementors.get(name, ()))
            elif kind == TypeKind.UNION:
                possible_types = tuple(self._members.get(name, ()))
            else:
                possible_types = ()
            types.append(
                TypeDescriptor(
                    name=name,
                    kind=kind,
                    fields=dict(self._fields.get(name, {})),
                    possible_types=possible_types,
                    interfaces=interfaces,
                    implements_node="Node" in interfaces,
                )
            )

        query_type = self._roots.get("query")
        if query_type is None:
            query_type = "Query" if "Query" in self._kinds or "QueryRoot" not in self._kinds else "QueryRoot"
        mutation_type = self._roots.get("mutation")
        if mutation_type is None and "Mutation" in self._kinds:
            mutation_type = "Mutation"
        return TypeBundle(types, query_type=query_type, mutation_type=mutation_type)

    def _collect_schema_files(self) -> list[str]:
        """Collect all schema files from path."""
        files = []
        if os.path.isfile(self.schema_path):
            if self.schema_path.endswith(SCHEMA_EXTENSIONS):
                files.append(self.schema_path)
        else:
            for root, _, filenames in os.walk(self.schema_path):
                for filename in filenames:
                    if filename.endswith(SCHEMA_EXTENSIONS):
                        files.append(os.path.join(root, filename))
        return sorted(files)

    def _process_ast(self, ast: DocumentNode):
        """Process GraphQL AST and collect type definitions."""
        for definition in ast.definitions:
            if isinstance(definition, SchemaDefinitionNode):
                for operation_type in definition.operation_types:
                    self._roots[operation_type.operation.value] = operation_type.type.name.value
            elif isinstance(definition, ScalarTypeDefinitionNode):
                self._declare(definition.name.value, TypeKind.SCALAR)
            elif isinstance(definition, EnumTypeDefinitionNode):
                self._declare(definition.name.value, TypeKind.ENUM)
            elif isinstance(definition, UnionTypeDefinitionNode):
                name = definition.name.value
                self._declare(name, TypeKind.UNION)
                self._members[name] = [t.name.value for t in definition.types]
            elif isinstance(definition, (InterfaceTypeDefinitionNode, InterfaceTypeExtensionNode)):
                self._process_composite(definition, TypeKind.INTERFACE)
            elif isinstance(definition, (ObjectTypeDefinitionNode, ObjectTypeExtensionNode)):
                self._process_composite(definition, TypeKind.OBJECT)
            elif isinstance(definition, InputObjectTypeDefinitionNode):
                name = definition.name.value
                self._declare(name, TypeKind.INPUT_OBJECT)
                self._merge_fields(name, definition.fields)

    def _declare(self, name: str, kind: TypeKind):
        self._kinds[name] = kind

    def _process_composite(self, node, kind: TypeKind):
        """Process object/interface definitions and extensions.

        Extensions may arrive before the base definition; fields are merged
        either way.
        """
        name = node.name.value
        self._declare(name, kind)
        interfaces = self._interfaces.setdefault(name, [])
        for interface in node.interfaces or ():
            if interface.name.value not in interfaces:
                interfaces.append(interface.name.value)
        self._merge_fields(name, node.fields)

    def _merge_fields(self, type_name: str, field_nodes):
        existing = self._fields.setdefault(type_name, {})
        for node in field_nodes or ():
            if node.name.value in existing:
                continue
            arguments = {
                arg_node.name.value: TypeRef.from_node(arg_node.type)
                for arg_node in getattr(node, "arguments", None) or ()
            }
            existing[node.name.value] = FieldDescriptor(
                name=node.name.value,
                type=TypeRef.from_node(node.type),
                arguments=arguments,
            )


def parse_schema(source: str) -> TypeBundle:
    """Parse an SDL string into a TypeBundle."""
    return SchemaParser().parse_source(source).build()
