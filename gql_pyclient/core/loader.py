"""Build Documents from GraphQL query text.

Parses executable GraphQL with graphql-core and replays each definition
through the builders, so text queries are validated against the type bundle
(and observed by the type tracker) the same way builder-made ones are.

Fields selected exactly as ``pageInfo { ... } edges { cursor node { ... } }``
are replayed as connections, which makes their nodes paginate once decoded.
"""

from graphql import (
    BooleanValueNode,
    EnumValueNode,
    FieldNode,
    FloatValueNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLSyntaxError,
    InlineFragmentNode,
    IntValueNode,
    ListValueNode,
    NullValueNode,
    ObjectValueNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    StringValueNode,
    ValueNode,
    VariableNode,
    parse,
    print_ast,
)

from .errors import SchemaError, UndeclaredVariableError
from .operation import Document
from .schema import TypeBundle
from .selection_set import FragmentDefinition, SelectionSet
from .tracker import Tracker
from .values import EnumValue, VariableDefinition, variable

PAGE_INFO_FIELDS = {"hasNextPage", "hasPreviousPage"}


class DocumentLoader:
    """Turns GraphQL query text into a Document."""

    def __init__(self, type_bundle: TypeBundle, tracker: Tracker | None = None):
        self.type_bundle = type_bundle
        self.tracker = tracker

    def load(self, source: str) -> Document:
        try:
            ast = parse(source)
        except GraphQLSyntaxError as e:
            raise SchemaError(f"Invalid GraphQL document: {e.message}") from e

        self._document = Document(self.type_bundle, tracker=self.tracker)
        self._fragment_nodes: dict[str, FragmentDefinitionNode] = {}
        self._fragments: dict[str, FragmentDefinition] = {}
        self._resolving: set[str] = set()
        operations = []
        for definition in ast.definitions:
            if isinstance(definition, FragmentDefinitionNode):
                self._fragment_nodes[definition.name.value] = definition
            elif isinstance(definition, OperationDefinitionNode):
                operations.append(definition)
            else:
                raise SchemaError("Only operations and fragments can appear in a query document.")

        # Fragments may use any variable an operation declares
        self._all_variables: dict[str, VariableDefinition] = {}
        declared = [(node, self._variable_definitions(node)) for node in operations]
        for _, definitions in declared:
            for definition in definitions:
                self._all_variables.setdefault(definition.name, definition)

        for name in self._fragment_nodes:
            self._fragment(name)
        for node, definitions in declared:
            self._operation(node, definitions)
        return self._document

    def _variable_definitions(self, node: OperationDefinitionNode) -> list[VariableDefinition]:
        return [
            variable(
                definition.variable.name.value,
                print_ast(definition.type),
                self._value(definition.default_value, {}) if definition.default_value else None,
            )
            for definition in node.variable_definitions or ()
        ]

    def _operation(self, node: OperationDefinitionNode, definitions: list[VariableDefinition]):
        if node.directives:
            raise SchemaError("Operation directives are not supported in loaded documents.")
        scope = {definition.name: definition for definition in definitions}
        name = node.name.value if node.name else None

        def select_root(root: SelectionSet):
            self._selections(root, node.selection_set, scope)

        if node.operation == OperationType.QUERY:
            self._document.add_query(select_root, name=name, variables=definitions)
        elif node.operation == OperationType.MUTATION:
            self._document.add_mutation(select_root, name=name, variables=definitions)
        else:
            raise SchemaError(f"Unsupported operation type '{node.operation.value}'.")

    def _fragment(self, name: str) -> FragmentDefinition:
        if name in self._fragments:
            return self._fragments[name]
        node = self._fragment_nodes.get(name)
        if node is None:
            raise SchemaError(f"Unknown fragment '{name}'.")
        if name in self._resolving:
            raise SchemaError(f"Fragment '{name}' spreads itself.")
        self._resolving.add(name)
        definition = self._document.define_fragment(
            name,
            node.type_condition.name.value,
            lambda builder: self._selections(builder, node.selection_set, self._all_variables),
        )
        self._resolving.discard(name)
        self._fragments[name] = definition
        return definition

    def _selections(self, builder: SelectionSet, node: SelectionSetNode, scope: dict[str, VariableDefinition]):
        for selection in node.selections:
            if selection.directives:
                raise SchemaError("Field and fragment directives are not supported in loaded documents.")
            if isinstance(selection, FieldNode):
                self._field(builder, selection, scope)
            elif isinstance(selection, InlineFragmentNode):
                type_name = selection.type_condition.name.value if selection.type_condition else builder.type.name
                builder.add_inline_fragment_on(
                    type_name,
                    lambda nested, n=selection.selection_set: self._selections(nested, n, scope),
                )
            elif isinstance(selection, FragmentSpreadNode):
                builder.add_fragment(self._fragment(selection.name.value))

    def _field(self, builder: SelectionSet, node: FieldNode, scope: dict[str, VariableDefinition]):
        name = node.name.value
        alias = node.alias.value if node.alias else None
        args = {argument.name.value: self._value(argument.value, scope) for argument in node.arguments or ()}
        if node.selection_set is None:
            builder.add(name, alias=alias, args=args)
            return
        node_selection = self._connection_node(builder, node)
        if node_selection is not None:
            builder.add_connection(
                name,
                lambda nested: self._selections(nested, node_selection, scope),
                alias=alias,
                args=args,
            )
        else:
            builder.add(
                name,
                lambda nested: self._selections(nested, node.selection_set, scope),
                alias=alias,
                args=args,
            )

    def _connection_node(self, builder: SelectionSet, node: FieldNode) -> SelectionSetNode | None:
        """Return the ``edges.node`` selection if ``node`` is selected as a plain connection."""
        descriptor = builder.type.field(node.name.value)
        if descriptor is None:
            return None
        connection_type = self.type_bundle.lookup(descriptor.type.named_type)
        if connection_type is None or connection_type.field("edges") is None or connection_type.field("pageInfo") is None:
            return None

        children = _plain_fields(node.selection_set)
        if children is None or set(children) != {"edges", "pageInfo"}:
            return None
        page_info = _plain_fields(children["pageInfo"].selection_set)
        if page_info is None or not set(page_info) <= PAGE_INFO_FIELDS:
            return None
        edges = _plain_fields(children["edges"].selection_set)
        if edges is None or "node" not in edges or not set(edges) <= {"cursor", "node"}:
            return None
        return edges["node"].selection_set

    def _value(self, node: ValueNode, scope: dict[str, VariableDefinition]):
        if isinstance(node, VariableNode):
            name = node.name.value
            if name not in scope:
                raise UndeclaredVariableError(f"Variable '${name}' is used but not declared.")
            return scope[name]
        if isinstance(node, IntValueNode):
            return int(node.value)
        if isinstance(node, FloatValueNode):
            return float(node.value)
        if isinstance(node, (StringValueNode, BooleanValueNode)):
            return node.value
        if isinstance(node, NullValueNode):
            return None
        if isinstance(node, EnumValueNode):
            return EnumValue(node.value)
        if isinstance(node, ListValueNode):
            return [self._value(item, scope) for item in node.values]
        if isinstance(node, ObjectValueNode):
            return {field.name.value: self._value(field.value, scope) for field in node.fields}
        raise SchemaError(f"Unsupported value: {print_ast(node)}")


def _plain_fields(node: SelectionSetNode | None) -> dict[str, FieldNode] | None:
    """Map field names to nodes, or None if the set has fragments, aliases or arguments."""
    if node is None:
        return None
    fields = {}
    for selection in node.selections:
        if not isinstance(selection, FieldNode) or selection.alias or selection.arguments or selection.directives:
            return None
        fields[selection.name.value] = selection
    return fields


def load_document(type_bundle: TypeBundle, source: str, tracker: Tracker | None = None) -> Document:
    """Parse query text into a Document validated against ``type_bundle``."""
    return DocumentLoader(type_bundle, tracker).load(source)
