"""Operations (queries and mutations) and the documents that group them."""

from typing import Iterable

from .errors import AmbiguousOperationError, SchemaError, UndeclaredVariableError, UsageError
from .schema import TypeBundle
from .selection_set import FragmentDefinition, SelectionCallback, SelectionSet, SelectionSource
from .serializer import serialize_document, serialize_standalone_operation
from .tracker import Tracker
from .values import Directive, VariableDefinition, check_name


class Operation:
    """A named or anonymous operation rooted at one of the bundle's root types.

    Examples:
        first = variable("first", "Int!")
        Query(bundle, lambda root: root.add("shop", lambda shop: shop.add_connection(
            "products", lambda product: product.add("title"), args={"first": first})),
            name="Products", variables=[first])
    """

    operation_type = "query"

    def __init__(
        self,
        type_bundle: TypeBundle,
        selection: SelectionSource | None = None,
        *,
        name: str | None = None,
        variables: Iterable[VariableDefinition] = (),
        tracker: Tracker | None = None,
    ):
        if name is not None:
            check_name(name, "operation")
        self.type_bundle = type_bundle
        self.name = name
        self.variable_definitions: list[VariableDefinition] = []
        for definition in variables:
            if not isinstance(definition, VariableDefinition):
                raise SchemaError(f"Expected a VariableDefinition, got {definition!r}.")
            if any(existing.name == definition.name for existing in self.variable_definitions):
                raise SchemaError(f"Variable '${definition.name}' is declared more than once.")
            self.variable_definitions.append(definition)

        root = type_bundle.root_type(self.operation_type)
        if isinstance(selection, SelectionSet):
            if selection.type.name != root.name:
                raise SchemaError(
                    f"A {self.operation_type} must select on '{root.name}', got '{selection.type.name}'."
                )
            self.selection_set = selection
        else:
            self.selection_set = SelectionSet(type_bundle, root.name, selection, tracker=tracker)
        self._check_variables()

    @property
    def is_anonymous(self) -> bool:
        return self.name is None

    def _check_variables(self):
        declared = {definition.name for definition in self.variable_definitions}
        for used in self.selection_set.variables():
            if used.name not in declared:
                label = f"{self.operation_type} '{self.name}'" if self.name else f"anonymous {self.operation_type}"
                raise UndeclaredVariableError(f"Variable '${used.name}' is used by {label} but is not declared.")

    def to_string(self, directive: Directive | None = None) -> str:
        """Render the operation, plus any fragments it spreads."""
        return serialize_standalone_operation(self, directive)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name or '(anonymous)'}>"


class Query(Operation):
    """A query operation."""
    operation_type = "query"


class Mutation(Operation):
    """A mutation operation."""
    operation_type = "mutation"


class Document:
    """One or more operations, plus shared fragments, sent as a single request."""

    def __init__(self, type_bundle: TypeBundle, *, tracker: Tracker | None = None):
        self.type_bundle = type_bundle
        self.tracker = tracker
        self.operations: list[Operation] = []
        self.fragments: list[FragmentDefinition] = []

    def add_query(
        self,
        selection: SelectionSource | None = None,
        *,
        name: str | None = None,
        variables: Iterable[VariableDefinition] = (),
    ) -> Query:
        """Build a query and add it to the document."""
        query = Query(self.type_bundle, selection, name=name, variables=variables, tracker=self.tracker)
        self.add_operation(query)
        return query

    def add_mutation(
        self,
        selection: SelectionSource | None = None,
        *,
        name: str | None = None,
        variables: Iterable[VariableDefinition] = (),
    ) -> Mutation:
        """Build a mutation and add it to the document."""
        mutation = Mutation(self.type_bundle, selection, name=name, variables=variables, tracker=self.tracker)
        self.add_operation(mutation)
        return mutation

    def add_operation(self, operation: Operation) -> Operation:
        """Add an already built operation."""
        if self.operations and (operation.is_anonymous or any(op.is_anonymous for op in self.operations)):
            raise SchemaError("Every operation must be named when a document contains more than one.")
        if any(op.name == operation.name for op in self.operations):
            raise SchemaError(f"The document already contains an operation named '{operation.name}'.")
        self.operations.append(operation)
        return operation

    def define_fragment(
        self,
        name: str,
        type_name: str,
        selection: SelectionCallback | SelectionSet,
    ) -> FragmentDefinition:
        """Define a named fragment that operations can spread with ``add_fragment``."""
        if any(fragment.name == name for fragment in self.fragments):
            raise SchemaError(f"The document already defines a fragment named '{name}'.")
        if isinstance(selection, SelectionSet):
            if selection.type.name != type_name:
                raise SchemaError(
                    f"Fragment '{name}' is on '{type_name}' but its selection set is on '{selection.type.name}'."
                )
            selection_set = selection
        else:
            selection_set = SelectionSet(self.type_bundle, type_name, selection, tracker=self.tracker)
        definition = FragmentDefinition(name, type_name, selection_set)
        self.fragments.append(definition)
        return definition

    def operation_named(self, name: str) -> Operation:
        for operation in self.operations:
            if operation.name == name:
                return operation
        known = ", ".join(repr(op.name) for op in self.operations if op.name) or "none"
        raise UsageError(f"The document has no operation named '{name}' (known operations: {known}).")

    def select_operation(self, operation_name: str | None = None) -> Operation:
        """Pick the operation a send refers to.

        Raises:
            AmbiguousOperationError: No name was given and the document does
                not contain exactly one operation
            UsageError: The named operation is not in the document
        """
        if operation_name is not None:
            return self.operation_named(operation_name)
        if len(self.operations) == 1:
            return self.operations[0]
        raise AmbiguousOperationError(
            "A document must contain exactly one operation, or an operationName must be "
            "specified, e.g. client.send(document, other_properties={'operationName': 'MyQuery'})."
        )

    def to_string(self, directive: Directive | None = None) -> str:
        return serialize_document(self, directive)

    def __str__(self) -> str:
        return self.to_string()
