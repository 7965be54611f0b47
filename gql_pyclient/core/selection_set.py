"""Selection set builder for GraphQL operations.

Builds an ordered, schema-validated tree of field and fragment selections
scoped to one type of a TypeBundle. Every mistake (unknown field, unknown
argument, missing or forbidden sub-selection, response key collision) raises
while the selection is being added.

Example usage:
    SelectionSet(bundle, "Shop", lambda shop: (
        shop.add("name")
            .add_connection("products", lambda product: product.add("title"), args={"first": 10})
    ))
"""

from typing import Any, Callable, Iterator, Mapping, Union

from .errors import DuplicateFieldError, SchemaError
from .schema import FieldDescriptor, TypeBundle, TypeDescriptor
from .tracker import DEFAULT_TRACKER, Tracker
from .values import VariableDefinition, check_name, render_value, variables_in

SelectionCallback = Callable[["SelectionSet"], Any]
SelectionSource = Union[SelectionCallback, "SelectionSet"]


class Field:
    """A field selection, optionally aliased, with arguments and a sub-selection."""

    is_connection = False

    def __init__(
        self,
        descriptor: FieldDescriptor,
        alias: str | None = None,
        args: Mapping[str, Any] | None = None,
        selection_set: "SelectionSet | None" = None,
        implicit: bool = False,
    ):
        self.descriptor = descriptor
        self.name = descriptor.name
        self.alias = alias
        self.args = dict(args or {})
        self.selection_set = selection_set
        # Selected automatically (id / __typename), not by the caller
        self.implicit = implicit

    @property
    def response_key(self) -> str:
        """Key under which the value appears in the response."""
        return self.alias or self.name

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.response_key}>"


class ConnectionField(Field):
    """A paginated field selected as ``pageInfo { ... } edges { cursor node { ... } }``."""

    is_connection = True

    @property
    def node_selection_set(self) -> "SelectionSet":
        """The selection set applied to each ``edges.node``."""
        edges = self.selection_set.field_named("edges")
        return edges.selection_set.field_named("node").selection_set


class InlineFragment:
    """An inline fragment: ``... on Type { ... }``."""

    def __init__(self, type_name: str, selection_set: "SelectionSet"):
        self.type_name = type_name
        self.selection_set = selection_set

    def __repr__(self) -> str:
        return f"<InlineFragment on {self.type_name}>"


class FragmentDefinition:
    """A named fragment: ``fragment Name on Type { ... }``."""

    def __init__(self, name: str, type_name: str, selection_set: "SelectionSet"):
        check_name(name, "fragment")
        self.name = name
        self.type_name = type_name
        self.selection_set = selection_set

    def __repr__(self) -> str:
        return f"<FragmentDefinition {self.name} on {self.type_name}>"


class FragmentSpread:
    """A reference to a named fragment: ``...Name``."""

    def __init__(self, definition: FragmentDefinition):
        self.definition = definition

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def type_name(self) -> str:
        return self.definition.type_name

    @property
    def selection_set(self) -> "SelectionSet":
        return self.definition.selection_set

    def __repr__(self) -> str:
        return f"<FragmentSpread ...{self.name}>"


Selection = Union[Field, InlineFragment, FragmentSpread]


class SelectionSet:
    """Builder for the selections made on one composite type.

    Types implementing ``Node`` start with ``id`` selected; interfaces and
    unions start with ``__typename`` selected so responses can be decoded
    to their concrete type.
    """

    def __init__(
        self,
        type_bundle: TypeBundle,
        type_name: str,
        selection: SelectionCallback | None = None,
        *,
        tracker: Tracker | None = None,
    ):
        self.type_bundle = type_bundle
        self.type: TypeDescriptor = type_bundle.get(type_name)
        if not self.type.is_composite:
            raise SchemaError(f"Cannot build a selection set on {self.type.kind.value.lower()} type '{type_name}'.")
        self.tracker = tracker if tracker is not None else DEFAULT_TRACKER
        self.selections: list[Selection] = []

        if self.type.implements_node and self.type.field("id") is not None:
            self._add_field("id", None, implicit=True)
        if self.type.is_abstract:
            self._add_field("__typename", None, implicit=True)
        if selection is not None:
            selection(self)

    def add(
        self,
        name: str,
        selection: SelectionSource | None = None,
        *,
        alias: str | None = None,
        args: Mapping[str, Any] | None = None,
    ) -> "SelectionSet":
        """Select a field.

        Args:
            name: Field name on this selection set's type
            selection: Callback receiving the nested builder, or an existing
                SelectionSet on the field's type. Required for object,
                interface and union fields; forbidden for scalars and enums.
            alias: Response key to use instead of the field name
            args: Field arguments; values may be literals, variables or enums

        Returns:
            This builder, for chaining
        """
        self._add_field(name, selection, alias=alias, args=args)
        return self

    def add_connection(
        self,
        name: str,
        selection: SelectionSource | None = None,
        *,
        alias: str | None = None,
        args: Mapping[str, Any] | None = None,
    ) -> "SelectionSet":
        """Select a connection field; ``selection`` applies to the node type."""
        descriptor = self._descriptor(name)
        connection_type = self.type_bundle.get(descriptor.type.named_type)
        edges = connection_type.field("edges") if connection_type.is_composite else None
        page_info = connection_type.field("pageInfo") if connection_type.is_composite else None
        if edges is None or page_info is None or descriptor.type.is_list:
            raise SchemaError(f"Field '{self.type.name}.{name}' is not a connection.")
        edge_type = self.type_bundle.get(edges.type.named_type)
        if edge_type.field("node") is None or edge_type.field("cursor") is None:
            raise SchemaError(f"Field '{self.type.name}.{name}' is not a connection.")
        if selection is None:
            raise SchemaError(f"Connection '{self.type.name}.{name}' must have a selection of node fields.")

        def select_connection(connection: SelectionSet):
            connection.add("pageInfo", lambda info: info.add("hasNextPage").add("hasPreviousPage"))
            connection.add("edges", lambda edge: edge.add("cursor").add("node", selection))

        self._add_field(name, select_connection, alias=alias, args=args, field_class=ConnectionField)
        return self

    def add_inline_fragment_on(self, type_name: str, selection: SelectionSource) -> "SelectionSet":
        """Add ``... on type_name { ... }``."""
        fragment_type = self.type_bundle.get(type_name)
        if not fragment_type.is_composite or not self.type_bundle.can_spread(type_name, self.type.name):
            raise SchemaError(f"Fragment on type '{type_name}' can never apply to type '{self.type.name}'.")
        self.tracker.track(type_name)
        nested = self._nested(type_name, selection, f"Inline fragment on '{type_name}'")
        self.selections.append(InlineFragment(type_name, nested))
        return self

    def add_fragment(self, definition: FragmentDefinition) -> "SelectionSet":
        """Spread a named fragment into this selection set."""
        if not self.type_bundle.can_spread(definition.type_name, self.type.name):
            raise SchemaError(
                f"Fragment '{definition.name}' on type '{definition.type_name}' "
                f"can never apply to type '{self.type.name}'."
            )
        self.tracker.track(definition.type_name)
        if not any(isinstance(s, FragmentSpread) and s.name == definition.name for s in self.selections):
            self.selections.append(FragmentSpread(definition))
        return self

    def field_named(self, response_key: str) -> Field | None:
        """Return the direct field selection with the given response key."""
        for selection in self.selections:
            if isinstance(selection, Field) and selection.response_key == response_key:
                return selection
        return None

    def variables(self) -> list[VariableDefinition]:
        """Variables referenced anywhere in this tree, in first-use order."""
        found: dict[str, VariableDefinition] = {}
        for selection in self._walk(set()):
            if isinstance(selection, Field):
                for value in selection.args.values():
                    for var in variables_in(value):
                        found.setdefault(var.name, var)
        return list(found.values())

    def fragment_definitions(self) -> list[FragmentDefinition]:
        """Named fragments spread anywhere in this tree, in first-use order."""
        found: dict[str, FragmentDefinition] = {}
        for selection in self._walk(set()):
            if isinstance(selection, FragmentSpread):
                found.setdefault(selection.name, selection.definition)
        return list(found.values())

    def __str__(self) -> str:
        from .serializer import serialize_selection_set
        return serialize_selection_set(self)

    def __repr__(self) -> str:
        return f"<SelectionSet on {self.type.name}: {len(self.selections)} selections>"

    def _walk(self, seen_fragments: set[str]) -> Iterator[Selection]:
        for selection in self.selections:
            yield selection
            if isinstance(selection, FragmentSpread):
                if selection.name in seen_fragments:
                    continue
                seen_fragments.add(selection.name)
            if selection.selection_set is not None:
                yield from selection.selection_set._walk(seen_fragments)

    def _descriptor(self, name: str) -> FieldDescriptor:
        descriptor = self.type.field(name)
        if descriptor is None:
            raise SchemaError(f"No field of name '{name}' found on type '{self.type.name}' in schema.")
        return descriptor

    def _add_field(
        self,
        name: str,
        selection: SelectionSource | None,
        *,
        alias: str | None = None,
        args: Mapping[str, Any] | None = None,
        field_class: type[Field] = Field,
        implicit: bool = False,
    ) -> Field:
        descriptor = self._descriptor(name)
        args = dict(args or {})
        unknown = [arg for arg in args if arg not in descriptor.arguments]
        if unknown:
            raise SchemaError(
                f"Field '{self.type.name}.{name}' has no argument named {', '.join(repr(a) for a in unknown)}."
            )
        for value in args.values():
            render_value(value)
        if alias is not None:
            check_name(alias, "alias")

        return_type = self.type_bundle.get(descriptor.type.named_type)
        key = alias or name
        existing = self.field_named(key)
        if existing is not None:
            same_leaf = (
                return_type.is_leaf
                and selection is None
                and existing.name == name
                and existing.args == args
            )
            if not same_leaf:
                raise DuplicateFieldError(
                    f"The field name or alias '{key}' has already been selected on type '{self.type.name}'."
                )
        elif return_type.is_leaf and selection is not None:
            raise SchemaError(
                f"Field '{self.type.name}.{name}' of type '{return_type.name}' "
                "cannot have a selection of subfields."
            )
        elif not return_type.is_leaf and selection is None:
            raise SchemaError(
                f"Field '{self.type.name}.{name}' of type '{return_type.name}' "
                "must have a selection of subfields."
            )

        # Only selections that passed validation are recorded
        self.tracker.track(self.type.name)
        self.tracker.track(return_type.name)
        if existing is not None:
            return existing

        nested = None
        if not return_type.is_leaf:
            nested = self._nested(return_type.name, selection, f"Field '{self.type.name}.{name}'")

        field = field_class(descriptor, alias=alias, args=args, selection_set=nested, implicit=implicit)
        self.selections.append(field)
        return field

    def _nested(self, type_name: str, selection: SelectionSource, owner: str) -> "SelectionSet":
        if isinstance(selection, SelectionSet):
            if selection.type.name != type_name:
                raise SchemaError(
                    f"{owner} expects a selection set on '{type_name}', got one on '{selection.type.name}'."
                )
            nested = selection
        else:
            nested = SelectionSet(self.type_bundle, type_name, selection, tracker=self.tracker)
        if not nested.selections:
            raise SchemaError(f"{owner} must have a selection of subfields.")
        return nested
