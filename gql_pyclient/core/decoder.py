"""Decode GraphQL response data into GraphModel trees.

The decoder walks an operation's selection tree and the response data side
by side. Scalars and enums are copied through unchanged, objects become
models (through the class registry), and connections become flat lists of
node models that know how to build the query for the next page.

Missing keys are skipped rather than treated as errors: a response that
carries ``errors`` next to partial ``data`` decodes as far as the data goes.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .errors import UsageError
from .model import GraphModel, ModelMeta, PageInfo
from .operation import Operation, Query
from .schema import TypeDescriptor, TypeRef
from .selection_set import ConnectionField, Field, SelectionSet
from .tracker import Tracker
from .values import VariableDefinition, variable, variables_in

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeContext:
    """One decoded object and how it was reached from the root."""
    # Field that produced this object; None for the root
    selection: Field | None
    # Type the field was selected on
    scope: str | None
    data: Mapping[str, Any]
    type: TypeDescriptor
    parent: "DecodeContext | None"
    in_list: bool = False

    @property
    def path(self) -> tuple[str, ...]:
        if self.selection is None:
            return ()
        return self.parent.path + (self.selection.response_key,)

    @property
    def is_refetchable(self) -> bool:
        return (
            self.selection is not None
            and self.type.implements_node
            and self.data.get("id") is not None
        )


class Decoder:
    """Decodes responses for one operation (or bare selection set)."""

    def __init__(
        self,
        operation_or_selection_set: Operation | SelectionSet,
        *,
        class_registry=None,
        variable_values: Mapping[str, Any] | None = None,
        tracker: Tracker | None = None,
    ):
        if isinstance(operation_or_selection_set, SelectionSet):
            self.operation = None
            self.selection_set = operation_or_selection_set
        else:
            self.operation = operation_or_selection_set
            self.selection_set = operation_or_selection_set.selection_set
        self.type_bundle = self.selection_set.type_bundle
        self.class_registry = class_registry
        self.variable_values = MappingProxyType(dict(variable_values or {}))
        self.tracker = tracker if tracker is not None else self.selection_set.tracker

    def decode(self, data: Mapping[str, Any]) -> GraphModel:
        """Decode the ``data`` member of a response."""
        root = DecodeContext(selection=None, scope=None, data=data, type=self.selection_set.type, parent=None)
        return self._decode_object([self.selection_set], root)

    def _decode_object(
        self,
        selection_sets: list[SelectionSet],
        context: DecodeContext,
        page_info: PageInfo | None = None,
    ) -> GraphModel:
        """Decode one object against every selection set that reached it.

        A response key selected in several places (overlapping fragments,
        a spread next to an inline fragment) holds one merged server value,
        so it is decoded once against all of its sub-selections.
        """
        grouped: dict[str, list[tuple[Field, str]]] = {}
        for selection_set in selection_sets:
            self._collect(selection_set, context, grouped)
        attrs = {key: self._decode_field(fields, context) for key, fields in grouped.items()}
        meta = ModelMeta(
            variable_values=self.variable_values,
            page_info=page_info,
            build_refetch_query=self._refetch_builder(selection_sets, context),
        )
        return self._model_class(context.type)(attrs, type=context.type, meta=meta)

    def _collect(
        self,
        selection_set: SelectionSet,
        context: DecodeContext,
        grouped: dict[str, list[tuple[Field, str]]],
    ):
        for selection in selection_set.selections:
            if isinstance(selection, Field):
                if selection.response_key in context.data:
                    grouped.setdefault(selection.response_key, []).append((selection, selection_set.type.name))
            elif self.type_bundle.applies_to(selection.type_name, context.type.name):
                self._collect(selection.selection_set, context, grouped)

    def _decode_field(self, fields: list[tuple[Field, str]], parent: DecodeContext) -> Any:
        field, scope = fields[0]
        value = parent.data[field.response_key]
        connections = [(f, s) for f, s in fields if f.is_connection]
        if connections:
            return self._decode_connection(connections, parent, value)
        selection_sets = [f.selection_set for f, _ in fields if f.selection_set is not None]
        return self._decode_value(field, field.descriptor.type, scope, selection_sets, parent, value, in_list=False)

    def _decode_value(
        self,
        field: Field,
        type_ref: TypeRef,
        scope: str,
        selection_sets: list[SelectionSet],
        parent: DecodeContext,
        value: Any,
        in_list: bool,
    ) -> Any:
        if value is None:
            return None
        if type_ref.kind == "NON_NULL":
            return self._decode_value(field, type_ref.of_type, scope, selection_sets, parent, value, in_list)
        if type_ref.kind == "LIST":
            if not isinstance(value, list):
                return value
            return [
                self._decode_value(field, type_ref.of_type, scope, selection_sets, parent, item, in_list=True)
                for item in value
            ]
        static_type = self.type_bundle.get(type_ref.name)
        if static_type.is_leaf or not isinstance(value, Mapping):
            return value
        context = DecodeContext(
            selection=field,
            scope=scope,
            data=value,
            type=self._concrete_type(static_type, value),
            parent=parent,
            in_list=in_list,
        )
        return self._decode_object(selection_sets, context)

    def _decode_connection(
        self,
        connections: list[tuple[ConnectionField, str]],
        parent: DecodeContext,
        value: Any,
    ) -> Any:
        if not isinstance(value, Mapping):
            return value
        field, scope = connections[0]
        page = value.get("pageInfo") or {}
        has_next_page = bool(page.get("hasNextPage", False))
        has_previous_page = bool(page.get("hasPreviousPage", False))
        field_path = parent.path + (field.response_key,)
        node_field = field.selection_set.field_named("edges").selection_set.field_named("node")
        static_type = self.type_bundle.get(node_field.descriptor.type.named_type)
        node_selection_sets = [connection.node_selection_set for connection, _ in connections]

        nodes = []
        for edge in value.get("edges") or ():
            node = edge.get("node") if isinstance(edge, Mapping) else None
            if not isinstance(node, Mapping):
                continue
            cursor = edge.get("cursor")
            page_info = PageInfo(
                cursor=cursor,
                has_next_page=has_next_page,
                has_previous_page=has_previous_page,
                field_path=field_path,
                operation=self.operation,
                build_next_page=self._next_page_builder(field, scope, node_selection_sets, parent, cursor),
            )
            context = DecodeContext(
                selection=field,
                scope=scope,
                data=node,
                type=self._concrete_type(static_type, node),
                parent=parent,
                in_list=True,
            )
            nodes.append(self._decode_object(node_selection_sets, context, page_info))
        return nodes

    def _concrete_type(self, static_type: TypeDescriptor, value: Mapping[str, Any]) -> TypeDescriptor:
        """Resolve an interface or union to the object type named by ``__typename``."""
        if not static_type.is_abstract:
            return static_type
        typename = value.get("__typename")
        concrete = self.type_bundle.lookup(typename) if isinstance(typename, str) else None
        if concrete is None or concrete.name not in static_type.possible_types:
            logger.debug("Decoding %r as %s: no matching possible type", typename, static_type.name)
            return static_type
        return concrete

    def _model_class(self, type_def: TypeDescriptor) -> type[GraphModel]:
        model_class = self.class_registry.lookup(type_def.name) if self.class_registry is not None else None
        return model_class or GraphModel

    def _refetch_builder(
        self,
        selection_sets: list[SelectionSet],
        context: DecodeContext,
    ) -> Callable[[], Query] | None:
        if not context.is_refetchable:
            return None
        node_id = context.data["id"]

        def build() -> Query:
            return Query(
                self.type_bundle,
                lambda root: root.add("node", _spread_all(selection_sets), args={"id": node_id}),
                variables=_variables_of(selection_sets),
                tracker=self.tracker,
            )

        return build

    def _next_page_builder(
        self,
        field: ConnectionField,
        scope: str,
        node_selection_sets: list[SelectionSet],
        parent: DecodeContext,
        cursor: str | None,
    ) -> Callable[[], tuple[Query, list[str]]]:
        def build() -> tuple[Query, list[str]]:
            return self._next_page_query_and_path(field, scope, node_selection_sets, parent, cursor)

        return build

    def _next_page_query_and_path(
        self,
        field: ConnectionField,
        scope: str,
        node_selection_sets: list[SelectionSet],
        parent: DecodeContext,
        cursor: str | None,
    ) -> tuple[Query, list[str]]:
        """Re-select the connection after ``cursor``.

        The query starts from the nearest ancestor that can be fetched with
        ``node(id:)``, or from the operation root when there is none. The
        page size is always read from a ``$first`` variable that defaults to
        the size of the page just decoded.
        """
        chain: list[DecodeContext] = []
        nearest = parent
        while nearest.selection is not None and not nearest.is_refetchable:
            chain.insert(0, nearest)
            nearest = nearest.parent
        if nearest.selection is None:
            nearest = None
        if any(context.in_list for context in chain):
            raise UsageError(
                f"Cannot build a next-page query for '{'.'.join(parent.path + (field.response_key,))}': "
                "the path to it from the nearest Node passes through a list."
            )

        steps = [(context.selection, context.scope) for context in chain] + [(field, scope)]
        variables: dict[str, VariableDefinition] = {}
        for context in chain:
            for var in variables_in(list(context.selection.args.values())):
                variables.setdefault(var.name, var)
        first = field.args.get("first")
        if isinstance(first, VariableDefinition):
            if first.name == "first":
                first_variable = first
            else:
                first_variable = variable(
                    "first", "Int", self.variable_values.get(first.name, first.default_value)
                )
        else:
            first_variable = variables.get("first") or variable("first", "Int", first)
        connection_args = {**field.args, "first": first_variable, "after": cursor}
        for var in variables_in(list(connection_args.values())):
            variables.setdefault(var.name, var)
        for var in _variables_of(node_selection_sets):
            variables.setdefault(var.name, var)

        path: list[str] = []

        def select_step(builder: SelectionSet, remaining: list[tuple[Field, str]]):
            selection, step_scope = remaining[0]
            if builder.type.name != step_scope:
                builder.add_inline_fragment_on(step_scope, lambda fragment: select_step(fragment, remaining))
                return
            path.append(selection.response_key)
            if len(remaining) > 1:
                builder.add(
                    selection.name,
                    lambda nested: select_step(nested, remaining[1:]),
                    alias=selection.alias,
                    args=selection.args,
                )
            else:
                builder.add_connection(
                    selection.name,
                    node_selection_sets[0] if len(node_selection_sets) == 1 else _spread_all(node_selection_sets),
                    alias=selection.alias,
                    args=connection_args,
                )

        def select_root(root: SelectionSet):
            if nearest is None:
                select_step(root, steps)
                return
            path.append("node")
            root.add(
                "node",
                lambda node: node.add_inline_fragment_on(
                    nearest.type.name, lambda fragment: select_step(fragment, steps)
                ),
                args={"id": nearest.data["id"]},
            )

        query = Query(self.type_bundle, select_root, variables=list(variables.values()), tracker=self.tracker)
        return query, path


def _spread_all(selection_sets: list[SelectionSet]) -> Callable[[SelectionSet], None]:
    """Selection callback re-applying each set as an inline fragment on its own type."""
    def select(builder: SelectionSet):
        for selection_set in selection_sets:
            builder.add_inline_fragment_on(selection_set.type.name, selection_set)

    return select


def _variables_of(selection_sets: list[SelectionSet]) -> list[VariableDefinition]:
    found: dict[str, VariableDefinition] = {}
    for selection_set in selection_sets:
        for var in selection_set.variables():
            found.setdefault(var.name, var)
    return list(found.values())


def decode(
    operation_or_selection_set: Operation | SelectionSet,
    data: Mapping[str, Any],
    *,
    class_registry=None,
    variable_values: Mapping[str, Any] | None = None,
) -> GraphModel:
    """Decode response ``data`` for an operation into a GraphModel tree.

    Args:
        operation_or_selection_set: What was sent (or its root selection set)
        data: The ``data`` member of the response; never modified
        class_registry: Optional ClassRegistry (anything with ``lookup``)
        variable_values: Variable values the operation was sent with

    Returns:
        The model for the operation's root type
    """
    return Decoder(
        operation_or_selection_set,
        class_registry=class_registry,
        variable_values=variable_values,
    ).decode(data)
