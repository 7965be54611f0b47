"""Render selection sets, operations and documents as GraphQL query text.

Rendering is pure: the same tree always produces the same single-line text.

    query ProductQuery($first: Int = 10) { shop { name products(first: $first) { ... } } }
"""

from typing import TYPE_CHECKING

from .selection_set import Field, FragmentDefinition, FragmentSpread, InlineFragment, Selection, SelectionSet
from .values import Directive, render_arguments

if TYPE_CHECKING:
    from .operation import Document, Operation


def serialize_selection_set(selection_set: SelectionSet) -> str:
    """Render ``{ a b c }``; an empty set renders as an empty string."""
    if not selection_set.selections:
        return ""
    return f"{{ {' '.join(serialize_selection(s) for s in selection_set.selections)} }}"


def serialize_selection(selection: Selection) -> str:
    if isinstance(selection, Field):
        text = selection.name
        if selection.alias:
            text = f"{selection.alias}: {text}"
        text += render_arguments(selection.args)
        if selection.selection_set is not None:
            text += f" {serialize_selection_set(selection.selection_set)}"
        return text
    if isinstance(selection, InlineFragment):
        return f"... on {selection.type_name} {serialize_selection_set(selection.selection_set)}"
    if isinstance(selection, FragmentSpread):
        return f"...{selection.name}"
    raise TypeError(f"Unknown selection: {selection!r}")


def serialize_fragment_definition(definition: FragmentDefinition) -> str:
    return f"fragment {definition.name} on {definition.type_name} {serialize_selection_set(definition.selection_set)}"


def serialize_operation(operation: "Operation", directive: Directive | None = None) -> str:
    """Render the operation alone, without the fragments it spreads."""
    header = operation.operation_type
    if operation.name:
        header += f" {operation.name}"
    if operation.variable_definitions:
        declarations = ", ".join(v.to_definition_string() for v in operation.variable_definitions)
        header += f"({declarations})"
    if directive is not None:
        header += f" {directive}"
    return f"{header} {serialize_selection_set(operation.selection_set)}"


def serialize_standalone_operation(operation: "Operation", directive: Directive | None = None) -> str:
    """Render the operation followed by every fragment it spreads."""
    fragments = _fragment_closure(operation.selection_set.fragment_definitions())
    parts = [serialize_operation(operation, directive)]
    parts.extend(serialize_fragment_definition(d) for d in fragments)
    return " ".join(parts)


def serialize_document(document: "Document", directive: Directive | None = None) -> str:
    """Render fragment definitions first, then every operation in order."""
    definitions = list(document.fragments)
    for operation in document.operations:
        definitions.extend(operation.selection_set.fragment_definitions())
    parts = [serialize_fragment_definition(d) for d in _fragment_closure(definitions)]
    parts.extend(serialize_operation(operation, directive) for operation in document.operations)
    return " ".join(parts)


def _fragment_closure(definitions: list[FragmentDefinition]) -> list[FragmentDefinition]:
    """Deduplicate by name, adding fragments spread inside fragments."""
    found: dict[str, FragmentDefinition] = {}
    pending = list(definitions)
    while pending:
        definition = pending.pop(0)
        if definition.name in found:
            continue
        found[definition.name] = definition
        pending.extend(definition.selection_set.fragment_definitions())
    return list(found.values())
