"""Argument values: variables, enum literals and directives.

Also holds the rendering of Python values as GraphQL literals, which the
builders call while a field is added so that bad values fail at build time.
"""

import json
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping

from graphql import GraphQLSyntaxError, parse_type
from pydantic import BaseModel

from .errors import SchemaError

NAME_PATTERN = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")


def check_name(name: str, what: str):
    if not NAME_PATTERN.match(name):
        raise SchemaError(f"'{name}' is not a valid GraphQL {what} name.")


@dataclass(frozen=True)
class VariableDefinition:
    """A variable declared by an operation, e.g. ``$first: Int = 10``."""
    name: str
    type: str
    default_value: Any = None

    def __post_init__(self):
        check_name(self.name, "variable")
        try:
            parse_type(self.type)
        except GraphQLSyntaxError as e:
            raise SchemaError(f"Invalid type '{self.type}' for variable '${self.name}': {e.message}") from e

    def __str__(self) -> str:
        return f"${self.name}"

    def to_definition_string(self) -> str:
        """Render the declaration as it appears in an operation header."""
        definition = f"${self.name}: {self.type}"
        if self.default_value is not None:
            definition += f" = {render_value(self.default_value)}"
        return definition


@dataclass(frozen=True)
class EnumValue:
    """An enum literal, rendered as a bare identifier."""
    key: str

    def __post_init__(self):
        check_name(self.key, "enum value")

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class Directive:
    """A directive such as ``@inContext(country: CA)``."""
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        check_name(self.name, "directive")

    def __str__(self) -> str:
        if not self.arguments:
            return f"@{self.name}"
        return f"@{self.name}{render_arguments(self.arguments)}"


def variable(name: str, type: str, default_value: Any = None) -> VariableDefinition:
    """Create a variable to declare on an operation and use in arguments."""
    return VariableDefinition(name=name, type=type, default_value=default_value)


def enum_value(key: str) -> EnumValue:
    """Create an enum literal to use in arguments."""
    return EnumValue(key=key)


def _to_camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(word.capitalize() for word in rest)


def in_context(**arguments: Any) -> Directive:
    """Build the ``@inContext`` directive used by storefront-style APIs.

    ``country`` and ``language`` are country/language code enums; other
    arguments are passed through. Keyword names are converted to camelCase.

    Example:
        in_context(country="CA", language="FR")
        # @inContext(country: CA, language: FR)
    """
    rendered = {}
    for key, value in arguments.items():
        if value is None:
            continue
        if key in ("country", "language") and isinstance(value, str):
            value = EnumValue(value)
        rendered[_to_camel_case(key)] = value
    return Directive(name="inContext", arguments=rendered)


def render_value(value: Any) -> str:
    """Render a Python value as a GraphQL literal."""
    if isinstance(value, (VariableDefinition, EnumValue)):
        return str(value)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    if isinstance(value, float) and not math.isfinite(value):
        raise SchemaError(f"Cannot render {value!r} as a GraphQL Float literal.")
    if isinstance(value, (int, float, str)):
        return json.dumps(value)
    if isinstance(value, BaseModel):
        return render_value(value.model_dump(by_alias=True, exclude_none=True))
    if isinstance(value, Mapping):
        pairs = ", ".join(f"{key}: {render_value(item)}" for key, item in value.items())
        return f"{{{pairs}}}"
    if isinstance(value, (list, tuple)):
        return f"[{', '.join(render_value(item) for item in value)}]"
    raise SchemaError(f"Cannot render a value of type {type(value).__name__} as a GraphQL literal.")


def render_arguments(arguments: Mapping[str, Any]) -> str:
    """Render an argument list: ``(first: 10, after: $cursor)``."""
    if not arguments:
        return ""
    return f"({', '.join(f'{name}: {render_value(value)}' for name, value in arguments.items())})"


def variables_in(value: Any) -> Iterator[VariableDefinition]:
    """Yield every variable referenced inside an argument value."""
    if isinstance(value, VariableDefinition):
        yield value
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from variables_in(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from variables_in(item)
