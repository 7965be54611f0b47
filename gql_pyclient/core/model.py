"""Decoded response objects.

A ``GraphModel`` is an immutable snapshot of one object in a response. Field
values are read by response key, as attributes or items:

    shop.name
    shop["name"]
    product["__typename"]

Names that collide with the model's own API (``type``, ``get``, ``cursor``,
...) are only reachable as items.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .errors import UsageError
from .schema import TypeDescriptor


@dataclass(frozen=True)
class PageInfo:
    """Pagination metadata attached to every node decoded from a connection."""
    cursor: str | None
    has_next_page: bool
    has_previous_page: bool
    # Response keys from the operation root down to the connection field
    field_path: tuple[str, ...]
    operation: Any = None
    build_next_page: Callable[[], tuple[Any, list[str]]] | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class ModelMeta:
    """Everything a model knows about how it was fetched."""
    variable_values: Mapping[str, Any] = field(default_factory=dict)
    page_info: PageInfo | None = None
    build_refetch_query: Callable[[], Any] | None = field(default=None, repr=False, compare=False)


class GraphModel:
    """Default class for decoded objects.

    Subclasses registered in a ClassRegistry must keep this constructor
    signature.
    """

    def __init__(self, attrs: Mapping[str, Any], *, type: TypeDescriptor, meta: ModelMeta | None = None):
        object.__setattr__(self, "_attrs", MappingProxyType(dict(attrs)))
        object.__setattr__(self, "_type", type)
        object.__setattr__(self, "_meta", meta if meta is not None else ModelMeta())

    def __getattr__(self, name: str) -> Any:
        if name in ("_attrs", "_type", "_meta"):
            raise AttributeError(name)
        try:
            return self._attrs[name]
        except KeyError:
            raise AttributeError(
                f"'{type(self).__name__}' for type '{self._type.name}' has no field '{name}'"
            ) from None

    def __setattr__(self, name: str, value: Any):
        raise AttributeError(f"{type(self).__name__} instances are immutable")

    def __delattr__(self, name: str):
        raise AttributeError(f"{type(self).__name__} instances are immutable")

    def __getitem__(self, key: str) -> Any:
        return self._attrs[key]

    def __contains__(self, key: str) -> bool:
        return key in self._attrs

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphModel):
            return NotImplemented
        return self._type.name == other._type.name and dict(self._attrs) == dict(other._attrs)

    __hash__ = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._type.name} {dict(self._attrs)!r}>"

    def get(self, key: str, default: Any = None) -> Any:
        return self._attrs.get(key, default)

    @property
    def type(self) -> TypeDescriptor:
        return self._type

    @property
    def attrs(self) -> Mapping[str, Any]:
        """Decoded field values keyed by response key."""
        return self._attrs

    @property
    def variable_values(self) -> Mapping[str, Any]:
        return self._meta.variable_values

    @property
    def page_info(self) -> PageInfo | None:
        return self._meta.page_info

    @property
    def cursor(self) -> str | None:
        return self.page_info.cursor if self.page_info else None

    @property
    def has_next_page(self) -> bool:
        return bool(self.page_info and self.page_info.has_next_page)

    @property
    def has_previous_page(self) -> bool:
        return bool(self.page_info and self.page_info.has_previous_page)

    def next_page_query_and_path(self) -> tuple[Any, list[str]]:
        """Build the query for the page after this node.

        Returns:
            The query, and the response keys leading from the decoded root of
            its response to the next page of nodes
        """
        if self.page_info is None or self.page_info.build_next_page is None:
            raise UsageError(f"This {self._type.name} was not decoded from a connection and cannot be paginated.")
        return self.page_info.build_next_page()

    def refetch_query(self) -> Any:
        """Build a ``node(id: ...)`` query that re-selects this object's fields."""
        if self._meta.build_refetch_query is None:
            raise UsageError(
                f"A {self._type.name} can only be refetched if its type implements Node and 'id' was selected."
            )
        return self._meta.build_refetch_query()
