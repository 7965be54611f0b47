"""Registry of model classes used when decoding responses.

Example usage:
    from gql_pyclient.core import ClassRegistry, GraphModel

    class Product(GraphModel):
        @property
        def display_title(self):
            return self.title.upper()

    registry = ClassRegistry()
    registry.register("Product", Product)

    decode(query, data, class_registry=registry)  # Product nodes decode to Product
"""

from typing import Protocol, runtime_checkable

from .model import GraphModel


@runtime_checkable
class ModelLookup(Protocol):
    """Protocol for anything the decoder can ask for a model class."""

    def lookup(self, type_name: str) -> type[GraphModel] | None:
        """Return the class to instantiate for ``type_name``, or None for the default."""
        ...


class ClassRegistry:
    """Maps GraphQL type names to GraphModel subclasses."""

    def __init__(self):
        self._classes: dict[str, type[GraphModel]] = {}

    def register(self, type_name: str, model_class: type[GraphModel]):
        """Register the class to decode ``type_name`` objects into."""
        if not (isinstance(model_class, type) and issubclass(model_class, GraphModel)):
            raise TypeError(f"{model_class!r} is not a GraphModel subclass")
        self._classes[type_name] = model_class

    def unregister(self, type_name: str):
        self._classes.pop(type_name, None)

    def lookup(self, type_name: str) -> type[GraphModel] | None:
        """Get the class registered for a type, or None if not registered."""
        return self._classes.get(type_name)

    def has(self, type_name: str) -> bool:
        return type_name in self._classes
