"""Client for building, sending and paginating GraphQL operations.

Examples:
    client = Client(bundle, url="https://shop.example/api/graphql")

    query = client.query(lambda root: root.add("shop", lambda shop: (
        shop.add("name").add_connection("products", lambda p: p.add("title"), args={"first": 10})
    )))
    response = await client.send(query)
    products = response.model.shop.products
    products = await client.fetch_all_pages(products, page_size=10)
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping, Sequence, Union

from .class_registry import ClassRegistry, ModelLookup
from .decoder import decode
from .errors import GraphQLError, UsageError
from .executor import Fetcher, HttpFetcher
from .model import GraphModel
from .operation import Document, Mutation, Operation, Query
from .schema import TypeBundle
from .selection_set import SelectionSource
from .tracker import Tracker
from .values import Directive, EnumValue, VariableDefinition, enum_value, variable

logger = logging.getLogger(__name__)

Request = Union[Operation, Document, Callable[["Client"], Union[Operation, Document]]]


@dataclass(frozen=True)
class GraphQLResponse:
    """A response body plus the decoded model for its data."""
    data: Any = None
    errors: list[dict[str, Any]] | None = None
    extensions: dict[str, Any] | None = None
    model: Any = None

    def raise_for_errors(self):
        """Raise GraphQLError if the response carries errors."""
        if self.errors:
            error_messages = "; ".join(e.get("message", str(e)) for e in self.errors)
            raise GraphQLError(f"GraphQL errors: {error_messages}", self.errors)


class Client:
    """Creates and sends GraphQL documents, queries and mutations.

    Exactly one of ``url`` or ``fetcher`` must be given. ``headers`` and
    ``timeout`` configure the default HttpFetcher and cannot be combined with
    a custom fetcher.
    """

    def __init__(
        self,
        type_bundle: TypeBundle,
        *,
        url: str | None = None,
        fetcher: Fetcher | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        registry: ModelLookup | None = None,
        tracker: Tracker | None = None,
    ):
        self.type_bundle = type_bundle
        self.class_registry = registry if registry is not None else ClassRegistry()
        self.tracker = tracker

        if url and fetcher:
            raise UsageError("Supply either `url` (with optional `headers`) or a `fetcher`, not both.")
        if url:
            self.fetcher = HttpFetcher(url, headers=headers, timeout=timeout)
        elif fetcher:
            if headers:
                raise UsageError("When using a custom `fetcher`, set headers through it and not with `headers`.")
            self.fetcher = fetcher
        else:
            raise UsageError("One of `url` or `fetcher` is needed.")

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        """Close the default HTTP fetcher, if one was created."""
        if isinstance(self.fetcher, HttpFetcher):
            await self.fetcher.close()

    def document(self) -> Document:
        return Document(self.type_bundle, tracker=self.tracker)

    def query(
        self,
        selection: SelectionSource | None = None,
        *,
        name: str | None = None,
        variables: Sequence[VariableDefinition] = (),
    ) -> Query:
        return Query(self.type_bundle, selection, name=name, variables=variables, tracker=self.tracker)

    def mutation(
        self,
        selection: SelectionSource | None = None,
        *,
        name: str | None = None,
        variables: Sequence[VariableDefinition] = (),
    ) -> Mutation:
        return Mutation(self.type_bundle, selection, name=name, variables=variables, tracker=self.tracker)

    def variable(self, name: str, type: str, default_value: Any = None) -> VariableDefinition:
        return variable(name, type, default_value)

    def enum(self, key: str) -> EnumValue:
        return enum_value(key)

    async def send(
        self,
        request: Request,
        variable_values: Mapping[str, Any] | None = None,
        other_properties: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        directive: Directive | None = None,
    ) -> GraphQLResponse:
        """Send an operation or document and decode the response.

        Args:
            request: Query, Mutation or Document, or a callable receiving this
                client and returning one
            variable_values: Values for the operation's variables
            other_properties: Extra request properties, e.g. ``operationName``
            headers: Headers for this request only
            directive: Directive appended to the operation, e.g. ``in_context()``

        Returns:
            The response, with ``model`` decoded from ``data`` when present.
            GraphQL errors are returned, not raised; see ``raise_for_errors``.
        """
        operation_or_document = request(self) if callable(request) else request
        other_properties = dict(other_properties or {})

        if isinstance(operation_or_document, Document):
            operation = operation_or_document.select_operation(other_properties.get("operationName"))
        else:
            operation = operation_or_document

        graphql_params: dict[str, Any] = {"query": operation_or_document.to_string(directive)}
        if variable_values:
            graphql_params["variables"] = dict(variable_values)
        graphql_params.update(other_properties)

        logger.debug("Sending %r", operation)
        result = await self.fetcher(graphql_params, headers)

        data = result.get("data")
        model = None
        if data:
            model = decode(
                operation,
                data,
                class_registry=self.class_registry,
                variable_values=variable_values,
            )
        return GraphQLResponse(
            data=data,
            errors=result.get("errors"),
            extensions=result.get("extensions"),
            model=model,
        )

    async def fetch_next_page(
        self,
        node_or_nodes: GraphModel | Sequence[GraphModel],
        options: Mapping[str, Any] | None = None,
    ) -> GraphQLResponse:
        """Fetch the page after a node (or after the last of a list of nodes).

        Args:
            node_or_nodes: A node decoded from a connection, or a page of them
            options: Variable overrides, e.g. ``{"first": 20}``

        Returns:
            The response, with ``model`` set to the list of next-page nodes
        """
        if isinstance(node_or_nodes, GraphModel):
            node = node_or_nodes
        elif node_or_nodes:
            node = node_or_nodes[-1]
        else:
            raise UsageError("Cannot fetch the next page of an empty list of nodes.")

        query, path = node.next_page_query_and_path()
        variable_values = None
        if node.variable_values or options:
            variable_values = {**node.variable_values, **(options or {})}

        response = await self.send(query, variable_values)
        model = response.model
        for key in path:
            model = model.get(key) if isinstance(model, GraphModel) else None
        return replace(response, model=model)

    async def fetch_all_pages(self, paginated_models: Sequence[GraphModel], *, page_size: int) -> list[GraphModel]:
        """Fetch every page after ``paginated_models``, one request at a time.

        Each request needs the cursor from the page before it, so pages are
        fetched strictly in sequence.

        Returns:
            The original nodes followed by the nodes of every later page
        """
        models = list(paginated_models)
        while models and models[-1].has_next_page:
            response = await self.fetch_next_page(models, {"first": page_size})
            if not response.model:
                break
            models.extend(response.model)
        return models

    async def refetch(self, node: GraphModel | None) -> GraphModel | None:
        """Refetch a model whose type implements Node; returns a new model."""
        if node is None:
            raise UsageError("'Client.refetch' must be called with a non-null instance of a Node.")
        if not node.type.implements_node:
            raise UsageError(
                f"'Client.refetch' must be called with a type that implements Node. Received {node.type.name}."
            )
        response = await self.send(node.refetch_query(), node.variable_values or None)
        return response.model.get("node") if response.model is not None else None
