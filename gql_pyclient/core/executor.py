"""HTTP transport for sending GraphQL requests.

A fetcher is any async callable ``(graphql_params, headers) -> response``
where ``graphql_params`` holds ``query``, optional ``variables`` and any other
request properties, and ``response`` is the decoded JSON body
(``{"data": ..., "errors": ...}``). ``HttpFetcher`` is the default one.
"""

import logging
from typing import Any, Awaitable, Mapping, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


@runtime_checkable
class Fetcher(Protocol):
    """Protocol for transports used by the Client."""

    def __call__(
        self,
        graphql_params: dict[str, Any],
        headers: Mapping[str, str] | None = None,
    ) -> Awaitable[dict[str, Any]]:
        ...


class HttpFetcher:
    """Posts GraphQL requests as JSON over HTTP.

    HTTP and network failures propagate unchanged as httpx exceptions; the
    fetcher does not retry.

    Examples:
        fetcher = HttpFetcher("https://shop.example/api/graphql")
        fetcher = HttpFetcher(url, headers={"X-Shopify-Storefront-Access-Token": token})
    """

    def __init__(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the fetcher.

        Args:
            url: GraphQL endpoint URL
            headers: Headers sent with every request
            timeout: Request timeout in seconds
            transport: Optional httpx transport (e.g. for testing)
        """
        self.url = url
        self.timeout = timeout
        self.headers = dict(headers or {})
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json", "Accept": "application/json"}
            headers.update(self.headers)
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __call__(
        self,
        graphql_params: dict[str, Any],
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body."""
        client = await self._get_client()

        payload = dict(graphql_params)
        if payload.get("variables"):
            payload["variables"] = self._serialize_variables(payload["variables"])

        logger.debug("POST %s operationName=%s", self.url, payload.get("operationName"))
        response = await client.post(self.url, json=payload, headers=dict(headers) if headers else None)
        response.raise_for_status()
        return response.json()

    def _serialize_variables(self, variables: Mapping[str, Any]) -> dict[str, Any]:
        """Serialize variables for the GraphQL request.

        Handles Pydantic models by converting them to dicts.
        """
        result = {}
        for key, value in variables.items():
            if isinstance(value, BaseModel):
                result[key] = value.model_dump(by_alias=True, exclude_none=True)
            elif isinstance(value, list):
                result[key] = [
                    v.model_dump(by_alias=True, exclude_none=True) if isinstance(v, BaseModel) else v
                    for v in value
                ]
            else:
                result[key] = value
        return result
