#!/usr/bin/env python3
"""Demonstration of building, decoding and paginating queries.

This script shows how to:
1. Parse a GraphQL schema into a type bundle
2. Build a query with a paginated connection
3. Decode a response and fetch every following page

Note: This demo doesn't make real API calls - a canned fetcher stands in
for the storefront API.
"""

import asyncio
from pathlib import Path

from gql_pyclient.core import (
    Client,
    SchemaParser,
    start_tracking,
    tracked_types,
)

SCHEMA = Path(__file__).parent.parent / "tests" / "fixtures" / "shop.graphqls"


class CannedFetcher:
    """Serves two pages of products."""

    def __init__(self):
        self.pages = [
            ("Beanie", "Cap"),
            ("Fedora",),
        ]

    async def __call__(self, graphql_params, headers=None):
        print(f"   -> {graphql_params['query'][:90]}...")
        titles = self.pages.pop(0)
        return {
            "data": {
                "shop": {
                    "name": "Hat Shop",
                    "products": {
                        "pageInfo": {"hasNextPage": bool(self.pages), "hasPreviousPage": False},
                        "edges": [
                            {"cursor": title.lower(), "node": {"id": f"gid://Product/{title}", "title": title}}
                            for title in titles
                        ],
                    },
                }
            }
        }


async def main():
    print("=== Pagination Demo ===\n")

    print("1. Parsing GraphQL schema...")
    bundle = SchemaParser(str(SCHEMA)).parse_all()
    print(f"   {len(bundle)} types, query root {bundle.query_type}")

    print("\n2. Building query...")
    start_tracking()
    client = Client(bundle, fetcher=CannedFetcher())
    query = client.query(
        lambda root: root.add(
            "shop",
            lambda shop: shop.add("name").add_connection(
                "products",
                lambda product: product.add("title"),
                args={"first": 2},
            ),
        ),
        name="Products",
    )
    print(f"   {query}")
    print(f"   Depends on: {', '.join(tracked_types())}")

    print("\n3. Sending and paginating...")
    response = await client.send(query)
    products = await client.fetch_all_pages(response.model.shop.products, page_size=2)
    for product in products:
        print(f"   - {product.title} (cursor {product.cursor})")


if __name__ == "__main__":
    asyncio.run(main())
