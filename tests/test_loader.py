"""Tests for loading query text into Documents."""

import pytest

from gql_pyclient.core import (
    DocumentLoader,
    EnumValue,
    SchemaError,
    UndeclaredVariableError,
    decode,
    load_document,
)


class TestLoadDocument:
    """Tests for load_document."""

    def test_named_query_with_variables(self, bundle):
        document = load_document(bundle, "query Hat($handle: String!) { product(handle: $handle) { title } }")
        operation = document.select_operation()
        assert operation.name == "Hat"
        assert [v.name for v in operation.variable_definitions] == ["handle"]
        assert str(document) == "query Hat($handle: String!) { product(handle: $handle) { id title } }"

    def test_default_values(self, bundle):
        document = load_document(
            bundle,
            "query Products($first: Int = 10) { shop { products(first: $first) { edges { node { title } } } } }",
        )
        assert "($first: Int = 10)" in str(document)

    def test_literal_arguments(self, bundle):
        document = load_document(
            bundle,
            '{ shop { products(first: 5, reverse: true, sortKey: TITLE, query: "hat") '
            "{ edges { node { title } } } } }",
        )
        products = document.operations[0].selection_set.field_named("shop").selection_set.field_named("products")
        assert products.args == {"first": 5, "reverse": True, "sortKey": EnumValue("TITLE"), "query": "hat"}

    def test_connection_shape_becomes_connection(self, bundle):
        document = load_document(
            bundle,
            "{ shop { products(first: 5) { pageInfo { hasNextPage } edges { cursor node { title } } } } }",
        )
        shop = document.operations[0].selection_set.field_named("shop")
        assert shop.selection_set.field_named("products").is_connection

    def test_other_shapes_stay_plain(self, bundle):
        document = load_document(bundle, "{ shop { products(first: 5) { edges { node { title } } } } }")
        shop = document.operations[0].selection_set.field_named("shop")
        assert not shop.selection_set.field_named("products").is_connection

    def test_loaded_connection_paginates(self, bundle):
        document = load_document(
            bundle,
            "{ shop { products(first: 1) { pageInfo { hasNextPage hasPreviousPage } "
            "edges { cursor node { title } } } } }",
        )
        data = {
            "shop": {
                "products": {
                    "pageInfo": {"hasNextPage": True, "hasPreviousPage": False},
                    "edges": [{"cursor": "c1", "node": {"id": "1", "title": "Beanie"}}],
                }
            }
        }
        node = decode(document.select_operation(), data).shop.products[0]
        query, path = node.next_page_query_and_path()
        assert path == ["shop", "products"]
        assert 'after: "c1"' in str(query)

    def test_fragments(self, bundle):
        document = load_document(
            bundle,
            """
            query One { product(handle: "hat") { ...ProductFields } }
            fragment ProductFields on Product { title ...Tags }
            fragment Tags on Product { tags }
            """,
        )
        assert {f.name for f in document.fragments} == {"ProductFields", "Tags"}
        text = str(document)
        assert "fragment ProductFields on Product { id title ...Tags }" in text
        assert "fragment Tags on Product { id tags }" in text
        assert text.endswith('query One { product(handle: "hat") { id ...ProductFields } }')

    def test_inline_fragments(self, bundle):
        document = load_document(bundle, '{ node(id: "1") { ... on Product { title } } }')
        assert str(document) == 'query { node(id: "1") { __typename ... on Product { id title } } }'

    def test_mutation(self, bundle):
        document = load_document(
            bundle,
            'mutation Create { productCreate(product: {title: "Hat", tags: ["wool"]}) { userErrors { message } } }',
        )
        assert document.select_operation().operation_type == "mutation"

    def test_multiple_operations(self, bundle):
        document = load_document(bundle, "query A { shop { name } } query B { shop { description } }")
        assert [op.name for op in document.operations] == ["A", "B"]

    def test_records_types(self, bundle, tracker):
        DocumentLoader(bundle, tracker).load("{ shop { name } }")
        assert tracker.tracked_types() == ["QueryRoot", "Shop", "String"]


class TestLoadErrors:
    """Tests for documents that do not match the type bundle."""

    def test_syntax_error(self, bundle):
        with pytest.raises(SchemaError, match="Invalid GraphQL document"):
            load_document(bundle, "{ shop { name }")

    def test_unknown_field(self, bundle):
        with pytest.raises(SchemaError, match="No field of name 'owner'"):
            load_document(bundle, "{ shop { owner } }")

    def test_undeclared_variable(self, bundle):
        with pytest.raises(UndeclaredVariableError, match=r"\$handle"):
            load_document(bundle, "{ product(handle: $handle) { title } }")

    def test_unknown_fragment(self, bundle):
        with pytest.raises(SchemaError, match="Unknown fragment 'Missing'"):
            load_document(bundle, '{ product(handle: "x") { ...Missing } }')

    def test_fragment_cycle(self, bundle):
        with pytest.raises(SchemaError, match="spreads itself"):
            load_document(
                bundle,
                """
                { product(handle: "x") { ...A } }
                fragment A on Product { ...B }
                fragment B on Product { ...A }
                """,
            )

    def test_directives_not_supported(self, bundle):
        with pytest.raises(SchemaError, match="directives are not supported"):
            load_document(bundle, "{ shop { name @include(if: true) } }")

    def test_schema_definitions_rejected(self, bundle):
        with pytest.raises(SchemaError, match="Only operations and fragments"):
            load_document(bundle, "type Extra { a: String }")
