"""Tests for the schema-validated selection set builder."""

import pytest

from gql_pyclient.core import (
    ConnectionField,
    Document,
    DuplicateFieldError,
    FragmentDefinition,
    SchemaError,
    SelectionSet,
    variable,
)


class TestAdd:
    """Tests for SelectionSet.add validation."""

    def test_unknown_field_fails_at_add_time(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        with pytest.raises(SchemaError, match="No field of name 'nope' found on type 'Shop'"):
            shop.add("nope")

    def test_unknown_argument(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        with pytest.raises(SchemaError, match="has no argument named 'last'"):
            shop.add_connection("products", lambda p: p.add("title"), args={"last": 5})

    def test_leaf_with_subselection(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        with pytest.raises(SchemaError, match="cannot have a selection of subfields"):
            shop.add("name", lambda name: None)

    def test_object_without_subselection(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        with pytest.raises(SchemaError, match="must have a selection of subfields"):
            root.add("shop")

    def test_empty_subselection(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        with pytest.raises(SchemaError, match="must have a selection of subfields"):
            root.add("shop", lambda shop: None)

    def test_leaf_type_cannot_be_scope(self, bundle):
        with pytest.raises(SchemaError, match="Cannot build a selection set on scalar type 'String'"):
            SelectionSet(bundle, "String")

    def test_unknown_scope_type(self, bundle):
        with pytest.raises(SchemaError):
            SelectionSet(bundle, "Nope")

    def test_add_returns_builder(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        assert shop.add("name").add("description") is shop
        assert str(shop) == "{ name description }"

    def test_invalid_alias(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        with pytest.raises(SchemaError, match="alias"):
            shop.add("name", alias="1st")

    def test_unrenderable_argument(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        with pytest.raises(SchemaError, match="Cannot render a value of type object"):
            root.add("product", lambda p: p.add("title"), args={"handle": object()})

    def test_non_finite_float_argument(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        for value in (float("nan"), float("inf"), float("-inf")):
            with pytest.raises(SchemaError, match="as a GraphQL Float literal"):
                root.add("product", lambda p: p.add("title"), args={"handle": value})
        assert root.selections == []

    def test_nested_selection_set_of_wrong_type(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        products = SelectionSet(bundle, "Product", lambda p: p.add("title"))
        with pytest.raises(SchemaError, match="expects a selection set on 'Shop'"):
            root.add("shop", products)

    def test_reuse_existing_selection_set(self, bundle):
        product = SelectionSet(bundle, "Product", lambda p: p.add("title"))
        root = SelectionSet(bundle, "QueryRoot")
        root.add("product", product, args={"handle": "hat"})
        assert root.field_named("product").selection_set is product


class TestDuplicates:
    """Tests for response key collisions."""

    def test_duplicate_field_with_subselection(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        root.add("shop", lambda shop: shop.add("name"))
        with pytest.raises(DuplicateFieldError, match="'shop' has already been selected"):
            root.add("shop", lambda shop: shop.add("description"))

    def test_alias_avoids_collision(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        root.add("product", lambda p: p.add("title"), args={"handle": "hat"})
        root.add("product", lambda p: p.add("title"), alias="scarf", args={"handle": "scarf"})
        assert str(root) == (
            '{ product(handle: "hat") { id title } scarf: product(handle: "scarf") { id title } }'
        )

    def test_alias_collides_with_field(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        shop.add("name")
        with pytest.raises(DuplicateFieldError):
            shop.add("description", alias="name")

    def test_same_leaf_twice_is_noop(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        shop.add("name").add("name")
        assert str(shop) == "{ name }"

    def test_explicit_id_after_implicit_id(self, bundle):
        product = SelectionSet(bundle, "Product", lambda p: p.add("id").add("title"))
        assert str(product) == "{ id title }"


class TestImplicitFields:
    """Tests for automatically selected fields."""

    def test_node_types_select_id(self, bundle):
        product = SelectionSet(bundle, "Product", lambda p: p.add("title"))
        assert str(product) == "{ id title }"
        assert product.field_named("id").implicit
        assert not product.field_named("title").implicit

    def test_abstract_types_select_typename(self, bundle):
        node = SelectionSet(bundle, "Node", lambda n: n.add("id"))
        assert str(node) == "{ __typename id }"

    def test_plain_objects_select_nothing_extra(self, bundle):
        assert str(SelectionSet(bundle, "Shop", lambda s: s.add("name"))) == "{ name }"


class TestConnections:
    """Tests for add_connection."""

    def test_connection_shape(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        shop.add_connection("products", lambda p: p.add("title"), args={"first": 10})
        assert str(shop) == (
            "{ products(first: 10) { pageInfo { hasNextPage hasPreviousPage } "
            "edges { cursor node { id title } } } }"
        )

    def test_connection_field(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        shop.add_connection("products", lambda p: p.add("title"), args={"first": 10})
        products = shop.field_named("products")
        assert isinstance(products, ConnectionField)
        assert products.is_connection
        assert products.node_selection_set.type.name == "Product"

    def test_non_connection_field(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        with pytest.raises(SchemaError, match="is not a connection"):
            root.add_connection("shop", lambda shop: shop.add("name"))

    def test_leaf_field_is_not_connection(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        with pytest.raises(SchemaError, match="is not a connection"):
            shop.add_connection("name", lambda x: None)

    def test_connection_needs_node_selection(self, bundle):
        shop = SelectionSet(bundle, "Shop")
        with pytest.raises(SchemaError, match="must have a selection of node fields"):
            shop.add_connection("products")


class TestFragments:
    """Tests for inline fragments and fragment spreads."""

    def test_inline_fragment_on_interface(self, bundle):
        node = SelectionSet(bundle, "Node")
        node.add_inline_fragment_on("Product", lambda p: p.add("title"))
        assert str(node) == "{ __typename ... on Product { id title } }"

    def test_inline_fragment_on_union(self, bundle):
        root = SelectionSet(bundle, "QueryRoot")
        root.add(
            "search",
            lambda result: result.add_inline_fragment_on("Collection", lambda c: c.add("title")),
            args={"query": "hats"},
        )
        assert str(root) == '{ search(query: "hats") { __typename ... on Collection { id title } } }'

    def test_inline_fragment_that_can_never_apply(self, bundle):
        node = SelectionSet(bundle, "Node")
        with pytest.raises(SchemaError, match="can never apply to type 'Node'"):
            node.add_inline_fragment_on("Shop", lambda s: s.add("name"))

    def test_fragment_spread_added_once(self, bundle):
        fields = SelectionSet(bundle, "Product", lambda p: p.add("title"))
        fragment = FragmentDefinition("ProductFields", "Product", fields)
        product = SelectionSet(bundle, "Product")
        product.add_fragment(fragment).add_fragment(fragment)
        assert str(product) == "{ id ...ProductFields }"
        assert product.fragment_definitions() == [fragment]

    def test_fragment_spread_type_mismatch(self, bundle):
        document = Document(bundle)
        fragment = document.define_fragment("ShopFields", "Shop", lambda s: s.add("name"))
        product = SelectionSet(bundle, "Product")
        with pytest.raises(SchemaError, match="can never apply to type 'Product'"):
            product.add_fragment(fragment)

    def test_invalid_fragment_name(self, bundle):
        with pytest.raises(SchemaError):
            FragmentDefinition("bad name", "Shop", SelectionSet(bundle, "Shop", lambda s: s.add("name")))


class TestVariables:
    """Tests for variable collection."""

    def test_variables_in_first_use_order(self, bundle):
        first = variable("first", "Int")
        query = variable("query", "String")
        shop = SelectionSet(bundle, "Shop")
        shop.add_connection(
            "products",
            lambda p: p.add_connection("variants", lambda v: v.add("title"), args={"first": first}),
            args={"query": query, "first": first},
        )
        assert [v.name for v in shop.variables()] == ["query", "first"]

    def test_variables_nested_in_input_values(self, bundle):
        title = variable("title", "String!")
        mutation = SelectionSet(bundle, "Mutation")
        mutation.add(
            "productCreate",
            lambda payload: payload.add("userErrors", lambda e: e.add("message")),
            args={"product": {"title": title, "tags": ["new"]}},
        )
        assert mutation.variables() == [title]
