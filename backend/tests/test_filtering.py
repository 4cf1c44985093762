"""
List query tests.

Verifies:
- Malformed filter conditions are dropped, never raised
- Both accepted date formats select the same rows
- Filters AND together; search ORs across fields, then ANDs with filters
- Unknown sort fields fall back to the entity default
- Relationship paths filter and sort without explicit joins
"""

import json
from datetime import date
from decimal import Decimal

import pytest
from werkzeug.datastructures import MultiDict

from conftest import make_product
from stockroom.filtering import FilterCondition, build_where, parse_filters, resolve_sort
from stockroom.filtering.entities import CATEGORIES, PRODUCTS, REQUESTS
from stockroom.filtering.fields import DateField, NumberField
from stockroom.listing import ListParams
from stockroom.models import Product, ProductCategory
from stockroom.time_utils import parse_filter_date
from stockroom.validation import MAX_INTEGER, parse_record_id


# =============================================================================
# CONDITION PARSING
# =============================================================================


class TestParseFilters:
    """Anything not fully specified disappears before reaching the query."""

    @pytest.mark.parametrize(
        "entry",
        [
            {"field": "", "operator": "=", "value": "x"},
            {"field": "   ", "operator": "=", "value": "x"},
            {"field": "productName", "operator": "contains", "value": ""},
            {"field": "productName", "operator": "contains", "value": "   "},
            {"field": "productName", "operator": "contains"},
            {"field": "productName", "operator": "contains", "value": None},
            {"field": "productName", "operator": "like", "value": "x"},
            {"field": "productName", "operator": "=", "value": ["x"]},
            "productName=x",
        ],
    )
    def test_unspecified_condition_is_dropped(self, entry):
        assert parse_filters([entry]) == []

    def test_keeps_valid_conditions_in_order(self):
        raw = json.dumps([
            {"field": "stock", "operator": ">", "value": 5},
            {"field": "", "operator": "=", "value": "ignored"},
            {"field": "productName", "operator": "contains", "value": " bolt "},
        ])
        assert parse_filters(raw) == [
            FilterCondition("stock", ">", 5),
            FilterCondition("productName", "contains", "bolt"),
        ]

    @pytest.mark.parametrize("raw", [None, "", "not json", "{\"field\": \"x\"}", "42", b"[]"])
    def test_unusable_payload_yields_no_conditions(self, raw):
        assert parse_filters(raw) == []


class TestParseFilterDate:

    def test_both_formats_give_same_day(self):
        assert parse_filter_date("2024-03-05") == parse_filter_date("05-03-2024") == date(2024, 3, 5)

    @pytest.mark.parametrize("value", ["not-a-date", "2024-02-31", "2024/03/05", "", None, 20240305])
    def test_unparsable_is_none(self, value):
        assert parse_filter_date(value) is None

    def test_unparsable_date_condition_has_no_clause(self):
        field = DateField(("request_date",))
        assert field.clause(Product, FilterCondition("requestDate", "=", "not-a-date")) is None

    def test_text_operator_on_date_has_no_clause(self):
        field = DateField(("request_date",))
        assert field.clause(Product, FilterCondition("requestDate", "contains", "2024")) is None


class TestNumberField:

    @pytest.mark.parametrize("operator", ["=", "!=", ">", "<", ">=", "<="])
    def test_non_numeric_value_still_builds_clause(self, operator):
        field = NumberField(("stock",))
        assert field.clause(Product, FilterCondition("stock", operator, "abc")) is not None

    def test_text_operator_is_ignored(self):
        field = NumberField(("stock",))
        assert field.clause(Product, FilterCondition("stock", "contains", "5")) is None

    @pytest.mark.parametrize("value", ["12345678901234567890123", 10**20])
    def test_out_of_range_integer_still_builds_clause(self, value):
        field = NumberField(("stock",))
        assert field.clause(Product, FilterCondition("stock", "=", value)) is not None


class TestParseRecordId:

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("42", 42),
            (7, 7),
            (str(MAX_INTEGER), MAX_INTEGER),
            (str(MAX_INTEGER + 1), None),
            ("12345678901234567890123", None),
            ("²", None),
            ("١٢", None),
            ("-3", None),
            (-3, None),
            ("4a", None),
            ("", None),
            (True, None),
            (None, None),
        ],
    )
    def test_only_ascii_digits_in_integer_range(self, value, expected):
        assert parse_record_id(value) == expected


# =============================================================================
# SORT RESOLUTION
# =============================================================================


class TestResolveSort:

    @pytest.mark.parametrize(
        "entity,expected",
        [
            (CATEGORIES, ("categoryName", "asc")),
            (PRODUCTS, ("createdAt", "desc")),
            (REQUESTS, ("requestDate", "desc")),
        ],
    )
    def test_unknown_field_uses_entity_default(self, entity, expected):
        assert resolve_sort(entity, "definitelyNotAField", "asc") == expected
        assert resolve_sort(entity, None, None) == expected

    def test_known_field_with_bad_order_uses_default_order(self):
        assert resolve_sort(PRODUCTS, "stock", "sideways") == ("stock", "desc")

    def test_order_is_case_insensitive(self):
        assert resolve_sort(PRODUCTS, "stock", "ASC") == ("stock", "asc")


# =============================================================================
# PREDICATE COMPOSITION (DATABASE)
# =============================================================================


@pytest.fixture
def catalog(db_session):
    hardware = ProductCategory(name="Hardware")
    other = ProductCategory(name="Other")
    db_session.add_all([hardware, other])
    db_session.commit()

    products = {
        "match": make_product(db_session, "Steel bolt", stock=10, category_id=hardware.id),
        "low_stock": make_product(db_session, "Steel bolt small", stock=2, category_id=hardware.id),
        "other_category": make_product(db_session, "Brass bolt", stock=20, category_id=other.id),
        "no_term": make_product(db_session, "Hammer", stock=20, category_id=hardware.id),
        "term_in_description": make_product(
            db_session, "Driver", stock=20, category_id=hardware.id, description="Fits every BOLT head"
        ),
    }
    return hardware, other, products


class TestWhereComposition:
    """where = AND(all filters) AND OR(search over searchable fields)."""

    def test_filters_and_search_compose(self, db_session, catalog):
        hardware, _, products = catalog
        filters = parse_filters([
            {"field": "stock", "operator": ">", "value": "5"},
            {"field": "category", "operator": "=", "value": str(hardware.id)},
        ])

        rows = db_session.query(Product).filter(build_where(PRODUCTS, filters, "bolt")).all()

        assert {p.id for p in rows} == {products["match"].id, products["term_in_description"].id}

    def test_dropped_condition_matches_omitting_it(self, db_session, catalog):
        kept = parse_filters([{"field": "stock", "operator": ">=", "value": 10}])
        with_blank = parse_filters([
            {"field": "stock", "operator": ">=", "value": 10},
            {"field": "productName", "operator": "contains", "value": ""},
            {"field": "", "operator": "=", "value": "x"},
        ])

        expected = db_session.query(Product).filter(build_where(PRODUCTS, kept)).all()
        actual = db_session.query(Product).filter(build_where(PRODUCTS, with_blank)).all()
        assert {p.id for p in actual} == {p.id for p in expected}

    def test_unknown_field_is_ignored(self, db_session, catalog):
        filters = parse_filters([{"field": "warpFactor", "operator": "=", "value": "9"}])
        assert db_session.query(Product).filter(build_where(PRODUCTS, filters)).count() == 5

    def test_relation_filter_by_name_substring(self, db_session, catalog):
        filters = parse_filters([{"field": "category", "operator": "=", "value": "oth"}])
        rows = db_session.query(Product).filter(build_where(PRODUCTS, filters)).all()
        assert [p.name for p in rows] == ["Brass bolt"]

    def test_search_reaches_related_name(self, db_session, catalog):
        rows = db_session.query(Product).filter(build_where(PRODUCTS, [], "other")).all()
        assert [p.name for p in rows] == ["Brass bolt"]

    def test_not_contains_keeps_null_columns(self, db_session, catalog):
        filters = parse_filters([{"field": "description", "operator": "not contains", "value": "bolt"}])
        assert db_session.query(Product).filter(build_where(PRODUCTS, filters)).count() == 4


# =============================================================================
# LIST ENDPOINT CONTRACT
# =============================================================================


class TestListEndpoints:

    def test_category_sort_uses_name_column(self, client, db_session, viewer_headers):
        for name in ("Zeta", "Alpha", "Mid"):
            db_session.add(ProductCategory(name=name))
        db_session.commit()

        resp = client.get(
            "/api/categories",
            query_string={"sortField": "categoryName", "sortOrder": "asc"},
            headers=viewer_headers,
        )
        assert resp.status_code == 200
        assert [c["categoryName"] for c in resp.json["data"]] == ["Alpha", "Mid", "Zeta"]

    def test_unknown_sort_orders_like_default(self, client, catalog, viewer_headers):
        default = client.get("/api/products", headers=viewer_headers).json
        bogus = client.get(
            "/api/products",
            query_string={"sortField": "bogus", "sortOrder": "asc"},
            headers=viewer_headers,
        ).json

        assert [r["id"] for r in bogus["data"]] == [r["id"] for r in default["data"]]
        assert (bogus["sortField"], bogus["sortOrder"]) == ("createdAt", "desc")

    def test_sort_across_relationship(self, client, catalog, viewer_headers):
        resp = client.get(
            "/api/products",
            query_string={"sortField": "category", "sortOrder": "desc", "limit": 1},
            headers=viewer_headers,
        )
        assert resp.json["data"][0]["category"] == "Other"

    def test_sort_by_product_count(self, client, catalog, viewer_headers):
        resp = client.get(
            "/api/categories",
            query_string={"sortField": "productCount", "sortOrder": "desc"},
            headers=viewer_headers,
        )
        assert [c["categoryName"] for c in resp.json["data"]] == ["Hardware", "Other"]
        assert [c["productCount"] for c in resp.json["data"]] == [4, 1]

    def test_category_rows_carry_product_count(self, client, db_session, catalog, viewer_headers):
        db_session.add(ProductCategory(name="Empty"))
        db_session.commit()

        resp = client.get("/api/categories", headers=viewer_headers)

        counts = {c["categoryName"]: c["productCount"] for c in resp.json["data"]}
        assert counts == {"Empty": 0, "Hardware": 4, "Other": 1}

    @pytest.mark.parametrize(
        "path,search",
        [
            ("/api/incoming-transactions", "²"),
            ("/api/outgoing-transactions", "²"),
            ("/api/incoming-transactions", "12345678901234567890123"),
            ("/api/outgoing-transactions", "12345678901234567890123"),
            ("/api/products", "²"),
        ],
    )
    def test_odd_digit_search_is_not_an_error(self, client, catalog, viewer_headers, path, search):
        resp = client.get(path, query_string={"search": search}, headers=viewer_headers)
        assert resp.status_code == 200
        assert resp.json["totalCount"] == 0

    @pytest.mark.parametrize(
        "condition",
        [
            {"field": "category", "operator": "=", "value": "²"},
            {"field": "category", "operator": "=", "value": "12345678901234567890123"},
            {"field": "stock", "operator": "=", "value": "12345678901234567890123"},
            {"field": "stock", "operator": ">", "value": 10**20},
        ],
    )
    def test_odd_digit_filter_is_not_an_error(self, client, catalog, viewer_headers, condition):
        resp = client.get(
            "/api/products",
            query_string={"filters": json.dumps([condition])},
            headers=viewer_headers,
        )
        assert resp.status_code == 200
        assert resp.json["totalCount"] == 0

    def test_paging_reports_total(self, client, catalog, viewer_headers):
        resp = client.get(
            "/api/products",
            query_string={"page": 2, "limit": 2, "sortField": "stock", "sortOrder": "asc"},
            headers=viewer_headers,
        )
        body = resp.json
        assert body["totalCount"] == 5
        assert body["page"] == 2
        assert len(body["data"]) == 2

    def test_malformed_filters_do_not_fail(self, client, catalog, viewer_headers):
        resp = client.get(
            "/api/products",
            query_string={"filters": "{not json", "limit": "abc"},
            headers=viewer_headers,
        )
        assert resp.status_code == 200
        assert resp.json["totalCount"] == 5
        assert resp.json["limit"] == 10

    def test_non_numeric_number_filter_is_not_an_error(self, client, catalog, viewer_headers):
        resp = client.get(
            "/api/products",
            query_string={"filters": json.dumps([{"field": "stock", "operator": ">", "value": "abc"}])},
            headers=viewer_headers,
        )
        assert resp.status_code == 200
        assert resp.json["success"] is True


class TestListParams:

    @pytest.mark.parametrize(
        "args,page,limit",
        [
            ({}, 1, 10),
            ({"page": "0", "limit": "0"}, 1, 10),
            ({"page": "-3", "limit": "25"}, 1, 25),
            ({"page": "x", "limit": "y"}, 1, 10),
            ({"page": "4", "limit": "1000"}, 4, 500),
        ],
    )
    def test_clamps(self, args, page, limit):
        params = ListParams.from_args(MultiDict(args))
        assert (params.page, params.limit) == (page, limit)

    def test_offset(self):
        params = ListParams.from_args(MultiDict({"page": "3", "limit": "20"}))
        assert params.offset == 40

    def test_search_is_trimmed(self):
        params = ListParams.from_args(MultiDict({"search": "  bolt  "}))
        assert params.search == "bolt"


def test_money_values_serialize_as_numbers(client, db_session, viewer_headers):
    make_product(db_session, "Washer", unit_price=Decimal("0.35"))
    resp = client.get("/api/products", headers=viewer_headers)
    assert resp.json["data"][0]["unitPrice"] == 0.35
