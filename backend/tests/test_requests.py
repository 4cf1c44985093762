"""
Product request tests.

status is derived from requested vs fulfilled quantity, in Python for
serialization and in SQL for filters and the dashboard counter; both
forms must agree.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from stockroom.models import ProductRequest
from stockroom.time_utils import today


def request_payload(**extra):
    payload = {
        "requestedItem": "Safety gloves",
        "store": "Downtown",
        "requestDate": "2024-03-05",
        "requestedQuantity": 50,
        "unitPrice": "1.20",
    }
    payload.update(extra)
    return payload


STATUS_CASES = [
    (0, "Pending"),
    (20, "Partial"),
    (50, "Fulfilled"),
    (60, "Fulfilled"),
]


class TestDerivedStatus:

    @pytest.mark.parametrize("fulfilled,status", STATUS_CASES)
    def test_python_status(self, fulfilled, status):
        record = ProductRequest(requested_quantity=50, fulfilled_quantity=fulfilled)
        assert record.status == status

    @pytest.mark.parametrize("fulfilled,status", STATUS_CASES)
    def test_sql_status_matches(self, db_session, fulfilled, status):
        record = ProductRequest(
            requested_item="Gloves",
            store="Downtown",
            request_date=date(2024, 3, 5),
            requested_quantity=50,
            fulfilled_quantity=fulfilled,
        )
        db_session.add(record)
        db_session.commit()

        matched = db_session.query(ProductRequest).filter(ProductRequest.status == status).all()
        assert [r.id for r in matched] == [record.id]


class TestRequestApi:

    def test_create_prices_total(self, client, staff_headers):
        resp = client.post("/api/product-requests", json=request_payload(), headers=staff_headers)

        assert resp.status_code == 201
        data = resp.json["data"]
        assert resp.json["id"] == data["id"]
        assert data["totalPrice"] == 60.0
        assert data["fulfilledQuantity"] == 0
        assert data["status"] == "Pending"

    def test_defaults_unit_price_to_zero(self, client, staff_headers):
        payload = request_payload()
        payload.pop("unitPrice")
        resp = client.post("/api/product-requests", json=payload, headers=staff_headers)
        assert resp.json["data"]["unitPrice"] == 0.0
        assert resp.json["data"]["totalPrice"] == 0.0

    @pytest.mark.parametrize(
        "missing,error",
        [
            ("requestedItem", "Requested item is required"),
            ("store", "Store is required"),
            ("requestDate", "Request date is required"),
            ("requestedQuantity", "Requested quantity is required"),
        ],
    )
    def test_required_fields(self, client, staff_headers, missing, error):
        payload = request_payload()
        payload.pop(missing)
        resp = client.post("/api/product-requests", json=payload, headers=staff_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == error

    def test_negative_quantity_rejected(self, client, staff_headers):
        resp = client.post("/api/product-requests", json=request_payload(requestedQuantity=-1), headers=staff_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Requested quantity must be >= 0"

    def test_update_reprices(self, client, staff_headers):
        request_id = client.post("/api/product-requests", json=request_payload(), headers=staff_headers).json["id"]

        resp = client.put(
            f"/api/product-requests/{request_id}",
            json={"requestedQuantity": 10, "fulfilledQuantity": 10},
            headers=staff_headers,
        )

        data = resp.json["data"]
        assert data["totalPrice"] == 12.0
        assert data["status"] == "Fulfilled"

    def test_fulfill_accumulates(self, client, staff_headers):
        request_id = client.post("/api/product-requests", json=request_payload(), headers=staff_headers).json["id"]

        first = client.post(
            f"/api/product-requests/{request_id}/fulfill",
            json={"quantity": 20, "fulfilledDate": "2024-03-10"},
            headers=staff_headers,
        )
        assert first.json["data"]["status"] == "Partial"
        assert first.json["data"]["fulfilledDate"] == "2024-03-10"

        second = client.post(
            f"/api/product-requests/{request_id}/fulfill", json={"quantity": 30}, headers=staff_headers
        )
        assert second.json["data"]["fulfilledQuantity"] == 50
        assert second.json["data"]["status"] == "Fulfilled"
        assert second.json["data"]["fulfilledDate"] == today().strftime("%Y-%m-%d")

    @pytest.mark.parametrize("quantity", [0, -5, None, "abc"])
    def test_fulfill_rejects_bad_quantity(self, client, staff_headers, quantity):
        request_id = client.post("/api/product-requests", json=request_payload(), headers=staff_headers).json["id"]
        resp = client.post(
            f"/api/product-requests/{request_id}/fulfill", json={"quantity": quantity}, headers=staff_headers
        )
        assert resp.status_code == 400

    def test_list_filters_on_derived_status(self, client, staff_headers, viewer_headers):
        client.post("/api/product-requests", json=request_payload(), headers=staff_headers)
        client.post(
            "/api/product-requests",
            json=request_payload(requestedItem="Hard hats", fulfilledQuantity=5),
            headers=staff_headers,
        )

        filters = json.dumps([{"field": "status", "operator": "=", "value": "Partial"}])
        resp = client.get("/api/product-requests", query_string={"filters": filters}, headers=viewer_headers)

        assert resp.json["totalCount"] == 1
        row = resp.json["data"][0]
        assert row["requestedItem"] == "Hard hats"
        assert row["fulfilledDate"] == ""
        assert row["requestDate"] == "2024-03-05"

    def test_report_rows(self, client, staff_headers, viewer_headers):
        client.post(
            "/api/product-requests",
            json=request_payload(supplier="Acme Supply", notes="Urgent"),
            headers=staff_headers,
        )
        row = client.get("/api/reports/requests", headers=viewer_headers).json["data"][0]
        assert row["requestDate"] == "05-03-2024"
        assert row["fulfilledDate"] == "-"
        assert row["supplierLocation"] == "Acme Supply"
        assert row["remarks"] == "Urgent"

    def test_delete(self, client, db_session, staff_headers, admin_headers):
        request_id = client.post("/api/product-requests", json=request_payload(), headers=staff_headers).json["id"]
        resp = client.delete(f"/api/product-requests/{request_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db_session.query(ProductRequest).count() == 0

    def test_total_price_is_not_client_controlled(self, client, staff_headers):
        resp = client.post(
            "/api/product-requests", json=request_payload(totalPrice=999), headers=staff_headers
        )
        assert resp.json["data"]["totalPrice"] == float(Decimal("1.20") * 50)
