"""
Supplier and customer tests.

Both parties share one blueprint factory and one service, so most cases
run against both URL prefixes.
"""

from datetime import date
from decimal import Decimal

import pytest

from stockroom.models import (
    Customer,
    OutgoingTransaction,
    OutgoingTransactionItem,
    Product,
    Supplier,
)


PARTIES = [
    ("/api/suppliers", "supplierName", Supplier),
    ("/api/customers", "customerName", Customer),
]


def party_payload(name_key: str, name: str = "Gamma Goods") -> dict:
    return {name_key: name, "phoneNumber": "555-0300", "address": "4 Market St", "email": "gamma@example.com"}


@pytest.mark.parametrize("url,name_key,model", PARTIES)
class TestPartyCrud:

    def test_create(self, client, staff_headers, url, name_key, model):
        resp = client.post(url, json=party_payload(name_key), headers=staff_headers)
        assert resp.status_code == 201
        assert resp.json["data"][name_key] == "Gamma Goods"
        assert resp.json["data"]["status"] == "active"

    @pytest.mark.parametrize("missing", ["phoneNumber", "address"])
    def test_contact_fields_required(self, client, staff_headers, url, name_key, model, missing):
        payload = party_payload(name_key)
        payload.pop(missing)
        resp = client.post(url, json=payload, headers=staff_headers)
        assert resp.status_code == 400
        assert resp.json["error"].endswith("is required")

    def test_name_required(self, client, staff_headers, url, name_key, model):
        payload = party_payload(name_key)
        payload[name_key] = ""
        resp = client.post(url, json=payload, headers=staff_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == f"{model.__name__} name is required"

    def test_bulk_create(self, client, db_session, staff_headers, url, name_key, model):
        rows = [party_payload(name_key, f"Party {i}") for i in range(3)]
        resp = client.post(url, json=rows, headers=staff_headers)
        assert resp.status_code == 201
        assert resp.json["count"] == 3
        assert db_session.query(model).count() == 3

    def test_plain_name_keys_accepted(self, client, staff_headers, url, name_key, model):
        resp = client.post(
            url,
            json={"name": "Delta", "phone": "555-0400", "address": "5 Pier"},
            headers=staff_headers,
        )
        assert resp.status_code == 201
        assert resp.json["data"][name_key] == "Delta"
        assert resp.json["data"]["phoneNumber"] == "555-0400"

    def test_update(self, client, staff_headers, url, name_key, model):
        party_id = client.post(url, json=party_payload(name_key), headers=staff_headers).json["data"]["id"]
        resp = client.put(f"{url}/{party_id}", json={"contactPerson": "Dana"}, headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["contactPerson"] == "Dana"

    def test_get_missing(self, client, viewer_headers, url, name_key, model):
        resp = client.get(f"{url}/999", headers=viewer_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == f"{model.__name__} not found"

    def test_multi_delete(self, client, db_session, staff_headers, admin_headers, url, name_key, model):
        ids = [
            client.post(url, json=party_payload(name_key, f"P{i}"), headers=staff_headers).json["data"]["id"]
            for i in range(3)
        ]
        resp = client.delete(url, query_string={"ids": f"{ids[0]},{ids[1]}"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["deletedCount"] == 2
        assert [p.id for p in db_session.query(model).all()] == [ids[2]]

    @pytest.mark.parametrize("ids", ["", "1,abc", "1,\u00b2", "99999999999999999999"])
    def test_multi_delete_bad_ids(self, client, admin_headers, url, name_key, model, ids):
        resp = client.delete(url, query_string={"ids": ids}, headers=admin_headers)
        assert resp.status_code == 400

    def test_list_search(self, client, staff_headers, viewer_headers, url, name_key, model):
        client.post(url, json=party_payload(name_key, "Northwind"), headers=staff_headers)
        client.post(url, json=party_payload(name_key, "Southgate"), headers=staff_headers)

        resp = client.get(url, query_string={"search": "north"}, headers=viewer_headers)

        assert resp.json["totalCount"] == 1
        assert resp.json["data"][0]["name"] == "Northwind"


class TestPartyDeletionGuards:

    def test_customer_with_transactions_is_kept(self, client, db_session, customer, warehouse, product, admin_headers):
        transaction = OutgoingTransaction(
            transaction_date=date(2024, 3, 5), customer_id=customer.id, warehouse_id=warehouse.id
        )
        transaction.items = [
            OutgoingTransactionItem(product_id=product.id, quantity=1, unit_price=Decimal("1"), total_price=Decimal("1"))
        ]
        db_session.add(transaction)
        db_session.commit()

        single = client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
        many = client.delete("/api/customers", query_string={"ids": str(customer.id)}, headers=admin_headers)

        assert single.status_code == 409
        assert many.status_code == 409
        assert db_session.get(Customer, customer.id) is not None

    def test_deleting_supplier_detaches_products(self, client, db_session, supplier, product, admin_headers):
        resp = client.delete(f"/api/suppliers/{supplier.id}", headers=admin_headers)

        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(Product, product.id).supplier_id is None
