"""Tests for the /sales endpoints."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi import status

from conftest import ledger_sale, variant_quantity


def _sale_payload(product, quantity=1, variant_id=None, **extra):
    item = {"product_id": product.id, "quantity": quantity}
    if variant_id is not None:
        item["variant_id"] = variant_id
    return {"items": [item], **extra}


class TestCreateSale:

    def test_create_sale_success(self, client, db_session, agent_headers, a4_product):
        variant_id = a4_product.variants[0].id

        response = client.post(
            "/sales",
            json=_sale_payload(a4_product, 2, variant_id, customer={"name": "Amina", "phone": "0700000000"}),
            headers=agent_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert Decimal(data["total"]) == Decimal("44000")
        assert Decimal(data["total_profit"]) == Decimal("8000")
        assert data["customer"] == {"name": "Amina", "phone": "0700000000"}

        item = data["items"][0]
        assert item["product"] == {"id": a4_product.id, "name": "A4"}
        assert item["variant_id"] == variant_id
        assert item["units_sold"] == 24
        assert Decimal(item["unit_price"]) == Decimal("22000")
        assert Decimal(item["subtotal"]) == Decimal("44000")
        assert Decimal(item["cost_at_sale"]) == Decimal("1500")
        assert Decimal(item["profit"]) == Decimal("8000")

        assert variant_quantity(db_session, variant_id) == 96

    def test_requires_authentication(self, client, a4_product):
        response = client.post("/sales", json=_sale_payload(a4_product))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_invalid_token(self, client, a4_product):
        response = client.post(
            "/sales",
            json=_sale_payload(a4_product),
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_insufficient_stock_is_bad_request(self, client, db_session, agent_headers, make_product):
        product = make_product(name="A4", variants=[{"title": "A4 (dozen)", "pack_size": 12, "quantity": 10}])

        response = client.post("/sales", json=_sale_payload(product), headers=agent_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Insufficient stock for A4 (A4 (dozen))" in response.json()["detail"]
        assert variant_quantity(db_session, product.variants[0].id) == 10

    def test_empty_items_rejected(self, client, agent_headers):
        response = client.post("/sales", json={"items": []}, headers=agent_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Sale must contain items"

    def test_zero_quantity_rejected(self, client, agent_headers, a4_product):
        response = client.post("/sales", json=_sale_payload(a4_product, 0), headers=agent_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Item quantity must be greater than zero"

    def test_unknown_product_rejected(self, client, agent_headers):
        response = client.post(
            "/sales",
            json={"items": [{"product_id": 999999, "quantity": 1}]},
            headers=agent_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "not found" in response.json()["detail"]

    def test_unknown_variant_rejected(self, client, agent_headers, a4_product):
        response = client.post(
            "/sales",
            json=_sale_payload(a4_product, 1, variant_id=999999),
            headers=agent_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Variant 999999 not found" in response.json()["detail"]

    def test_duplicate_submission_returns_same_sale(self, client, db_session, agent_headers, a4_product):
        payload = _sale_payload(a4_product, 1, request_id="pos-42")

        first = client.post("/sales", json=payload, headers=agent_headers)
        second = client.post("/sales", json=payload, headers=agent_headers)

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_201_CREATED
        assert first.json()["id"] == second.json()["id"]
        assert variant_quantity(db_session, a4_product.variants[0].id) == 108

    @pytest.mark.parametrize("blank", ["", "   "])
    def test_blank_request_id_is_not_a_key(self, client, db_session, agent_headers, a4_product, blank):
        payload = _sale_payload(a4_product, 1, request_id=blank)

        first = client.post("/sales", json=payload, headers=agent_headers)
        second = client.post("/sales", json=payload, headers=agent_headers)

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_201_CREATED
        assert first.json()["id"] != second.json()["id"]
        assert first.json()["request_id"] is None
        assert variant_quantity(db_session, a4_product.variants[0].id) == 96


class TestReadSales:

    def test_list_newest_first_with_limit(self, client, db_session, agent_user, agent_headers, a4_product):
        now = datetime.now(timezone.utc)
        oldest = ledger_sale(db_session, agent_user, a4_product, now - timedelta(days=3))
        middle = ledger_sale(db_session, agent_user, a4_product, now - timedelta(days=2))
        newest = ledger_sale(db_session, agent_user, a4_product, now - timedelta(days=1))

        response = client.get("/sales", headers=agent_headers)
        assert [s["id"] for s in response.json()] == [newest.id, middle.id, oldest.id]

        response = client.get("/sales?limit=2", headers=agent_headers)
        assert [s["id"] for s in response.json()] == [newest.id, middle.id]

    def test_get_sale_by_id(self, client, db_session, agent_user, agent_headers, a4_product):
        sale = ledger_sale(db_session, agent_user, a4_product, datetime.now(timezone.utc))

        response = client.get(f"/sales/{sale.id}", headers=agent_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["items"][0]["product"]["name"] == "A4"

    def test_get_missing_sale(self, client, agent_headers):
        response = client.get("/sales/999999", headers=agent_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_product_name_follows_rename(self, client, db_session, agent_user, agent_headers, a4_product):
        sale = ledger_sale(db_session, agent_user, a4_product, datetime.now(timezone.utc))

        a4_product.name = "A4 Exercise Book"
        db_session.commit()

        response = client.get(f"/sales/{sale.id}", headers=agent_headers)
        assert response.json()["items"][0]["product"]["name"] == "A4 Exercise Book"

    def test_deleted_product_falls_back_to_snapshot(self, client, db_session, agent_user, agent_headers, admin_headers, a4_product):
        sale = ledger_sale(db_session, agent_user, a4_product, datetime.now(timezone.utc))
        sale_id = sale.id

        response = client.delete(f"/products/{a4_product.id}", headers=admin_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = client.get(f"/sales/{sale_id}", headers=agent_headers)
        item = response.json()["items"][0]
        assert item["product"] == {"id": None, "name": "A4"}
        assert item["variant_id"] is None
        assert Decimal(item["subtotal"]) == Decimal("22000")
