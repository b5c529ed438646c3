"""Tests for the catalog endpoints."""

import threading
from decimal import Decimal

from fastapi import status
from fastapi.testclient import TestClient

from conftest import variant_quantity
from salesdesk.routers import products as products_router
from salesdesk.services import catalog
from salesdesk.services.catalog import generate_sku


def _product_payload(**overrides):
    payload = {
        "name": "Bic Pen",
        "category": "Stationery",
        "variants": [
            {"title": "Single", "pack_size": 1, "cost_price": "500", "price": "700", "quantity": 200},
            {"title": "Dozen", "pack_size": 12, "cost_price": "500", "price": "8000", "quantity": 0},
        ],
    }
    payload.update(overrides)
    return payload


class TestCreateProduct:

    def test_create_product_with_variants(self, client, admin_headers):
        response = client.post("/products", json=_product_payload(), headers=admin_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["sku"] == "STAT-BICP-001"
        assert [v["title"] for v in data["variants"]] == ["Single", "Dozen"]
        assert data["variants"][1]["pack_size"] == 12
        assert Decimal(data["variants"][1]["price"]) == Decimal("8000")
        assert data["variants"][0]["sku"] == "STAT-BICP-001-V1"
        assert data["total_quantity"] == 200

    def test_default_variant_is_synthesized(self, client, admin_headers):
        response = client.post(
            "/products",
            json={"name": "Ruler", "category": "Stationery"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        variants = response.json()["variants"]
        assert len(variants) == 1
        assert variants[0]["title"] == "Default"
        assert variants[0]["pack_size"] == 1
        assert variants[0]["quantity"] == 0
        assert Decimal(variants[0]["price"]) == Decimal("0")

    def test_sku_sequence_increments(self, client, admin_headers):
        first = client.post("/products", json=_product_payload(), headers=admin_headers).json()
        second = client.post("/products", json=_product_payload(name="Bic  Pen Blue"), headers=admin_headers).json()

        assert first["sku"] == "STAT-BICP-001"
        assert second["sku"] == "STAT-BICP-002"

    def test_generate_sku_skips_taken_numbers(self, db_session, make_product):
        product = make_product(name="Book 4QR", category="Books")
        product.sku = "BOOK-BOOK-007"
        db_session.commit()

        assert generate_sku(db_session, "Books", "Book 3QR") == "BOOK-BOOK-008"

    def test_duplicate_sku_conflict(self, client, admin_headers):
        client.post("/products", json=_product_payload(sku="PEN-1"), headers=admin_headers)
        response = client.post("/products", json=_product_payload(sku="PEN-1"), headers=admin_headers)

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_generated_sku_taken_concurrently_is_redrawn(self, client, db_session, admin_headers, make_product, monkeypatch):
        taken = make_product(name="Widget", category="General")
        taken.sku = "GENE-WIDG-001"
        db_session.commit()

        real_generate_sku = catalog.generate_sku
        calls = {"n": 0}

        def stale_first(db, category, name):
            # First draw returns a SKU another request already committed
            calls["n"] += 1
            if calls["n"] == 1:
                return "GENE-WIDG-001"
            return real_generate_sku(db, category, name)

        monkeypatch.setattr(catalog, "generate_sku", stale_first)

        response = client.post(
            "/products",
            json={"name": "Widget", "category": "General"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["sku"] == "GENE-WIDG-002"
        assert calls["n"] == 2

    def test_explicit_sku_taken_concurrently_conflicts(self, client, admin_headers, make_product, monkeypatch):
        make_product(name="Pen")
        # Lets the request reach the insert, as a concurrent create would
        monkeypatch.setattr(products_router, "_ensure_sku_free", lambda *args, **kwargs: None)

        response = client.post("/products", json=_product_payload(sku="TEST-001"), headers=admin_headers)

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_concurrent_creates_get_distinct_skus(self, app, db_session, admin_headers):
        barrier = threading.Barrier(4)
        responses = []

        def create():
            with TestClient(app) as thread_client:
                barrier.wait()
                responses.append(
                    thread_client.post(
                        "/products",
                        json={"name": "Widget", "category": "General"},
                        headers=admin_headers,
                    )
                )

        threads = [threading.Thread(target=create) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert [r.status_code for r in responses] == [status.HTTP_201_CREATED] * 4
        assert sorted(r.json()["sku"] for r in responses) == [
            "GENE-WIDG-001", "GENE-WIDG-002", "GENE-WIDG-003", "GENE-WIDG-004",
        ]

    def test_agent_cannot_create(self, client, agent_headers):
        response = client.post("/products", json=_product_payload(), headers=agent_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_pack_size_must_be_positive(self, client, admin_headers):
        payload = _product_payload(variants=[{"title": "Broken", "pack_size": 0}])
        response = client.post("/products", json=payload, headers=admin_headers)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestReadProducts:

    def test_list_is_public(self, client, make_product):
        make_product(name="Pen")
        make_product(name="Book")

        response = client.get("/products")

        assert response.status_code == status.HTTP_200_OK
        assert {p["name"] for p in response.json()} == {"Pen", "Book"}

    def test_low_stock(self, client, make_product):
        make_product(name="Plenty", variants=[{"quantity": 500}])
        make_product(name="Mixed", variants=[{"quantity": 500}, {"title": "Box", "quantity": 3}])
        make_product(name="Empty", variants=[{"quantity": 0}])

        response = client.get("/products/low-stock")

        assert response.status_code == status.HTTP_200_OK
        assert [p["name"] for p in response.json()] == ["Mixed", "Empty"]

    def test_get_missing_product(self, client):
        response = client.get("/products/999999")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestUpdateProduct:

    def test_update_fields(self, client, admin_headers, make_product):
        product = make_product(name="Pen")

        response = client.put(
            f"/products/{product.id}",
            json={"name": "Blue Pen", "category": "Pens"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Blue Pen"
        assert response.json()["category"] == "Pens"

    def test_update_to_taken_sku(self, client, admin_headers, make_product):
        make_product(name="Pen")
        other = make_product(name="Book")

        response = client.put(
            f"/products/{other.id}",
            json={"sku": "TEST-001"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_delete_product(self, client, admin_headers, make_product):
        product = make_product(name="Pen")

        response = client.delete(f"/products/{product.id}", headers=admin_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = client.get(f"/products/{product.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestVariants:

    def test_add_variant(self, client, admin_headers, make_product):
        product = make_product(name="Pen")

        response = client.post(
            f"/products/{product.id}/variants",
            json={"title": "Dozen", "pack_size": 12, "cost_price": "60", "price": "1100", "quantity": 0},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["sku"] == "TEST-001-V2"

        variants = client.get(f"/products/{product.id}").json()["variants"]
        assert [v["title"] for v in variants] == ["Single", "Dozen"]

    def test_update_variant(self, client, admin_headers, make_product):
        product = make_product(name="Pen")
        variant_id = product.variants[0].id

        response = client.put(
            f"/products/{product.id}/variants/{variant_id}",
            json={"price": "120", "quantity": 75},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.json()["price"]) == Decimal("120")
        assert response.json()["quantity"] == 75
        assert response.json()["title"] == "Single"

    def test_update_unknown_variant(self, client, admin_headers, make_product):
        product = make_product(name="Pen")

        response = client.put(
            f"/products/{product.id}/variants/999999",
            json={"price": "120"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_variant(self, client, admin_headers, make_product):
        product = make_product(name="Pen", variants=[{}, {"title": "Box"}])
        box_id = product.variants[1].id

        response = client.delete(f"/products/{product.id}/variants/{box_id}", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["variant_id"] == box_id
        variants = client.get(f"/products/{product.id}").json()["variants"]
        assert [v["title"] for v in variants] == ["Single"]

    def test_cannot_delete_last_variant(self, client, admin_headers, make_product):
        product = make_product(name="Pen")

        response = client.delete(
            f"/products/{product.id}/variants/{product.variants[0].id}",
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_restock(self, client, db_session, admin_headers, make_product):
        product = make_product(name="Pen", variants=[{"quantity": 5}])
        variant_id = product.variants[0].id

        response = client.post(
            f"/products/{product.id}/variants/{variant_id}/restock",
            json={"quantity": 20},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["quantity"] == 25
        assert variant_quantity(db_session, variant_id) == 25

    def test_restock_requires_positive_quantity(self, client, admin_headers, make_product):
        product = make_product(name="Pen")

        response = client.post(
            f"/products/{product.id}/variants/{product.variants[0].id}/restock",
            json={"quantity": 0},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_agent_cannot_restock(self, client, agent_headers, make_product):
        product = make_product(name="Pen")

        response = client.post(
            f"/products/{product.id}/variants/{product.variants[0].id}/restock",
            json={"quantity": 10},
            headers=agent_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
