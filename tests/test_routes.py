"""
End-to-end tests for the HTTP API.
Covers the order journey from cart to delivery and the role boundaries.
"""
import pytest
from fastapi import status

from core.roles import Role
from models.user import User

ADDRESS = {
    "delivery_address": "12 rue de la République",
    "delivery_city": "Lyon",
    "delivery_postal_code": "69002",
}


@pytest.fixture
def placed_order(client, buyer_headers, products):
    """A pending order holding 10kg of tomatoes and 2 cans of oil."""
    client.post("/cart/items", json={"product_id": products[0].id}, headers=buyer_headers)
    client.post("/cart/items", json={"product_id": products[1].id, "quantity": 2}, headers=buyer_headers)
    response = client.post(
        "/orders/checkout",
        json={**ADDRESS, "delivery_zone": "local", "delivery_time_slot": "morning", "payment_method": "credit_30"},
        headers=buyer_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestHealth:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK


class TestProductRoutes:
    """Test catalogue endpoints"""

    def test_buyer_sees_available_products_only(self, client, buyer_headers, products):
        response = client.get("/products/", headers=buyer_headers)
        assert response.status_code == status.HTTP_200_OK
        assert {p["sku"] for p in response.json()} == {"TOM-01", "OIL-05"}

    def test_staff_sees_withdrawn_products(self, client, admin_headers, products):
        response = client.get("/products/", headers=admin_headers)
        assert len(response.json()) == 3

    def test_withdrawn_product_hidden_from_buyer(self, client, buyer_headers, products):
        response = client.get(f"/products/{products[2].id}", headers=buyer_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_create_update_and_withdraw(self, client, admin_headers, buyer_headers):
        response = client.post(
            "/products/",
            json={"name": "Pois chiches", "sku": "POI-01", "price_per_unit": 3.2, "moq": 25},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED
        product_id = response.json()["id"]

        response = client.patch(f"/products/{product_id}", json={"price_per_unit": 3.5}, headers=admin_headers)
        assert response.json()["price_per_unit"] == 3.5

        response = client.delete(f"/products/{product_id}", headers=admin_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        response = client.get(f"/products/{product_id}", headers=admin_headers)
        assert response.json()["available"] is False

    def test_duplicate_sku(self, client, admin_headers, products):
        response = client.post(
            "/products/", json={"name": "Tomates bis", "sku": "TOM-01", "price_per_unit": 2}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_buyer_cannot_create_products(self, client, buyer_headers):
        response = client.post("/products/", json={"name": "X", "price_per_unit": 1}, headers=buyer_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestCartRoutes:
    """Test the buyer cart endpoints"""

    def test_add_and_read_cart(self, client, buyer_headers, products):
        response = client.post("/cart/items", json={"product_id": products[0].id}, headers=buyer_headers)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["items"][0]["quantity"] == 10
        assert data["total"] == 25.0

        response = client.get("/cart/", headers=buyer_headers)
        assert response.json()["items"][0]["product"]["sku"] == "TOM-01"

    def test_update_and_remove(self, client, buyer_headers, products):
        data = client.post("/cart/items", json={"product_id": products[1].id}, headers=buyer_headers).json()
        item_id = data["items"][0]["id"]

        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 4}, headers=buyer_headers)
        assert response.json()["total"] == 160.0

        response = client.delete(f"/cart/items/{item_id}", headers=buyer_headers)
        assert response.json()["items"] == []

    def test_unavailable_product(self, client, buyer_headers, products):
        response = client.post("/cart/items", json={"product_id": products[2].id}, headers=buyer_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_clear_cart(self, client, buyer_headers, products):
        client.post("/cart/items", json={"product_id": products[1].id}, headers=buyer_headers)
        response = client.delete("/cart/", headers=buyer_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get("/cart/", headers=buyer_headers).json()["items"] == []

    def test_driver_has_no_cart(self, client, driver_headers):
        response = client.get("/cart/", headers=driver_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestCheckoutRoutes:
    """Test quoting and placing orders"""

    def test_quote_per_zone(self, client, buyer_headers, products):
        client.post("/cart/items", json={"product_id": products[1].id, "quantity": 5}, headers=buyer_headers)
        response = client.get("/orders/quote", headers=buyer_headers)
        assert response.status_code == status.HTTP_200_OK
        quotes = {q["delivery_zone"]: q for q in response.json()}
        assert quotes["local"]["delivery_fee"] == 0
        assert quotes["local"]["total"] == 200
        assert quotes["national"]["delivery_fee"] == 15
        assert quotes["national"]["total"] == 215
        assert quotes["national"]["time_slots"] == []

    def test_checkout_places_pending_order(self, client, buyer_headers, placed_order):
        assert placed_order["status"] == "pending"
        assert placed_order["payment_status"] == "credit_30"
        assert placed_order["order_number"].startswith("CMD-")
        assert placed_order["subtotal"] == 105.0
        assert placed_order["delivery_fee"] == 8.0
        assert placed_order["total_amount"] == 113.0
        assert placed_order["tracking"]["status"] == "pending"
        assert placed_order["tracking"]["carrier"] == "internal"
        assert client.get("/cart/", headers=buyer_headers).json()["items"] == []

    def test_checkout_with_empty_cart(self, client, buyer_headers):
        response = client.post("/orders/checkout", json=ADDRESS, headers=buyer_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_time_slot_outside_local_zone(self, client, buyer_headers, products):
        client.post("/cart/items", json={"product_id": products[1].id}, headers=buyer_headers)
        response = client.post(
            "/orders/checkout",
            json={**ADDRESS, "delivery_zone": "national", "delivery_time_slot": "afternoon"},
            headers=buyer_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_my_orders(self, client, buyer_headers, placed_order):
        response = client.get("/orders/", headers=buyer_headers)
        assert [o["id"] for o in response.json()] == [placed_order["id"]]
        response = client.get("/orders/?status=delivered", headers=buyer_headers)
        assert response.json() == []

    def test_other_buyer_gets_404(self, client, db, other_buyer, auth_headers_for, placed_order):
        response = client.get(f"/orders/{placed_order['id']}", headers=auth_headers_for(other_buyer))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_staff_cannot_checkout(self, client, admin_headers):
        response = client.post("/orders/checkout", json=ADDRESS, headers=admin_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestOrderJourney:
    """Test the full journey from review to delivery"""

    def test_review_dispatch_and_deliver(
        self, client, buyer_headers, admin_headers, driver, driver_headers, placed_order
    ):
        order_id = placed_order["id"]
        tracking_id = placed_order["tracking"]["id"]

        response = client.get("/admin/orders", headers=admin_headers)
        assert [o["id"] for o in response.json()] == [order_id]

        response = client.post(f"/admin/orders/{order_id}/validate", json={"decision": "approve"}, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "confirmed"
        assert response.json()["tracking"]["status"] == "confirmed"

        response = client.post(
            f"/admin/tracking/{tracking_id}/driver", json={"driver_id": driver.id}, headers=admin_headers
        )
        assert response.json()["driver_id"] == driver.id

        deliveries = client.get("/driver/deliveries", headers=driver_headers).json()
        assert deliveries[0]["order"]["delivery_city"] == "Lyon"
        assert deliveries[0]["order"]["buyer"]["first_name"] == "Bea"

        for step in ("preparing", "out_for_delivery"):
            response = client.post(
                f"/driver/deliveries/{order_id}/status", json={"status": step}, headers=driver_headers
            )
            assert response.status_code == status.HTTP_200_OK

        response = client.patch(
            f"/driver/deliveries/{order_id}",
            json={"current_location": "Villeurbanne", "gps_latitude": 45.77, "gps_longitude": 4.88},
            headers=driver_headers,
        )
        assert response.json()["current_location"] == "Villeurbanne"

        response = client.get(f"/orders/{order_id}/tracking", headers=buyer_headers)
        data = response.json()
        assert data["tracking"]["status_label"] == "En livraison"
        assert [s["complete"] for s in data["steps"]] == [True, True, True, True, False]
        assert client.get(f"/orders/{order_id}", headers=buyer_headers).json()["status"] == "shipped"

        response = client.post(
            f"/driver/deliveries/{order_id}/status", json={"status": "delivered"}, headers=driver_headers
        )
        assert response.json()["delivered_at"] is not None
        assert client.get(f"/orders/{order_id}", headers=buyer_headers).json()["status"] == "delivered"

    def test_reject_needs_a_note(self, client, commercial_headers, placed_order):
        url = f"/admin/orders/{placed_order['id']}/validate"
        response = client.post(url, json={"decision": "reject"}, headers=commercial_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = client.post(url, json={"decision": "reject", "note": "Crédit refusé"}, headers=commercial_headers)
        assert response.json()["status"] == "cancelled"
        assert response.json()["admin_notes"] == "Crédit refusé"

    def test_second_review_conflicts(self, client, admin_headers, placed_order):
        url = f"/admin/orders/{placed_order['id']}/validate"
        client.post(url, json={"decision": "approve"}, headers=admin_headers)
        response = client.post(url, json={"decision": "approve"}, headers=admin_headers)
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_driver_cannot_skip_steps(self, client, admin_headers, driver, driver_headers, placed_order):
        client.post(f"/admin/orders/{placed_order['id']}/validate", json={"decision": "approve"}, headers=admin_headers)
        client.post(
            f"/admin/tracking/{placed_order['tracking']['id']}/driver",
            json={"driver_id": driver.id},
            headers=admin_headers,
        )
        response = client.post(
            f"/driver/deliveries/{placed_order['id']}/status", json={"status": "delivered"}, headers=driver_headers
        )
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_unassigned_driver_sees_nothing(self, client, driver_headers, placed_order):
        response = client.get(f"/driver/deliveries/{placed_order['id']}", headers=driver_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_driver_cannot_set_carrier(self, client, admin_headers, driver, driver_headers, placed_order):
        client.post(
            f"/admin/tracking/{placed_order['tracking']['id']}/driver",
            json={"driver_id": driver.id},
            headers=admin_headers,
        )
        response = client.patch(
            f"/driver/deliveries/{placed_order['id']}", json={"carrier": "dhl"}, headers=driver_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_assign_missing_driver(self, client, admin_headers, placed_order):
        response = client.post(
            f"/admin/tracking/{placed_order['tracking']['id']}/driver", json={"driver_id": 999}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_admin_lists_drivers_and_tracking(self, client, admin_headers, driver, other_driver, placed_order):
        drivers = client.get("/admin/drivers", headers=admin_headers).json()
        assert {d["id"] for d in drivers} == {driver.id, other_driver.id}
        response = client.get("/admin/tracking?status=pending", headers=admin_headers)
        assert [t["order_id"] for t in response.json()] == [placed_order["id"]]

    def test_buyer_cannot_review(self, client, buyer_headers, placed_order):
        response = client.post(
            f"/admin/orders/{placed_order['id']}/validate", json={"decision": "approve"}, headers=buyer_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestVisitRoutes:
    """Test field visit reports"""

    def _file(self, client, headers, name):
        return client.post(
            "/visits/",
            json={"client_name": name, "client_address": "1 cours Gambetta", "client_city": "Lyon", "notes": "RAS"},
            headers=headers,
        )

    def test_commercial_sees_own_reports_admin_sees_all(
        self, client, db, commercial, commercial_headers, admin_headers, auth_headers_for
    ):
        colleague = User(
            first_name="Lea", last_name="Sales", email="sales2@example.com", password_hash="x", role=Role.COMMERCIAL
        )
        db.add(colleague)
        db.commit()
        assert self._file(client, commercial_headers, "Traiteur A").status_code == status.HTTP_201_CREATED
        self._file(client, auth_headers_for(colleague), "Traiteur B")

        mine = client.get("/visits/", headers=commercial_headers).json()
        assert [r["client_name"] for r in mine] == ["Traiteur A"]
        assert mine[0]["commercial"]["id"] == commercial.id

        everything = client.get("/visits/", headers=admin_headers).json()
        assert {r["client_name"] for r in everything} == {"Traiteur A", "Traiteur B"}

    def test_buyer_cannot_file_reports(self, client, buyer_headers):
        assert self._file(client, buyer_headers, "X").status_code == status.HTTP_403_FORBIDDEN
