"""
Integration Tests: logowanie (scalenie koszyka), dowody wplat, akcje obslugi
"""

import pytest
from sqlalchemy import select

from app.data.models.cart import CartModel
from app.data.models.order import OrderModel
from app.domain.errors import ValidationError

ADMIN_HEADERS = {"X-Admin-Token": "admin-secret"}
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 128


@pytest.fixture()
def read(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def place_order(client, email="buyer@example.com"):
    client.post("/cart/items", json={"productSlug": "vase-01"})
    res = client.post("/checkout", json={"email": email})
    assert res.status_code == 201
    return res.json()["orderId"]


def test_sign_in_merges_anonymous_cart_and_rotates_token(client, read, identity_client):
    anon = client.post("/cart/items", json={"productSlug": "vase-01", "quantity": 1}).json()["token"]

    res = client.post("/auth/verify", json={"email": "Buyer@Example.com", "code": "123456"})

    assert res.status_code == 200
    assert res.json() == {"email": "buyer@example.com", "merged": True}
    identity_client.verify.assert_called_once_with("buyer@example.com", "123456")

    new_token = client.cookies.get("cart_token")
    assert new_token and new_token != anon

    cart = client.get("/cart").json()
    assert cart["email"] == "buyer@example.com"
    assert [(i["slug"], i["quantity"], i["unit_price"], i["currency"]) for i in cart["items"]] == [
        ("vase-01", 1, "49.99", "USD")
    ]
    old = read.execute(select(CartModel).where(CartModel.token == anon)).scalar_one()
    assert old.status == "open"


def test_rejected_code_keeps_old_cart(client, identity_client):
    anon = client.post("/cart/items", json={"productSlug": "vase-01"}).json()["token"]
    identity_client.verify.side_effect = ValidationError("invalid verification code")

    res = client.post("/auth/verify", json={"email": "buyer@example.com", "code": "000000"})

    assert res.status_code == 400
    assert client.cookies.get("cart_token") == anon
    assert client.get("/cart").json()["item_count"] == 1


def test_upload_proof_and_pending_count(client, fake_stripe, notifications, proof_storage):
    first = place_order(client)
    place_order(client)
    client.cookies.set("customer_email", "buyer@example.com")

    assert client.get("/orders/pending-count").json() == {"count": 2}

    res = client.post(
        "/payment-proofs",
        data={"orderId": str(first), "paymentMethod": "ecocash"},
        files={"file": ("receipt.png", PNG, "image/png")},
    )

    assert res.status_code == 201
    proof_url = res.json()["proofUrl"]
    assert proof_url.startswith(f"/payment-proofs/order-{first}-")
    assert client.get("/orders/pending-count").json() == {"count": 1}
    notifications.send_proof_uploaded.assert_called_once()


def test_pending_count_without_identity_is_zero(client):
    assert client.get("/orders/pending-count").json() == {"count": 0}


def test_upload_rejects_non_image_and_bad_method(client, fake_stripe):
    order_id = place_order(client)

    pdf = client.post(
        "/payment-proofs",
        data={"orderId": str(order_id), "paymentMethod": "bank_transfer"},
        files={"file": ("receipt.pdf", b"%PDF-1.4", "application/pdf")},
    )
    method = client.post(
        "/payment-proofs",
        data={"orderId": str(order_id), "paymentMethod": "cash"},
        files={"file": ("receipt.png", PNG, "image/png")},
    )

    assert pdf.status_code == 400
    assert method.status_code == 422


def test_upload_for_unknown_order(client):
    res = client.post(
        "/payment-proofs",
        data={"orderId": "999", "paymentMethod": "bank_transfer"},
        files={"file": ("receipt.png", PNG, "image/png")},
    )
    assert res.status_code == 404


def test_staff_endpoints_require_admin_token(client, fake_stripe):
    order_id = place_order(client)

    assert client.post(f"/orders/{order_id}/mark-paid").status_code == 403
    assert client.post(f"/orders/{order_id}/cancel", headers={"X-Admin-Token": "wrong"}).status_code == 403
    assert client.get("/payment-proofs/recent").status_code == 403
    assert client.get("/orders/recent").status_code == 403


def test_staff_lists_downloads_and_marks_paid(client, fake_stripe, read, notifications):
    order_id = place_order(client)
    proof_url = client.post(
        "/payment-proofs",
        data={"orderId": str(order_id), "paymentMethod": "innbucks"},
        files={"file": ("receipt.png", PNG, "image/png")},
    ).json()["proofUrl"]

    recent = client.get("/payment-proofs/recent", headers=ADMIN_HEADERS).json()
    assert [p["order_id"] for p in recent] == [order_id]

    download = client.get(proof_url, headers=ADMIN_HEADERS)
    assert download.status_code == 200
    assert download.content == PNG
    assert download.headers["content-type"] == "image/png"

    res = client.post(f"/orders/{order_id}/mark-paid", headers=ADMIN_HEADERS)
    assert res.status_code == 200
    assert res.json()["status"] == "paid"
    again = client.post(f"/orders/{order_id}/mark-paid", headers=ADMIN_HEADERS)
    assert again.status_code == 200
    notifications.send_order_paid.assert_called_once()

    assert client.post(f"/orders/{order_id}/cancel", headers=ADMIN_HEADERS).status_code == 409
    assert read.get(OrderModel, order_id).status == "paid"


def test_cancel_then_mark_paid_conflicts(client, fake_stripe):
    order_id = place_order(client)

    res = client.post(f"/orders/{order_id}/cancel", headers=ADMIN_HEADERS)
    assert res.json()["status"] == "cancelled"
    assert client.post(f"/orders/{order_id}/mark-paid", headers=ADMIN_HEADERS).status_code == 409


def test_unknown_order_is_404(client):
    assert client.get("/orders/31337").status_code == 404


def test_staff_lists_recent_orders_with_items(client, fake_stripe):
    first = place_order(client)
    second = place_order(client, email="other@example.com")

    res = client.get("/orders/recent", headers=ADMIN_HEADERS)

    assert res.status_code == 200
    orders = res.json()
    assert [o["id"] for o in orders] == [second, first]
    assert orders[0]["email"] == "other@example.com"
    assert orders[0]["items"][0]["title"]
    assert orders[0]["items"][0]["quantity"] == 1
    assert client.get("/orders/recent?limit=1", headers=ADMIN_HEADERS).json()[0]["id"] == second


def test_upload_reads_at_most_limit_plus_one_byte(client, fake_stripe, monkeypatch):
    from app.services.pending_order_tracker import PendingOrderTracker

    order_id = place_order(client)
    monkeypatch.setattr("app.api.routers.payment_proofs.PROOF_MAX_BYTES", 1024)
    monkeypatch.setattr("app.services.pending_order_tracker.PROOF_MAX_BYTES", 1024)

    seen = []
    original = PendingOrderTracker.record_proof

    def spy(self, order_id, data, filename, content_type, payment_method):
        seen.append(len(data))
        return original(self, order_id, data, filename, content_type, payment_method)

    monkeypatch.setattr(PendingOrderTracker, "record_proof", spy)

    res = client.post(
        "/payment-proofs",
        data={"orderId": str(order_id), "paymentMethod": "bank_transfer"},
        files={"file": ("receipt.png", PNG + b"\x00" * 64 * 1024, "image/png")},
    )

    assert res.status_code == 400
    assert seen == [1025]
