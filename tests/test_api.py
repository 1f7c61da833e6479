"""Route tests against the in-memory catalog."""
from unittest.mock import MagicMock

from firebase_util import FirebaseCouponCatalog
from main import app, get_catalog


def _cart(*items):
    return {"cart": {"items": [{"productId": pid, "price": price} for pid, price in items]}}


def test_applicable_coupons(client):
    resp = client.post("/api/coupons/applicable", json=_cart((1, 100), (2, 200), (2, 300)))

    assert resp.status_code == 200
    assert resp.json() == [
        {"couponId": 1, "couponType": "cart-wise", "discount": "20.00"},
        {"couponId": 2, "couponType": "product-wise", "discount": "20.00"},
        {"couponId": 3, "couponType": "bxgy", "discount": "400.00"},
        {"couponId": 4, "couponType": "cart-wise", "discount": "30.00"},
    ]


def test_applicable_coupons_active_only(client):
    resp = client.post("/api/coupons/applicable?activeOnly=true", json=_cart((1, 100)))

    assert resp.status_code == 200
    assert [c["couponId"] for c in resp.json()] == [1, 2, 3]


def test_apply_coupon(client):
    resp = client.post("/api/coupons/1/apply", json=_cart((1, 100)))

    assert resp.status_code == 200
    assert resp.json() == {"couponId": 1, "couponType": "cart-wise", "discount": "10.00"}


def test_apply_inactive_coupon(client):
    resp = client.post("/api/coupons/4/apply", json=_cart((1, 100)))
    assert resp.status_code == 400


def test_apply_unknown_coupon(client):
    resp = client.post("/api/coupons/99/apply", json=_cart((1, 100)))
    assert resp.status_code == 404


def test_negative_price_rejected(client):
    resp = client.post("/api/coupons/1/apply", json=_cart((1, -5)))
    assert resp.status_code == 422


def test_catalog_unavailable(client, catalog):
    catalog.unavailable = True

    assert client.post("/api/coupons/applicable", json=_cart((1, 100))).status_code == 503
    assert client.post("/api/coupons/1/apply", json=_cart((1, 100))).status_code == 503
    assert client.get("/api/coupons").status_code == 503


def test_create_coupon(client, catalog):
    resp = client.post("/api/coupons", json={
        "type": "product-wise",
        "conditioning": {"productIds": [3, 4]},
        "discountDetails": {"value": 15, "discountAmountMax": 50},
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == 5
    assert body["isActive"] is True
    assert catalog.coupons[5].conditioning.productIds == [3, 4]


def test_create_coupon_missing_kind_field(client, catalog):
    resp = client.post("/api/coupons", json={
        "type": "bxgy",
        "conditioning": {"buy": 2},
        "discountDetails": {"buyIds": [1], "maxRedemption": 1},
    })

    assert resp.status_code == 422
    assert "getIds" in resp.json()["detail"]
    assert 5 not in catalog.coupons


def test_create_coupon_percent_out_of_range(client):
    resp = client.post("/api/coupons", json={
        "type": "cart-wise",
        "conditioning": {"minCartValue": 0},
        "discountDetails": {"value": 150, "discountAmountMax": 50},
    })
    assert resp.status_code == 422


def test_find_coupons(client):
    resp = client.get("/api/coupons")
    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()] == [1, 2, 3, 4]

    resp = client.get("/api/coupons/3")
    assert resp.status_code == 200
    assert resp.json()["type"] == "bxgy"

    assert client.get("/api/coupons/77").status_code == 404


def test_update_coupon_keeps_untouched_fields(client, catalog):
    resp = client.put("/api/coupons/4", json={"isActive": True})

    assert resp.status_code == 200
    assert catalog.coupons[4].isActive is True
    assert catalog.coupons[4].type.value == "cart-wise"

    resp = client.post("/api/coupons/4/apply", json=_cart((1, 100)))
    assert resp.json()["discount"] == "5.00"


def test_update_coupon_to_malformed_payload(client, catalog):
    resp = client.put("/api/coupons/1", json={"type": "bxgy"})

    assert resp.status_code == 422
    assert catalog.coupons[1].type.value == "cart-wise"


def test_update_unknown_coupon(client):
    assert client.put("/api/coupons/99", json={"isActive": False}).status_code == 404


def test_delete_coupon(client, catalog):
    resp = client.delete("/api/coupons/2")

    assert resp.status_code == 200
    assert 2 not in catalog.coupons
    assert client.delete("/api/coupons/2").status_code == 404


def test_create_coupon_with_snake_case_details(client, catalog):
    resp = client.post("/api/coupons", json={
        "type": "cart-wise",
        "conditioning": {"minCartValue": 100},
        "discount_details": {"value": 10, "discountAmountMax": 50},
    })

    assert resp.status_code == 200
    assert "discountDetails" in resp.json()
    assert catalog.coupons[5].discountDetails.discountAmountMax == 50


def test_bad_stored_record_is_unprocessable(client):
    root = MagicMock()
    root.child.return_value.child.return_value.get.return_value = {"type": "bogus", "isActive": True}
    root.child.return_value.get.return_value = {"7": {"type": "bogus", "isActive": True}}
    app.dependency_overrides[get_catalog] = lambda: FirebaseCouponCatalog(root)

    assert client.post("/api/coupons/7/apply", json=_cart((1, 100))).status_code == 422
    assert client.get("/api/coupons/7").status_code == 422

    resp = client.post("/api/coupons/applicable", json=_cart((1, 100)))
    assert resp.status_code == 200
    assert resp.json() == []
