"""Pytest fixtures: an in-memory coupon catalog standing in for Firebase."""

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from errors import CatalogUnavailable
from factories import bxgy, cart_wise, product_wise
from main import app, get_catalog
from models import Coupon, CouponCreate


class MemoryCatalog:
    def __init__(self) -> None:
        self.coupons: Dict[int, Coupon] = {}
        self.unavailable = False

    def _check(self) -> None:
        if self.unavailable:
            raise CatalogUnavailable("catalog is down")

    def add(self, coupon: Coupon) -> Coupon:
        self.coupons[coupon.id] = coupon
        return coupon

    def get_by_id(self, coupon_id: int) -> Optional[Coupon]:
        self._check()
        return self.coupons.get(coupon_id)

    def get_all(self) -> List[Coupon]:
        self._check()
        return [self.coupons[k] for k in sorted(self.coupons)]

    def create(self, payload: CouponCreate) -> Coupon:
        self._check()
        new_id = max(self.coupons, default=0) + 1
        return self.add(Coupon.model_validate({**payload.model_dump(), "id": new_id}))

    def update(self, coupon: Coupon) -> Coupon:
        self._check()
        return self.add(coupon)

    def delete(self, coupon_id: int) -> bool:
        self._check()
        return self.coupons.pop(coupon_id, None) is not None


@pytest.fixture
def catalog() -> MemoryCatalog:
    catalog = MemoryCatalog()

    catalog.add(cart_wise(1, min_value="100", percent="10", cap="20"))
    catalog.add(product_wise(2, product_ids=(1,), percent="20", cap="30"))
    catalog.add(bxgy(3, buy=1, buy_ids=(1,), get_ids=(2,), max_redemption=3))
    catalog.add(cart_wise(4, min_value="50", percent="5", cap="100", active=False))

    return catalog


@pytest.fixture
def client(catalog):
    app.dependency_overrides[get_catalog] = lambda: catalog
    yield TestClient(app)
    app.dependency_overrides.clear()
