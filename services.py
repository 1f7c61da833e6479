import logging
from typing import Iterable, List, Optional, Protocol

from discounts import compute_discount, filter_candidates, format_amount
from errors import ComputationError, CouponInactive, CouponNotFound
from models import Cart, Coupon, DiscountResult

logger = logging.getLogger(__name__)


class CouponCatalog(Protocol):
    def get_by_id(self, coupon_id: int) -> Optional[Coupon]: ...

    def get_all(self) -> List[Coupon]: ...


def _result(cart: Cart, coupon: Coupon) -> DiscountResult:
    return DiscountResult(
        couponId=coupon.id,
        couponType=coupon.type,
        discount=format_amount(compute_discount(cart, coupon)),
    )


def list_applicable(cart: Cart, coupons: Iterable[Coupon], active_only: bool = False) -> List[DiscountResult]:
    # a malformed coupon is logged and skipped, the listing goes on
    results: List[DiscountResult] = []
    for coupon in filter_candidates(cart, coupons):
        if active_only and not coupon.isActive:
            continue
        try:
            results.append(_result(cart, coupon))
        except ComputationError as e:
            logger.warning("⚠️ Skipping coupon %s: %s", coupon.id, e)
    return results


def apply_coupon(cart: Cart, coupon_id: int, catalog: CouponCatalog) -> DiscountResult:
    coupon = catalog.get_by_id(coupon_id)
    if coupon is None:
        raise CouponNotFound(coupon_id)
    if not coupon.isActive:
        raise CouponInactive(coupon_id)

    result = _result(cart, coupon)
    logger.info("Coupon %s applied: discount=%s", coupon_id, result.discount)
    return result
