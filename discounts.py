import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, FrozenSet, Iterable, List, Sequence, Union

from pydantic import BaseModel, ConfigDict

from errors import ComputationError
from models import Cart, CartItem, Coupon, CouponKind, ProductId

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")

Allocation = Callable[[Sequence[CartItem]], Iterable[CartItem]]


def in_cart_order(items: Sequence[CartItem]) -> Iterable[CartItem]:
    return iter(items)


class CartWiseTerms(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_cart_value: Decimal
    percent: Decimal
    cap: Decimal


class ProductWiseTerms(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_ids: FrozenSet[ProductId]
    percent: Decimal
    cap: Decimal


class BuyXGetYTerms(BaseModel):
    model_config = ConfigDict(frozen=True)

    buy_threshold: int
    buy_ids: FrozenSet[ProductId]
    get_ids: FrozenSet[ProductId]
    max_redemptions: int


Terms = Union[CartWiseTerms, ProductWiseTerms, BuyXGetYTerms]


def _require(coupon: Coupon, section: str, field: str):
    value = getattr(getattr(coupon, section), field)
    if value is None:
        raise ComputationError(coupon.id, coupon.type.value, f"{section}.{field}")
    return value


def coupon_terms(coupon: Coupon) -> Terms:
    if coupon.type == CouponKind.CART_WISE:
        return CartWiseTerms(
            min_cart_value=_require(coupon, "conditioning", "minCartValue"),
            percent=_require(coupon, "discountDetails", "value"),
            cap=_require(coupon, "discountDetails", "discountAmountMax"),
        )
    if coupon.type == CouponKind.PRODUCT_WISE:
        return ProductWiseTerms(
            product_ids=frozenset(_require(coupon, "conditioning", "productIds")),
            percent=_require(coupon, "discountDetails", "value"),
            cap=_require(coupon, "discountDetails", "discountAmountMax"),
        )
    if coupon.type == CouponKind.BUY_X_GET_Y:
        return BuyXGetYTerms(
            buy_threshold=_require(coupon, "conditioning", "buy"),
            buy_ids=frozenset(_require(coupon, "discountDetails", "buyIds")),
            get_ids=frozenset(_require(coupon, "discountDetails", "getIds")),
            max_redemptions=_require(coupon, "discountDetails", "maxRedemption"),
        )
    raise ComputationError(coupon.id, str(coupon.type), "type")


# =========================
# Eligibility filter
# =========================

def is_candidate(cart: Cart, coupon: Coupon) -> bool:
    # ignores the coupon's kind
    in_cart = set(cart.product_ids)

    min_value = coupon.conditioning.minCartValue
    if min_value is not None and cart.total >= min_value:
        return True

    product_ids = coupon.conditioning.productIds
    if product_ids is not None and in_cart.intersection(product_ids):
        return True

    buy_ids = coupon.discountDetails.buyIds
    if buy_ids is not None and in_cart.intersection(buy_ids):
        return True

    return False


def filter_candidates(cart: Cart, coupons: Iterable[Coupon]) -> List[Coupon]:
    return [c for c in coupons if is_candidate(cart, c)]


# =========================
# Discount calculator
# =========================

def _percent_of(amount: Decimal, percent: Decimal, cap: Decimal) -> Decimal:
    return min(amount * percent / HUNDRED, cap)


def _cart_wise(cart: Cart, terms: CartWiseTerms) -> Decimal:
    return _percent_of(cart.total, terms.percent, terms.cap)


def _product_wise(cart: Cart, terms: ProductWiseTerms) -> Decimal:
    subtotal = sum(
        (item.price for item in cart.items if item.productId in terms.product_ids),
        Decimal("0"),
    )
    return _percent_of(subtotal, terms.percent, terms.cap)


def _buy_x_get_y(cart: Cart, terms: BuyXGetYTerms, allocation: Allocation) -> Decimal:
    buy_count = sum(1 for item in cart.items if item.productId in terms.buy_ids)
    free_slots = min(buy_count // terms.buy_threshold, terms.max_redemptions)

    used_slots = 0
    waived_total = Decimal("0")
    for item in allocation(cart.items):
        if item.productId not in terms.get_ids:
            continue
        if used_slots < free_slots:
            waived_total += item.price
            used_slots += 1

    if buy_count < terms.buy_threshold:
        return Decimal("0")
    # NOTE: this is the amount still payable, not the value of the free items.
    # Kept as is until product signs off on changing it.
    return cart.total - waived_total


def compute_discount(cart: Cart, coupon: Coupon, allocation: Allocation = in_cart_order) -> Decimal:
    # allocation orders the cart for buy-x-get-y; earlier items are waived first
    terms = coupon_terms(coupon)
    if isinstance(terms, CartWiseTerms):
        discount = _cart_wise(cart, terms)
    elif isinstance(terms, ProductWiseTerms):
        discount = _product_wise(cart, terms)
    else:
        discount = _buy_x_get_y(cart, terms, allocation)

    logger.debug("coupon=%s type=%s discount=%s", coupon.id, coupon.type.value, discount)
    return discount


def format_amount(amount: Decimal) -> str:
    return str(amount.quantize(CENTS, rounding=ROUND_HALF_UP))
