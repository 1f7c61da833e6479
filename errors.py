from typing import Optional


class CouponError(Exception):
    def __init__(self, message: str, coupon_id: Optional[int] = None):
        super().__init__(message)
        self.coupon_id = coupon_id


class CouponNotFound(CouponError):
    def __init__(self, coupon_id: int):
        super().__init__(f"Coupon {coupon_id} not found", coupon_id)


class CouponInactive(CouponError):
    def __init__(self, coupon_id: int):
        super().__init__(f"Coupon {coupon_id} is not active", coupon_id)


class ComputationError(CouponError):
    def __init__(self, coupon_id: Optional[int], kind: str, field: str, problem: str = "is missing"):
        super().__init__(f"Coupon {coupon_id} of type '{kind}' {problem} '{field}'", coupon_id)
        self.kind = kind
        self.field = field


class CatalogUnavailable(CouponError):
    pass
