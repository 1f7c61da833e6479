from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ProductId = Union[int, str]

# records written by the older service use snake_case for this one field
DETAILS_ALIASES = AliasChoices("discountDetails", "discount_details")


class CouponKind(str, Enum):
    CART_WISE = "cart-wise"
    PRODUCT_WISE = "product-wise"
    BUY_X_GET_Y = "bxgy"


class Conditioning(BaseModel):
    model_config = ConfigDict(frozen=True)

    minCartValue: Optional[Decimal] = Field(default=None, ge=0)
    productIds: Optional[List[ProductId]] = None
    buy: Optional[int] = Field(default=None, ge=1)


class DiscountDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Optional[Decimal] = Field(default=None, ge=0, le=100)  # percent
    discountAmountMax: Optional[Decimal] = Field(default=None, ge=0)
    buyIds: Optional[List[ProductId]] = None
    getIds: Optional[List[ProductId]] = None
    maxRedemption: Optional[int] = Field(default=None, ge=0)


class Coupon(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: CouponKind
    isActive: bool = True
    conditioning: Conditioning = Field(default_factory=Conditioning)
    discountDetails: DiscountDetails = Field(default_factory=DiscountDetails, validation_alias=DETAILS_ALIASES)


class CouponCreate(BaseModel):
    type: CouponKind
    isActive: bool = True
    conditioning: Conditioning = Field(default_factory=Conditioning)
    discountDetails: DiscountDetails = Field(default_factory=DiscountDetails, validation_alias=DETAILS_ALIASES)


class CouponUpdate(BaseModel):
    type: Optional[CouponKind] = None
    isActive: Optional[bool] = None
    conditioning: Optional[Conditioning] = None
    discountDetails: Optional[DiscountDetails] = Field(default=None, validation_alias=DETAILS_ALIASES)

    def apply_to(self, coupon: Coupon) -> Coupon:
        return Coupon.model_validate({**coupon.model_dump(), **self.model_dump(exclude_none=True)})


class MessageResponse(BaseModel):
    message: str


class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    productId: ProductId
    price: Decimal = Field(ge=0)


class Cart(BaseModel):
    # one entry per priced unit; order matters for buy-x-get-y
    model_config = ConfigDict(frozen=True)

    items: Tuple[CartItem, ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0"))

    @property
    def product_ids(self) -> List[ProductId]:
        return [item.productId for item in self.items]


class CartRequest(BaseModel):
    cart: Cart


class DiscountResult(BaseModel):
    couponId: int
    couponType: CouponKind
    discount: str
