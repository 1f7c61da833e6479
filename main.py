import logging
import os
from typing import List

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from discounts import coupon_terms
from errors import CatalogUnavailable, ComputationError, CouponInactive, CouponNotFound
from firebase_util import FirebaseCouponCatalog
from models import (
    Coupon, CouponCreate, CouponUpdate,
    CartRequest, DiscountResult, MessageResponse
)
from services import apply_coupon, list_applicable

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Coupon discounts")

# 🔐 Allow frontend CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://127.0.0.1:5500").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_catalog() -> FirebaseCouponCatalog:
    return FirebaseCouponCatalog()


@app.exception_handler(CatalogUnavailable)
async def catalog_unavailable(request: Request, exc: CatalogUnavailable):
    logger.error("Catalog unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(ComputationError)
async def malformed_coupon(request: Request, exc: ComputationError):
    logger.warning("⚠️ Malformed coupon on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def _check_payload(coupon: Coupon) -> None:
    try:
        coupon_terms(coupon)
    except ComputationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


# 🎯 1. CREATE COUPON
@app.post("/api/coupons", response_model=Coupon)
def create_coupon(coupon: CouponCreate, catalog: FirebaseCouponCatalog = Depends(get_catalog)):
    # id 0 is a placeholder; the catalog assigns the real one
    _check_payload(Coupon.model_validate({**coupon.model_dump(), "id": 0}))
    return catalog.create(coupon)


# 🎯 2. LIST / FETCH COUPONS
@app.get("/api/coupons", response_model=List[Coupon])
def find_all_coupons(catalog: FirebaseCouponCatalog = Depends(get_catalog)):
    return catalog.get_all()


@app.get("/api/coupons/{coupon_id}", response_model=Coupon)
def find_coupon(coupon_id: int, catalog: FirebaseCouponCatalog = Depends(get_catalog)):
    coupon = catalog.get_by_id(coupon_id)
    if coupon is None:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


# 🎯 3. UPDATE COUPON
@app.put("/api/coupons/{coupon_id}", response_model=Coupon)
def update_coupon(coupon_id: int, changes: CouponUpdate, catalog: FirebaseCouponCatalog = Depends(get_catalog)):
    old = catalog.get_by_id(coupon_id)
    if old is None:
        raise HTTPException(status_code=404, detail="Coupon not found")

    coupon = changes.apply_to(old)
    _check_payload(coupon)
    return catalog.update(coupon)


# 🎯 4. DELETE COUPON
@app.delete("/api/coupons/{coupon_id}", response_model=MessageResponse)
def delete_coupon(coupon_id: int, catalog: FirebaseCouponCatalog = Depends(get_catalog)):
    if not catalog.delete(coupon_id):
        raise HTTPException(status_code=404, detail="Coupon not found")
    return {"message": f"✅ Coupon {coupon_id} deleted successfully"}


# 🎯 5. APPLICABLE COUPONS
@app.post("/api/coupons/applicable", response_model=List[DiscountResult])
def applicable_coupons(
    body: CartRequest,
    activeOnly: bool = False,
    catalog: FirebaseCouponCatalog = Depends(get_catalog),
):
    return list_applicable(body.cart, catalog.get_all(), active_only=activeOnly)


# 🎯 6. APPLY COUPON
@app.post("/api/coupons/{coupon_id}/apply", response_model=DiscountResult)
def apply(coupon_id: int, body: CartRequest, catalog: FirebaseCouponCatalog = Depends(get_catalog)):
    try:
        return apply_coupon(body.cart, coupon_id, catalog)
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except CouponInactive as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
