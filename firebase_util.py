import logging
import os
from contextlib import contextmanager
from typing import List, Optional

import firebase_admin
from dotenv import load_dotenv
from firebase_admin import credentials, db
from firebase_admin.exceptions import FirebaseError
from pydantic import ValidationError

from errors import CatalogUnavailable, ComputationError
from models import Coupon, CouponCreate

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Path to Firebase service account JSON
FIREBASE_CRED_PATH = os.getenv("FIREBASE_CRED_JSON", "./serviceAccountKey.json")
FIREBASE_DB_URL = os.getenv("FIREBASE_DB_URL", "")

COUPONS_NODE = "coupons"
SEQUENCE_NODE = "couponSeq"

_db_ref = None


def get_db_ref():
    global _db_ref
    if _db_ref is None:
        if not FIREBASE_DB_URL:
            logger.error("🔥 FIREBASE_DB_URL is not set")
            raise CatalogUnavailable("Firebase database URL is not configured")
        try:
            if not firebase_admin._apps:
                cred = credentials.Certificate(FIREBASE_CRED_PATH)
                firebase_admin.initialize_app(cred, {
                    'databaseURL': FIREBASE_DB_URL
                })
            _db_ref = db.reference("/")
        except (ValueError, OSError) as e:
            logger.error("🔥 Firebase initialization failed: %s", e)
            raise CatalogUnavailable(f"Firebase initialization failed: {e}") from e
    return _db_ref


@contextmanager
def _firebase(action: str):
    try:
        yield
    except FirebaseError as e:
        logger.error("⚠️ Firebase error while %s: %s", action, e)
        raise CatalogUnavailable(f"Coupon catalog unavailable while {action}") from e


def _to_record(coupon: Coupon) -> dict:
    return coupon.model_dump(mode="json", exclude_none=True)


def _from_record(coupon_id: int, data) -> Coupon:
    if not isinstance(data, dict):
        raise ComputationError(coupon_id, "unknown", "record", problem="has a non-object")
    try:
        return Coupon.model_validate({**data, "id": coupon_id})
    except ValidationError as e:
        field = ".".join(str(part) for part in e.errors()[0]["loc"])
        raise ComputationError(coupon_id, str(data.get("type")), field, problem="has an invalid") from e


class FirebaseCouponCatalog:
    def __init__(self, root=None):
        self._root = root

    @property
    def root(self):
        return self._root if self._root is not None else get_db_ref()

    def _coupons(self):
        return self.root.child(COUPONS_NODE)

    def get_by_id(self, coupon_id: int) -> Optional[Coupon]:
        with _firebase(f"fetching coupon {coupon_id}"):
            data = self._coupons().child(str(coupon_id)).get()
        if not data:
            return None
        return _from_record(coupon_id, data)

    def get_all(self) -> List[Coupon]:
        with _firebase("fetching coupons"):
            raw = self._coupons().get()
        if not raw:
            return []
        # Firebase hands back sequential integer keys as a list
        pairs = enumerate(raw) if isinstance(raw, list) else raw.items()

        coupons = []
        for key, data in pairs:
            if not data:
                continue
            try:
                coupons.append(_from_record(int(key), data))
            except ValueError:
                logger.warning("⚠️ Skipping stored coupon with key %r: not an integer id", key)
            except ComputationError as e:
                logger.warning("⚠️ Skipping stored coupon %s: %s", key, e)
        return sorted(coupons, key=lambda c: c.id)

    def create(self, payload: CouponCreate) -> Coupon:
        with _firebase("creating coupon"):
            new_id = self.root.child(SEQUENCE_NODE).transaction(lambda current: (current or 0) + 1)
            coupon = Coupon.model_validate({**payload.model_dump(), "id": new_id})
            self._coupons().child(str(new_id)).set(_to_record(coupon))
        logger.info("✅ Coupon %s created", new_id)
        return coupon

    def update(self, coupon: Coupon) -> Coupon:
        with _firebase(f"updating coupon {coupon.id}"):
            self._coupons().child(str(coupon.id)).set(_to_record(coupon))
        logger.info("✅ Coupon %s updated", coupon.id)
        return coupon

    def delete(self, coupon_id: int) -> bool:
        with _firebase(f"deleting coupon {coupon_id}"):
            ref = self._coupons().child(str(coupon_id))
            if ref.get() is None:
                return False
            ref.delete()
        logger.info("🗑️ Coupon %s deleted", coupon_id)
        return True
