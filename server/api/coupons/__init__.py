# 优惠券模块

from .routes import router as coupons_router
from .models import CreateCouponRequest, UpdateCouponRequest, CouponInfo

__all__ = [
    "coupons_router",
    "CreateCouponRequest",
    "UpdateCouponRequest",
    "CouponInfo"
]
