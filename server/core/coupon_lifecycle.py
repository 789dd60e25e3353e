# 优惠券生命周期管理
# 两个状态：未应用 / 已应用(优惠券)。只负责挂载和摘除，不调用校验器

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .models import AppliedCoupon, Coupon
from .pricing import to_decimal

logger = logging.getLogger(__name__)

REMOVAL_EXPLICIT = "removed"
REMOVAL_CART_CLEARED = "cart_cleared"
REMOVAL_BELOW_MINIMUM = "below_minimum"
REMOVAL_INACTIVE = "inactive"
REMOVAL_OUT_OF_WINDOW = "out_of_window"
REMOVAL_USAGE_LIMIT = "usage_limit_reached"


class CouponLifecycleManager:
    """
    当前购物车会话的优惠券持有者

    同一时间最多挂一张优惠券。reconcile() 在每次可能改变小计的操作之后由调用方显式调用，
    只会摘除、从不重新挂载，因此重复调用是幂等的。
    """

    def __init__(self, applied: Optional[AppliedCoupon] = None):
        self._applied = applied
        self.last_removal_reason: Optional[str] = None

    @property
    def applied(self) -> Optional[AppliedCoupon]:
        return self._applied

    @property
    def is_applied(self) -> bool:
        return self._applied is not None

    def apply(self, coupon: Coupon, now: Optional[datetime] = None) -> AppliedCoupon:
        """
        挂载一张已通过校验的优惠券，替换已挂载的优惠券

        Args:
            coupon: 校验通过的优惠券快照
            now: 应用时间
        """
        if self._applied is not None and self._applied.coupon.code != coupon.code:
            logger.info(f"替换优惠券 {self._applied.coupon.code} -> {coupon.code}")

        self._applied = AppliedCoupon(coupon=coupon, applied_at=now or datetime.now())
        self.last_removal_reason = None
        return self._applied

    def remove(self, reason: str = REMOVAL_EXPLICIT) -> bool:
        """摘除优惠券，返回是否发生了摘除"""
        if self._applied is None:
            return False

        logger.info(f"优惠券 {self._applied.coupon.code} 已移除: {reason}")
        self._applied = None
        self.last_removal_reason = reason
        return True

    def _removal_reason(self, subtotal: Decimal, now: datetime) -> Optional[str]:
        coupon = self._applied.coupon
        if not coupon.is_active:
            return REMOVAL_INACTIVE
        if not coupon.is_within_window(now):
            return REMOVAL_OUT_OF_WINDOW
        if coupon.usage_exhausted:
            return REMOVAL_USAGE_LIMIT
        if subtotal < coupon.minimum_purchase_amount:
            return REMOVAL_BELOW_MINIMUM
        return None

    def reconcile(self, subtotal: Decimal, now: Optional[datetime] = None) -> bool:
        """
        按当前小计重新检查已挂载的优惠券，不再满足条件时自动摘除

        Args:
            subtotal: 当前购物车小计
            now: 当前时间

        Returns:
            本次调用是否摘除了优惠券；未挂载时为False
        """
        if self._applied is None:
            return False

        reason = self._removal_reason(to_decimal(subtotal), now or datetime.now())
        if reason is None:
            return False

        return self.remove(reason)
