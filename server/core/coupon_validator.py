# 优惠券校验
# 按顺序检查，第一个失败的检查即返回；业务失败以结果对象返回，不抛异常

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from .models import Coupon, CouponValidationResult
from .pricing import compute_discount, format_amount, to_decimal

logger = logging.getLogger(__name__)

# 失败原因代码
REASON_EMPTY_CODE = "empty_code"
REASON_NOT_FOUND = "not_found"
REASON_INACTIVE = "inactive"
REASON_NOT_YET_VALID = "not_yet_valid"
REASON_EXPIRED = "expired"
REASON_BELOW_MINIMUM = "below_minimum"
REASON_USAGE_LIMIT = "usage_limit_reached"
REASON_LOOKUP_FAILED = "lookup_failed"


class CouponLookup(Protocol):
    def find_by_code(self, code: str) -> Optional[Coupon]:
        ...


def check_coupon(coupon: Coupon, cart_subtotal: Decimal, now: datetime) -> Optional[CouponValidationResult]:
    """
    检查优惠券状态、有效期、最低消费和使用次数

    Returns:
        第一个失败检查对应的结果；全部通过返回None
    """
    if not coupon.is_active:
        return CouponValidationResult.invalid(
            REASON_INACTIVE, "This coupon is no longer active", coupon)

    if now < coupon.valid_from:
        return CouponValidationResult.invalid(
            REASON_NOT_YET_VALID, "This coupon is not yet valid", coupon)

    if now > coupon.valid_until:
        return CouponValidationResult.invalid(
            REASON_EXPIRED, "This coupon has expired", coupon)

    if cart_subtotal < coupon.minimum_purchase_amount:
        shortfall = coupon.minimum_purchase_amount - cart_subtotal
        return CouponValidationResult.invalid(
            REASON_BELOW_MINIMUM,
            f"Minimum purchase amount of ₹{format_amount(coupon.minimum_purchase_amount)} required. "
            f"Add ₹{format_amount(shortfall)} more to use this coupon.",
            coupon,
        )

    if coupon.usage_exhausted:
        return CouponValidationResult.invalid(
            REASON_USAGE_LIMIT, "This coupon has reached its usage limit", coupon)

    return None


class CouponValidator:
    """
    优惠券校验器

    coupon_store 只需提供 find_by_code(code)，通过构造参数注入。
    校验是幂等的：重复校验同一优惠券不会改变任何状态。
    """

    def __init__(self, coupon_store: CouponLookup):
        self.coupon_store = coupon_store

    def validate(self, code: str, cart_subtotal: Decimal,
                 now: Optional[datetime] = None) -> CouponValidationResult:
        """
        校验优惠券是否可用于给定小计

        Args:
            code: 优惠券代码，不区分大小写
            cart_subtotal: 应用时的购物车小计
            now: 当前本地时间，默认 datetime.now()

        Returns:
            CouponValidationResult，成功时带有 coupon 和 discount_amount
        """
        canonical = (code or "").strip().upper()
        if not canonical:
            return CouponValidationResult.invalid(REASON_EMPTY_CODE, "Please enter a coupon code")

        now = now or datetime.now()
        cart_subtotal = to_decimal(cart_subtotal)

        try:
            coupon = self.coupon_store.find_by_code(canonical)
        except Exception as e:
            logger.error(f"查询优惠券 {canonical} 失败: {str(e)}")
            return CouponValidationResult.invalid(
                REASON_LOOKUP_FAILED, "Could not validate coupon. Please try again.")

        if coupon is None:
            return CouponValidationResult.invalid(REASON_NOT_FOUND, "Invalid coupon code")

        failure = check_coupon(coupon, cart_subtotal, now)
        if failure is not None:
            logger.info(f"优惠券 {canonical} 校验未通过: {failure.reason}")
            return failure

        discount = compute_discount(coupon, cart_subtotal)
        logger.info(f"优惠券 {canonical} 校验通过，折扣 {discount}")
        return CouponValidationResult(is_valid=True, coupon=coupon, discount_amount=discount)
