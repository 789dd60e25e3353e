# 购物车定价引擎
# 根据行项目、履约方式、配送费配置和已应用优惠券计算价格汇总，无副作用

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from .models import (
    AppliedCoupon, CartSummary, Coupon, DeliveryFeeConfig, DiscountType,
    FulfillmentMode, LineItem,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")

# 未加载配送设置时使用的阶梯配送费
FALLBACK_LOW_TIER_LIMIT = Decimal("300")
FALLBACK_MID_TIER_LIMIT = Decimal("500")
FALLBACK_LOW_TIER_FEE = Decimal("20")
FALLBACK_MID_TIER_FEE = Decimal("10")


def to_decimal(value) -> Decimal:
    """金额转为Decimal；float按其十进制字面值转换，避免二进制展开（0.7 -> 0.7）"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value) -> Decimal:
    """四舍五入到两位小数（ROUND_HALF_UP）"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    """金额转为以分为单位的整数（存储用）"""
    return int((to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return Decimal(int(cents)).scaleb(-2)


def format_amount(value) -> str:
    """金额展示：整数不带小数，否则保留两位，如 500 / 49.50"""
    amount = round2(value)
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal("1")))
    return str(amount)


def compute_subtotal(items: Iterable[LineItem]) -> Decimal:
    return sum((item.line_total for item in items), ZERO)


def _fallback_fee(subtotal: Decimal) -> Decimal:
    if subtotal < FALLBACK_LOW_TIER_LIMIT:
        return FALLBACK_LOW_TIER_FEE
    if subtotal <= FALLBACK_MID_TIER_LIMIT:
        return FALLBACK_MID_TIER_FEE
    return ZERO


def compute_delivery_fee(subtotal: Decimal, fulfillment_mode: FulfillmentMode,
                         delivery_config: Optional[DeliveryFeeConfig] = None) -> Decimal:
    """
    计算配送费

    非配送订单恒为0。有配送设置时，达到免配送费门槛为0，否则收取固定配送费，
    即使小计低于起送金额也照收（起送金额由结账校验拦截）。
    没有配送设置时按阶梯收费：<300收20，300~500收10，>500免费。
    """
    if fulfillment_mode != FulfillmentMode.DELIVERY:
        return ZERO

    if delivery_config is not None:
        if subtotal >= delivery_config.free_delivery_threshold:
            return ZERO
        return delivery_config.delivery_fee

    return _fallback_fee(subtotal)


def compute_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """
    按当前小计计算优惠金额

    固定金额券不超过小计；百分比券为 小计*比例/100。
    小计低于优惠券最低消费时折扣为0（此时优惠券尚未移除，由生命周期检查负责移除）。
    """
    if subtotal < coupon.minimum_purchase_amount:
        return ZERO

    if coupon.discount_type == DiscountType.FLAT:
        discount = min(coupon.discount_value, subtotal)
    else:
        discount = subtotal * coupon.discount_value / Decimal("100")

    return round2(discount)


def compute_summary(items: Iterable[LineItem], fulfillment_mode: FulfillmentMode,
                    delivery_config: Optional[DeliveryFeeConfig] = None,
                    applied_coupon: Optional[AppliedCoupon] = None) -> CartSummary:
    """
    计算购物车价格汇总

    Args:
        items: 购物车行项目
        fulfillment_mode: 履约方式
        delivery_config: 配送费配置，None时使用阶梯配送费
        applied_coupon: 当前已应用的优惠券

    Returns:
        CartSummary，tax 恒为0
    """
    items = list(items)
    if not items:
        return CartSummary(subtotal=ZERO, tax=ZERO, delivery_fee=ZERO,
                           discount=ZERO, total=ZERO, item_count=0)

    subtotal = compute_subtotal(items)
    item_count = sum(item.quantity for item in items)
    delivery_fee = compute_delivery_fee(subtotal, fulfillment_mode, delivery_config)

    discount = ZERO
    if applied_coupon is not None:
        discount = compute_discount(applied_coupon.coupon, subtotal)
        logger.debug(
            f"优惠券 {applied_coupon.coupon.code} 折扣: 小计={subtotal}, "
            f"类型={applied_coupon.coupon.discount_type.value}, 折扣={discount}"
        )

    total = round2(subtotal + delivery_fee - discount)

    return CartSummary(
        subtotal=subtotal,
        tax=ZERO,
        delivery_fee=delivery_fee,
        discount=discount,
        total=total,
        item_count=item_count,
    )
