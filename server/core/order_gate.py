# 结账前校验
# 依次检查餐厅营业状态、购物车、起送金额、顾客信息和配送位置，第一个失败项即返回

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .cart import CartAggregate
from .location import validate_location
from .models import DeliveryFeeConfig, FulfillmentDetails, FulfillmentMode, RestaurantLocation
from .pricing import format_amount

PHONE_PATTERN = re.compile(r"^[0-9+\-\s()]{10,}$")

STATUS_OPEN = "open"
STATUS_CLOSED = "closed"
STATUS_DELIVERY_ONLY = "delivery-only"


class StorefrontPolicy(BaseModel):
    """
    餐厅当前的接单策略

    fallback_* 在数据库中没有配送设置时使用（来自配置文件的 restaurant 段）。
    """
    model_config = ConfigDict(frozen=True)

    status: str = STATUS_OPEN
    delivery_available: bool = True
    fallback_minimum_order_amount: Decimal = Decimal("200")
    fallback_location: Optional[RestaurantLocation] = None
    fallback_radius_km: Optional[float] = Field(None, gt=0)


class CheckoutCheck(BaseModel):
    """结账校验结果"""
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    distance_km: Optional[float] = None

    @classmethod
    def blocked(cls, reason: str, message: str, distance_km: Optional[float] = None) -> "CheckoutCheck":
        return cls(allowed=False, reason=reason, message=message, distance_km=distance_km)


def check_restaurant_status(mode: FulfillmentMode, policy: StorefrontPolicy) -> Optional[CheckoutCheck]:
    if policy.status == STATUS_CLOSED:
        return CheckoutCheck.blocked(
            "restaurant_closed",
            "Restaurant is currently closed. We are not accepting any orders at this time.")

    if mode == FulfillmentMode.DELIVERY and not policy.delivery_available:
        return CheckoutCheck.blocked(
            "delivery_unavailable",
            "Delivery service is currently unavailable. Please choose dine-in or pickup instead.")

    if policy.status == STATUS_DELIVERY_ONLY and mode in (FulfillmentMode.PICKUP, FulfillmentMode.DINE_IN):
        return CheckoutCheck.blocked(
            "delivery_only",
            "We are only accepting delivery orders at this time. Please select delivery option.")

    return None


def _check_delivery_location(details: FulfillmentDetails, delivery_config: Optional[DeliveryFeeConfig],
                             policy: StorefrontPolicy) -> Optional[CheckoutCheck]:
    if delivery_config is not None:
        location = delivery_config.restaurant_location
        radius_km = delivery_config.delivery_radius_km
    else:
        location = policy.fallback_location
        radius_km = policy.fallback_radius_km

    if not details.has_coordinates:
        return CheckoutCheck.blocked(
            "location_not_verified",
            "Please verify your delivery location first by sharing your location or entering coordinates manually.")

    if location is None or radius_km is None:
        return CheckoutCheck.blocked(
            "delivery_area_unknown",
            "Delivery settings are being loaded. Please wait a moment and try again.")

    result = validate_location(details.customer_latitude, details.customer_longitude,
                               location.latitude, location.longitude, radius_km)
    if not result.is_valid:
        return CheckoutCheck.blocked(
            "out_of_radius",
            f"{result.error} Please try a different location or choose pickup instead.",
            result.distance_km,
        )
    return None


def check_checkout(cart: CartAggregate, details: FulfillmentDetails,
                   delivery_config: Optional[DeliveryFeeConfig] = None,
                   policy: Optional[StorefrontPolicy] = None) -> CheckoutCheck:
    """
    校验购物车是否可以下单

    Args:
        cart: 购物车
        details: 顾客填写的信息
        delivery_config: 当前配送设置，None时使用 policy 中的兜底值
        policy: 餐厅接单策略

    Returns:
        CheckoutCheck，allowed 为False时 message 说明如何修正
    """
    policy = policy or StorefrontPolicy()
    mode = cart.fulfillment_mode

    status_check = check_restaurant_status(mode, policy)
    if status_check is not None:
        return status_check

    if cart.is_empty:
        return CheckoutCheck.blocked("empty_cart", "Your cart is empty. Please add items to proceed.")

    if mode == FulfillmentMode.DELIVERY:
        minimum = (delivery_config.minimum_order_amount if delivery_config is not None
                   else policy.fallback_minimum_order_amount)
        subtotal = cart.subtotal
        if subtotal < minimum:
            return CheckoutCheck.blocked(
                "below_minimum_order",
                f"Minimum order value for delivery is ₹{format_amount(minimum)}. "
                f"Please add ₹{format_amount(minimum - subtotal)} more to proceed.")

    if not details.customer_name.strip():
        return CheckoutCheck.blocked("missing_name", "Please enter your name to proceed with the order.")

    phone = details.phone_number.strip()
    if not phone:
        return CheckoutCheck.blocked("missing_phone", "Please enter your phone number to proceed with the order.")
    if not PHONE_PATTERN.match(phone):
        return CheckoutCheck.blocked("invalid_phone", "Please enter a valid 10-digit phone number.")

    if mode == FulfillmentMode.PICKUP and not (details.pickup_time or "").strip():
        return CheckoutCheck.blocked("missing_pickup_time", "Please select a pickup time to proceed with the order.")

    if mode == FulfillmentMode.DELIVERY:
        if not (details.address or "").strip():
            return CheckoutCheck.blocked(
                "missing_address", "Please enter your delivery address to proceed with the order.")

        location_check = _check_delivery_location(details, delivery_config, policy)
        if location_check is not None:
            return location_check

    return CheckoutCheck(allowed=True)
