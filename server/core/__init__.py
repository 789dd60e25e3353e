# 店面核心引擎：购物车定价、优惠券校验与生命周期、订单组装
# 纯计算模块，不做任何I/O，外部存储通过参数注入

from .models import (
    Dish, LineItem, FulfillmentMode, DiscountType, RestaurantLocation,
    DeliveryFeeConfig, Coupon, AppliedCoupon, CartSummary,
    CouponValidationResult, LocationValidationResult, FulfillmentDetails,
    OrderRecord,
)
from .pricing import compute_summary, compute_delivery_fee, compute_discount, round2
from .coupon_validator import CouponValidator
from .coupon_lifecycle import CouponLifecycleManager
from .cart import CartAggregate
from .order_assembler import OrderAssembler, prune_absent, generate_order_code
from .location import calculate_distance, validate_location
from .order_gate import CheckoutCheck, StorefrontPolicy, check_checkout

__all__ = [
    "Dish", "LineItem", "FulfillmentMode", "DiscountType", "RestaurantLocation",
    "DeliveryFeeConfig", "Coupon", "AppliedCoupon", "CartSummary",
    "CouponValidationResult", "LocationValidationResult", "FulfillmentDetails",
    "OrderRecord",
    "compute_summary", "compute_delivery_fee", "compute_discount", "round2",
    "CouponValidator",
    "CouponLifecycleManager",
    "CartAggregate",
    "OrderAssembler", "prune_absent", "generate_order_code",
    "calculate_distance", "validate_location",
    "CheckoutCheck", "StorefrontPolicy", "check_checkout",
]
