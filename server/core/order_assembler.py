# 订单组装
# 把购物车、优惠券、配送设置和顾客信息合成为不可变的订单记录

import random
from datetime import datetime
from typing import Any, Callable, Optional

from .cart import CartAggregate
from .models import (
    AppliedCoupon, CouponSnapshot, CustomerInfo, DeliveryFeeConfig, DeliverySnapshot,
    FulfillmentDetails, FulfillmentMode, GeoPoint, OrderItemSnapshot, OrderRecord,
    StatusEntry, ORDER_STATUS_PENDING_WHATSAPP,
)
from .pricing import compute_summary

INITIAL_STATUS_REASON = "Order prepared, awaiting WhatsApp confirmation"
DEFAULT_ESTIMATED_DELIVERY_MINUTES = 30


def generate_order_code(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """生成订单号，格式 FD-YYYYMMDD-NNNN"""
    now = now or datetime.now()
    rng = rng or random
    return f"FD-{now.strftime('%Y%m%d')}-{rng.randint(1000, 9999)}"


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, dict) and not value:
        return True
    return False


def prune_absent(value: Any) -> Any:
    """
    递归去除缺省字段

    None、空白字符串以及清理后变为空的字典都会被整个删除；列表本身保留，只清理其中的元素。
    """
    if isinstance(value, dict):
        pruned = {}
        for key, item in value.items():
            item = prune_absent(item)
            if not _is_absent(item):
                pruned[key] = item
        return pruned

    if isinstance(value, list):
        return [item for item in (prune_absent(v) for v in value) if not _is_absent(item)]

    return value


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


class OrderAssembler:
    """
    订单组装器

    assemble() 是纯转换：不写库、不改购物车。订单号生成器可注入，
    由调用方在订单号冲突时重新组装。
    """

    def __init__(self, code_generator: Callable[[datetime], str] = generate_order_code,
                 default_estimated_minutes: int = DEFAULT_ESTIMATED_DELIVERY_MINUTES):
        self.code_generator = code_generator
        self.default_estimated_minutes = default_estimated_minutes

    def assemble(self, cart: CartAggregate, details: FulfillmentDetails,
                 applied_coupon: Optional[AppliedCoupon] = None,
                 delivery_config: Optional[DeliveryFeeConfig] = None,
                 now: Optional[datetime] = None) -> OrderRecord:
        """
        组装订单记录

        Args:
            cart: 购物车
            details: 顾客联系方式和履约信息
            applied_coupon: 下单时挂载的优惠券
            delivery_config: 下单时的配送设置快照
            now: 下单时间

        Returns:
            OrderRecord，状态为 pending_whatsapp，附带一条状态历史

        Raises:
            ValueError: 购物车为空
        """
        if cart.is_empty:
            raise ValueError("购物车为空，无法生成订单")

        now = now or datetime.now()
        mode = cart.fulfillment_mode
        summary = compute_summary(cart.items, mode, delivery_config, applied_coupon)

        customer = CustomerInfo(
            name=details.customer_name.strip(),
            phone_number=details.phone_number.strip(),
            address=_clean(details.address) if mode == FulfillmentMode.DELIVERY else None,
            table_preference=_clean(details.table_preference) if mode == FulfillmentMode.DINE_IN else None,
            pickup_time=_clean(details.pickup_time) if mode == FulfillmentMode.PICKUP else None,
        )

        items = [
            OrderItemSnapshot(
                dish_id=line.dish.id,
                dish_name=line.dish.name,
                price=line.unit_price,
                quantity=line.quantity,
                total=line.line_total,
                special_instructions=_clean(line.note),
            )
            for line in cart.items
        ]

        coupon_snapshot = None
        if applied_coupon is not None:
            coupon = applied_coupon.coupon
            coupon_snapshot = CouponSnapshot(
                code=coupon.code,
                name=coupon.name,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
            )

        delivery_snapshot = None
        estimated_minutes = self.default_estimated_minutes
        if delivery_config is not None:
            location = delivery_config.restaurant_location
            delivery_snapshot = DeliverySnapshot(
                restaurant_location=GeoPoint(
                    latitude=location.latitude,
                    longitude=location.longitude,
                    address=location.address,
                ),
                delivery_radius=delivery_config.delivery_radius_km,
            )
            estimated_minutes = delivery_config.estimated_delivery_minutes or self.default_estimated_minutes

        customer_location = None
        if mode == FulfillmentMode.DELIVERY and details.has_coordinates:
            customer_location = GeoPoint(
                latitude=details.customer_latitude,
                longitude=details.customer_longitude,
                address=_clean(details.address),
            )

        return OrderRecord(
            order_code=self.code_generator(now),
            customer_info=customer,
            items=items,
            order_type=mode,
            status=ORDER_STATUS_PENDING_WHATSAPP,
            subtotal=summary.subtotal,
            delivery_fee=summary.delivery_fee,
            discount=summary.discount,
            total=summary.total,
            applied_coupon=coupon_snapshot,
            delivery_settings=delivery_snapshot,
            customer_location=customer_location,
            estimated_delivery_time=estimated_minutes,
            notes=_clean(details.notes),
            status_history=[
                StatusEntry(status=ORDER_STATUS_PENDING_WHATSAPP, timestamp=now, reason=INITIAL_STATUS_REASON)
            ],
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def to_document(record: OrderRecord) -> dict:
        """序列化为可持久化的文档，缺省字段被整个省略"""
        return prune_absent(record.model_dump(mode="json"))
