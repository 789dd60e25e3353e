# 购物车聚合
# 持有行项目和履约方式，价格由定价引擎实时计算

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .coupon_lifecycle import CouponLifecycleManager, REMOVAL_CART_CLEARED
from .models import CartSummary, DeliveryFeeConfig, Dish, FulfillmentMode, LineItem
from .pricing import compute_subtotal, compute_summary


class CartAggregate:
    """
    购物车

    同一菜品最多一行；数量始终 >= 1，设置为 <= 0 等同于移除。
    本类不做任何I/O，也不自动触发优惠券检查：可能改变小计的操作之后，
    由调用方调用 reconcile_coupon()。
    """

    def __init__(self, items: Optional[Iterable[LineItem]] = None,
                 fulfillment_mode: FulfillmentMode = FulfillmentMode.DELIVERY,
                 coupon_manager: Optional[CouponLifecycleManager] = None):
        self._lines: Dict[str, LineItem] = {}
        for item in items or []:
            if item.dish.id in self._lines:
                raise ValueError(f"购物车中菜品 {item.dish.id} 重复")
            self._lines[item.dish.id] = item
        self.fulfillment_mode = FulfillmentMode(fulfillment_mode)
        self.coupon_manager = coupon_manager or CouponLifecycleManager()

    @property
    def items(self) -> List[LineItem]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def subtotal(self) -> Decimal:
        return compute_subtotal(self._lines.values())

    def add_item(self, dish: Dish, quantity: int = 1, note: str = "") -> LineItem:
        """
        添加菜品

        已在购物车中则累加数量，仅当传入非空备注时覆盖备注；
        否则新增一行，单价以此刻的 dish.price 为准。
        调用方需先确认菜品可售（接口层返回 "... is currently unavailable"），
        这里的异常是不变量保护，不是面向顾客的结果。

        Raises:
            ValueError: 数量小于1或菜品已下架
        """
        if quantity < 1:
            raise ValueError(f"添加数量必须大于0: {quantity}")
        if not dish.is_available:
            raise ValueError(f"菜品 {dish.name} 暂不可售")

        line = self._lines.get(dish.id)
        if line is not None:
            line.quantity = line.quantity + quantity
            if note:
                line.note = note
            return line

        line = LineItem(dish=dish, quantity=quantity, note=note or "", added_at=datetime.now())
        self._lines[dish.id] = line
        return line

    def remove_item(self, dish_id: str) -> bool:
        return self._lines.pop(dish_id, None) is not None

    def set_quantity(self, dish_id: str, quantity: int) -> Optional[LineItem]:
        """设置数量，<= 0 时移除该行；菜品不在购物车中时不做任何事"""
        if quantity <= 0:
            self.remove_item(dish_id)
            return None

        line = self._lines.get(dish_id)
        if line is not None:
            line.quantity = quantity
        return line

    def set_note(self, dish_id: str, note: str) -> Optional[LineItem]:
        line = self._lines.get(dish_id)
        if line is not None:
            line.note = note or ""
        return line

    def set_fulfillment_mode(self, mode: FulfillmentMode):
        # 履约方式只影响配送费，不影响小计，因此不触发优惠券检查
        self.fulfillment_mode = FulfillmentMode(mode)

    def clear(self):
        """清空购物车，同时摘除优惠券"""
        self._lines.clear()
        self.coupon_manager.remove(REMOVAL_CART_CLEARED)

    def get_quantity(self, dish_id: str) -> int:
        line = self._lines.get(dish_id)
        return line.quantity if line is not None else 0

    def reconcile_coupon(self, now: Optional[datetime] = None) -> bool:
        """按当前小计检查已挂载的优惠券，返回是否发生自动移除"""
        return self.coupon_manager.reconcile(self.subtotal, now)

    def summary(self, delivery_config: Optional[DeliveryFeeConfig] = None) -> CartSummary:
        return compute_summary(self._lines.values(), self.fulfillment_mode,
                               delivery_config, self.coupon_manager.applied)
