# 购物车会话持久化操作
# 会话ID由客户端生成；保存行项目、履约方式和已应用优惠券快照

import json
import logging
from datetime import datetime
from typing import Optional

from core.cart import CartAggregate
from core.coupon_lifecycle import CouponLifecycleManager
from core.models import AppliedCoupon, FulfillmentMode, LineItem
from .manager import DatabaseManager

logger = logging.getLogger(__name__)


def _dumps(value) -> str:
    # Decimal/日期统一转字符串，读回时由pydantic解析，避免浮点误差
    return json.dumps(value, ensure_ascii=False, default=str)


class CartOperations:
    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def load_cart(self, session_id: str) -> CartAggregate:
        """
        读取购物车会话，不存在时返回空购物车

        Args:
            session_id: 客户端会话ID
        """
        row = self.db.execute_single(
            "SELECT items, fulfillment_mode, applied_coupon FROM cart_sessions WHERE session_id = ?",
            [session_id]
        ).fetchone()

        if not row:
            return CartAggregate()

        items = [LineItem.model_validate(item) for item in json.loads(row['items'] or '[]')]
        applied = None
        if row['applied_coupon']:
            applied = AppliedCoupon.model_validate(json.loads(row['applied_coupon']))

        return CartAggregate(
            items=items,
            fulfillment_mode=FulfillmentMode(row['fulfillment_mode'] or FulfillmentMode.DELIVERY.value),
            coupon_manager=CouponLifecycleManager(applied),
        )

    def save_cart(self, session_id: str, cart: CartAggregate):
        applied = cart.coupon_manager.applied
        items_json = _dumps([item.model_dump() for item in cart.items])
        coupon_json = _dumps(applied.model_dump()) if applied is not None else None
        now = datetime.now().isoformat(timespec='seconds')

        self.db.execute_single(
            """
            INSERT INTO cart_sessions (session_id, items, fulfillment_mode, applied_coupon, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(session_id) DO UPDATE SET
                items = excluded.items,
                fulfillment_mode = excluded.fulfillment_mode,
                applied_coupon = excluded.applied_coupon,
                updated_at = excluded.updated_at
            """,
            [session_id, items_json, cart.fulfillment_mode.value, coupon_json, now, now]
        )
        logger.debug(f"购物车 {session_id} 已保存: {len(cart.items)} 行")
