# 优惠券存储操作
# 按代码查询、使用次数累加、启用列表，以及后台的增删改

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from core.models import Coupon
from core.pricing import from_cents, to_cents
from .manager import DatabaseManager

logger = logging.getLogger(__name__)

COUPON_COLUMNS = """
    coupon_id, code, name, description, discount_type, discount_value_cents,
    minimum_purchase_cents, start_date, end_date, is_active, usage_limit,
    used_count, created_at, updated_at
"""

# 后台更新允许修改的字段
UPDATABLE_FIELDS = {
    'name', 'description', 'discount_type', 'discount_value', 'minimum_purchase_amount',
    'start_date', 'end_date', 'is_active', 'usage_limit',
}


class CouponOperations:
    """
    优惠券存储

    金额以分存储；百分比折扣同样乘100存储（10% -> 1000）。
    increment_usage 为先读后写，并发下计数可能被覆盖，这是已知限制。
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    @staticmethod
    def _row_to_coupon(row: sqlite3.Row) -> Coupon:
        return Coupon(
            id=row['coupon_id'],
            code=row['code'],
            name=row['name'] or '',
            description=row['description'] or '',
            discount_type=row['discount_type'],
            discount_value=from_cents(row['discount_value_cents']),
            minimum_purchase_amount=from_cents(row['minimum_purchase_cents'] or 0),
            start_date=row['start_date'],
            end_date=row['end_date'],
            is_active=bool(row['is_active']),
            usage_limit=row['usage_limit'],
            used_count=row['used_count'] or 0,
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    def find_by_code(self, code: str) -> Optional[Coupon]:
        """按代码查询（不区分大小写），不存在返回None"""
        row = self.db.execute_single(
            f"SELECT {COUPON_COLUMNS} FROM coupons WHERE code = ?",
            [code.strip().upper()]
        ).fetchone()
        return self._row_to_coupon(row) if row else None

    def get_coupon(self, coupon_id: int) -> Optional[Coupon]:
        row = self.db.execute_single(
            f"SELECT {COUPON_COLUMNS} FROM coupons WHERE coupon_id = ?",
            [coupon_id]
        ).fetchone()
        return self._row_to_coupon(row) if row else None

    def list_all(self) -> List[Coupon]:
        """全部优惠券，新建的在前"""
        rows = self.db.execute_single(
            f"SELECT {COUPON_COLUMNS} FROM coupons ORDER BY created_at DESC, coupon_id DESC"
        ).fetchall()
        return [self._row_to_coupon(row) for row in rows]

    def list_active(self, now: Optional[datetime] = None) -> List[Coupon]:
        """
        当前可用的优惠券：启用、在有效期内、仍有剩余次数

        Args:
            now: 判断时间，默认当前本地时间
        """
        now = now or datetime.now()
        today = now.date().isoformat()
        rows = self.db.execute_single(
            f"""
            SELECT {COUPON_COLUMNS} FROM coupons
            WHERE is_active = 1 AND start_date <= ? AND end_date >= ?
              AND (usage_limit IS NULL OR used_count < usage_limit)
            ORDER BY created_at DESC, coupon_id DESC
            """,
            [today, today]
        ).fetchall()
        coupons = [self._row_to_coupon(row) for row in rows]
        return [c for c in coupons if c.is_within_window(now) and not c.usage_exhausted]

    def create_coupon(self, coupon: Coupon) -> Coupon:
        """
        创建优惠券

        Raises:
            ValueError: 代码已存在
        """
        if self.find_by_code(coupon.code) is not None:
            raise ValueError(f"优惠券代码 {coupon.code} 已存在")

        now = datetime.now().isoformat(timespec='seconds')
        cursor = self.db.execute_single(
            """
            INSERT INTO coupons (code, name, description, discount_type, discount_value_cents,
                                 minimum_purchase_cents, start_date, end_date, is_active,
                                 usage_limit, used_count, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                coupon.code, coupon.name, coupon.description, coupon.discount_type.value,
                to_cents(coupon.discount_value), to_cents(coupon.minimum_purchase_amount),
                coupon.start_date.isoformat(), coupon.end_date.isoformat(), coupon.is_active,
                coupon.usage_limit, coupon.used_count, now, now,
            ]
        )
        logger.info(f"创建优惠券 {coupon.code} (ID: {cursor.lastrowid})")
        return self.get_coupon(cursor.lastrowid)

    def update_coupon(self, coupon_id: int, changes: Dict[str, Any]) -> Coupon:
        """
        更新优惠券

        Args:
            coupon_id: 优惠券ID
            changes: 需要修改的字段（代码和使用次数不可修改）

        Raises:
            LookupError: 优惠券不存在
            ValueError: 修改后的数据不合法
        """
        current = self.get_coupon(coupon_id)
        if current is None:
            raise LookupError(f"优惠券ID {coupon_id} 不存在")

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"不允许修改的字段: {', '.join(sorted(unknown))}")

        try:
            updated = Coupon(**{**current.model_dump(), **changes})
        except ValidationError as e:
            raise ValueError(f"优惠券数据不合法: {e.errors()[0]['msg']}")
        if updated.end_date < updated.start_date:
            raise ValueError("结束日期不能早于开始日期")

        self.db.execute_single(
            """
            UPDATE coupons
            SET name = ?, description = ?, discount_type = ?, discount_value_cents = ?,
                minimum_purchase_cents = ?, start_date = ?, end_date = ?, is_active = ?,
                usage_limit = ?, updated_at = ?
            WHERE coupon_id = ?
            """,
            [
                updated.name, updated.description, updated.discount_type.value,
                to_cents(updated.discount_value), to_cents(updated.minimum_purchase_amount),
                updated.start_date.isoformat(), updated.end_date.isoformat(), updated.is_active,
                updated.usage_limit, datetime.now().isoformat(timespec='seconds'), coupon_id,
            ]
        )
        logger.info(f"更新优惠券 {current.code}: {', '.join(sorted(changes))}")
        return self.get_coupon(coupon_id)

    def delete_coupon(self, coupon_id: int) -> bool:
        cursor = self.db.execute_single("DELETE FROM coupons WHERE coupon_id = ?", [coupon_id])
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"删除优惠券 ID: {coupon_id}")
        return deleted

    def toggle_coupon(self, coupon_id: int) -> Coupon:
        """
        切换启用状态

        Raises:
            LookupError: 优惠券不存在
        """
        current = self.get_coupon(coupon_id)
        if current is None:
            raise LookupError(f"优惠券ID {coupon_id} 不存在")

        self.db.execute_single(
            "UPDATE coupons SET is_active = ?, updated_at = ? WHERE coupon_id = ?",
            [not current.is_active, datetime.now().isoformat(timespec='seconds'), coupon_id]
        )
        logger.info(f"优惠券 {current.code} 已{'停用' if current.is_active else '启用'}")
        return self.get_coupon(coupon_id)

    def increment_usage(self, code: str) -> Optional[Coupon]:
        """
        使用次数加一；达到使用上限时在同一次更新中停用

        只在订单成功保存后调用。

        Returns:
            更新后的优惠券；代码不存在时返回None
        """
        coupon = self.find_by_code(code)
        if coupon is None:
            logger.warning(f"累加使用次数时优惠券 {code} 不存在")
            return None

        new_count = coupon.used_count + 1
        reached_limit = coupon.usage_limit is not None and new_count >= coupon.usage_limit
        is_active = False if reached_limit else coupon.is_active

        self.db.execute_single(
            "UPDATE coupons SET used_count = ?, is_active = ?, updated_at = ? WHERE coupon_id = ?",
            [new_count, is_active, datetime.now().isoformat(timespec='seconds'), coupon.id]
        )

        if reached_limit:
            logger.info(f"优惠券 {coupon.code} 已达使用上限 {coupon.usage_limit}，自动停用")
        return self.get_coupon(coupon.id)
