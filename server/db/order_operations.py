# 订单持久化操作
# 订单以完整JSON文档保存，另抽出几个常用查询列

import json
import logging
import sqlite3
from typing import Any, Dict, Optional

from core.pricing import to_cents
from .manager import DatabaseManager

logger = logging.getLogger(__name__)


class DuplicateOrderCodeError(ValueError):
    """订单号已存在"""


class OrderOperations:
    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def code_exists(self, order_code: str) -> bool:
        row = self.db.execute_single(
            "SELECT 1 FROM orders WHERE order_code = ?", [order_code.strip().upper()]
        ).fetchone()
        return row is not None

    def create_order(self, document: Dict[str, Any]) -> int:
        """
        保存订单文档

        Args:
            document: 已去除缺省字段的订单文档

        Returns:
            订单ID

        Raises:
            DuplicateOrderCodeError: 订单号冲突，调用方应重新生成订单号
        """
        order_code = document['order_code']
        coupon = document.get('applied_coupon') or {}
        try:
            cursor = self.db.execute_single(
                """
                INSERT INTO orders (order_code, order_type, status, customer_phone,
                                    total_cents, coupon_code, document, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    order_code,
                    document['order_type'],
                    document['status'],
                    document.get('customer_info', {}).get('phone_number'),
                    to_cents(str(document['total'])),
                    coupon.get('code'),
                    json.dumps(document, ensure_ascii=False),
                    document.get('created_at'),
                ]
            )
        except sqlite3.IntegrityError as e:
            if 'order_code' in str(e):
                raise DuplicateOrderCodeError(f"订单号 {order_code} 已存在")
            raise

        logger.info(f"订单 {order_code} 已保存 (ID: {cursor.lastrowid})")
        return cursor.lastrowid

    def get_order_by_code(self, order_code: str) -> Optional[Dict[str, Any]]:
        """按订单号查询（不区分大小写），返回订单文档并附带 order_id"""
        row = self.db.execute_single(
            "SELECT order_id, document FROM orders WHERE order_code = ?",
            [order_code.strip().upper()]
        ).fetchone()
        if not row:
            return None

        document = json.loads(row['document'])
        document['order_id'] = row['order_id']
        return document
