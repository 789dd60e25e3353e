# 数据验证器

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from core.order_gate import STATUS_CLOSED, STATUS_DELIVERY_ONLY, STATUS_OPEN

COUPON_CODE_PATTERN = re.compile(r'^[A-Z0-9_-]{3,50}$')
SESSION_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]{8,64}$')


def validate_coupon_code(code: str) -> bool:
    """优惠券代码：3~50位大写字母、数字、下划线或连字符（先转大写再校验）"""
    if not code or not isinstance(code, str):
        return False
    return bool(COUPON_CODE_PATTERN.match(code.strip().upper()))


def validate_session_id(session_id: str) -> bool:
    """购物车会话ID由客户端生成，8~64位"""
    if not session_id or not isinstance(session_id, str):
        return False
    return bool(SESSION_ID_PATTERN.match(session_id))


def validate_restaurant_status(status: str) -> bool:
    return status in [STATUS_OPEN, STATUS_CLOSED, STATUS_DELIVERY_ONLY]


def validate_amount(value: Any) -> bool:
    """
    验证金额：非负，最多两位小数（金额按分存储）

    Args:
        value: 金额（数字或字符串）

    Returns:
        验证结果
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return False

    if not amount.is_finite() or amount < 0:
        return False
    return amount == amount.quantize(Decimal("0.01"))
