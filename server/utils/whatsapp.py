# WhatsApp 下单消息格式化
# 输入是已定价、已校验的订单记录，这里不做任何校验

import re
from urllib.parse import quote

from core.models import FulfillmentMode, OrderRecord
from core.pricing import format_amount

WHATSAPP_BASE_URL = "https://wa.me"
# 与浏览器 encodeURIComponent 保持一致的不转义字符
URI_SAFE_CHARS = "-_.!~*'()"


def format_order_message(order: OrderRecord) -> str:
    """
    生成发送给餐厅的订单消息文本

    配送费、折扣为0时不显示对应行；履约信息按下单方式显示地址、桌位或取餐时间。
    """
    customer = order.customer_info
    lines = [
        f"🍽️ *New Order - {order.order_code}*",
        "",
        f"👤 *Customer:* {customer.name}",
        f"📞 *Phone:* {customer.phone_number}",
        f"📋 *Order Type:* {order.order_type.value.upper()}",
    ]

    if order.order_type == FulfillmentMode.DELIVERY and customer.address:
        lines.append(f"📍 *Address:* {customer.address}")
    elif order.order_type == FulfillmentMode.DINE_IN and customer.table_preference:
        lines.append(f"🪑 *Table:* {customer.table_preference}")
    elif order.order_type == FulfillmentMode.PICKUP and customer.pickup_time:
        lines.append(f"⏰ *Pickup Time:* {customer.pickup_time}")

    lines.append("")
    lines.append("📦 *Order Items:*")
    for item in order.items:
        lines.append(f"• {item.dish_name} x{item.quantity} = ₹{format_amount(item.total)}")

    lines.append("")
    lines.append("💰 *Order Summary:*")
    lines.append(f"Subtotal: ₹{format_amount(order.subtotal)}")
    if order.delivery_fee > 0:
        lines.append(f"Delivery Fee: ₹{format_amount(order.delivery_fee)}")
    if order.discount > 0:
        lines.append(f"Discount: -₹{format_amount(order.discount)}")
    lines.append(f"*Total: ₹{format_amount(order.total)}*")

    if order.notes:
        lines.append("")
        lines.append(f"📝 *Notes:* {order.notes}")

    return "\n".join(lines)


def build_whatsapp_link(phone_number: str, message: str) -> str:
    """生成 wa.me 深链，号码只保留数字"""
    digits = re.sub(r"[^0-9]", "", phone_number or "")
    return f"{WHATSAPP_BASE_URL}/{digits}?text={quote(message, safe=URI_SAFE_CHARS)}"
