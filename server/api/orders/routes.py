# 订单相关API路由：结账与订单查询

import logging
from typing import Dict, Any
from fastapi import APIRouter, HTTPException, Depends, Path

from .models import CheckoutRequest, CheckoutResponse
from api.deps import config, get_database, get_storefront_policy, load_delivery_config
from core.order_assembler import OrderAssembler
from core.order_gate import check_checkout
from db.cart_operations import CartOperations
from db.coupon_operations import CouponOperations
from db.manager import DatabaseManager
from db.order_operations import DuplicateOrderCodeError, OrderOperations
from utils.response import create_success_response, create_error_response
from utils.validators import validate_session_id
from utils.whatsapp import build_whatsapp_link, format_order_message

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["订单"])

# 订单号冲突时最多重新生成的次数
MAX_ORDER_CODE_ATTEMPTS = 5


@router.post("/checkout", response_model=Dict[str, Any])
async def checkout(
    checkout_request: CheckoutRequest,
    db: DatabaseManager = Depends(get_database)
):
    """
    结账

    流程：检查优惠券 -> 下单校验 -> 组装订单 -> 保存 -> 累加优惠券使用次数 -> 清空购物车。
    订单状态为 pending_whatsapp，顾客通过返回的链接把订单发送给餐厅确认。
    """
    session_id = checkout_request.session_id
    if not validate_session_id(session_id):
        return create_error_response("无效的购物车会话ID")

    try:
        cart_ops = CartOperations(db)
        order_ops = OrderOperations(db)
        cart = cart_ops.load_cart(session_id)
        delivery_config = load_delivery_config(db)

        coupon_removed = cart.reconcile_coupon()
        if coupon_removed:
            cart_ops.save_cart(session_id, cart)

        details = checkout_request.to_details()
        check = check_checkout(cart, details, delivery_config, get_storefront_policy())
        if not check.allowed:
            logger.info(f"购物车 {session_id} 下单被拦截: {check.reason}")
            return create_error_response(
                check.message,
                data={"reason": check.reason, "distance_km": check.distance_km}
            )

        assembler = OrderAssembler(
            default_estimated_minutes=config.get('restaurant.default_estimated_delivery_minutes', 30)
        )
        applied = cart.coupon_manager.applied

        order_id = None
        record = None
        for attempt in range(MAX_ORDER_CODE_ATTEMPTS):
            record = assembler.assemble(cart, details, applied, delivery_config)
            if order_ops.code_exists(record.order_code):
                logger.warning(f"订单号 {record.order_code} 已存在，重新生成 ({attempt + 1})")
                continue
            try:
                order_id = order_ops.create_order(OrderAssembler.to_document(record))
                break
            except DuplicateOrderCodeError:
                logger.warning(f"订单号 {record.order_code} 冲突，重新生成 ({attempt + 1})")

        if order_id is None:
            return create_error_response("Failed to place order. Please try again.")

        if applied is not None:
            try:
                CouponOperations(db).increment_usage(applied.coupon.code)
            except Exception as e:
                logger.error(f"订单 {record.order_code} 已保存，但累加优惠券 {applied.coupon.code} 使用次数失败: {str(e)}")

        cart.clear()
        cart_ops.save_cart(session_id, cart)

        message = format_order_message(record)
        response_data = CheckoutResponse(
            order_id=order_id,
            order_code=record.order_code,
            status=record.status,
            subtotal=float(record.subtotal),
            delivery_fee=float(record.delivery_fee),
            discount=float(record.discount),
            total=float(record.total),
            coupon_removed=coupon_removed,
            whatsapp_message=message,
            whatsapp_url=build_whatsapp_link(config.get('restaurant.whatsapp_number', ''), message),
            order=OrderAssembler.to_document(record),
        )

        logger.info(f"订单 {record.order_code} 创建成功，金额 {record.total}")
        return create_success_response(
            data=response_data.model_dump(),
            message=f"Order {record.order_code} is ready. Please send the WhatsApp message to confirm your order."
        )

    except Exception as e:
        logger.error(f"结账失败: {str(e)}")
        return create_error_response(f"结账失败: {str(e)}")


@router.get("/{order_code}", response_model=Dict[str, Any])
async def get_order(
    order_code: str = Path(..., description="订单号，如 FD-20250101-1234"),
    db: DatabaseManager = Depends(get_database)
):
    """按订单号查询订单（不区分大小写）"""
    order = OrderOperations(db).get_order_by_code(order_code)
    if order is None:
        raise HTTPException(status_code=404, detail=f"订单 {order_code.upper()} 不存在")

    return create_success_response(data=order, message="获取订单成功")
