# 购物车相关API路由
# 每次读取和每次可能改变小计的修改之后都会重新检查已应用的优惠券

import logging
from typing import Dict, Any, Optional
from fastapi import APIRouter, Depends, Path

from .models import (
    AddItemRequest, UpdateItemRequest, FulfillmentModeRequest, ApplyCouponRequest,
    AppliedCouponView, CartLineView, CartView,
)
from api.deps import get_database, load_delivery_config
from core.cart import CartAggregate
from core.coupon_validator import CouponValidator
from core.models import DeliveryFeeConfig, Dish
from db.cart_operations import CartOperations
from db.coupon_operations import CouponOperations
from db.manager import DatabaseManager
from utils.response import create_success_response, create_error_response
from utils.validators import validate_session_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cart", tags=["购物车"])

INVALID_SESSION_MESSAGE = "无效的购物车会话ID"


def _build_view(session_id: str, cart: CartAggregate, delivery_config: Optional[DeliveryFeeConfig],
                coupon_removed: bool = False) -> Dict[str, Any]:
    applied = cart.coupon_manager.applied
    applied_view = None
    if applied is not None:
        coupon = applied.coupon
        applied_view = AppliedCouponView(
            code=coupon.code,
            name=coupon.name,
            discount_type=coupon.discount_type.value,
            discount_value=coupon.discount_value,
            minimum_purchase_amount=coupon.minimum_purchase_amount,
        )

    view = CartView(
        session_id=session_id,
        items=[CartLineView.from_line(line) for line in cart.items],
        fulfillment_mode=cart.fulfillment_mode,
        applied_coupon=applied_view,
        summary=cart.summary(delivery_config),
        coupon_removed=coupon_removed,
        coupon_removal_reason=cart.coupon_manager.last_removal_reason if coupon_removed else None,
    )
    return view.model_dump(mode="json")


def _reconcile_and_save(session_id: str, cart: CartAggregate, cart_ops: CartOperations,
                        db: DatabaseManager, message: str) -> Dict[str, Any]:
    """检查优惠券、保存购物车并返回最新视图"""
    removed = cart.reconcile_coupon()
    cart_ops.save_cart(session_id, cart)
    if removed:
        message = f"{message}，优惠券已不满足使用条件并被移除"
    return create_success_response(
        data=_build_view(session_id, cart, load_delivery_config(db), removed),
        message=message
    )


@router.get("/{session_id}", response_model=Dict[str, Any])
async def get_cart(
    session_id: str = Path(..., description="购物车会话ID"),
    db: DatabaseManager = Depends(get_database)
):
    """获取购物车及实时价格汇总"""
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)

        removed = cart.reconcile_coupon()
        if removed:
            cart_ops.save_cart(session_id, cart)

        return create_success_response(
            data=_build_view(session_id, cart, load_delivery_config(db), removed),
            message="获取购物车成功"
        )

    except Exception as e:
        logger.error(f"获取购物车失败: {str(e)}")
        return create_error_response(f"获取购物车失败: {str(e)}")


@router.post("/{session_id}/items", response_model=Dict[str, Any])
async def add_item(
    item_request: AddItemRequest,
    session_id: str = Path(..., description="购物车会话ID"),
    db: DatabaseManager = Depends(get_database)
):
    """添加菜品，已在购物车中则累加数量"""
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    dish_payload = item_request.dish
    if not dish_payload.is_available:
        return create_error_response(f"{dish_payload.name} is currently unavailable")

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)

        dish = Dish(**dish_payload.model_dump())
        cart.add_item(dish, item_request.quantity, item_request.note)

        return _reconcile_and_save(session_id, cart, cart_ops, db, f"已添加 {dish.name}")

    except ValueError as e:
        return create_error_response(str(e))
    except Exception as e:
        logger.error(f"添加菜品失败: {str(e)}")
        return create_error_response(f"添加菜品失败: {str(e)}")


@router.put("/{session_id}/items/{dish_id}", response_model=Dict[str, Any])
async def update_item(
    update_request: UpdateItemRequest,
    session_id: str = Path(..., description="购物车会话ID"),
    dish_id: str = Path(..., description="菜品ID"),
    db: DatabaseManager = Depends(get_database)
):
    """修改数量或备注；数量 <= 0 时移除该菜品"""
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    if update_request.quantity is None and update_request.note is None:
        return create_error_response("没有需要修改的内容")

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)

        if cart.get_quantity(dish_id) == 0:
            return create_error_response(f"菜品 {dish_id} 不在购物车中")

        if update_request.note is not None:
            cart.set_note(dish_id, update_request.note)
        if update_request.quantity is not None:
            cart.set_quantity(dish_id, update_request.quantity)

        return _reconcile_and_save(session_id, cart, cart_ops, db, "购物车已更新")

    except Exception as e:
        logger.error(f"修改购物车失败: {str(e)}")
        return create_error_response(f"修改购物车失败: {str(e)}")


@router.delete("/{session_id}/items/{dish_id}", response_model=Dict[str, Any])
async def remove_item(
    session_id: str = Path(..., description="购物车会话ID"),
    dish_id: str = Path(..., description="菜品ID"),
    db: DatabaseManager = Depends(get_database)
):
    """移除菜品"""
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)

        if not cart.remove_item(dish_id):
            return create_error_response(f"菜品 {dish_id} 不在购物车中")

        return _reconcile_and_save(session_id, cart, cart_ops, db, "已移除菜品")

    except Exception as e:
        logger.error(f"移除菜品失败: {str(e)}")
        return create_error_response(f"移除菜品失败: {str(e)}")


@router.put("/{session_id}/fulfillment", response_model=Dict[str, Any])
async def set_fulfillment_mode(
    mode_request: FulfillmentModeRequest,
    session_id: str = Path(..., description="购物车会话ID"),
    db: DatabaseManager = Depends(get_database)
):
    """切换履约方式（只影响配送费，不触发优惠券检查）"""
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)
        cart.set_fulfillment_mode(mode_request.fulfillment_mode)
        cart_ops.save_cart(session_id, cart)

        return create_success_response(
            data=_build_view(session_id, cart, load_delivery_config(db)),
            message=f"履约方式已切换为 {cart.fulfillment_mode.value}"
        )

    except Exception as e:
        logger.error(f"切换履约方式失败: {str(e)}")
        return create_error_response(f"切换履约方式失败: {str(e)}")


@router.delete("/{session_id}", response_model=Dict[str, Any])
async def clear_cart(
    session_id: str = Path(..., description="购物车会话ID"),
    db: DatabaseManager = Depends(get_database)
):
    """清空购物车，同时移除已应用的优惠券"""
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)
        cart.clear()
        cart_ops.save_cart(session_id, cart)

        return create_success_response(
            data=_build_view(session_id, cart, load_delivery_config(db)),
            message="购物车已清空"
        )

    except Exception as e:
        logger.error(f"清空购物车失败: {str(e)}")
        return create_error_response(f"清空购物车失败: {str(e)}")


@router.post("/{session_id}/coupon", response_model=Dict[str, Any])
async def apply_coupon(
    coupon_request: ApplyCouponRequest,
    session_id: str = Path(..., description="购物车会话ID"),
    db: DatabaseManager = Depends(get_database)
):
    """
    校验并应用优惠券

    校验失败时返回具体原因，购物车和已应用的优惠券保持不变。
    应用时不累加使用次数，只有下单成功才累加。
    """
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)

        if cart.is_empty:
            return create_error_response("Add items to your cart before applying a coupon")

        result = CouponValidator(CouponOperations(db)).validate(coupon_request.code, cart.subtotal)
        if not result.is_valid:
            return create_error_response(result.error, data={"reason": result.reason})

        cart.coupon_manager.apply(result.coupon)
        cart_ops.save_cart(session_id, cart)

        return create_success_response(
            data=_build_view(session_id, cart, load_delivery_config(db)),
            message=f"Coupon {result.coupon.code} applied successfully"
        )

    except Exception as e:
        logger.error(f"应用优惠券失败: {str(e)}")
        return create_error_response(f"应用优惠券失败: {str(e)}")


@router.delete("/{session_id}/coupon", response_model=Dict[str, Any])
async def remove_coupon(
    session_id: str = Path(..., description="购物车会话ID"),
    db: DatabaseManager = Depends(get_database)
):
    """移除已应用的优惠券（未应用时也返回成功）"""
    if not validate_session_id(session_id):
        return create_error_response(INVALID_SESSION_MESSAGE)

    try:
        cart_ops = CartOperations(db)
        cart = cart_ops.load_cart(session_id)
        removed = cart.coupon_manager.remove()
        if removed:
            cart_ops.save_cart(session_id, cart)

        return create_success_response(
            data=_build_view(session_id, cart, load_delivery_config(db)),
            message="优惠券已移除" if removed else "当前没有已应用的优惠券"
        )

    except Exception as e:
        logger.error(f"移除优惠券失败: {str(e)}")
        return create_error_response(f"移除优惠券失败: {str(e)}")
