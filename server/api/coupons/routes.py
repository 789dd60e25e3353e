# 优惠券相关API路由：后台管理与校验

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, Path

from .models import CreateCouponRequest, UpdateCouponRequest, ValidateCouponRequest, CouponInfo
from api.deps import get_database
from core.coupon_validator import CouponValidator
from db.coupon_operations import CouponOperations
from db.manager import DatabaseManager
from utils.response import create_success_response, create_error_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/coupons", tags=["优惠券"])


@router.get("", response_model=Dict[str, Any])
async def list_coupons(db: DatabaseManager = Depends(get_database)):
    """全部优惠券，新建的在前"""
    try:
        coupons = CouponOperations(db).list_all()
        return create_success_response(
            data={"coupons": [CouponInfo.from_coupon(c).model_dump(mode="json") for c in coupons]},
            message=f"共 {len(coupons)} 张优惠券"
        )
    except Exception as e:
        logger.error(f"查询优惠券列表失败: {str(e)}")
        return create_error_response(f"查询优惠券列表失败: {str(e)}")


@router.get("/active", response_model=Dict[str, Any])
async def list_active_coupons(db: DatabaseManager = Depends(get_database)):
    """当前可用的优惠券（启用、在有效期内、仍有剩余次数）"""
    try:
        coupons = CouponOperations(db).list_active()
        return create_success_response(
            data={"coupons": [CouponInfo.from_coupon(c).model_dump(mode="json") for c in coupons]},
            message=f"共 {len(coupons)} 张可用优惠券"
        )
    except Exception as e:
        logger.error(f"查询可用优惠券失败: {str(e)}")
        return create_error_response(f"查询可用优惠券失败: {str(e)}")


@router.post("", response_model=Dict[str, Any])
async def create_coupon(
    coupon_request: CreateCouponRequest,
    db: DatabaseManager = Depends(get_database)
):
    """创建优惠券，代码重复时失败"""
    try:
        coupon = CouponOperations(db).create_coupon(coupon_request.to_coupon())
        return create_success_response(
            data=CouponInfo.from_coupon(coupon).model_dump(mode="json"),
            message=f"优惠券 {coupon.code} 创建成功"
        )
    except ValueError as e:
        return create_error_response(str(e))
    except Exception as e:
        logger.error(f"创建优惠券失败: {str(e)}")
        return create_error_response(f"创建优惠券失败: {str(e)}")


@router.put("/{coupon_id}", response_model=Dict[str, Any])
async def update_coupon(
    update_request: UpdateCouponRequest,
    coupon_id: int = Path(..., description="优惠券ID"),
    db: DatabaseManager = Depends(get_database)
):
    """更新优惠券（代码和已使用次数不可修改）"""
    changes = update_request.model_dump(exclude_unset=True)
    if not changes:
        return create_error_response("没有需要修改的内容")

    try:
        coupon = CouponOperations(db).update_coupon(coupon_id, changes)
        return create_success_response(
            data=CouponInfo.from_coupon(coupon).model_dump(mode="json"),
            message=f"优惠券 {coupon.code} 已更新"
        )
    except (LookupError, ValueError) as e:
        return create_error_response(str(e))
    except Exception as e:
        logger.error(f"更新优惠券失败: {str(e)}")
        return create_error_response(f"更新优惠券失败: {str(e)}")


@router.delete("/{coupon_id}", response_model=Dict[str, Any])
async def delete_coupon(
    coupon_id: int = Path(..., description="优惠券ID"),
    db: DatabaseManager = Depends(get_database)
):
    try:
        if not CouponOperations(db).delete_coupon(coupon_id):
            return create_error_response(f"优惠券ID {coupon_id} 不存在")
        return create_success_response(data={"coupon_id": coupon_id}, message="优惠券已删除")
    except Exception as e:
        logger.error(f"删除优惠券失败: {str(e)}")
        return create_error_response(f"删除优惠券失败: {str(e)}")


@router.post("/{coupon_id}/toggle", response_model=Dict[str, Any])
async def toggle_coupon(
    coupon_id: int = Path(..., description="优惠券ID"),
    db: DatabaseManager = Depends(get_database)
):
    """启用/停用优惠券"""
    try:
        coupon = CouponOperations(db).toggle_coupon(coupon_id)
        return create_success_response(
            data=CouponInfo.from_coupon(coupon).model_dump(mode="json"),
            message=f"优惠券 {coupon.code} 已{'启用' if coupon.is_active else '停用'}"
        )
    except LookupError as e:
        return create_error_response(str(e))
    except Exception as e:
        logger.error(f"切换优惠券状态失败: {str(e)}")
        return create_error_response(f"切换优惠券状态失败: {str(e)}")


@router.post("/validate", response_model=Dict[str, Any])
async def validate_coupon(
    validate_request: ValidateCouponRequest,
    db: DatabaseManager = Depends(get_database)
):
    """
    按给定小计校验优惠券

    只校验不应用，也不累加使用次数；失败时 data.reason 为失败原因代码
    """
    result = CouponValidator(CouponOperations(db)).validate(validate_request.code, validate_request.subtotal)
    if not result.is_valid:
        return create_error_response(result.error, data={"reason": result.reason})

    return create_success_response(
        data={
            "coupon": CouponInfo.from_coupon(result.coupon).model_dump(mode="json"),
            "discount_amount": float(result.discount_amount),
        },
        message=f"Coupon {result.coupon.code} is valid"
    )
