# 配送设置相关API路由

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends

from .models import SaveDeliverySettingsRequest, ValidateLocationRequest, LocationCheckInfo
from api.deps import config, get_database, get_fallback_location, load_delivery_config
from core.location import validate_location
from db.delivery_operations import DeliveryOperations
from db.manager import DatabaseManager
from utils.response import create_success_response, create_error_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/delivery", tags=["配送"])


@router.get("/settings", response_model=Dict[str, Any])
async def get_delivery_settings(db: DatabaseManager = Depends(get_database)):
    """
    获取当前配送设置

    没有配送设置时 source 为 fallback，定价使用阶梯配送费
    """
    settings = load_delivery_config(db)
    if settings is None:
        return create_success_response(
            data={
                "settings": None,
                "source": "fallback",
                "fallback_minimum_order_amount": config.get('restaurant.fallback_minimum_order_amount', 200),
                "estimated_delivery_minutes": config.get('restaurant.default_estimated_delivery_minutes', 30),
            },
            message="尚未配置配送设置，使用默认配送费"
        )

    return create_success_response(
        data={"settings": settings.model_dump(mode="json"), "source": "database"},
        message="获取配送设置成功"
    )


@router.put("/settings", response_model=Dict[str, Any])
async def save_delivery_settings(
    settings_request: SaveDeliverySettingsRequest,
    db: DatabaseManager = Depends(get_database)
):
    """保存配送设置（更新当前启用的记录，没有则新建）"""
    try:
        settings = DeliveryOperations(db).save_settings(settings_request.to_config())
        return create_success_response(
            data={"settings": settings.model_dump(mode="json"), "source": "database"},
            message="配送设置已保存"
        )
    except Exception as e:
        logger.error(f"保存配送设置失败: {str(e)}")
        return create_error_response(f"保存配送设置失败: {str(e)}")


@router.post("/validate-location", response_model=Dict[str, Any])
async def check_location(
    location_request: ValidateLocationRequest,
    db: DatabaseManager = Depends(get_database)
):
    """校验顾客坐标是否在配送范围内"""
    settings = load_delivery_config(db)
    if settings is not None:
        restaurant = settings.restaurant_location
        radius_km = settings.delivery_radius_km
    else:
        restaurant = get_fallback_location()
        radius_km = config.get('restaurant.delivery_radius_km')

    if restaurant is None or not radius_km:
        return create_error_response("Delivery settings are being loaded. Please wait a moment and try again.")

    result = validate_location(location_request.latitude, location_request.longitude,
                               restaurant.latitude, restaurant.longitude, radius_km)
    info = LocationCheckInfo(
        is_valid=result.is_valid,
        distance_km=result.distance_km,
        delivery_radius_km=radius_km,
        error=result.error,
    ).model_dump()

    if not result.is_valid:
        return create_error_response(result.error, data=info)

    return create_success_response(
        data=info,
        message=f"Great! You are {result.distance_km:g}km away. We deliver to your location."
    )
