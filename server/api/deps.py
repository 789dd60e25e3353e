# 路由共享依赖：配置、数据库连接、配送设置与接单策略

import logging
from decimal import Decimal
from typing import Optional

from core.models import DeliveryFeeConfig, RestaurantLocation
from core.order_gate import StorefrontPolicy
from db.delivery_operations import DeliveryOperations
from db.manager import DatabaseManager
from utils.config import Config

logger = logging.getLogger(__name__)

config = Config()


def get_database():
    """获取数据库连接（每个请求一个连接）"""
    db_config = config.get_database_config()
    db_manager = DatabaseManager(db_config["path"], auto_connect=True)
    try:
        yield db_manager
    finally:
        db_manager.close()


def load_delivery_config(db: DatabaseManager) -> Optional[DeliveryFeeConfig]:
    """
    读取启用的配送设置

    读取失败只记录日志并返回None，定价随之使用阶梯配送费
    """
    try:
        return DeliveryOperations(db).get_active_settings()
    except Exception as e:
        logger.error(f"读取配送设置失败，使用默认阶梯配送费: {str(e)}")
        return None


def get_fallback_location() -> Optional[RestaurantLocation]:
    location = config.get('restaurant.location')
    if not location:
        return None
    return RestaurantLocation(**location)


def get_storefront_policy() -> StorefrontPolicy:
    restaurant = config.get_restaurant_config()
    return StorefrontPolicy(
        status=restaurant.get('status', 'open'),
        delivery_available=restaurant.get('delivery_available', True),
        fallback_minimum_order_amount=Decimal(str(restaurant.get('fallback_minimum_order_amount', 200))),
        fallback_location=get_fallback_location(),
        fallback_radius_km=restaurant.get('delivery_radius_km'),
    )
