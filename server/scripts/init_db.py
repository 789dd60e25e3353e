#!/usr/bin/env python3
# 数据库初始化脚本：建表、建索引、写入示例优惠券和默认配送设置

import os
import sys
import logging
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# 添加server目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.models import Coupon, DeliveryFeeConfig, DiscountType, RestaurantLocation
from db.coupon_operations import CouponOperations
from db.delivery_operations import DeliveryOperations
from db.manager import DatabaseManager
from db.schema import TABLE_NAMES, initialize_schema
from utils.config import Config

logger = logging.getLogger("init_db")


def sample_coupons(today: date):
    """示例优惠券，有效期一年"""
    end = today + timedelta(days=365)
    return [
        Coupon(
            code="WELCOME10",
            name="Welcome Offer",
            description="10% off on orders above ₹200",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
            minimum_purchase_amount=Decimal("200"),
            start_date=today,
            end_date=end,
        ),
        Coupon(
            code="FLAT100",
            name="Flat ₹100 Off",
            description="₹100 off on orders above ₹500",
            discount_type=DiscountType.FLAT,
            discount_value=Decimal("100"),
            minimum_purchase_amount=Decimal("500"),
            start_date=today,
            end_date=end,
            usage_limit=100,
        ),
    ]


def default_delivery_settings(config: Config) -> DeliveryFeeConfig:
    restaurant = config.get_restaurant_config()
    return DeliveryFeeConfig(
        minimum_order_amount=Decimal("299"),
        free_delivery_threshold=Decimal("499"),
        delivery_fee=Decimal("49"),
        restaurant_location=RestaurantLocation(**restaurant['location']),
        delivery_radius_km=restaurant.get('delivery_radius_km', 3),
        estimated_delivery_minutes=restaurant.get('default_estimated_delivery_minutes', 30),
    )


def insert_initial_data(db_manager: DatabaseManager, config: Config):
    """写入初始数据，已存在的跳过"""
    coupon_ops = CouponOperations(db_manager)
    for coupon in sample_coupons(date.today()):
        if coupon_ops.find_by_code(coupon.code) is not None:
            logger.info(f"示例优惠券 {coupon.code} 已存在")
            continue
        coupon_ops.create_coupon(coupon)
        logger.info(f"成功创建示例优惠券: {coupon.code}")

    delivery_ops = DeliveryOperations(db_manager)
    if delivery_ops.get_active_settings() is None:
        delivery_ops.save_settings(default_delivery_settings(config))
        logger.info("成功写入默认配送设置")
    else:
        logger.info("配送设置已存在")


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    config = Config()
    db_path = config.get_database_config()['path']

    logger.info(f"开始初始化数据库: {db_path}")
    logger.info(f"配置环境: {os.getenv('CONFIG_ENV', 'development')}")

    try:
        with DatabaseManager(db_path) as db_manager:
            initialize_schema(db_manager)
            insert_initial_data(db_manager, config)
            db_manager.check_integrity()

            logger.info("数据库初始化完成! 数据表状态:")
            for table_name in TABLE_NAMES:
                info = db_manager.get_table_info(table_name)
                logger.info(f"  - {table_name}: {info['record_count']} 条记录")

    except Exception as e:
        logger.error(f"数据库初始化失败: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
