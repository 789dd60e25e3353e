# 数据库表结构
# 金额列统一以"分"(1/100)为单位存整数；百分比折扣同样乘以100存储

import logging

from .manager import DatabaseManager

logger = logging.getLogger(__name__)

TABLE_NAMES = ['coupons', 'delivery_settings', 'orders', 'cart_sessions']

CREATE_COUPONS_TABLE = """
CREATE TABLE IF NOT EXISTS coupons (
    coupon_id INTEGER PRIMARY KEY,
    code VARCHAR(50) UNIQUE NOT NULL,              -- 优惠券代码，统一大写
    name VARCHAR(100) DEFAULT '',
    description TEXT DEFAULT '',
    discount_type VARCHAR(20) NOT NULL
        CHECK (discount_type IN ('flat', 'percentage')),
    discount_value_cents INTEGER NOT NULL CHECK (discount_value_cents >= 0),
    minimum_purchase_cents INTEGER DEFAULT 0 CHECK (minimum_purchase_cents >= 0),
    start_date DATE NOT NULL,                      -- 当天 00:00:00 起生效
    end_date DATE NOT NULL,                        -- 当天 23:59:59 后失效
    is_active BOOLEAN DEFAULT TRUE,
    usage_limit INTEGER,                           -- NULL 表示不限次数
    used_count INTEGER DEFAULT 0 CHECK (used_count >= 0),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    CHECK (end_date >= start_date)
)
"""

CREATE_DELIVERY_SETTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS delivery_settings (
    settings_id INTEGER PRIMARY KEY,
    minimum_order_cents INTEGER NOT NULL,
    free_delivery_threshold_cents INTEGER NOT NULL,
    delivery_fee_cents INTEGER NOT NULL,
    restaurant_latitude REAL NOT NULL,
    restaurant_longitude REAL NOT NULL,
    restaurant_address TEXT DEFAULT '',
    city VARCHAR(100),
    state VARCHAR(100),
    country VARCHAR(100),
    postal_code VARCHAR(20),
    delivery_radius_km REAL NOT NULL,
    estimated_delivery_minutes INTEGER DEFAULT 30,
    is_active BOOLEAN DEFAULT TRUE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_ORDERS_TABLE = """
CREATE TABLE IF NOT EXISTS orders (
    order_id INTEGER PRIMARY KEY,
    order_code VARCHAR(32) UNIQUE NOT NULL,        -- FD-YYYYMMDD-NNNN
    order_type VARCHAR(20) NOT NULL,
    status VARCHAR(30) NOT NULL,
    customer_phone VARCHAR(30),
    total_cents INTEGER NOT NULL,
    coupon_code VARCHAR(50),
    document TEXT NOT NULL,                        -- 完整订单记录(JSON)
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_CART_SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS cart_sessions (
    session_id VARCHAR(64) PRIMARY KEY,
    items TEXT NOT NULL DEFAULT '[]',              -- 行项目(JSON)
    fulfillment_mode VARCHAR(20) DEFAULT 'delivery',
    applied_coupon TEXT,                           -- 已应用优惠券快照(JSON)
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_coupons_active ON coupons(is_active, start_date, end_date)",
    "CREATE INDEX IF NOT EXISTS idx_delivery_settings_active ON delivery_settings(is_active)",
    "CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status)",
    "CREATE INDEX IF NOT EXISTS idx_orders_created_at ON orders(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_orders_customer_phone ON orders(customer_phone)",
    "CREATE INDEX IF NOT EXISTS idx_cart_sessions_updated_at ON cart_sessions(updated_at)",
]


def create_tables(db_manager: DatabaseManager):
    """创建所有数据表"""
    tables = [
        ("coupons", CREATE_COUPONS_TABLE),
        ("delivery_settings", CREATE_DELIVERY_SETTINGS_TABLE),
        ("orders", CREATE_ORDERS_TABLE),
        ("cart_sessions", CREATE_CART_SESSIONS_TABLE),
    ]

    for table_name, create_sql in tables:
        try:
            db_manager.execute_single(create_sql)
            logger.info(f"成功创建表: {table_name}")
        except Exception as e:
            logger.error(f"创建表 {table_name} 失败: {e}")
            raise


def create_indexes(db_manager: DatabaseManager):
    for index_sql in INDEXES:
        try:
            db_manager.execute_single(index_sql)
        except Exception as e:
            logger.error(f"创建索引失败: {e}")
            raise
    logger.info(f"成功创建 {len(INDEXES)} 个索引")


def initialize_schema(db_manager: DatabaseManager):
    create_tables(db_manager)
    create_indexes(db_manager)
