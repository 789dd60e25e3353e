# 配送设置存储操作

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from core.models import DeliveryFeeConfig, RestaurantLocation
from core.pricing import from_cents, to_cents
from .manager import DatabaseManager

logger = logging.getLogger(__name__)


class DeliveryOperations:
    """配送设置存储：同一时间只有一条启用记录"""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    @staticmethod
    def _row_to_config(row: sqlite3.Row) -> DeliveryFeeConfig:
        return DeliveryFeeConfig(
            id=row['settings_id'],
            minimum_order_amount=from_cents(row['minimum_order_cents']),
            free_delivery_threshold=from_cents(row['free_delivery_threshold_cents']),
            delivery_fee=from_cents(row['delivery_fee_cents']),
            restaurant_location=RestaurantLocation(
                latitude=row['restaurant_latitude'],
                longitude=row['restaurant_longitude'],
                address=row['restaurant_address'] or '',
                city=row['city'],
                state=row['state'],
                country=row['country'],
                postal_code=row['postal_code'],
            ),
            delivery_radius_km=row['delivery_radius_km'],
            estimated_delivery_minutes=row['estimated_delivery_minutes'] or 30,
            is_active=bool(row['is_active']),
        )

    def get_active_settings(self) -> Optional[DeliveryFeeConfig]:
        """当前启用的配送设置，没有时返回None（调用方使用阶梯配送费）"""
        row = self.db.execute_single(
            """
            SELECT * FROM delivery_settings
            WHERE is_active = 1
            ORDER BY updated_at DESC, settings_id DESC
            LIMIT 1
            """
        ).fetchone()
        return self._row_to_config(row) if row else None

    def save_settings(self, config: DeliveryFeeConfig) -> DeliveryFeeConfig:
        """
        保存配送设置

        有启用记录时原地更新，否则新建一条启用记录。

        Returns:
            保存后的配送设置
        """
        location = config.restaurant_location
        now = datetime.now().isoformat(timespec='seconds')
        values = [
            to_cents(config.minimum_order_amount),
            to_cents(config.free_delivery_threshold),
            to_cents(config.delivery_fee),
            location.latitude,
            location.longitude,
            location.address,
            location.city,
            location.state,
            location.country,
            location.postal_code,
            config.delivery_radius_km,
            config.estimated_delivery_minutes,
        ]

        current = self.get_active_settings()
        with self.db.transaction() as conn:
            if current is not None:
                conn.execute(
                    """
                    UPDATE delivery_settings
                    SET minimum_order_cents = ?, free_delivery_threshold_cents = ?, delivery_fee_cents = ?,
                        restaurant_latitude = ?, restaurant_longitude = ?, restaurant_address = ?,
                        city = ?, state = ?, country = ?, postal_code = ?,
                        delivery_radius_km = ?, estimated_delivery_minutes = ?, updated_at = ?
                    WHERE settings_id = ?
                    """,
                    values + [now, current.id]
                )
            else:
                conn.execute(
                    """
                    INSERT INTO delivery_settings (
                        minimum_order_cents, free_delivery_threshold_cents, delivery_fee_cents,
                        restaurant_latitude, restaurant_longitude, restaurant_address,
                        city, state, country, postal_code,
                        delivery_radius_km, estimated_delivery_minutes, is_active, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
                    """,
                    values + [now, now]
                )

        logger.info(
            f"配送设置已保存: 起送 {config.minimum_order_amount}, 免配送费门槛 {config.free_delivery_threshold}, "
            f"配送费 {config.delivery_fee}, 半径 {config.delivery_radius_km}km"
        )
        return self.get_active_settings()
