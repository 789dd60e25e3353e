# 配送设置相关的请求/响应模型

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from core.models import DeliveryFeeConfig, RestaurantLocation
from utils.validators import validate_amount


class SaveDeliverySettingsRequest(BaseModel):
    """保存配送设置请求模型"""
    minimum_order_amount: Decimal = Field(..., ge=0, description="起送金额")
    free_delivery_threshold: Decimal = Field(..., ge=0, description="免配送费门槛")
    delivery_fee: Decimal = Field(..., ge=0, description="配送费")
    restaurant_location: RestaurantLocation
    delivery_radius_km: float = Field(..., gt=0, le=50, description="配送半径（公里）")
    estimated_delivery_minutes: int = Field(30, ge=5, le=240, description="预计送达时间（分钟）")

    @field_validator("minimum_order_amount", "free_delivery_threshold", "delivery_fee")
    @classmethod
    def check_amount(cls, value: Decimal) -> Decimal:
        if not validate_amount(value):
            raise ValueError("金额最多保留两位小数")
        return value

    @model_validator(mode="after")
    def check_threshold(self):
        if self.free_delivery_threshold < self.minimum_order_amount:
            raise ValueError("免配送费门槛不能低于起送金额")
        return self

    def to_config(self) -> DeliveryFeeConfig:
        return DeliveryFeeConfig(**self.model_dump())


class ValidateLocationRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationCheckInfo(BaseModel):
    is_valid: bool
    distance_km: Optional[float] = None
    delivery_radius_km: float
    error: Optional[str] = None
