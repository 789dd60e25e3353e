# 订单相关的数据模型

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from core.models import FulfillmentDetails


class CheckoutRequest(BaseModel):
    """结账请求模型：购物车会话 + 顾客填写的信息"""
    session_id: str = Field(..., min_length=8, max_length=64, description="购物车会话ID")
    customer_name: str = Field("", max_length=100, description="顾客姓名")
    phone_number: str = Field("", max_length=30, description="联系电话")
    address: Optional[str] = Field(None, max_length=500, description="配送地址")
    table_preference: Optional[str] = Field(None, max_length=100, description="堂食桌位偏好")
    pickup_time: Optional[str] = Field(None, max_length=50, description="自取时间")
    notes: Optional[str] = Field(None, max_length=1000, description="订单备注")
    customer_latitude: Optional[float] = Field(None, ge=-90, le=90, description="顾客纬度")
    customer_longitude: Optional[float] = Field(None, ge=-180, le=180, description="顾客经度")

    def to_details(self) -> FulfillmentDetails:
        return FulfillmentDetails(**self.model_dump(exclude={"session_id"}))


class CheckoutResponse(BaseModel):
    """结账响应模型"""
    order_id: int
    order_code: str
    status: str
    subtotal: float
    delivery_fee: float
    discount: float
    total: float
    coupon_removed: bool = False
    whatsapp_message: str
    whatsapp_url: str
    order: Dict[str, Any]
