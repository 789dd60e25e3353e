# 购物车相关的请求/响应模型

from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from core.models import CartSummary, FulfillmentMode, LineItem, Money


class DishPayload(BaseModel):
    """加入购物车时客户端看到的菜品信息"""
    id: str = Field(..., min_length=1, description="菜品ID")
    name: str = Field(..., min_length=1, max_length=200, description="菜品名称")
    price: Decimal = Field(..., ge=0, description="单价")
    is_available: bool = Field(True, description="是否可售")


class AddItemRequest(BaseModel):
    """添加菜品请求模型"""
    dish: DishPayload
    quantity: int = Field(1, ge=1, le=99, description="数量")
    note: str = Field("", max_length=500, description="备注")


class UpdateItemRequest(BaseModel):
    """修改行项目请求模型，quantity <= 0 表示移除"""
    quantity: Optional[int] = Field(None, le=99, description="新数量")
    note: Optional[str] = Field(None, max_length=500, description="新备注")


class FulfillmentModeRequest(BaseModel):
    fulfillment_mode: FulfillmentMode


class ApplyCouponRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, description="优惠券代码")


class CartLineView(BaseModel):
    dish_id: str
    name: str
    unit_price: Money
    quantity: int
    note: str
    line_total: Money

    @classmethod
    def from_line(cls, line: LineItem) -> "CartLineView":
        return cls(
            dish_id=line.dish.id,
            name=line.dish.name,
            unit_price=line.unit_price,
            quantity=line.quantity,
            note=line.note,
            line_total=line.line_total,
        )


class AppliedCouponView(BaseModel):
    code: str
    name: str
    discount_type: str
    discount_value: Money
    minimum_purchase_amount: Money


class CartView(BaseModel):
    """购物车响应模型，summary 每次读取时实时计算"""
    session_id: str
    items: List[CartLineView]
    fulfillment_mode: FulfillmentMode
    applied_coupon: Optional[AppliedCouponView] = None
    summary: CartSummary
    coupon_removed: bool = False
    coupon_removal_reason: Optional[str] = None
