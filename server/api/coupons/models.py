# 优惠券相关的请求/响应模型

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from core.models import Coupon, DiscountType, Money
from utils.validators import validate_amount, validate_coupon_code


class CreateCouponRequest(BaseModel):
    """创建优惠券请求模型"""
    code: str = Field(..., min_length=3, max_length=50, description="优惠券代码（自动转为大写）")
    name: str = Field("", max_length=100, description="优惠券名称")
    description: str = Field("", max_length=500, description="说明")
    discount_type: DiscountType = Field(..., description="折扣类型 (flat/percentage)")
    discount_value: Decimal = Field(..., ge=0, description="折扣值：固定金额或百分比")
    minimum_purchase_amount: Decimal = Field(Decimal("0"), ge=0, description="最低消费")
    start_date: date = Field(..., description="生效日期 (YYYY-MM-DD)")
    end_date: date = Field(..., description="截止日期 (YYYY-MM-DD)，当天有效")
    is_active: bool = Field(True, description="是否启用")
    usage_limit: Optional[int] = Field(None, ge=1, description="使用次数上限，空为不限")

    @field_validator("code")
    @classmethod
    def check_code(cls, value: str) -> str:
        if not validate_coupon_code(value):
            raise ValueError("优惠券代码只能包含字母、数字、下划线和连字符")
        return value.strip().upper()

    @field_validator("discount_value", "minimum_purchase_amount")
    @classmethod
    def check_amount(cls, value: Decimal) -> Decimal:
        if not validate_amount(value):
            raise ValueError("金额最多保留两位小数")
        return value

    @model_validator(mode="after")
    def check_ranges(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("百分比折扣不能超过100")
        if self.end_date < self.start_date:
            raise ValueError("结束日期不能早于开始日期")
        return self

    def to_coupon(self) -> Coupon:
        return Coupon(**self.model_dump())


class UpdateCouponRequest(BaseModel):
    """更新优惠券请求模型，只修改传入的字段"""
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    minimum_purchase_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    usage_limit: Optional[int] = Field(None, ge=1)

    @field_validator("discount_value", "minimum_purchase_amount")
    @classmethod
    def check_amount(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        if value is not None and not validate_amount(value):
            raise ValueError("金额最多保留两位小数")
        return value


class ValidateCouponRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, description="优惠券代码")
    subtotal: Decimal = Field(..., ge=0, description="购物车小计")


class CouponInfo(BaseModel):
    """优惠券信息模型"""
    coupon_id: int
    code: str
    name: str
    description: str
    discount_type: DiscountType
    discount_value: Money
    minimum_purchase_amount: Money
    start_date: date
    end_date: date
    is_active: bool
    usage_limit: Optional[int] = None
    used_count: int
    remaining_uses: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_coupon(cls, coupon: Coupon) -> "CouponInfo":
        remaining = None
        if coupon.usage_limit is not None:
            remaining = max(coupon.usage_limit - coupon.used_count, 0)
        return cls(
            coupon_id=coupon.id,
            code=coupon.code,
            name=coupon.name,
            description=coupon.description,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            minimum_purchase_amount=coupon.minimum_purchase_amount,
            start_date=coupon.start_date,
            end_date=coupon.end_date,
            is_active=coupon.is_active,
            usage_limit=coupon.usage_limit,
            used_count=coupon.used_count,
            remaining_uses=remaining,
            created_at=coupon.created_at,
            updated_at=coupon.updated_at,
        )
