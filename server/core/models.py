# 店面核心数据模型
# 金额在核心内部一律使用Decimal，JSON序列化时输出为数字

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator


Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# 订单初始状态：等待顾客通过WhatsApp发送确认
ORDER_STATUS_PENDING_WHATSAPP = "pending_whatsapp"


class FulfillmentMode(str, Enum):
    """订单履约方式"""
    DELIVERY = "delivery"
    PICKUP = "pickup"
    DINE_IN = "dine-in"


class DiscountType(str, Enum):
    """优惠券折扣类型"""
    FLAT = "flat"
    PERCENTAGE = "percentage"


class Dish(BaseModel):
    """菜品（由外部菜单目录维护，这里只引用加入购物车时看到的样子）"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    price: Money = Field(..., ge=0)
    is_available: bool = True


class LineItem(BaseModel):
    """
    购物车行项目

    dish 是加入购物车时的菜品快照，单价在此时冻结，之后不再读取菜单目录。
    """
    model_config = ConfigDict(validate_assignment=True)

    dish: Dish
    quantity: int = Field(..., ge=1)
    note: str = ""
    added_at: datetime = Field(default_factory=datetime.now)

    @property
    def unit_price(self) -> Decimal:
        return self.dish.price

    @property
    def line_total(self) -> Decimal:
        return self.dish.price * self.quantity


class RestaurantLocation(BaseModel):
    """餐厅位置"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class DeliveryFeeConfig(BaseModel):
    """配送费配置（每个会话从配送设置存储中读取一次）"""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    minimum_order_amount: Money = Field(..., ge=0)
    free_delivery_threshold: Money = Field(..., ge=0)
    delivery_fee: Money = Field(..., ge=0)
    restaurant_location: RestaurantLocation
    delivery_radius_km: float = Field(..., gt=0)
    estimated_delivery_minutes: int = Field(30, ge=0)
    is_active: bool = True


class Coupon(BaseModel):
    """
    优惠券

    code 不区分大小写，统一转为大写。
    start_date/end_date 为按自然日计算的闭区间，使用本地时间：
    开始日 00:00:00 起生效，结束日 23:59:59 后失效。
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    code: str = Field(..., min_length=1, max_length=50)
    name: str = ""
    description: str = ""
    discount_type: DiscountType
    discount_value: Money = Field(..., ge=0)
    minimum_purchase_amount: Money = Field(Decimal("0"), ge=0)
    start_date: date
    end_date: date
    is_active: bool = True
    usage_limit: Optional[int] = Field(None, ge=1)
    used_count: int = Field(0, ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def canonicalize_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def check_percentage_range(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("百分比折扣不能超过100")
        return self

    @property
    def valid_from(self) -> datetime:
        return datetime.combine(self.start_date, time(0, 0, 0))

    @property
    def valid_until(self) -> datetime:
        return datetime.combine(self.end_date, time(23, 59, 59))

    @property
    def usage_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def is_within_window(self, now: datetime) -> bool:
        return self.valid_from <= now <= self.valid_until


class AppliedCoupon(BaseModel):
    """
    当前购物车会话上挂的优惠券

    只保存优惠券快照和应用时间；折扣金额不在这里保存，每次定价时按当前小计重新计算。
    """
    model_config = ConfigDict(frozen=True)

    coupon: Coupon
    applied_at: datetime = Field(default_factory=datetime.now)


class CartSummary(BaseModel):
    """购物车价格汇总"""
    model_config = ConfigDict(frozen=True)

    subtotal: Money
    tax: Money
    delivery_fee: Money
    discount: Money
    total: Money
    item_count: int


class CouponValidationResult(BaseModel):
    """优惠券校验结果；reason 为机器可读的失败原因"""
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    coupon: Optional[Coupon] = None
    discount_amount: Optional[Money] = None
    error: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def invalid(cls, reason: str, error: str, coupon: Optional[Coupon] = None) -> "CouponValidationResult":
        return cls(is_valid=False, reason=reason, error=error, coupon=coupon)


class LocationValidationResult(BaseModel):
    """配送范围校验结果"""
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    distance_km: Optional[float] = None
    error: Optional[str] = None


class FulfillmentDetails(BaseModel):
    """下单时顾客填写的联系方式与履约信息"""
    customer_name: str = ""
    phone_number: str = ""
    address: Optional[str] = None
    table_preference: Optional[str] = None
    pickup_time: Optional[str] = None
    notes: Optional[str] = None
    customer_latitude: Optional[float] = Field(None, ge=-90, le=90)
    customer_longitude: Optional[float] = Field(None, ge=-180, le=180)

    @property
    def has_coordinates(self) -> bool:
        return self.customer_latitude is not None and self.customer_longitude is not None


# ---- 订单快照 ----

class OrderItemSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    dish_id: str
    dish_name: str
    price: Money
    quantity: int
    total: Money
    special_instructions: Optional[str] = None


class CustomerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone_number: str
    address: Optional[str] = None
    table_preference: Optional[str] = None
    pickup_time: Optional[str] = None


class CouponSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: Optional[str] = None
    discount_type: DiscountType
    discount_value: Money


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    address: Optional[str] = None


class DeliverySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    restaurant_location: GeoPoint
    delivery_radius: float


class StatusEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    timestamp: datetime
    reason: str


class OrderRecord(BaseModel):
    """结账时组装的订单记录，创建后客户端不再修改"""
    model_config = ConfigDict(frozen=True)

    order_code: str
    customer_info: CustomerInfo
    items: List[OrderItemSnapshot]
    order_type: FulfillmentMode
    status: str
    subtotal: Money
    delivery_fee: Money
    discount: Money
    total: Money
    applied_coupon: Optional[CouponSnapshot] = None
    delivery_settings: Optional[DeliverySnapshot] = None
    customer_location: Optional[GeoPoint] = None
    estimated_delivery_time: Optional[int] = None
    notes: Optional[str] = None
    payment_method: str = "cash"
    status_history: List[StatusEntry]
    created_at: datetime
    updated_at: datetime
