# 订单模块

from .routes import router as orders_router
from .models import CheckoutRequest, CheckoutResponse

__all__ = [
    "orders_router",
    "CheckoutRequest",
    "CheckoutResponse"
]
