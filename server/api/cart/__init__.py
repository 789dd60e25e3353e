# 购物车模块

from .routes import router as cart_router
from .models import AddItemRequest, UpdateItemRequest, CartView

__all__ = [
    "cart_router",
    "AddItemRequest",
    "UpdateItemRequest",
    "CartView"
]
