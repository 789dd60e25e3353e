# 配送模块

from .routes import router as delivery_router
from .models import SaveDeliverySettingsRequest, ValidateLocationRequest

__all__ = [
    "delivery_router",
    "SaveDeliverySettingsRequest",
    "ValidateLocationRequest"
]
