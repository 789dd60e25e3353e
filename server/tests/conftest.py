# 测试配置和固定装置

import pytest
import os
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from fastapi.testclient import TestClient

# 添加项目路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# 设置测试环境
os.environ['CONFIG_ENV'] = 'development'

from api.main import app
from api.deps import get_database
from core.models import Coupon, DeliveryFeeConfig, Dish, DiscountType, RestaurantLocation
from db.manager import DatabaseManager
from db.schema import initialize_schema
from db.cart_operations import CartOperations
from db.coupon_operations import CouponOperations
from db.delivery_operations import DeliveryOperations
from db.order_operations import OrderOperations

# 餐厅坐标（孟买），与开发配置一致
RESTAURANT_LAT = 19.076
RESTAURANT_LNG = 72.8777


def make_dish(dish_id: str = "paneer-tikka", price="250", name: str = None, is_available: bool = True) -> Dish:
    """构造测试菜品"""
    return Dish(
        id=dish_id,
        name=name or dish_id.replace("-", " ").title(),
        price=Decimal(str(price)),
        is_available=is_available,
    )


def make_coupon(code: str = "WELCOME10", discount_type: DiscountType = DiscountType.PERCENTAGE,
                discount_value="10", minimum="200", **overrides) -> Coupon:
    """构造测试优惠券，默认昨天生效、30天后到期"""
    today = date.today()
    fields = dict(
        code=code,
        name=code.title(),
        discount_type=discount_type,
        discount_value=Decimal(str(discount_value)),
        minimum_purchase_amount=Decimal(str(minimum)),
        start_date=today - timedelta(days=1),
        end_date=today + timedelta(days=30),
    )
    fields.update(overrides)
    return Coupon(**fields)


@pytest.fixture
def test_db():
    """测试数据库实例（内存数据库）"""
    db = DatabaseManager(":memory:", auto_connect=True)
    initialize_schema(db)
    yield db
    db.close()


@pytest.fixture
def coupon_ops(test_db):
    return CouponOperations(test_db)


@pytest.fixture
def delivery_ops(test_db):
    return DeliveryOperations(test_db)


@pytest.fixture
def order_ops(test_db):
    return OrderOperations(test_db)


@pytest.fixture
def cart_ops(test_db):
    return CartOperations(test_db)


@pytest.fixture
def welcome_coupon():
    """10% 折扣，最低消费200"""
    return make_coupon()


@pytest.fixture
def flat_coupon():
    """立减100，最低消费500"""
    return make_coupon("FLAT100", DiscountType.FLAT, "100", "500")


@pytest.fixture
def delivery_config():
    """起送299，满499免配送费，否则收49，半径3公里"""
    return DeliveryFeeConfig(
        minimum_order_amount=Decimal("299"),
        free_delivery_threshold=Decimal("499"),
        delivery_fee=Decimal("49"),
        restaurant_location=RestaurantLocation(
            latitude=RESTAURANT_LAT,
            longitude=RESTAURANT_LNG,
            address="123 Food Street, Downtown, Mumbai 400001",
            city="Mumbai",
        ),
        delivery_radius_km=3,
    )


@pytest.fixture
def seeded_coupons(coupon_ops, welcome_coupon, flat_coupon):
    """写入示例优惠券，返回 {代码: 优惠券}"""
    return {
        coupon.code: coupon_ops.create_coupon(coupon)
        for coupon in (welcome_coupon, flat_coupon)
    }


@pytest.fixture
def seeded_delivery(delivery_ops, delivery_config):
    return delivery_ops.save_settings(delivery_config)


@pytest.fixture
def client(test_db):
    """FastAPI测试客户端，数据库替换为内存数据库"""
    def override_get_database():
        yield test_db

    app.dependency_overrides[get_database] = override_get_database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_id():
    return "test-session-0001"
