# 结账前校验测试

import pytest

from conftest import RESTAURANT_LAT, RESTAURANT_LNG, make_dish
from core.cart import CartAggregate
from core.models import FulfillmentDetails, FulfillmentMode, RestaurantLocation
from core.order_gate import StorefrontPolicy, check_checkout


def cart_with(price="250", quantity=2, mode=FulfillmentMode.DELIVERY):
    cart = CartAggregate(fulfillment_mode=mode)
    cart.add_item(make_dish(price=price), quantity)
    return cart


def delivery_details(**overrides):
    fields = dict(
        customer_name="Asha",
        phone_number="+91 98765 43210",
        address="42 Marine Drive, Mumbai",
        customer_latitude=RESTAURANT_LAT + 0.018,
        customer_longitude=RESTAURANT_LNG,
    )
    fields.update(overrides)
    return FulfillmentDetails(**fields)


@pytest.fixture
def policy():
    return StorefrontPolicy(
        fallback_location=RestaurantLocation(latitude=RESTAURANT_LAT, longitude=RESTAURANT_LNG),
        fallback_radius_km=3,
    )


class TestRestaurantStatus:
    """餐厅营业状态测试"""

    def test_closed_blocks_everything(self, delivery_config):
        policy = StorefrontPolicy(status="closed")
        check = check_checkout(cart_with(mode=FulfillmentMode.PICKUP), delivery_details(), delivery_config, policy)

        assert not check.allowed
        assert check.reason == "restaurant_closed"

    def test_delivery_unavailable(self, delivery_config):
        policy = StorefrontPolicy(delivery_available=False)
        check = check_checkout(cart_with(), delivery_details(), delivery_config, policy)

        assert check.reason == "delivery_unavailable"

        pickup = check_checkout(cart_with(mode=FulfillmentMode.PICKUP),
                                delivery_details(pickup_time="7:30 PM"), delivery_config, policy)
        assert pickup.allowed

    def test_delivery_only_blocks_pickup_and_dine_in(self, delivery_config):
        policy = StorefrontPolicy(status="delivery-only")
        for mode in (FulfillmentMode.PICKUP, FulfillmentMode.DINE_IN):
            check = check_checkout(cart_with(mode=mode), delivery_details(pickup_time="7:30 PM"),
                                   delivery_config, policy)
            assert check.reason == "delivery_only"


class TestCheckoutChecks:
    """购物车与顾客信息校验测试"""

    def test_valid_delivery_order(self, delivery_config, policy):
        check = check_checkout(cart_with(), delivery_details(), delivery_config, policy)

        assert check.allowed
        assert check.reason is None

    def test_empty_cart(self, delivery_config, policy):
        check = check_checkout(CartAggregate(), delivery_details(), delivery_config, policy)
        assert check.reason == "empty_cart"

    def test_delivery_minimum_order(self, delivery_config, policy):
        """配送订单低于起送金额时提示还差多少"""
        check = check_checkout(cart_with(price="100", quantity=2), delivery_details(), delivery_config, policy)

        assert check.reason == "below_minimum_order"
        assert check.message == (
            "Minimum order value for delivery is ₹299. Please add ₹99 more to proceed."
        )

    def test_fallback_minimum_without_config(self, policy):
        check = check_checkout(cart_with(price="150", quantity=1), delivery_details(), None, policy)

        assert check.reason == "below_minimum_order"
        assert "₹200" in check.message

    def test_minimum_not_applied_to_pickup(self, delivery_config, policy):
        cart = cart_with(price="100", quantity=1, mode=FulfillmentMode.PICKUP)
        check = check_checkout(cart, delivery_details(pickup_time="7:30 PM"), delivery_config, policy)

        assert check.allowed

    def test_missing_name(self, delivery_config, policy):
        check = check_checkout(cart_with(), delivery_details(customer_name="  "), delivery_config, policy)
        assert check.reason == "missing_name"

    def test_missing_phone(self, delivery_config, policy):
        check = check_checkout(cart_with(), delivery_details(phone_number=""), delivery_config, policy)
        assert check.reason == "missing_phone"

    def test_invalid_phone(self, delivery_config, policy):
        check = check_checkout(cart_with(), delivery_details(phone_number="12345"), delivery_config, policy)
        assert check.reason == "invalid_phone"

    def test_pickup_requires_time(self, delivery_config, policy):
        cart = cart_with(mode=FulfillmentMode.PICKUP)
        check = check_checkout(cart, delivery_details(), delivery_config, policy)
        assert check.reason == "missing_pickup_time"

    def test_dine_in_needs_only_contact(self, delivery_config, policy):
        cart = cart_with(mode=FulfillmentMode.DINE_IN)
        details = FulfillmentDetails(customer_name="Asha", phone_number="9876543210")
        assert check_checkout(cart, details, delivery_config, policy).allowed

    def test_delivery_requires_address(self, delivery_config, policy):
        check = check_checkout(cart_with(), delivery_details(address=" "), delivery_config, policy)
        assert check.reason == "missing_address"


class TestDeliveryLocation:
    """配送位置校验测试"""

    def test_coordinates_required(self, delivery_config, policy):
        details = delivery_details(customer_latitude=None, customer_longitude=None)
        check = check_checkout(cart_with(), details, delivery_config, policy)

        assert check.reason == "location_not_verified"

    def test_out_of_radius(self, delivery_config, policy):
        details = delivery_details(customer_latitude=RESTAURANT_LAT + 0.045)
        check = check_checkout(cart_with(), details, delivery_config, policy)

        assert check.reason == "out_of_radius"
        assert check.distance_km == 5.0
        assert check.message.endswith("Please try a different location or choose pickup instead.")

    def test_fallback_location_from_policy(self, policy):
        """没有配送设置时使用配置文件中的餐厅位置和半径"""
        check = check_checkout(cart_with(), delivery_details(), None, policy)
        assert check.allowed

    def test_unknown_delivery_area(self):
        check = check_checkout(cart_with(), delivery_details(), None, StorefrontPolicy())
        assert check.reason == "delivery_area_unknown"

    def test_minimum_checked_before_customer_fields(self, delivery_config, policy):
        details = FulfillmentDetails()
        check = check_checkout(cart_with(price="100", quantity=1), details, delivery_config, policy)

        assert check.reason == "below_minimum_order"
        assert not check.allowed
        assert check.message is not None
