# 定价引擎测试

from datetime import datetime
from decimal import Decimal

from conftest import make_coupon, make_dish
from core.models import AppliedCoupon, DiscountType, FulfillmentMode, LineItem
from core.pricing import (
    compute_delivery_fee, compute_discount, compute_summary, format_amount,
    from_cents, round2, to_cents, to_decimal,
)


def line(price, quantity, dish_id="paneer-tikka"):
    return LineItem(dish=make_dish(dish_id, price), quantity=quantity)


class TestDeliveryFee:
    """配送费计算测试"""

    def test_free_delivery_at_threshold(self, delivery_config):
        """小计达到免配送费门槛时免收配送费"""
        fee = compute_delivery_fee(Decimal("500"), FulfillmentMode.DELIVERY, delivery_config)
        assert fee == Decimal("0")

        fee = compute_delivery_fee(Decimal("499"), FulfillmentMode.DELIVERY, delivery_config)
        assert fee == Decimal("0")

    def test_flat_fee_below_threshold(self, delivery_config):
        fee = compute_delivery_fee(Decimal("498.99"), FulfillmentMode.DELIVERY, delivery_config)
        assert fee == Decimal("49")

    def test_fee_charged_below_minimum_order(self, delivery_config):
        """低于起送金额时照常收取配送费，由结账校验拦截"""
        fee = compute_delivery_fee(Decimal("100"), FulfillmentMode.DELIVERY, delivery_config)
        assert fee == Decimal("49")

    def test_no_fee_for_pickup_and_dine_in(self, delivery_config):
        for mode in (FulfillmentMode.PICKUP, FulfillmentMode.DINE_IN):
            assert compute_delivery_fee(Decimal("100"), mode, delivery_config) == Decimal("0")
            assert compute_delivery_fee(Decimal("100"), mode, None) == Decimal("0")

    def test_fallback_tiers_without_config(self):
        """没有配送设置时按阶梯收费"""
        assert compute_delivery_fee(Decimal("250"), FulfillmentMode.DELIVERY) == Decimal("20")
        assert compute_delivery_fee(Decimal("299.99"), FulfillmentMode.DELIVERY) == Decimal("20")
        assert compute_delivery_fee(Decimal("300"), FulfillmentMode.DELIVERY) == Decimal("10")
        assert compute_delivery_fee(Decimal("500"), FulfillmentMode.DELIVERY) == Decimal("10")
        assert compute_delivery_fee(Decimal("500.01"), FulfillmentMode.DELIVERY) == Decimal("0")


class TestDiscount:
    """折扣计算测试"""

    def test_percentage_discount(self):
        coupon = make_coupon("WELCOME10", DiscountType.PERCENTAGE, "10", "200")
        assert compute_discount(coupon, Decimal("300")) == Decimal("30.00")

    def test_percentage_discount_rounds_half_up(self):
        coupon = make_coupon("WELCOME10", DiscountType.PERCENTAGE, "10", "0")
        assert compute_discount(coupon, Decimal("333.35")) == Decimal("33.34")

    def test_flat_discount(self):
        coupon = make_coupon("FLAT100", DiscountType.FLAT, "100", "500")
        assert compute_discount(coupon, Decimal("500")) == Decimal("100")

    def test_flat_discount_capped_at_subtotal(self):
        """固定金额券不超过小计"""
        coupon = make_coupon("FLAT100", DiscountType.FLAT, "100", "0")
        assert compute_discount(coupon, Decimal("80")) == Decimal("80")

    def test_no_discount_below_minimum(self):
        coupon = make_coupon("FLAT100", DiscountType.FLAT, "100", "500")
        assert compute_discount(coupon, Decimal("400")) == Decimal("0")


class TestSummary:
    """价格汇总测试"""

    def test_empty_cart(self, delivery_config):
        summary = compute_summary([], FulfillmentMode.DELIVERY, delivery_config)

        assert summary.subtotal == 0
        assert summary.delivery_fee == 0
        assert summary.discount == 0
        assert summary.total == 0
        assert summary.item_count == 0

    def test_delivery_free_above_threshold(self, delivery_config):
        """250 x 2 配送，满499免配送费"""
        summary = compute_summary([line("250", 2)], FulfillmentMode.DELIVERY, delivery_config)

        assert summary.subtotal == Decimal("500")
        assert summary.delivery_fee == Decimal("0")
        assert summary.discount == Decimal("0")
        assert summary.tax == Decimal("0")
        assert summary.total == Decimal("500")
        assert summary.item_count == 2

    def test_delivery_fee_with_higher_threshold(self, delivery_config):
        config = delivery_config.model_copy(update={"free_delivery_threshold": Decimal("600")})
        summary = compute_summary([line("250", 2)], FulfillmentMode.DELIVERY, config)

        assert summary.delivery_fee == Decimal("49")
        assert summary.total == Decimal("549")

    def test_flat_coupon_applied(self, delivery_config, flat_coupon):
        applied = AppliedCoupon(coupon=flat_coupon, applied_at=datetime.now())
        summary = compute_summary([line("250", 2)], FulfillmentMode.DELIVERY, delivery_config, applied)

        assert summary.discount == Decimal("100")
        assert summary.total == Decimal("400")

    def test_applied_coupon_below_minimum_gives_no_discount(self, delivery_config, flat_coupon):
        """优惠券仍挂着但小计不足时折扣为0"""
        applied = AppliedCoupon(coupon=flat_coupon)
        summary = compute_summary([line("200", 2)], FulfillmentMode.DELIVERY, delivery_config, applied)

        assert summary.subtotal == Decimal("400")
        assert summary.discount == Decimal("0")
        assert summary.total == Decimal("449")

    def test_fallback_fee_without_config(self):
        summary = compute_summary([line("250", 1)], FulfillmentMode.DELIVERY)

        assert summary.delivery_fee == Decimal("20")
        assert summary.total == Decimal("270")

    def test_item_count_across_lines(self):
        items = [line("120", 2, "dal-makhani"), line("40.50", 3, "butter-naan")]
        summary = compute_summary(items, FulfillmentMode.PICKUP)

        assert summary.subtotal == Decimal("361.50")
        assert summary.item_count == 5
        assert summary.total == Decimal("361.50")

    def test_summary_is_idempotent(self, delivery_config, welcome_coupon):
        """相同输入重复计算结果一致，且不修改行项目和优惠券"""
        items = [line("120", 2, "dal-makhani"), line("40.50", 3, "butter-naan")]
        applied = AppliedCoupon(coupon=welcome_coupon, applied_at=datetime(2025, 1, 1, 12, 0, 0))
        items_before = [item.model_copy(deep=True) for item in items]
        applied_before = applied.model_copy(deep=True)

        first = compute_summary(items, FulfillmentMode.DELIVERY, delivery_config, applied)
        second = compute_summary(items, FulfillmentMode.DELIVERY, delivery_config, applied)

        assert first == second
        assert first.discount == Decimal("36.15")
        assert items == items_before
        assert applied == applied_before
        assert welcome_coupon.used_count == 0

    def test_summary_json_amounts_are_numbers(self, delivery_config):
        summary = compute_summary([line("250", 2)], FulfillmentMode.DELIVERY, delivery_config)
        data = summary.model_dump(mode="json")

        assert data["subtotal"] == 500.0
        assert data["total"] == 500.0


class TestAmountHelpers:
    """金额工具函数测试"""

    def test_round2(self):
        assert round2(Decimal("1.005")) == Decimal("1.01")
        assert round2(Decimal("2.004")) == Decimal("2.00")

    def test_to_decimal_uses_float_literal(self):
        assert to_decimal(0.7) == Decimal("0.7")
        assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")
        assert to_decimal("49.99") == Decimal("49.99")
        assert to_cents(0.29) == 29

    def test_cents_conversion(self):
        assert to_cents(Decimal("49.99")) == 4999
        assert to_cents("100") == 10000
        assert from_cents(4999) == Decimal("49.99")

    def test_format_amount(self):
        assert format_amount(Decimal("500")) == "500"
        assert format_amount(Decimal("500.00")) == "500"
        assert format_amount(Decimal("49.5")) == "49.50"
