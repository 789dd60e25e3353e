# 优惠券校验器测试

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from conftest import make_coupon
from core.coupon_validator import (
    CouponValidator, REASON_BELOW_MINIMUM, REASON_EMPTY_CODE, REASON_EXPIRED,
    REASON_INACTIVE, REASON_LOOKUP_FAILED, REASON_NOT_FOUND, REASON_NOT_YET_VALID,
    REASON_USAGE_LIMIT,
)
from core.models import DiscountType


class InMemoryCouponStore:
    """只实现 find_by_code 的优惠券存储"""

    def __init__(self, *coupons):
        self.coupons = {coupon.code: coupon for coupon in coupons}
        self.lookups = []

    def find_by_code(self, code):
        self.lookups.append(code)
        return self.coupons.get(code)


class BrokenCouponStore:
    def find_by_code(self, code):
        raise ConnectionError("数据库不可用")


@pytest.fixture
def store(welcome_coupon, flat_coupon):
    return InMemoryCouponStore(welcome_coupon, flat_coupon)


class TestCouponValidator:
    """优惠券校验测试"""

    def test_valid_percentage_coupon(self, store):
        result = CouponValidator(store).validate("WELCOME10", Decimal("300"))

        assert result.is_valid
        assert result.coupon.code == "WELCOME10"
        assert result.discount_amount == Decimal("30.00")
        assert result.error is None

    def test_code_is_case_insensitive(self, store):
        result = CouponValidator(store).validate("  flat100 ", Decimal("500"))

        assert result.is_valid
        assert result.discount_amount == Decimal("100")
        assert store.lookups == ["FLAT100"]

    def test_empty_code(self, store):
        result = CouponValidator(store).validate("   ", Decimal("300"))

        assert not result.is_valid
        assert result.reason == REASON_EMPTY_CODE
        assert result.error == "Please enter a coupon code"
        assert store.lookups == []

    def test_unknown_code(self, store):
        result = CouponValidator(store).validate("NOPE", Decimal("300"))

        assert not result.is_valid
        assert result.reason == REASON_NOT_FOUND
        assert result.error == "Invalid coupon code"

    def test_lookup_failure(self):
        result = CouponValidator(BrokenCouponStore()).validate("WELCOME10", Decimal("300"))

        assert not result.is_valid
        assert result.reason == REASON_LOOKUP_FAILED
        assert result.error == "Could not validate coupon. Please try again."

    def test_inactive_coupon(self):
        store = InMemoryCouponStore(make_coupon(is_active=False))
        result = CouponValidator(store).validate("WELCOME10", Decimal("300"))

        assert result.reason == REASON_INACTIVE
        assert result.error == "This coupon is no longer active"

    def test_not_yet_valid(self):
        today = date.today()
        store = InMemoryCouponStore(make_coupon(start_date=today + timedelta(days=2),
                                                end_date=today + timedelta(days=10)))
        result = CouponValidator(store).validate("WELCOME10", Decimal("300"))

        assert result.reason == REASON_NOT_YET_VALID
        assert result.error == "This coupon is not yet valid"

    def test_expired(self):
        today = date.today()
        store = InMemoryCouponStore(make_coupon(start_date=today - timedelta(days=10),
                                                end_date=today - timedelta(days=1)))
        result = CouponValidator(store).validate("WELCOME10", Decimal("300"))

        assert result.reason == REASON_EXPIRED
        assert result.error == "This coupon has expired"

    def test_window_boundaries_are_whole_days(self):
        """开始日 00:00:00 生效，结束日 23:59:59 仍有效"""
        coupon = make_coupon(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
        validator = CouponValidator(InMemoryCouponStore(coupon))

        assert validator.validate("WELCOME10", Decimal("300"), now=datetime(2025, 1, 1, 0, 0, 0)).is_valid
        assert validator.validate("WELCOME10", Decimal("300"), now=datetime(2025, 1, 31, 23, 59, 59)).is_valid

        early = validator.validate("WELCOME10", Decimal("300"), now=datetime(2024, 12, 31, 23, 59, 59))
        assert early.reason == REASON_NOT_YET_VALID

        late = validator.validate("WELCOME10", Decimal("300"), now=datetime(2025, 2, 1, 0, 0, 0))
        assert late.reason == REASON_EXPIRED

    def test_below_minimum_reports_shortfall(self, store):
        result = CouponValidator(store).validate("FLAT100", Decimal("400"))

        assert result.reason == REASON_BELOW_MINIMUM
        assert result.error == (
            "Minimum purchase amount of ₹500 required. Add ₹100 more to use this coupon."
        )

    def test_usage_limit_reached(self):
        store = InMemoryCouponStore(make_coupon(usage_limit=5, used_count=5))
        result = CouponValidator(store).validate("WELCOME10", Decimal("300"))

        assert result.reason == REASON_USAGE_LIMIT
        assert result.error == "This coupon has reached its usage limit"

    def test_checks_run_in_order(self):
        """同时不满足多个条件时只返回第一个失败项"""
        today = date.today()
        coupon = make_coupon(
            "FLAT100", DiscountType.FLAT, "100", "500",
            is_active=False,
            end_date=today - timedelta(days=1),
            start_date=today - timedelta(days=5),
            usage_limit=1,
            used_count=1,
        )
        result = CouponValidator(InMemoryCouponStore(coupon)).validate("FLAT100", Decimal("10"))

        assert result.reason == REASON_INACTIVE

    def test_validation_is_idempotent(self, store):
        validator = CouponValidator(store)
        first = validator.validate("WELCOME10", Decimal("300"))
        second = validator.validate("WELCOME10", Decimal("300"))

        assert first == second
        assert store.coupons["WELCOME10"].used_count == 0

    def test_float_subtotal_matches_minimum_exactly(self):
        """float 小计按十进制字面值比较，0.7 满足最低消费 0.70"""
        coupon = make_coupon("MIN70", DiscountType.FLAT, "0.50", "0.70")
        result = CouponValidator(InMemoryCouponStore(coupon)).validate("MIN70", 0.7)

        assert result.is_valid
        assert result.discount_amount == Decimal("0.50")
