# 优惠券存储操作测试

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from conftest import make_coupon
from core.models import DiscountType


class TestCouponQueries:
    """优惠券查询测试"""

    def test_create_and_find(self, coupon_ops, welcome_coupon):
        created = coupon_ops.create_coupon(welcome_coupon)

        assert created.id is not None
        assert created.code == "WELCOME10"
        assert created.discount_type == DiscountType.PERCENTAGE
        assert created.discount_value == Decimal("10")
        assert created.minimum_purchase_amount == Decimal("200")
        assert created.used_count == 0

        found = coupon_ops.find_by_code("welcome10")
        assert found.id == created.id

    def test_find_unknown_code(self, coupon_ops):
        assert coupon_ops.find_by_code("NOPE") is None

    def test_amounts_keep_two_decimals(self, coupon_ops):
        coupon = coupon_ops.create_coupon(make_coupon("HALF", DiscountType.FLAT, "49.99", "199.50"))

        assert coupon.discount_value == Decimal("49.99")
        assert coupon.minimum_purchase_amount == Decimal("199.50")

    def test_duplicate_code_rejected(self, coupon_ops, welcome_coupon):
        coupon_ops.create_coupon(welcome_coupon)

        with pytest.raises(ValueError):
            coupon_ops.create_coupon(make_coupon("welcome10"))

    def test_list_all(self, coupon_ops, seeded_coupons):
        codes = [coupon.code for coupon in coupon_ops.list_all()]
        assert sorted(codes) == ["FLAT100", "WELCOME10"]

    def test_list_active_excludes_unusable(self, coupon_ops, seeded_coupons):
        today = date.today()
        coupon_ops.create_coupon(make_coupon("OFF", is_active=False))
        coupon_ops.create_coupon(make_coupon("OLD", start_date=today - timedelta(days=10),
                                             end_date=today - timedelta(days=1)))
        coupon_ops.create_coupon(make_coupon("USED", usage_limit=1, used_count=1))

        codes = {coupon.code for coupon in coupon_ops.list_active()}
        assert codes == {"WELCOME10", "FLAT100"}


class TestCouponAdmin:
    """后台增删改测试"""

    def test_update_coupon(self, coupon_ops, seeded_coupons):
        coupon_id = seeded_coupons["WELCOME10"].id
        updated = coupon_ops.update_coupon(coupon_id, {"discount_value": Decimal("15"), "usage_limit": 50})

        assert updated.discount_value == Decimal("15")
        assert updated.usage_limit == 50
        assert updated.code == "WELCOME10"

    def test_update_unknown_coupon(self, coupon_ops):
        with pytest.raises(LookupError):
            coupon_ops.update_coupon(999, {"name": "x"})

    def test_update_rejects_readonly_fields(self, coupon_ops, seeded_coupons):
        with pytest.raises(ValueError):
            coupon_ops.update_coupon(seeded_coupons["WELCOME10"].id, {"used_count": 0})

    def test_update_rejects_invalid_percentage(self, coupon_ops, seeded_coupons):
        with pytest.raises(ValueError):
            coupon_ops.update_coupon(seeded_coupons["WELCOME10"].id, {"discount_value": Decimal("150")})

    def test_update_rejects_reversed_dates(self, coupon_ops, seeded_coupons):
        today = date.today()
        with pytest.raises(ValueError):
            coupon_ops.update_coupon(seeded_coupons["WELCOME10"].id,
                                     {"start_date": today, "end_date": today - timedelta(days=1)})

    def test_toggle_coupon(self, coupon_ops, seeded_coupons):
        coupon_id = seeded_coupons["FLAT100"].id

        assert not coupon_ops.toggle_coupon(coupon_id).is_active
        assert coupon_ops.toggle_coupon(coupon_id).is_active

    def test_delete_coupon(self, coupon_ops, seeded_coupons):
        coupon_id = seeded_coupons["FLAT100"].id

        assert coupon_ops.delete_coupon(coupon_id)
        assert coupon_ops.find_by_code("FLAT100") is None
        assert not coupon_ops.delete_coupon(coupon_id)


class TestCouponUsage:
    """使用次数累加测试"""

    def test_increment_usage(self, coupon_ops, seeded_coupons):
        coupon = coupon_ops.increment_usage("welcome10")

        assert coupon.used_count == 1
        assert coupon.is_active

    def test_reaching_limit_deactivates(self, coupon_ops):
        """第N次使用达到上限时同时停用"""
        coupon_ops.create_coupon(make_coupon("LIMITED", usage_limit=2))

        first = coupon_ops.increment_usage("LIMITED")
        assert first.used_count == 1
        assert first.is_active

        second = coupon_ops.increment_usage("LIMITED")
        assert second.used_count == 2
        assert not second.is_active
        assert second.usage_exhausted

    def test_increment_unknown_code(self, coupon_ops):
        assert coupon_ops.increment_usage("NOPE") is None

    def test_integrity_check_passes(self, test_db, seeded_coupons):
        test_db.check_integrity()
        assert test_db.get_table_info("coupons")["record_count"] == 2

    def test_list_active_respects_now(self, coupon_ops):
        coupon_ops.create_coupon(make_coupon("MARCH", start_date=date(2025, 3, 1), end_date=date(2025, 3, 31)))

        assert [c.code for c in coupon_ops.list_active(datetime(2025, 3, 31, 23, 0))] == ["MARCH"]
        assert coupon_ops.list_active(datetime(2025, 4, 1, 0, 0)) == []
