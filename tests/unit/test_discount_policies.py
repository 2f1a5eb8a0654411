#!/usr/bin/env python3
"""
Discount Condition and Discount Policy Unit Tests

Tests condition matching, OR-combination and the per-variant fee transforms.
"""

import unittest
from datetime import datetime, time
from decimal import Decimal

from feepolicy.domain.models import (
    Money, DayOfWeek, ConditionType, DiscountType, UnsupportedVariantError
)
from feepolicy.domain.strategies import DiscountCondition, DiscountPolicy


MONDAY_10AM = datetime(2020, 1, 6, 10, 0)      # 2020-01-06 is a Monday
WEDNESDAY_10AM = datetime(2020, 1, 1, 10, 0)   # 2020-01-01 is a Wednesday


class TestSequenceCondition(unittest.TestCase):
    """Unit tests for sequence conditions"""

    def test_matches_equal_sequence(self):
        """Test Sequence(1) is satisfied by sequence 1 at any time"""
        condition = DiscountCondition.sequence(1)
        self.assertTrue(condition.is_satisfied_by(1, MONDAY_10AM))
        self.assertTrue(condition.is_satisfied_by(1, datetime(1999, 12, 31, 23, 59)))

    def test_rejects_other_sequence(self):
        """Test Sequence(1) is not satisfied by sequence 2"""
        self.assertFalse(DiscountCondition.sequence(1).is_satisfied_by(2, MONDAY_10AM))

    def test_missing_sequence_rejected(self):
        """Test sequence variant requires its number"""
        with self.assertRaises(ValueError):
            DiscountCondition(ConditionType.SEQUENCE)

    def test_period_query_unsupported(self):
        """Test asking a sequence condition about a period raises"""
        with self.assertRaises(UnsupportedVariantError):
            DiscountCondition.sequence(1).is_period_satisfied(DayOfWeek.MONDAY, time(10, 0))


class TestPeriodCondition(unittest.TestCase):
    """Unit tests for period conditions"""

    def setUp(self):
        self.condition = DiscountCondition.period(DayOfWeek.MONDAY, time(10, 0), time(11, 59))

    def test_start_boundary_inclusive(self):
        """Test a timestamp equal to start time satisfies the condition"""
        self.assertTrue(self.condition.is_satisfied_by(5, datetime(2020, 1, 6, 10, 0)))

    def test_end_boundary_inclusive(self):
        """Test a timestamp equal to end time satisfies the condition"""
        self.assertTrue(self.condition.is_satisfied_by(5, datetime(2020, 1, 6, 11, 59)))

    def test_outside_window(self):
        """Test times just outside the window"""
        self.assertFalse(self.condition.is_satisfied_by(5, datetime(2020, 1, 6, 9, 59, 59)))
        self.assertFalse(self.condition.is_satisfied_by(5, datetime(2020, 1, 6, 11, 59, 1)))

    def test_other_weekday(self):
        """Test the right time on the wrong day"""
        self.assertFalse(self.condition.is_satisfied_by(5, WEDNESDAY_10AM))

    def test_sequence_ignored(self):
        """Test period conditions do not look at the sequence"""
        self.assertTrue(self.condition.is_satisfied_by(1, MONDAY_10AM))
        self.assertTrue(self.condition.is_satisfied_by(99, MONDAY_10AM))

    def test_weekday_number_accepted(self):
        """Test day of week given as weekday() number"""
        condition = DiscountCondition(
            ConditionType.PERIOD, day_of_week=0, start_time=time(10), end_time=time(11)
        )
        self.assertEqual(condition.day_of_week, DayOfWeek.MONDAY)

    def test_missing_fields_rejected(self):
        """Test period variant requires day and window"""
        with self.assertRaises(ValueError):
            DiscountCondition(ConditionType.PERIOD, day_of_week=DayOfWeek.MONDAY)

    def test_sequence_query_unsupported(self):
        """Test asking a period condition about a sequence raises"""
        with self.assertRaises(UnsupportedVariantError):
            self.condition.is_sequence_satisfied(1)


class TestDiscountPolicyApplicability(unittest.TestCase):
    """Unit tests for OR-combination of conditions"""

    def setUp(self):
        self.conditions = [
            DiscountCondition.sequence(1),
            DiscountCondition.sequence(10),
            DiscountCondition.period(DayOfWeek.MONDAY, time(10, 0), time(11, 59)),
        ]

    def test_any_condition_suffices(self):
        """Test that each condition alone makes the policy applicable"""
        policy = DiscountPolicy.amount_off(Money.of(1000), *self.conditions)
        self.assertTrue(policy.is_applicable(1, WEDNESDAY_10AM))
        self.assertTrue(policy.is_applicable(10, WEDNESDAY_10AM))
        self.assertTrue(policy.is_applicable(3, MONDAY_10AM))
        self.assertFalse(policy.is_applicable(3, WEDNESDAY_10AM))

    def test_condition_order_irrelevant(self):
        """Test reversing the conditions gives the same answers"""
        forward = DiscountPolicy.amount_off(Money.of(1000), *self.conditions)
        backward = DiscountPolicy.amount_off(Money.of(1000), *reversed(self.conditions))
        for sequence, when in [(1, WEDNESDAY_10AM), (3, MONDAY_10AM), (3, WEDNESDAY_10AM)]:
            self.assertEqual(
                forward.is_applicable(sequence, when),
                backward.is_applicable(sequence, when)
            )

    def test_no_conditions_never_applicable(self):
        """Test a policy without conditions never applies"""
        policy = DiscountPolicy.percent_off(0.5)
        self.assertFalse(policy.is_applicable(1, MONDAY_10AM))
        self.assertEqual(policy.calculate_fee(Money.of(100), 1, MONDAY_10AM), Money.of(100))

    def test_conditions_stored_as_tuple(self):
        """Test conditions are frozen into a tuple"""
        policy = DiscountPolicy(DiscountType.AMOUNT, self.conditions, Money.of(1))
        self.assertIsInstance(policy.conditions, tuple)


class TestDiscountPolicyResolution(unittest.TestCase):
    """Unit tests for fee resolution per variant"""

    def test_amount_discount_applied(self):
        """Test base 10000, 1000 off with Sequence(1), sequence 1 gives 9000"""
        policy = DiscountPolicy.amount_off(Money.of(1000), DiscountCondition.sequence(1))
        self.assertEqual(policy.calculate_fee(Money.of(10000), 1, WEDNESDAY_10AM), Money.of(9000))

    def test_amount_discount_not_applicable(self):
        """Test the same policy at sequence 2 leaves 10000"""
        policy = DiscountPolicy.amount_off(Money.of(1000), DiscountCondition.sequence(1))
        self.assertEqual(policy.calculate_fee(Money.of(10000), 2, WEDNESDAY_10AM), Money.of(10000))

    def test_amount_discount_not_clamped(self):
        """Test a discount larger than the fee gives a negative fee"""
        policy = DiscountPolicy.amount_off(Money.of(1000), DiscountCondition.sequence(1))
        self.assertEqual(policy.calculate_fee(Money.of(400), 1, WEDNESDAY_10AM), Money.of(-600))

    def test_percent_discount(self):
        """Test percent discount equals fee - fee * percent"""
        fee = Money.of(5000)
        policy = DiscountPolicy.percent_off(0.1, DiscountCondition.sequence(1))
        self.assertEqual(policy.calculate_fee(fee, 1, WEDNESDAY_10AM), fee.minus(fee.times(0.1)))
        self.assertEqual(policy.calculate_fee(fee, 1, WEDNESDAY_10AM), Money.of(4500))

    def test_zero_percent_is_identity(self):
        """Test a 0% discount leaves the fee unchanged"""
        policy = DiscountPolicy.percent_off(0, DiscountCondition.sequence(1))
        self.assertEqual(policy.calculate_fee(Money.of("123.45"), 1, WEDNESDAY_10AM), Money.of("123.45"))

    def test_percent_unchecked(self):
        """Test out-of-range percentages are accepted as given"""
        policy = DiscountPolicy.percent_off(1.5, DiscountCondition.sequence(1))
        self.assertEqual(policy.discount_percent, Decimal("1.5"))
        self.assertEqual(policy.apply(Money.of(100)), Money.of(-50))

    def test_none_policy_returns_base_fee(self):
        """Test the no-discount policy returns the base fee"""
        policy = DiscountPolicy.none()
        self.assertEqual(policy.apply(Money.of(7000)), Money.of(7000))
        self.assertEqual(policy.calculate_fee(Money.of(7000), 1, MONDAY_10AM), Money.of(7000))

    def test_inapplicable_policy_is_identity_for_all_variants(self):
        """Test inapplicable policies never change the fee"""
        never = DiscountCondition.sequence(-1)
        policies = [
            DiscountPolicy.amount_off(Money.of(1000), never),
            DiscountPolicy.percent_off(0.3, never),
            DiscountPolicy.none(),
        ]
        for policy in policies:
            for fee in (Money.of(0), Money.of(10000), Money.of("-3.5")):
                with self.subTest(policy=str(policy), fee=str(fee)):
                    self.assertEqual(policy.calculate_fee(fee, 1, MONDAY_10AM), fee)

    def test_resolution_is_repeatable(self):
        """Test identical inputs give identical outputs"""
        policy = DiscountPolicy.percent_off(0.1, DiscountCondition.sequence(1))
        first = policy.calculate_fee(Money.of(5000), 1, MONDAY_10AM)
        second = policy.calculate_fee(Money.of(5000), 1, MONDAY_10AM)
        self.assertEqual(first, second)


class TestDiscountPolicyVariants(unittest.TestCase):
    """Unit tests for variant-specific operations"""

    def test_percent_variant_has_no_amount(self):
        """Test asking a percent policy for its amount raises"""
        with self.assertRaises(UnsupportedVariantError):
            DiscountPolicy.percent_off(0.1).discount_amount

    def test_amount_variant_has_no_percent(self):
        """Test asking an amount policy for its percent raises"""
        with self.assertRaises(UnsupportedVariantError):
            DiscountPolicy.amount_off(Money.of(1)).discount_percent

    def test_variant_calculators_guarded(self):
        """Test variant calculators refuse other variants"""
        amount_policy = DiscountPolicy.amount_off(Money.of(1000))
        with self.assertRaises(UnsupportedVariantError):
            amount_policy.calculate_percent_discounted_fee(Money.of(10000))
        with self.assertRaises(UnsupportedVariantError):
            amount_policy.calculate_none_discounted_fee(Money.of(10000))
        with self.assertRaises(UnsupportedVariantError):
            DiscountPolicy.none().calculate_amount_discounted_fee(Money.of(10000))
        self.assertEqual(amount_policy.calculate_amount_discounted_fee(Money.of(10000)), Money.of(9000))

    def test_error_names_operation_and_variant(self):
        """Test the error message carries the operation and variant"""
        with self.assertRaises(UnsupportedVariantError) as ctx:
            DiscountPolicy.none().discount_amount
        self.assertEqual(ctx.exception.operation, "discount_amount")
        self.assertEqual(ctx.exception.variant, DiscountType.NONE)

    def test_invalid_payloads_rejected(self):
        """Test construction validates the variant payload"""
        with self.assertRaises(ValueError):
            DiscountPolicy(DiscountType.AMOUNT, (), Decimal("1000"))
        with self.assertRaises(ValueError):
            DiscountPolicy(DiscountType.PERCENT)
        with self.assertRaises(ValueError):
            DiscountPolicy(DiscountType.NONE, (), Money.of(1))

    def test_none_policy_rejects_conditions(self):
        """Test a no-discount policy cannot carry conditions"""
        with self.assertRaises(ValueError):
            DiscountPolicy(DiscountType.NONE, (DiscountCondition.sequence(1),))


if __name__ == "__main__":
    unittest.main()
