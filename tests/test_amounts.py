"""
Tests for minor-unit validation and overflow-checked arithmetic
"""

import pytest
from decimal import Decimal

from lending_pool.amounts import (
    INT64_MAX, INT64_MIN, validate_minor_units, checked_add, checked_sub, checked_sum,
    to_decimal, quantize_rate
)
from lending_pool.errors import InvalidRate, LedgerOverflowError, LoanRequestError


class TestValidateMinorUnits:

    def test_accepts_int(self):
        assert validate_minor_units(10_000_000) == 10_000_000

    def test_rejects_float(self):
        """Money is never a float"""
        with pytest.raises(TypeError, match="minor units"):
            validate_minor_units(1.5)

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            validate_minor_units(True)

    def test_rejects_out_of_range(self):
        with pytest.raises(LedgerOverflowError):
            validate_minor_units(INT64_MAX + 1)
        with pytest.raises(LedgerOverflowError):
            validate_minor_units(INT64_MIN - 1)


class TestCheckedArithmetic:

    def test_add_within_range(self):
        assert checked_add(1, 2) == 3

    def test_add_overflow(self):
        with pytest.raises(LedgerOverflowError, match="total_funds"):
            checked_add(INT64_MAX, 1, "total_funds")

    def test_sub_underflow(self):
        with pytest.raises(LedgerOverflowError):
            checked_sub(INT64_MIN, 1)

    def test_sum(self):
        assert checked_sum([1, 2, 3]) == 6
        with pytest.raises(LedgerOverflowError):
            checked_sum([INT64_MAX, INT64_MAX])

    def test_overflow_is_not_a_request_error(self):
        """Overflow is internal, distinct from the recoverable loan errors"""
        assert not issubclass(LedgerOverflowError, LoanRequestError)
        assert issubclass(LedgerOverflowError, ArithmeticError)


class TestRates:

    def test_to_decimal_from_float(self):
        assert to_decimal(0.1) == Decimal('0.1')

    def test_to_decimal_rejects_bool(self):
        with pytest.raises(TypeError):
            to_decimal(False)

    def test_quantize_half_up(self):
        assert quantize_rate(Decimal('1.23455')) == Decimal('1.2346')
        assert quantize_rate('5', 2) == Decimal('5.00')

    @pytest.mark.parametrize("value", ["NaN", "sNaN", "Infinity", "-Infinity", Decimal('NaN')])
    def test_to_decimal_rejects_non_finite(self, value):
        with pytest.raises(InvalidRate, match="finite"):
            to_decimal(value)

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(InvalidRate):
            to_decimal("five")

    def test_quantize_rejects_rate_too_large_for_precision(self):
        """1e30 needs more digits at 4 places than the context carries"""
        with pytest.raises(InvalidRate, match="decimal places"):
            quantize_rate("1e30")

    def test_invalid_rate_is_a_value_error(self):
        with pytest.raises(ValueError):
            quantize_rate("NaN")
