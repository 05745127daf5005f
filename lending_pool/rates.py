"""
Interest Rate Model Module

Origination pricing: base rate plus a utilization premium, capped so that a
highly concentrated pool cannot push the premium past a fixed ceiling.

    rate = base + min(utilization * multiplier, cap)

Rates are percent-per-period Decimals quantized with ROUND_HALF_UP.
"""

from decimal import Decimal
from dataclasses import dataclass

from .amounts import RateLike, to_decimal, quantize_rate


DEFAULT_MULTIPLIER = Decimal('2')
DEFAULT_PREMIUM_CAP = Decimal('5.0')


def utilization(outstanding: int, capital: int) -> Decimal:
    """
    Ratio of outstanding active principal to pool capital

    Raises:
        ZeroDivisionError: If capital is zero or negative; the ratio is undefined
    """
    if capital <= 0:
        raise ZeroDivisionError(f"Utilization is undefined for pool capital {capital}")
    return Decimal(outstanding) / Decimal(capital)


def rate(base: RateLike, utilization_ratio: RateLike,
         multiplier: RateLike = DEFAULT_MULTIPLIER,
         cap: RateLike = DEFAULT_PREMIUM_CAP) -> Decimal:
    """Unrounded rate: base + min(utilization * multiplier, cap)"""
    premium = min(to_decimal(utilization_ratio) * to_decimal(multiplier), to_decimal(cap))
    return to_decimal(base) + premium


@dataclass(frozen=True)
class InterestRateModel:
    """Utilization-sensitive origination rate"""
    multiplier: Decimal = DEFAULT_MULTIPLIER
    premium_cap: Decimal = DEFAULT_PREMIUM_CAP
    precision: int = 4

    @classmethod
    def from_policy(cls, policy) -> 'InterestRateModel':
        return cls(
            multiplier=policy.utilization_multiplier,
            premium_cap=policy.utilization_premium_cap,
            precision=policy.rate_precision
        )

    def rate(self, base: RateLike, utilization_ratio: RateLike) -> Decimal:
        """Rate for a given utilization, quantized to the model precision"""
        return quantize_rate(
            rate(base, utilization_ratio, self.multiplier, self.premium_cap),
            self.precision
        )

    def rate_for_pool(self, base: RateLike, outstanding: int, capital: int) -> Decimal:
        """Rate from raw pool figures; guards the zero-capital case"""
        return self.rate(base, utilization(outstanding, capital))
