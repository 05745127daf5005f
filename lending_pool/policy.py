"""
Lending Policy Module

Numeric limits and policy switches for a pool. A policy is fixed when the pool
is initialized and stored alongside the ledger.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum

from .amounts import to_decimal


class OverpaymentPolicy(Enum):
    """What to do with a repayment larger than the outstanding balance"""
    ACCEPT = "accept"    # Take the full amount, no refund
    REJECT = "reject"    # Fail with InvalidAmount


@dataclass(frozen=True)
class LendingPolicy:
    """Limits and switches applied by PoolLedger"""
    min_loan_amount: int = 10_000_000
    max_loan_amount: int = 1_000_000_000
    savings_divisor: int = 20
    insurance_seed_divisor: int = 10
    reward_savings_threshold: int = 100_000_000
    reward_rate_step: Decimal = Decimal('0.5')
    reward_min_rate: Decimal = Decimal('0.5')
    max_rewards_per_loan: Optional[int] = None
    utilization_multiplier: Decimal = Decimal('2')
    utilization_premium_cap: Decimal = Decimal('5.0')
    utilization_includes_request: bool = False
    rate_precision: int = 4
    overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.ACCEPT
    allow_multiple_active_loans: bool = True

    def __post_init__(self):
        for name in ('reward_rate_step', 'reward_min_rate',
                     'utilization_multiplier', 'utilization_premium_cap'):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if isinstance(self.overpayment_policy, str):
            object.__setattr__(self, 'overpayment_policy', OverpaymentPolicy(self.overpayment_policy))

        if self.min_loan_amount <= 0:
            raise ValueError("Minimum loan amount must be positive")
        if self.max_loan_amount < self.min_loan_amount:
            raise ValueError("Maximum loan amount must not be below the minimum")
        if self.savings_divisor <= 0 or self.insurance_seed_divisor <= 0:
            raise ValueError("Divisors must be positive")
        if self.reward_rate_step <= Decimal('0'):
            raise ValueError("Reward rate step must be positive")
        if self.reward_min_rate < self.reward_rate_step:
            # A discount applied just above the minimum must not go below zero
            raise ValueError("Reward minimum rate must not be below the reward rate step")

    @classmethod
    def from_config(cls, config) -> 'LendingPolicy':
        """Build a policy from a LendingPoolConfig"""
        return cls(
            min_loan_amount=config.min_loan_amount,
            max_loan_amount=config.max_loan_amount,
            savings_divisor=config.savings_divisor,
            insurance_seed_divisor=config.insurance_seed_divisor,
            reward_savings_threshold=config.reward_savings_threshold,
            reward_rate_step=Decimal(config.reward_rate_step),
            reward_min_rate=Decimal(config.reward_min_rate),
            max_rewards_per_loan=config.max_rewards_per_loan,
            utilization_multiplier=Decimal(config.utilization_multiplier),
            utilization_premium_cap=Decimal(config.utilization_premium_cap),
            utilization_includes_request=config.utilization_includes_request,
            rate_precision=config.rate_precision,
            overpayment_policy=OverpaymentPolicy(config.overpayment_policy.lower()),
            allow_multiple_active_loans=config.allow_multiple_active_loans,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min_loan_amount': self.min_loan_amount,
            'max_loan_amount': self.max_loan_amount,
            'savings_divisor': self.savings_divisor,
            'insurance_seed_divisor': self.insurance_seed_divisor,
            'reward_savings_threshold': self.reward_savings_threshold,
            'reward_rate_step': str(self.reward_rate_step),
            'reward_min_rate': str(self.reward_min_rate),
            'max_rewards_per_loan': self.max_rewards_per_loan,
            'utilization_multiplier': str(self.utilization_multiplier),
            'utilization_premium_cap': str(self.utilization_premium_cap),
            'utilization_includes_request': self.utilization_includes_request,
            'rate_precision': self.rate_precision,
            'overpayment_policy': self.overpayment_policy.value,
            'allow_multiple_active_loans': self.allow_multiple_active_loans,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LendingPolicy':
        return cls(**data)
