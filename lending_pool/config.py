"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class LendingPoolConfig(BaseSettings):
    """Lending pool configuration"""

    # Loan limits (minor currency units)
    min_loan_amount: int = 10_000_000
    max_loan_amount: int = 1_000_000_000

    # Repayment split
    savings_divisor: int = 20           # 1/20 = 5% of every payment
    insurance_seed_divisor: int = 10    # 10% of initial capital

    # Reward rule
    reward_savings_threshold: int = 100_000_000
    reward_rate_step: str = "0.5"
    reward_min_rate: str = "0.5"
    max_rewards_per_loan: Optional[int] = None  # None = unbounded

    # Interest rate model
    utilization_multiplier: str = "2"
    utilization_premium_cap: str = "5.0"
    utilization_includes_request: bool = False
    rate_precision: int = 4

    # Policy switches
    overpayment_policy: str = "accept"  # accept or reject
    allow_multiple_active_loans: bool = True

    # Host configuration
    pool_id: str = "default"
    database_url: str = "sqlite:///lending_pool.db"

    # Security configuration
    auth_enabled: bool = True
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Feature flags
    enable_audit_logging: bool = True

    class Config:
        env_prefix = "LENDING_POOL_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LendingPoolConfig()


def get_config() -> LendingPoolConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LendingPoolConfig:
    """Reload configuration from environment"""
    global config
    config = LendingPoolConfig()
    return config
