"""Configuration management for the GridXchange trade core."""

from .config_manager import MarketConfig, MarketConfigManager, NegativeBalancePolicy

__all__ = ["MarketConfig", "MarketConfigManager", "NegativeBalancePolicy"]
