"""Terminal display for the GridXchange command-line tool."""

from .display import MarketDisplay

__all__ = ["MarketDisplay"]
