"""Common utility functions."""

from .type_coercion import safe_decimal, safe_float, parse_timestamp
from .dataframe_output import trades_to_dataframe, save_dataframe, summarize_trades

__all__ = [
    "safe_decimal",
    "safe_float",
    "parse_timestamp",
    "trades_to_dataframe",
    "save_dataframe",
    "summarize_trades",
]
