"""DataFrame output utilities for trade history exports."""

from typing import Iterable, Optional
from datetime import datetime
from pathlib import Path
import json

import pandas as pd

from ..models import Trade

TRADE_COLUMNS = [
    "id",
    "provider_id",
    "receiver_id",
    "offer_id",
    "request_id",
    "energy_kwh",
    "price_per_kwh",
    "total_amount",
    "timestamp",
    "completed_at",
    "status",
]


def trades_to_dataframe(trades: Iterable[Trade]) -> pd.DataFrame:
    """
    Create a DataFrame of trades using the persisted column names.

    Args:
        trades: Trades to export

    Returns:
        DataFrame with one row per trade; `status` is "completed" or "active"
    """
    records = [
        {
            "id": trade.id,
            "provider_id": trade.provider_id,
            "receiver_id": trade.receiver_id,
            "offer_id": trade.offer_id,
            "request_id": trade.request_id,
            "energy_kwh": float(trade.energy_kwh),
            "price_per_kwh": float(trade.unit_price),
            "total_amount": float(trade.total_amount),
            "timestamp": trade.created_at.isoformat(),
            "completed_at": trade.completed_at.isoformat() if trade.completed_at else None,
            "status": "active" if trade.is_active else "completed",
        }
        for trade in trades
    ]
    return pd.DataFrame(records, columns=TRADE_COLUMNS)


def save_dataframe(
    df: pd.DataFrame, output_path: Optional[Path] = None, filename: Optional[str] = None
) -> Path:
    """
    Save DataFrame as CSV or JSON records, chosen by the file suffix.

    Args:
        df: DataFrame to save
        output_path: Optional output directory path
        filename: Optional filename (defaults to a timestamped JSON name)

    Returns:
        Path to saved file
    """
    if output_path is None:
        output_path = Path("trade_output")

    output_path.mkdir(parents=True, exist_ok=True)

    if filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"trades_{timestamp}.json"

    file_path = output_path / filename

    if file_path.suffix.lower() == ".csv":
        df.to_csv(file_path, index=False)
    else:
        json_data = df.to_dict(orient="records")
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(json_data, f, indent=2, default=str, ensure_ascii=False)

    return file_path


def summarize_trades(df: pd.DataFrame) -> dict[str, float]:
    """Totals by status for a trade DataFrame."""
    if df.empty:
        return {"trades": 0, "energy_kwh": 0.0, "total_amount": 0.0}

    summary: dict[str, float] = {
        "trades": len(df),
        "energy_kwh": float(df["energy_kwh"].sum()),
        "total_amount": float(df["total_amount"].sum()),
    }
    for status, count in df["status"].value_counts().items():
        summary[f"{status}_trades"] = int(count)
    return summary
