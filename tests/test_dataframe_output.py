"""Tests for trade history exports."""

import json

import pytest

from gridxchange.utils import save_dataframe, summarize_trades, trades_to_dataframe
from gridxchange.utils.dataframe_output import TRADE_COLUMNS


@pytest.fixture
def trades(service, provider, receiver):
    first = service.accept_entry(service.post_offer(provider.id, 2).id, receiver.id)
    service.accept_entry(service.post_request(receiver.id, 1, unit_price="0.2").id, provider.id)
    service.complete_trade(first.id, provider.user_id)
    return service.all_trades()


def test_trades_to_dataframe_uses_persisted_columns(trades):
    df = trades_to_dataframe(trades)

    assert list(df.columns) == TRADE_COLUMNS
    assert len(df) == 2
    assert sorted(df["status"]) == ["active", "completed"]
    assert df["total_amount"].sum() == pytest.approx(0.5)


def test_summarize_trades(trades):
    summary = summarize_trades(trades_to_dataframe(trades))

    assert summary["trades"] == 2
    assert summary["energy_kwh"] == pytest.approx(3.0)
    assert summary["active_trades"] == 1
    assert summary["completed_trades"] == 1


def test_summarize_empty():
    assert summarize_trades(trades_to_dataframe([]))["trades"] == 0


def test_save_dataframe_json_and_csv(tmp_path, trades):
    df = trades_to_dataframe(trades)

    json_path = save_dataframe(df, tmp_path, "trades.json")
    csv_path = save_dataframe(df, tmp_path / "nested", "trades.csv")

    records = json.loads(json_path.read_text())
    assert {r["status"] for r in records} == {"active", "completed"}
    assert csv_path.read_text().splitlines()[0] == ",".join(TRADE_COLUMNS)
