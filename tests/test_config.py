"""Tests for marketplace configuration loading."""

import json
from decimal import Decimal

import pytest

from gridxchange.config import MarketConfig, MarketConfigManager, NegativeBalancePolicy


def test_bundled_config_defaults():
    manager = MarketConfigManager()

    assert manager.get_entry_ttl_hours() == 24
    assert manager.get_negative_balance_policy() == NegativeBalancePolicy.ALLOW
    assert manager.requires_surplus_for_offer()
    assert manager.get_default_unit_price() == Decimal("0.15")
    assert manager.get_suggested_radius("rural") == 25
    assert manager.get_suggested_radius("unknown") == manager.get_default_radius_km()
    assert manager.get_travel_speeds() == {"walking": 5, "driving": 30}
    assert manager.get_settlement_claim_ttl_seconds() == 300
    assert manager.get_max_cas_retries() == 5


def test_custom_config_directory_and_reload(tmp_path):
    path = tmp_path / MarketConfigManager.CONFIG_FILENAME
    path.write_text(json.dumps({"entry_ttl_hours": 2, "negative_balance_policy": "clamp"}))
    manager = MarketConfigManager(tmp_path)

    assert manager.get_entry_ttl_hours() == 2
    assert manager.get_negative_balance_policy() == NegativeBalancePolicy.CLAMP

    path.write_text(json.dumps({"entry_ttl_hours": 6}))
    manager.reload_config()

    assert manager.get_entry_ttl_hours() == 6
    assert manager.get_negative_balance_policy() == NegativeBalancePolicy.ALLOW


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        MarketConfigManager(tmp_path)


@pytest.mark.parametrize(
    "content",
    ["not json", json.dumps([1, 2]), json.dumps({"entry_ttl_hours": -1})],
)
def test_invalid_config_file(tmp_path, content):
    (tmp_path / MarketConfigManager.CONFIG_FILENAME).write_text(content)
    with pytest.raises(ValueError):
        MarketConfigManager(tmp_path)


def test_from_config_skips_disk():
    manager = MarketConfigManager.from_config(MarketConfig(max_cas_retries=2))

    manager.reload_config()

    assert manager.get_max_cas_retries() == 2
    assert manager.market_config_path is None
