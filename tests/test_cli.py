"""Tests for the command-line runner and display."""

import io
from pathlib import Path

import pytest
from rich.console import Console

from gridxchange.cli import MarketDisplay
from gridxchange.config import MarketConfig, MarketConfigManager
from gridxchange.main import MarketplaceRunner, build_geo_scope
from gridxchange.models import EntryKind

SAMPLE = Path(__file__).resolve().parents[1] / "src" / "gridxchange" / "data" / "sample_scenario.json"


@pytest.fixture
def runner():
    runner = MarketplaceRunner(MarketConfigManager.from_config(MarketConfig()))
    runner.display = MarketDisplay(Console(file=io.StringIO(), width=200))
    return runner


def output(runner):
    return runner.display.console.file.getvalue()


def test_runner_renders_sample_market(runner):
    runner.load(SAMPLE)
    runner.show_market()

    text = output(runner)
    assert "Scenario Loaded" in text
    assert "Maple Street Rooftop" in text
    assert "Marketplace Summary" in text


def test_runner_household_view_with_geo_scope(runner):
    runner.load(SAMPLE)
    scope = build_geo_scope(runner.service, 40.7178, -74.0431, None, "rural")

    runner.show_market("home-harbor", EntryKind.OFFER, scope)

    assert scope.radius_km == 25
    assert "Offers available to home-harbor" in output(runner)


def test_export_trades(tmp_path, runner):
    runner.load(SAMPLE)

    path = runner.export_trades(tmp_path / "trades.csv")

    assert path.exists()
    assert "Exported 2 trades" in output(runner)


def test_show_rules(runner):
    runner.show_rules()
    assert "Accept request" in output(runner)


def test_build_geo_scope_requires_both_coordinates(service):
    assert build_geo_scope(service, None, None, None, None) is None
    assert build_geo_scope(service, 1.0, 2.0, None, None).radius_km == 10
    with pytest.raises(ValueError):
        build_geo_scope(service, 1.0, None, 5, None)
