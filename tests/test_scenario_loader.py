"""Tests for replaying JSON scenarios."""

import json
from decimal import Decimal
from pathlib import Path

import pytest

from gridxchange.loaders import ScenarioLoader
from gridxchange.models import EntryStatus

SAMPLE = Path(__file__).resolve().parents[1] / "src" / "gridxchange" / "data" / "sample_scenario.json"


def test_bundled_sample_replays_cleanly(service):
    loader = ScenarioLoader(service)

    counts = loader.from_file(SAMPLE)

    assert counts == {"households": 4, "offers": 2, "requests": 2, "actions": 3}
    assert loader.failures == []
    assert service.get_entry(loader.resolve_entry_id("offer-maple")).status == EntryStatus.COMPLETED
    assert service.get_entry(loader.resolve_entry_id("request-harbor")).status == EntryStatus.MATCHED
    # 4 kWh moved from Maple's generation to the loft's consumption
    assert service.get_household("home-maple").generation_kwh == Decimal("8.0")
    assert service.get_household("home-loft").consumption_kwh == Decimal("2.0")


def test_failed_actions_are_collected(service):
    loader = ScenarioLoader(service)
    scenario = {
        "households": [
            {"id": "h1", "user_id": "u1", "current_generation_kwh": 1, "current_consumption_kwh": 0},
            {"id": "h2", "user_id": "u2", "generation_kwh": 0, "consumption_kwh": 3},
        ],
        "requests": [{"id": "r1", "home_id": "h2", "requested_kwh": 3, "expires_in_hours": 1}],
        "actions": [
            {"action": "accept", "entry_id": "r1", "household_id": "h1"},
            {"action": "complete", "entry_id": "r1", "user_id": "u1"},
            {"action": "explode", "entry_id": "r1"},
        ],
    }

    counts = loader.from_dict(scenario)

    assert counts["actions"] == 3
    assert len(loader.failures) == 3
    assert "Insufficient surplus" in loader.failures[0]


def test_cancel_action_and_explicit_expiry(service):
    loader = ScenarioLoader(service)
    loader.from_dict(
        {
            "households": [{"id": "h1", "user_id": "u1", "generation_kwh": 5, "consumption_kwh": 0}],
            "offers": [
                {
                    "id": "o1",
                    "home_id": "h1",
                    "offered_kwh": 2,
                    "expires_at": "2024-06-02T12:00:00Z",
                }
            ],
            "actions": [{"action": "cancel", "entry_id": "o1", "user_id": "u1"}],
        }
    )

    entry = service.get_entry(loader.resolve_entry_id("o1"))
    assert entry.status == EntryStatus.CANCELLED
    assert entry.expires_at.isoformat() == "2024-06-02T12:00:00+00:00"


def test_invalid_scenario_files(tmp_path, service):
    loader = ScenarioLoader(service)
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")

    with pytest.raises(FileNotFoundError):
        loader.from_file(tmp_path / "missing.json")
    with pytest.raises(ValueError):
        loader.from_file(bad)
    with pytest.raises(ValueError):
        loader.from_dict(json.loads("[]"))
