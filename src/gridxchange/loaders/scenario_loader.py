"""Loader that replays a JSON marketplace scenario into a service."""

import json
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from ..core import MarketplaceService
from ..models import Trade
from ..types import ScenarioAction, ScenarioData
from ..utils.type_coercion import parse_timestamp, safe_float
from ..validation import MarketError

logger = logging.getLogger(__name__)


class ScenarioLoader:
    """Builds marketplace state from a scenario document.

    A scenario has `households`, `offers`, `requests` and an optional list
    of `actions` (`accept`, `complete`, `cancel`) replayed in order.
    Entries reference households by id and actions reference entries by id,
    so trade ids never need to be known in advance. Failed actions are
    logged and reported but do not stop the replay.
    """

    def __init__(self, service: MarketplaceService):
        self.service = service
        self.trades_by_entry: dict[str, Trade] = {}
        self.entry_ids: dict[str, str] = {}
        self.failures: list[str] = []

    def from_file(self, path: Path) -> dict[str, int]:
        """Load a scenario JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not valid JSON
        """
        if not path.exists():
            raise FileNotFoundError(f"Scenario file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in scenario {path}: {e}") from e

        return self.from_dict(data)

    def from_dict(self, data: ScenarioData) -> dict[str, int]:
        """Load a scenario document.

        Returns:
            Counts of households, offers, requests and actions loaded
        """
        if not isinstance(data, dict):
            raise ValueError("Scenario must be a JSON object")

        counts = {"households": 0, "offers": 0, "requests": 0, "actions": 0}

        for home in data.get("households", []):
            self.service.register_household(
                user_id=str(home["user_id"]),
                generation_kwh=home.get("current_generation_kwh", home.get("generation_kwh", 0)),
                consumption_kwh=home.get("current_consumption_kwh", home.get("consumption_kwh", 0)),
                name=home.get("name", ""),
                location=home.get("location", ""),
                solar_capacity_kw=home.get("solar_capacity_kw", 0),
                latitude=safe_float(home.get("latitude")),
                longitude=safe_float(home.get("longitude")),
                household_id=home.get("id"),
            )
            counts["households"] += 1

        for offer in data.get("offers", []):
            self._post(offer, "offered_kwh", self.service.post_offer)
            counts["offers"] += 1

        for request in data.get("requests", []):
            self._post(request, "requested_kwh", self.service.post_request)
            counts["requests"] += 1

        for action in data.get("actions", []):
            self._run_action(action)
            counts["actions"] += 1

        logger.info(f"Loaded scenario: {counts}")
        return counts

    def _post(self, item: dict[str, Any], quantity_field: str, post: Any) -> None:
        entry = post(
            household_id=item["home_id"],
            quantity_kwh=item.get(quantity_field, item.get("quantity_kwh")),
            unit_price=item.get("price_per_kwh"),
            expires_at=self._expiry(item),
        )
        # Keep scenario-supplied ids addressable by later actions
        if item.get("id"):
            self.entry_ids[str(item["id"])] = entry.id

    def _expiry(self, item: dict[str, Any]) -> Optional[Any]:
        if item.get("expires_at"):
            return parse_timestamp(item["expires_at"])
        if item.get("expires_in_hours") is not None:
            return self.service.clock.now() + timedelta(hours=float(item["expires_in_hours"]))
        return None

    def resolve_entry_id(self, scenario_id: str) -> str:
        return self.entry_ids.get(scenario_id, scenario_id)

    def _run_action(self, action: ScenarioAction) -> None:
        kind = action.get("action")
        entry_id = self.resolve_entry_id(str(action.get("entry_id", "")))

        try:
            if kind == "accept":
                trade = self.service.accept_entry(entry_id, action["household_id"])
                self.trades_by_entry[entry_id] = trade
            elif kind == "complete":
                trade = self.trades_by_entry.get(entry_id)
                if trade is None:
                    raise ValueError(f"No trade was created from entry {entry_id}")
                self.trades_by_entry[entry_id] = self.service.complete_trade(
                    trade.id, str(action["user_id"])
                )
            elif kind == "cancel":
                self.service.cancel_entry(entry_id, str(action["user_id"]))
            else:
                raise ValueError(f"Unknown scenario action: {kind}")
        except (MarketError, ValueError) as e:
            message = f"{kind} {entry_id}: {e}"
            logger.warning(f"Scenario action failed - {message}")
            self.failures.append(message)
