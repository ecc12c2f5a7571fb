"""Type definitions for scenario documents."""

from .json_types import HouseholdData, OfferData, RequestData, ScenarioAction, ScenarioData

__all__ = ["HouseholdData", "OfferData", "RequestData", "ScenarioAction", "ScenarioData"]
