"""TypedDict classes for JSON scenario documents."""

from typing import Union, TypedDict
from typing_extensions import NotRequired


Number = Union[int, float, str]


class HouseholdData(TypedDict):
    """Household record in a scenario, using persisted column names."""

    user_id: str
    # Optional fields
    id: NotRequired[str]
    name: NotRequired[str]
    location: NotRequired[str]
    solar_capacity_kw: NotRequired[Number]
    current_generation_kwh: NotRequired[Number]
    current_consumption_kwh: NotRequired[Number]
    latitude: NotRequired[float]
    longitude: NotRequired[float]


class OfferData(TypedDict):
    """Offer posted in a scenario."""

    home_id: str
    offered_kwh: Number
    # Optional fields
    id: NotRequired[str]
    price_per_kwh: NotRequired[Number]
    expires_at: NotRequired[str]  # ISO 8601
    expires_in_hours: NotRequired[Number]


class RequestData(TypedDict):
    """Request posted in a scenario."""

    home_id: str
    requested_kwh: Number
    # Optional fields
    id: NotRequired[str]
    price_per_kwh: NotRequired[Number]
    expires_at: NotRequired[str]
    expires_in_hours: NotRequired[Number]


class ScenarioAction(TypedDict):
    """One replayed step: accept, complete or cancel."""

    action: str
    entry_id: str
    household_id: NotRequired[str]  # accept
    user_id: NotRequired[str]  # complete, cancel


class ScenarioData(TypedDict):
    """Complete scenario document."""

    households: list[HouseholdData]
    offers: NotRequired[list[OfferData]]
    requests: NotRequired[list[RequestData]]
    actions: NotRequired[list[ScenarioAction]]
