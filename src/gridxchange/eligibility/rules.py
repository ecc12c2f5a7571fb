"""Kind-specific acceptance rules."""

from typing import Union

from ..models import EntryKind, Household, MarketplaceEntry
from .base_rule import ELIGIBLE, BaseEligibilityRule, EligibilityResult


class AcceptRequestRule(BaseEligibilityRule):
    """Accepting a request makes the acceptor the provider.

    The acceptor must currently have at least the requested energy as
    surplus.
    """

    kind = EntryKind.REQUEST

    @property
    def acceptor_role(self) -> str:
        return "provider"

    def check_rule(self, entry: MarketplaceEntry, acceptor: Household) -> EligibilityResult:
        if acceptor.surplus_kwh < entry.quantity_kwh:
            return self._reject(
                entry,
                acceptor,
                f"Insufficient surplus energy. Available: {acceptor.surplus_kwh:.2f} kWh, "
                f"requested: {entry.quantity_kwh:.2f} kWh",
            )
        return ELIGIBLE

    def get_rule_info(self) -> dict[str, Union[str, list[str]]]:
        return {
            "name": "Accept request",
            "acceptor_role": self.acceptor_role,
            "description": "Provide energy to a household that posted a request",
            "requirements": [
                "request is pending and unexpired",
                "acceptor is not the requesting household",
                "acceptor surplus >= requested quantity",
            ],
        }


class AcceptOfferRule(BaseEligibilityRule):
    """Accepting an offer makes the acceptor the receiver.

    Any other household may receive energy; no surplus or deficit is
    required.
    """

    kind = EntryKind.OFFER

    @property
    def acceptor_role(self) -> str:
        return "receiver"

    def check_rule(self, entry: MarketplaceEntry, acceptor: Household) -> EligibilityResult:
        return ELIGIBLE

    def get_rule_info(self) -> dict[str, Union[str, list[str]]]:
        return {
            "name": "Accept offer",
            "acceptor_role": self.acceptor_role,
            "description": "Receive energy from a household that posted an offer",
            "requirements": [
                "offer is pending and unexpired",
                "acceptor is not the offering household",
            ],
        }
