"""Match eligibility predicate and geo scoping."""

from datetime import datetime
from typing import Iterable, Optional, Union

from ..geo import distance_km
from ..models import EntryKind, GeoScope, Household, MarketplaceEntry
from .base_rule import BaseEligibilityRule, EligibilityResult
from .rules import AcceptOfferRule, AcceptRequestRule


class MatchEligibility:
    """Pure predicates deciding which households may accept an entry.

    Consulted when listing entries and again at commit time.
    """

    def __init__(self) -> None:
        self.rules: dict[EntryKind, BaseEligibilityRule] = {
            EntryKind.OFFER: AcceptOfferRule(),
            EntryKind.REQUEST: AcceptRequestRule(),
        }

    def rule_for(self, kind: EntryKind) -> BaseEligibilityRule:
        return self.rules[kind]

    def evaluate(
        self, entry: MarketplaceEntry, acceptor: Household, now: datetime
    ) -> EligibilityResult:
        return self.rule_for(entry.kind).check(entry, acceptor, now)

    def is_eligible(
        self, entry: MarketplaceEntry, acceptor: Household, now: datetime
    ) -> bool:
        return bool(self.evaluate(entry, acceptor, now))

    def eligible_acceptors(
        self,
        entry: MarketplaceEntry,
        households: Iterable[Household],
        now: datetime,
    ) -> list[Household]:
        """Filter candidate households down to those that may accept the entry."""
        return [h for h in households if self.is_eligible(entry, h, now)]

    @staticmethod
    def scoped_distance(owner: Household, scope: Optional[GeoScope]) -> Optional[float]:
        """Distance from the scope center to the entry owner's household.

        Returns:
            Distance in km, or None when the owner has no coordinate
        """
        if scope is None or owner.coordinate is None:
            return None
        return distance_km(scope.center, owner.coordinate)

    @classmethod
    def in_geo_scope(cls, owner: Household, scope: Optional[GeoScope]) -> bool:
        """Check whether an entry owned by `owner` is visible in a scoped view.

        Without a scope every entry is visible. With a scope, households
        lacking a coordinate are excluded.
        """
        if scope is None:
            return True
        distance = cls.scoped_distance(owner, scope)
        return distance is not None and distance <= scope.radius_km

    def get_rules_info(self) -> list[dict[str, Union[str, list[str]]]]:
        return [rule.get_rule_info() for rule in self.rules.values()]
