"""Base eligibility rule shared by offer and request acceptance."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
import logging

from ..models import EntryKind, EntryStatus, Household, MarketplaceEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilityResult:
    """Verdict of an eligibility check, with a user-facing reason on failure."""

    eligible: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.eligible


ELIGIBLE = EligibilityResult(True)


class BaseEligibilityRule(ABC):
    """Base class for the rules deciding who may accept an entry.

    Checks that apply to every entry kind (entry still pending, not expired,
    acceptor is not the poster) run here; subclasses only add the
    kind-specific constraint. Rules are pure and never touch the store.
    """

    kind: EntryKind

    def check(
        self, entry: MarketplaceEntry, acceptor: Household, now: datetime
    ) -> EligibilityResult:
        """Decide whether `acceptor` may accept `entry` at time `now`.

        Args:
            entry: Offer or request being accepted
            acceptor: Household that would take the other side of the trade
            now: Current time, used for the expiry check

        Returns:
            EligibilityResult with a reason when not eligible
        """
        if entry.kind != self.kind:
            raise ValueError(
                f"{self.__class__.__name__} cannot evaluate {entry.kind.value} entries"
            )

        if entry.status != EntryStatus.PENDING:
            return self._reject(entry, acceptor, f"{entry.kind.value} is {entry.status.value}")

        if entry.is_expired(now):
            return self._reject(entry, acceptor, f"{entry.kind.value} has expired")

        if acceptor.id == entry.household_id:
            return self._reject(
                entry, acceptor, f"A household cannot accept its own {entry.kind.value}"
            )

        return self.check_rule(entry, acceptor)

    @abstractmethod
    def check_rule(self, entry: MarketplaceEntry, acceptor: Household) -> EligibilityResult:
        """Apply the kind-specific constraint."""

    @property
    @abstractmethod
    def acceptor_role(self) -> str:
        """Role the acceptor takes in the resulting trade."""

    @abstractmethod
    def get_rule_info(self) -> dict[str, Union[str, list[str]]]:
        """Get information about this rule for display."""

    def _reject(
        self, entry: MarketplaceEntry, acceptor: Household, reason: str
    ) -> EligibilityResult:
        logger.debug(f"{acceptor.id} ineligible for {entry.kind.value} {entry.id}: {reason}")
        return EligibilityResult(False, reason)
