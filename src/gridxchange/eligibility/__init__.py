"""Eligibility rules deciding which households may accept an entry."""

from .base_rule import BaseEligibilityRule, EligibilityResult
from .rules import AcceptOfferRule, AcceptRequestRule
from .match_eligibility import MatchEligibility

__all__ = [
    "BaseEligibilityRule",
    "EligibilityResult",
    "AcceptOfferRule",
    "AcceptRequestRule",
    "MatchEligibility",
]
