"""
Jurisdiction-driven allocation defaults.

A spouse married in community of property already owns half of the joint
estate, so the plan must leave them at least 50%. The rule is advisory:
it is surfaced to the user once, and AllocationLedger does not reject a
save that gives the spouse less.
"""

from typing import Dict, Optional

from legacy_planner.modules.estate_planning.types import (
    FamilyKind,
    MaritalStatus,
    MinimumShare,
    PropertyRegime,
)

COMMUNITY_PROPERTY_SPOUSE_SHARE = 50.0


def required_minimum_share(profile) -> Optional[MinimumShare]:
    """Minimum spouse share for the profile's marital regime, or None when no rule applies."""
    if (
        profile.marital_status == MaritalStatus.MARRIED.value
        and profile.marriage_property_regime == PropertyRegime.IN_COMMUNITY.value
    ):
        return MinimumShare(
            spouse_min_percent=COMMUNITY_PROPERTY_SPOUSE_SHARE,
            reason="Married in community of property: the spouse is entitled to half of the joint estate",
        )
    return None


def check_spouse_share(profile, allocations: Dict[str, float]) -> Optional[float]:
    """
    Shortfall of the spouse's share against the forced share.

    Args:
        profile: Profile row (or anything with marital_status / marriage_property_regime)
        allocations: beneficiary key -> percentage, for one asset or the residue

    Returns:
        Percentage points missing, 0.0 when satisfied, None when no rule applies
    """
    rule = required_minimum_share(profile)
    if rule is None:
        return None
    spouse_pct = allocations.get(FamilyKind.SPOUSE.value, 0.0) or 0.0
    return max(rule.spouse_min_percent - spouse_pct, 0.0)
