"""
Tests for the forced-share rule and asset debt handling.

Run with: pytest tests/test_legal_and_debt.py -v
"""

import pytest

from legacy_planner.core.exceptions import (
    AssetNotFoundError,
    DebtHandlingNotApplicableError,
    InvalidDebtHandlingMethodError,
)
from legacy_planner.modules.estate_planning.debt_handling import (
    DebtHandlingMethod,
    DebtHandlingResolver,
)
from legacy_planner.modules.estate_planning.legal_policy import (
    check_spouse_share,
    required_minimum_share,
)
from legacy_planner.modules.estate_planning.types import MinimumShare
from legacy_planner.modules.profile.models import Profile


# =============================================================================
# Forced share
# =============================================================================

MINIMUM_SHARE_SCENARIOS = [
    # (name, marital_status, regime, expected spouse_min_percent or None)
    ("Married in community", "married", "in_community", 50.0),
    ("Married out of community", "married", "out_of_community", None),
    ("Married with accrual", "married", "accrual", None),
    ("Married, regime unknown", "married", None, None),
    ("Single", "single", None, None),
    ("Divorced, old regime left on profile", "divorced", "in_community", None),
]


class TestRequiredMinimumShare:

    @pytest.mark.parametrize("name,status,regime,expected", MINIMUM_SHARE_SCENARIOS)
    def test_minimum_share(self, name, status, regime, expected):
        profile = Profile(marital_status=status, marriage_property_regime=regime)
        result = required_minimum_share(profile)

        if expected is None:
            assert result is None, name
        else:
            assert isinstance(result, MinimumShare)
            assert result.spouse_min_percent == expected, name

    def test_shortfall_is_advisory(self):
        profile = Profile(marital_status="married", marriage_property_regime="in_community")

        assert check_spouse_share(profile, {"spouse": 30, "child-1": 70}) == 20
        assert check_spouse_share(profile, {"spouse": 50}) == 0
        assert check_spouse_share(profile, {"child-1": 100}) == 50

    def test_no_rule_no_shortfall(self):
        profile = Profile(marital_status="single")
        assert check_spouse_share(profile, {"child-1": 100}) is None


# =============================================================================
# Debt handling
# =============================================================================

@pytest.fixture
def resolver(db, notifier):
    return DebtHandlingResolver(db, notifier=notifier)


class TestDebtHandling:

    def test_five_strategies(self):
        assert [m.value for m in DebtHandlingMethod] == [
            "subject_to_existing_debt",
            "estate_paid_debt",
            "asset_sale_and_distribution",
            "partial_allocation_with_deduction",
            "hybrid_approach",
        ]

    def test_set_method_marks_asset_encumbered(self, resolver, married_profile, make_asset, mutations):
        car = make_asset(married_profile, name="Hilux", asset_type="vehicle")

        asset = resolver.set_debt_handling_method(car.id, "estate_paid_debt")

        assert asset.is_fully_paid is False
        assert asset.debt_handling_method == "estate_paid_debt"
        assert resolver.get_debt_handling_method(car.id) == DebtHandlingMethod.ESTATE_PAID_DEBT
        assert mutations == [married_profile.id]

    def test_paying_off_clears_method(self, resolver, married_profile, make_asset):
        home = make_asset(married_profile, is_fully_paid=True)
        resolver.set_debt_handling_method(home.id, DebtHandlingMethod.HYBRID_APPROACH)

        asset = resolver.set_debt_status(home.id, True)

        assert asset.is_fully_paid is True
        assert asset.debt_handling_method is None
        assert resolver.get_debt_handling_method(home.id) is None

    def test_marking_unpaid_keeps_method(self, resolver, married_profile, make_asset):
        home = make_asset(married_profile)
        resolver.set_debt_handling_method(home.id, "asset_sale_and_distribution")

        asset = resolver.set_debt_status(home.id, False)

        assert asset.debt_handling_method == "asset_sale_and_distribution"

    def test_unknown_method(self, resolver, married_profile, make_asset):
        home = make_asset(married_profile)
        with pytest.raises(InvalidDebtHandlingMethodError):
            resolver.set_debt_handling_method(home.id, "walk_away")

    def test_only_vehicles_and_property(self, resolver, married_profile, make_asset):
        account = make_asset(married_profile, name="Savings", asset_type="bank")
        with pytest.raises(DebtHandlingNotApplicableError):
            resolver.set_debt_handling_method(account.id, "estate_paid_debt")

    def test_missing_asset(self, resolver):
        with pytest.raises(AssetNotFoundError):
            resolver.set_debt_status("missing", True)
