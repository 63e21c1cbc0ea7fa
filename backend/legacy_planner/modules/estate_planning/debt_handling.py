"""
Debt handling for encumbered assets.

Vehicles and property that are not fully paid carry a strategy telling the
executor what to do with the outstanding loan. The strategy is metadata
for downstream document generation; it does not change allocation
percentages.
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from legacy_planner.core.events import MutationNotifier
from legacy_planner.core.exceptions import (
    AssetNotFoundError,
    DebtHandlingNotApplicableError,
    InvalidDebtHandlingMethodError,
    store_errors,
)
from legacy_planner.modules.estate_planning.models import Asset

logger = logging.getLogger(__name__)


class DebtHandlingMethod(str, Enum):
    """How an outstanding loan is settled when the asset is distributed."""
    SUBJECT_TO_EXISTING_DEBT = "subject_to_existing_debt"          # Beneficiary takes the asset with the loan attached
    ESTATE_PAID_DEBT = "estate_paid_debt"                          # Estate settles the loan first
    ASSET_SALE_AND_DISTRIBUTION = "asset_sale_and_distribution"    # Executor sells, pays the loan, distributes the net
    PARTIAL_ALLOCATION_WITH_DEDUCTION = "partial_allocation_with_deduction"  # Beneficiary gets equity net of debt
    HYBRID_APPROACH = "hybrid_approach"                            # Mix of the above, negotiated by the executor


DEBT_HANDLING_LABELS = {
    DebtHandlingMethod.SUBJECT_TO_EXISTING_DEBT: "Subject-to-Existing Debt",
    DebtHandlingMethod.ESTATE_PAID_DEBT: "Estate-Paid Debt",
    DebtHandlingMethod.ASSET_SALE_AND_DISTRIBUTION: "Asset Sale and Net Distribution",
    DebtHandlingMethod.PARTIAL_ALLOCATION_WITH_DEDUCTION: "Partial Allocation with Debt Deduction",
    DebtHandlingMethod.HYBRID_APPROACH: "Hybrid Approach",
}

ENCUMBERABLE_ASSET_TYPES = frozenset({"vehicle", "property"})


def parse_method(method) -> DebtHandlingMethod:
    try:
        return DebtHandlingMethod(method)
    except ValueError:
        raise InvalidDebtHandlingMethodError(
            f"Unknown debt handling method '{method}'",
            method=method,
            allowed=[m.value for m in DebtHandlingMethod],
        )


class DebtHandlingResolver:
    """Reads and writes the debt status of assets."""

    def __init__(self, db: Session, notifier: Optional[MutationNotifier] = None):
        self.db = db
        self.notifier = notifier

    def _get_asset(self, asset_id: str) -> Asset:
        with store_errors("asset lookup"):
            asset = self.db.query(Asset).filter(Asset.id == asset_id).first()
        if asset is None:
            raise AssetNotFoundError(f"Asset {asset_id} not found", asset_id=asset_id)
        return asset

    def set_debt_status(self, asset_id: str, is_fully_paid: bool) -> Asset:
        """Mark an asset paid or encumbered. Paying it off clears any stored strategy."""
        asset = self._get_asset(asset_id)
        asset.is_fully_paid = bool(is_fully_paid)
        if asset.is_fully_paid:
            asset.debt_handling_method = None
        self._commit(asset, "debt status update")
        logger.info(f"[DEBT] Asset {asset_id} is_fully_paid={asset.is_fully_paid}")
        return asset

    def set_debt_handling_method(self, asset_id: str, method) -> Asset:
        """
        Attach a strategy to an encumbered vehicle or property.

        Raises:
            InvalidDebtHandlingMethodError: method is not one of DebtHandlingMethod
            DebtHandlingNotApplicableError: asset is not a vehicle or property
        """
        method = parse_method(method)
        asset = self._get_asset(asset_id)
        if asset.asset_type not in ENCUMBERABLE_ASSET_TYPES:
            raise DebtHandlingNotApplicableError(
                f"Debt handling does not apply to {asset.asset_type} assets",
                asset_id=asset_id,
                asset_type=asset.asset_type,
            )

        asset.is_fully_paid = False
        asset.debt_handling_method = method.value
        self._commit(asset, "debt handling update")
        logger.info(f"[DEBT] Asset {asset_id} debt handling set to {method.value}")
        return asset

    def get_debt_handling_method(self, asset_id: str) -> Optional[DebtHandlingMethod]:
        """Strategy for an asset; None when fully paid or not chosen."""
        asset = self._get_asset(asset_id)
        if asset.is_fully_paid is not False or not asset.debt_handling_method:
            return None
        return DebtHandlingMethod(asset.debt_handling_method)

    def _commit(self, asset: Asset, operation: str) -> None:
        try:
            with store_errors(operation):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(asset)
        if self.notifier is not None:
            self.notifier.on_mutated(asset.profile_id)
