"""
Allocation ledger.

Holds percentage allocations per asset and for the residue of the estate,
keyed by beneficiary key ('spouse', 'partner', child id or manual
beneficiary id). Keys are translated to beneficiary row ids only when a
ledger is saved.

Saving is a wholesale replace: every existing row for the asset (or the
profile's residue) is deleted and one row per non-zero entry is inserted.
There is no version check, so two sessions saving the same asset race and
the last save wins.
"""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from legacy_planner.core.events import MutationNotifier
from legacy_planner.core.exceptions import (
    AllocationExceededError,
    AssetNotFoundError,
    InvalidPercentageError,
    store_errors,
)
from legacy_planner.modules.estate_planning.models import (
    Asset,
    AssetAllocation,
    Beneficiary,
    ResidueAllocation,
)

logger = logging.getLogger(__name__)

MAX_PERCENTAGE = 100.0
MIN_PERCENTAGE = 0.0

# Scale of the allocation_percentage columns
PERCENTAGE_STEP = Decimal("0.01")


def clamp_percentage(value) -> float:
    """
    Coerce to float, clamp into [0, 100] and round half-up to cents.

    Values are rounded here rather than by the Numeric(5, 2) column so the
    100% check totals exactly what gets stored. Non-numeric and NaN input
    is rejected.
    """
    try:
        pct = float(value)
    except (TypeError, ValueError):
        raise InvalidPercentageError(f"Allocation percentage must be a number, got {value!r}", value=value)
    if math.isnan(pct):
        raise InvalidPercentageError("Allocation percentage must be a number, got NaN", value=value)

    clamped = min(max(pct, MIN_PERCENTAGE), MAX_PERCENTAGE)
    if clamped != pct:
        logger.warning(f"[LEDGER] Percentage {pct} outside [0, 100], clamped to {clamped}")
    return float(Decimal(str(clamped)).quantize(PERCENTAGE_STEP, rounding=ROUND_HALF_UP))


def beneficiary_key_map(beneficiaries: List[Beneficiary]) -> Dict[str, str]:
    """beneficiary key -> beneficiary row id."""
    return {b.allocation_key: b.id for b in beneficiaries if b.allocation_key}


def translate_entries(
    entries: Dict[str, float], key_map: Dict[str, str]
) -> Tuple[List[Tuple[str, str, float]], float]:
    """
    Drop entries whose key has no beneficiary row and total the rest.

    Returns:
        ([(key, beneficiary_id, percentage), ...], total)
    """
    valid = []
    for key, pct in entries.items():
        beneficiary_id = key_map.get(key) if key and key != "undefined" else None
        if beneficiary_id is None:
            logger.debug(f"[LEDGER] Dropping allocation for unknown beneficiary key {key!r}")
            continue
        valid.append((key, beneficiary_id, pct or 0.0))
    total = sum(pct for _, _, pct in valid)
    return valid, total


def _exceeds_limit(total: float) -> bool:
    # Entries are already whole cents; rounding only strips float noise from the sum
    return round(total, 2) > MAX_PERCENTAGE


class AllocationLedger:
    """In-memory allocation state for one profile, with save/load against the store."""

    def __init__(self, db: Session, profile_id: str, notifier: Optional[MutationNotifier] = None):
        self.db = db
        self.profile_id = profile_id
        self.notifier = notifier

        self.asset_allocations: Dict[str, Dict[str, float]] = {}
        self.residue_allocations: Dict[str, float] = {}
        self._dirty_assets: Set[str] = set()
        self._residue_dirty = False

    # ----------------------------------------------------------- edit state

    def set_allocation(self, asset_id: str, beneficiary_key: str, percentage) -> float:
        """Record a percentage for one beneficiary of an asset. Returns the stored (clamped) value."""
        pct = clamp_percentage(percentage)
        self.asset_allocations.setdefault(asset_id, {})[beneficiary_key] = pct
        self._dirty_assets.add(asset_id)
        return pct

    def set_residue_allocation(self, beneficiary_key: str, percentage) -> float:
        pct = clamp_percentage(percentage)
        self.residue_allocations[beneficiary_key] = pct
        self._residue_dirty = True
        return pct

    def allocation_total(self, asset_id: str) -> float:
        return sum(self.asset_allocations.get(asset_id, {}).values())

    def residue_total(self) -> float:
        return sum(self.residue_allocations.values())

    @property
    def unsaved_assets(self) -> FrozenSet[str]:
        return frozenset(self._dirty_assets)

    @property
    def has_unsaved_residue(self) -> bool:
        return self._residue_dirty

    def is_dirty(self, asset_id: str) -> bool:
        return asset_id in self._dirty_assets

    # ----------------------------------------------------------------- store

    def _current_key_map(self) -> Dict[str, str]:
        with store_errors("beneficiary read"):
            beneficiaries = self.db.query(Beneficiary).filter(
                Beneficiary.profile_id == self.profile_id
            ).all()
        return beneficiary_key_map(beneficiaries)

    def load(self) -> None:
        """Replace in-memory state with what is persisted, translating row ids back to keys."""
        with store_errors("allocation read"):
            beneficiaries = self.db.query(Beneficiary).filter(
                Beneficiary.profile_id == self.profile_id
            ).all()
            asset_rows = self.db.query(AssetAllocation).filter(
                AssetAllocation.profile_id == self.profile_id
            ).all()
            residue_rows = self.db.query(ResidueAllocation).filter(
                ResidueAllocation.profile_id == self.profile_id
            ).all()

        id_to_key = {b.id: b.allocation_key for b in beneficiaries}

        asset_allocations: Dict[str, Dict[str, float]] = {}
        for row in asset_rows:
            key = id_to_key.get(row.beneficiary_id)
            if key is None:
                continue
            asset_allocations.setdefault(row.asset_id, {})[key] = float(row.allocation_percentage)

        residue_allocations: Dict[str, float] = {}
        for row in residue_rows:
            key = id_to_key.get(row.beneficiary_id)
            if key is None:
                continue
            residue_allocations[key] = float(row.allocation_percentage)

        self.asset_allocations = asset_allocations
        self.residue_allocations = residue_allocations
        self._dirty_assets = set()
        self._residue_dirty = False
        logger.debug(
            f"[LEDGER] Loaded {len(asset_rows)} asset and {len(residue_rows)} residue rows "
            f"for {self.profile_id}"
        )

    def save_allocations(self, asset_id: str) -> int:
        """
        Persist the allocations of one asset.

        Returns:
            Number of rows written

        Raises:
            AssetNotFoundError: asset does not belong to this profile
            AllocationExceededError: translated total is above 100 (nothing is written)
        """
        with store_errors("asset lookup"):
            asset = self.db.query(Asset).filter(
                Asset.id == asset_id,
                Asset.profile_id == self.profile_id,
            ).first()
        if asset is None:
            raise AssetNotFoundError(f"Asset {asset_id} not found", asset_id=asset_id)

        valid, total = translate_entries(self.asset_allocations.get(asset_id, {}), self._current_key_map())
        if _exceeds_limit(total):
            logger.warning(f"[LEDGER] Rejected save for asset {asset_id}: total {total}%")
            raise AllocationExceededError(total, asset_id=asset_id)

        try:
            with store_errors("asset allocation save"):
                self.db.query(AssetAllocation).filter(
                    AssetAllocation.asset_id == asset_id
                ).delete(synchronize_session=False)
                written = 0
                for _, beneficiary_id, pct in valid:
                    if pct <= 0:
                        continue
                    self.db.add(AssetAllocation(
                        profile_id=self.profile_id,
                        asset_id=asset_id,
                        beneficiary_id=beneficiary_id,
                        allocation_percentage=Decimal(str(pct)),
                    ))
                    written += 1
                self.db.commit()
        except Exception as e:
            logger.error(f"[LEDGER] Saving allocations for asset {asset_id} failed: {e}")
            self.db.rollback()
            raise

        self._dirty_assets.discard(asset_id)
        logger.info(f"[LEDGER] Saved {written} allocation(s) for asset {asset_id} (total {total:g}%)")
        self._notify()
        return written

    def save_residue_allocations(self) -> int:
        """Persist the residue allocations. Same rules as save_allocations."""
        valid, total = translate_entries(self.residue_allocations, self._current_key_map())
        if _exceeds_limit(total):
            logger.warning(f"[LEDGER] Rejected residue save for {self.profile_id}: total {total}%")
            raise AllocationExceededError(total)

        try:
            with store_errors("residue allocation save"):
                self.db.query(ResidueAllocation).filter(
                    ResidueAllocation.profile_id == self.profile_id
                ).delete(synchronize_session=False)
                written = 0
                for _, beneficiary_id, pct in valid:
                    if pct <= 0:
                        continue
                    self.db.add(ResidueAllocation(
                        profile_id=self.profile_id,
                        beneficiary_id=beneficiary_id,
                        allocation_percentage=Decimal(str(pct)),
                    ))
                    written += 1
                self.db.commit()
        except Exception as e:
            logger.error(f"[LEDGER] Saving residue allocations for {self.profile_id} failed: {e}")
            self.db.rollback()
            raise

        self._residue_dirty = False
        logger.info(f"[LEDGER] Saved {written} residue allocation(s) for {self.profile_id} (total {total:g}%)")
        self._notify()
        return written

    def _notify(self) -> None:
        if self.notifier is not None:
            self.notifier.on_mutated(self.profile_id)
