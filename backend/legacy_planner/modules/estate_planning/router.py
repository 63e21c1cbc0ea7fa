"""
Estate Planning API routes.
Handles the beneficiary roster, asset and residue allocations, debt handling
and the completion signals of the beneficiaries step.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, Optional
from pydantic import BaseModel

from legacy_planner.core.database import get_db
from legacy_planner.core.events import MutationNotifier, get_notifier
from legacy_planner.modules.estate_planning.allocation_ledger import AllocationLedger
from legacy_planner.modules.estate_planning.completion import is_allocation_complete
from legacy_planner.modules.estate_planning.debt_handling import (
    DEBT_HANDLING_LABELS,
    DebtHandlingResolver,
)
from legacy_planner.modules.estate_planning.estate_score import STEP_WEIGHTS, calculate_estate_score
from legacy_planner.modules.estate_planning.legal_policy import check_spouse_share, required_minimum_share
from legacy_planner.modules.estate_planning.roster_service import BeneficiaryRosterService
from legacy_planner.modules.profile import services as profile_services

router = APIRouter()


class FamilyBeneficiaryCreate(BaseModel):
    """Request body for electing a family member."""
    candidate_key: str  # 'spouse', 'partner' or a child id


class ManualBeneficiaryCreate(BaseModel):
    """Request body for a manually entered beneficiary."""
    first_names: str
    last_name: str
    title: Optional[str] = None
    id_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None  # 'sibling', 'friend', 'charity', ...


class ManualBeneficiaryUpdate(BaseModel):
    """Request body for editing a manual beneficiary. Omitted fields are left alone."""
    first_names: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    id_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None


class AllocationUpdate(BaseModel):
    """Full allocation map for one asset or the residue: beneficiary key -> percentage."""
    allocations: Dict[str, float]


class DebtStatusUpdate(BaseModel):
    is_fully_paid: bool


class DebtHandlingUpdate(BaseModel):
    method: str


class ProfileFlagsUpdate(BaseModel):
    """Workflow milestone and completion flags. Omitted flags are left alone."""
    profile_setup_complete: Optional[bool] = None
    assets_added: Optional[bool] = None
    beneficiaries_chosen: Optional[bool] = None
    last_wishes_documented: Optional[bool] = None
    executor_chosen: Optional[bool] = None
    will_reviewed: Optional[bool] = None
    will_downloaded: Optional[bool] = None
    has_beneficiaries: Optional[bool] = None
    assets_fully_allocated: Optional[bool] = None
    residue_fully_allocated: Optional[bool] = None


# =============================================================================
# Beneficiaries
# =============================================================================

@router.get("/profiles/{profile_id}/roster")
async def get_roster(profile_id: str, db: Session = Depends(get_db)):
    """
    Get the beneficiary roster.

    Returns:
    - candidates: spouse / partner / children that could be elected
    - selected: candidates already elected as beneficiaries
    - manual: manually entered beneficiaries
    """
    roster = BeneficiaryRosterService(db).get_roster(profile_id)
    return roster.to_dict()


@router.post("/profiles/{profile_id}/beneficiaries/family")
async def add_family_beneficiary(
    profile_id: str,
    body: FamilyBeneficiaryCreate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Elect a spouse, partner or child as beneficiary."""
    beneficiary = BeneficiaryRosterService(db, notifier=notifier).add_family_member(
        profile_id, body.candidate_key
    )
    return {"success": True, "beneficiary": beneficiary.to_dict()}


@router.post("/profiles/{profile_id}/beneficiaries/manual")
async def add_manual_beneficiary(
    profile_id: str,
    body: ManualBeneficiaryCreate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Add a beneficiary who is not part of the recorded family."""
    beneficiary = BeneficiaryRosterService(db, notifier=notifier).add_manual_beneficiary(
        profile_id, body.model_dump(exclude_none=True)
    )
    return {"success": True, "beneficiary": beneficiary.to_dict()}


@router.put("/profiles/{profile_id}/beneficiaries/manual/{beneficiary_id}")
async def update_manual_beneficiary(
    profile_id: str,
    beneficiary_id: str,
    body: ManualBeneficiaryUpdate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Edit a manually entered beneficiary."""
    beneficiary = BeneficiaryRosterService(db, notifier=notifier).update_manual_beneficiary(
        profile_id, beneficiary_id, body.model_dump(exclude_none=True)
    )
    return {"success": True, "beneficiary": beneficiary.to_dict()}


@router.delete("/profiles/{profile_id}/beneficiaries/family/{kind}")
async def remove_family_beneficiary(
    profile_id: str,
    kind: str,
    ref_id: Optional[str] = None,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """
    Remove an elected family member together with their allocations.
    Children are identified by ?ref_id=<child id>.
    """
    removed = BeneficiaryRosterService(db, notifier=notifier).remove_family_member(profile_id, kind, ref_id)
    return {"success": True, "beneficiary_id": removed}


@router.delete("/profiles/{profile_id}/beneficiaries/manual/{beneficiary_id}")
async def remove_manual_beneficiary(
    profile_id: str,
    beneficiary_id: str,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Remove a manual beneficiary together with their allocations."""
    removed = BeneficiaryRosterService(db, notifier=notifier).remove_manual_beneficiary(
        profile_id, beneficiary_id
    )
    return {"success": True, "beneficiary_id": removed}


# =============================================================================
# Allocations
# =============================================================================

@router.get("/profiles/{profile_id}/allocations")
async def get_allocations(profile_id: str, db: Session = Depends(get_db)):
    """Get saved asset and residue allocations, keyed by beneficiary key."""
    profile = profile_services.get_profile(db, profile_id)
    ledger = AllocationLedger(db, profile_id)
    ledger.load()
    return {
        "assets": ledger.asset_allocations,
        "residue": ledger.residue_allocations,
        "residue_total": ledger.residue_total(),
        "spouse_residue_shortfall": check_spouse_share(profile, ledger.residue_allocations),
    }


@router.put("/profiles/{profile_id}/allocations/{asset_id}")
async def save_asset_allocations(
    profile_id: str,
    asset_id: str,
    body: AllocationUpdate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Replace the allocations of one asset. Rejected with nothing written when the total exceeds 100%."""
    profile_services.get_profile(db, profile_id)
    ledger = AllocationLedger(db, profile_id, notifier=notifier)
    for key, pct in body.allocations.items():
        ledger.set_allocation(asset_id, key, pct)
    written = ledger.save_allocations(asset_id)
    return {"success": True, "asset_id": asset_id, "rows_written": written}


@router.put("/profiles/{profile_id}/residue")
async def save_residue_allocations(
    profile_id: str,
    body: AllocationUpdate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Replace the residue allocations of a profile."""
    profile_services.get_profile(db, profile_id)
    ledger = AllocationLedger(db, profile_id, notifier=notifier)
    for key, pct in body.allocations.items():
        ledger.set_residue_allocation(key, pct)
    written = ledger.save_residue_allocations()
    return {"success": True, "rows_written": written}


@router.get("/profiles/{profile_id}/legal-requirements")
async def get_legal_requirements(profile_id: str, db: Session = Depends(get_db)):
    """Forced-share rules that apply to the profile (advisory)."""
    rule = required_minimum_share(profile_services.get_profile(db, profile_id))
    if rule is None:
        return {"minimum_share": None}
    return {"minimum_share": {"spouse_min_percent": rule.spouse_min_percent, "reason": rule.reason}}


# =============================================================================
# Debt handling
# =============================================================================

@router.get("/debt-handling-methods")
async def list_debt_handling_methods():
    """List the available debt handling strategies."""
    return {
        "methods": [
            {"id": method.value, "label": label}
            for method, label in DEBT_HANDLING_LABELS.items()
        ]
    }


@router.put("/assets/{asset_id}/debt-status")
async def update_debt_status(
    asset_id: str,
    body: DebtStatusUpdate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Mark an asset as fully paid (clears the strategy) or encumbered."""
    asset = DebtHandlingResolver(db, notifier=notifier).set_debt_status(asset_id, body.is_fully_paid)
    return {
        "asset_id": asset.id,
        "is_fully_paid": asset.is_fully_paid,
        "debt_handling_method": asset.debt_handling_method,
    }


@router.put("/assets/{asset_id}/debt-handling")
async def update_debt_handling(
    asset_id: str,
    body: DebtHandlingUpdate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Choose how the outstanding debt on a vehicle or property is settled."""
    asset = DebtHandlingResolver(db, notifier=notifier).set_debt_handling_method(asset_id, body.method)
    return {
        "asset_id": asset.id,
        "is_fully_paid": asset.is_fully_paid,
        "debt_handling_method": asset.debt_handling_method,
    }


# =============================================================================
# Completion & score
# =============================================================================

@router.get("/profiles/{profile_id}/completion")
async def get_completion(profile_id: str, db: Session = Depends(get_db)):
    """Whether the beneficiaries step may be completed."""
    flags = profile_services.get_completion_flags(db, profile_id)
    return {
        "has_beneficiaries": flags.has_beneficiaries,
        "assets_fully_allocated": flags.assets_fully_allocated,
        "residue_fully_allocated": flags.residue_fully_allocated,
        "is_complete": is_allocation_complete(flags),
    }


@router.get("/profiles/{profile_id}/score")
async def get_estate_score(profile_id: str, db: Session = Depends(get_db)):
    """Get the estate score and the steps behind it."""
    flags = profile_services.get_milestone_flags(db, profile_id)
    return {
        "score": calculate_estate_score(flags),
        "steps": [
            {"step": step, "weight": weight, "complete": getattr(flags, step)}
            for step, weight in STEP_WEIGHTS.items()
        ],
    }


@router.patch("/profiles/{profile_id}/flags")
async def update_profile_flags(
    profile_id: str,
    body: ProfileFlagsUpdate,
    db: Session = Depends(get_db),
    notifier: MutationNotifier = Depends(get_notifier),
):
    """Workflow write path for milestone and completion flags."""
    profile_services.update_profile_flags(
        db, profile_id, notifier=notifier, **body.model_dump(exclude_none=True)
    )
    flags = profile_services.get_completion_flags(db, profile_id)
    return {
        "success": True,
        "is_complete": is_allocation_complete(flags),
        "score": calculate_estate_score(profile_services.get_milestone_flags(db, profile_id)),
    }
