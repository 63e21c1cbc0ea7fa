"""
Profile reads and the workflow-owned flag write path.

The allocation engine only reads completion and milestone flags. They are
written here by the surrounding workflow (step screens, the will
review/download flow), which then notifies subscribers so derived state
such as the completion gate is re-evaluated.
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from legacy_planner.core.events import MutationNotifier
from legacy_planner.core.exceptions import ProfileNotFoundError, ValidationError, store_errors
from legacy_planner.modules.profile.models import Profile
from legacy_planner.modules.estate_planning.types import CompletionFlags, MilestoneFlags

logger = logging.getLogger(__name__)

COMPLETION_FLAG_FIELDS = ("has_beneficiaries", "assets_fully_allocated", "residue_fully_allocated")

# MilestoneFlags attribute -> profiles column
MILESTONE_FLAG_FIELDS = {
    "profile_setup": "profile_setup_complete",
    "assets_added": "assets_added",
    "beneficiaries_chosen": "beneficiaries_chosen",
    "last_wishes_documented": "last_wishes_documented",
    "executor_chosen": "executor_chosen",
    "will_reviewed": "will_reviewed",
    "will_downloaded": "will_downloaded",
}

WRITABLE_FLAGS = set(COMPLETION_FLAG_FIELDS) | set(MILESTONE_FLAG_FIELDS.values())


def get_profile(db: Session, profile_id: str) -> Profile:
    """Load a profile or raise ProfileNotFoundError."""
    with store_errors("profile lookup"):
        profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if profile is None:
        raise ProfileNotFoundError(f"Profile {profile_id} not found", profile_id=profile_id)
    return profile


def completion_flags_for(profile: Profile) -> CompletionFlags:
    return CompletionFlags(
        has_beneficiaries=bool(profile.has_beneficiaries),
        assets_fully_allocated=bool(profile.assets_fully_allocated),
        residue_fully_allocated=bool(profile.residue_fully_allocated),
    )


def milestone_flags_for(profile: Profile) -> MilestoneFlags:
    return MilestoneFlags(**{
        attr: bool(getattr(profile, column))
        for attr, column in MILESTONE_FLAG_FIELDS.items()
    })


def get_completion_flags(db: Session, profile_id: str) -> CompletionFlags:
    return completion_flags_for(get_profile(db, profile_id))


def get_milestone_flags(db: Session, profile_id: str) -> MilestoneFlags:
    return milestone_flags_for(get_profile(db, profile_id))


def update_profile_flags(
    db: Session,
    profile_id: str,
    notifier: Optional[MutationNotifier] = None,
    **flags: bool,
) -> Profile:
    """
    Set completion/milestone flags on a profile.

    Args:
        db: Database session
        profile_id: Profile to update
        notifier: Receives on_mutated(profile_id) after the commit
        **flags: Column name -> bool, e.g. assets_fully_allocated=True

    Raises:
        ValidationError: an unknown flag name was passed
        ProfileNotFoundError: no such profile
    """
    unknown = sorted(set(flags) - WRITABLE_FLAGS)
    if unknown:
        raise ValidationError(f"Unknown profile flag(s): {', '.join(unknown)}", flags=unknown)

    profile = get_profile(db, profile_id)
    changes: Dict[str, bool] = {}
    for name, value in flags.items():
        setattr(profile, name, bool(value))
        changes[name] = bool(value)

    try:
        with store_errors("profile flag update"):
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(profile)
    logger.info(f"[PROFILE] Updated flags for {profile_id}: {changes}")

    if notifier is not None:
        notifier.on_mutated(profile_id)
    return profile
