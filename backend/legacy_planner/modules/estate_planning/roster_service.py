"""
Beneficiary roster.

Merges two sources into one addressable list:
1. Family candidates derived from the profile (spouse, life partner) and its
   children rows. These are recomputed on every build and never stored.
2. Beneficiary rows, split into family-derived rows (which mark a candidate
   as selected) and manually entered rows.

Allocation maps address beneficiaries by key: 'spouse' / 'partner' for the
single spouse or partner, the child id for children, and the row id for
manual beneficiaries.
"""

import copy
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from legacy_planner.core.cache import CachePort, TTLCache
from legacy_planner.core.config import settings
from legacy_planner.core.events import MutationNotifier
from legacy_planner.core.exceptions import (
    BeneficiaryNotFoundError,
    DuplicateBeneficiaryError,
    ValidationError,
    store_errors,
)
from legacy_planner.modules.estate_planning.models import AssetAllocation, Beneficiary, ResidueAllocation
from legacy_planner.modules.estate_planning.types import (
    PERSONAL_FIELDS,
    FamilyCandidate,
    FamilyKind,
    MaritalStatus,
    Roster,
)
from legacy_planner.modules.profile.models import Child, Profile
from legacy_planner.modules.profile.services import get_profile

logger = logging.getLogger(__name__)

# Process-wide default; services built without an explicit cache share it
_default_cache = TTLCache(default_ttl=settings.ROSTER_CACHE_TTL_SECONDS)

MANUAL_FIELDS = PERSONAL_FIELDS + ("relationship",)


def roster_cache_key(profile_id: str) -> str:
    return f"roster:{profile_id}"


def build_family_candidates(profile: Profile, children: Iterable[Child]) -> List[FamilyCandidate]:
    """
    Derive candidates from profile data.

    Spouse exists iff married, partner iff has_life_partner, one candidate
    per child. Children are ordered by name then id so the result does not
    depend on the order rows come back from the store.
    """
    candidates: List[FamilyCandidate] = []

    if profile.marital_status == MaritalStatus.MARRIED.value:
        candidates.append(FamilyCandidate(
            key=FamilyKind.SPOUSE.value,
            kind=FamilyKind.SPOUSE,
            ref_id=profile.spouse_uuid,
            title=profile.spouse_title or "",
            first_names=profile.spouse_first_name or "",
            last_name=profile.spouse_last_name or "",
            id_number=profile.spouse_id_number or "",
            phone=profile.spouse_phone or "",
            email=profile.spouse_email or "",
        ))

    if profile.has_life_partner:
        candidates.append(FamilyCandidate(
            key=FamilyKind.PARTNER.value,
            kind=FamilyKind.PARTNER,
            ref_id=profile.partner_uuid,
            title=profile.partner_title or "",
            first_names=profile.partner_first_name or "",
            last_name=profile.partner_last_name or "",
            id_number=profile.partner_id_number or "",
            phone=profile.partner_phone or "",
            email=profile.partner_email or "",
        ))

    ordered = sorted(children, key=lambda c: (c.first_names or "", c.last_name or "", c.id))
    for child in ordered:
        candidates.append(FamilyCandidate(
            key=child.id,
            kind=FamilyKind.CHILD,
            ref_id=child.id,
            title=child.title or "",
            first_names=child.first_names or "",
            last_name=child.last_name or "",
            id_number=child.id_number or "",
            phone=child.phone or "",
            email=child.email or "",
        ))

    return candidates


def is_candidate_selected(candidate: FamilyCandidate, family_rows: Iterable[Beneficiary]) -> bool:
    """Spouse/partner match on kind alone; children also match on the child id."""
    for row in family_rows:
        if row.family_member_type != candidate.kind.value:
            continue
        if candidate.kind != FamilyKind.CHILD or row.family_member_id == candidate.key:
            return True
    return False


def build_roster(
    profile: Profile,
    children: Iterable[Child],
    manual_rows: Iterable[Beneficiary],
    family_rows: Iterable[Beneficiary],
) -> Roster:
    """Combine candidates, family selections and manual beneficiaries."""
    family_rows = list(family_rows)
    candidates = build_family_candidates(profile, children)
    selected = [c for c in candidates if is_candidate_selected(c, family_rows)]
    manual_rows = sorted(manual_rows, key=lambda r: (r.created_at or datetime.min, r.id or ""))
    manual = [row.to_dict() for row in manual_rows]
    return Roster(candidates=candidates, selected=selected, manual=manual)


class BeneficiaryRosterService:
    """Reads and mutates the beneficiary roster of one database session."""

    def __init__(
        self,
        db: Session,
        cache: Optional[CachePort] = None,
        notifier: Optional[MutationNotifier] = None,
    ):
        self.db = db
        self.cache = cache if cache is not None else _default_cache
        self.notifier = notifier

    # ------------------------------------------------------------------ reads

    def get_roster(self, profile_id: str) -> Roster:
        """
        Build the roster for a profile, served from cache when fresh.
        Callers get their own copy; the cached entry is never handed out.
        """
        key = roster_cache_key(profile_id)
        cached = self.cache.get(key)
        if cached is not None:
            return copy.deepcopy(cached)

        profile = get_profile(self.db, profile_id)
        with store_errors("roster read"):
            children = self.db.query(Child).filter(Child.profile_id == profile_id).all()
            beneficiaries = self.db.query(Beneficiary).filter(Beneficiary.profile_id == profile_id).all()

        roster = build_roster(
            profile,
            children,
            manual_rows=[b for b in beneficiaries if not b.is_family_member],
            family_rows=[b for b in beneficiaries if b.is_family_member],
        )
        self.cache.set(key, roster)

        logger.info(
            f"[ROSTER] Built roster for {profile_id}: {len(roster.candidates)} candidates, "
            f"{len(roster.selected)} selected, {len(roster.manual)} manual"
        )
        return copy.deepcopy(roster)

    def find_family_record(
        self, profile_id: str, kind: FamilyKind, child_id: Optional[str] = None
    ) -> Optional[Beneficiary]:
        """Family beneficiary row for (kind[, child id]), or None."""
        with store_errors("family beneficiary lookup"):
            query = self.db.query(Beneficiary).filter(
                Beneficiary.profile_id == profile_id,
                Beneficiary.is_family_member.is_(True),
                Beneficiary.family_member_type == kind.value,
            )
            if kind == FamilyKind.CHILD:
                query = query.filter(Beneficiary.family_member_id == child_id)
            return query.first()

    # -------------------------------------------------------------- mutations

    def add_family_member(self, profile_id: str, candidate_key: str) -> Beneficiary:
        """
        Elect a family candidate as beneficiary.

        Personal details are copied now; later edits to the spouse, partner
        or child do not change the beneficiary row.

        Raises:
            BeneficiaryNotFoundError: no candidate has this key
            DuplicateBeneficiaryError: the candidate is already a beneficiary
        """
        profile = get_profile(self.db, profile_id)
        with store_errors("children read"):
            children = self.db.query(Child).filter(Child.profile_id == profile_id).all()

        candidate = next(
            (c for c in build_family_candidates(profile, children) if c.key == candidate_key),
            None,
        )
        if candidate is None:
            raise BeneficiaryNotFoundError(
                f"No family member '{candidate_key}' on profile {profile_id}",
                profile_id=profile_id,
                candidate_key=candidate_key,
            )

        if self.find_family_record(profile_id, candidate.kind, candidate.key) is not None:
            raise DuplicateBeneficiaryError(
                f"{candidate.kind.value.title()} {candidate.display_name or candidate.key} "
                f"is already a beneficiary",
                profile_id=profile_id,
                candidate_key=candidate_key,
            )

        beneficiary = Beneficiary(
            profile_id=profile_id,
            is_family_member=True,
            family_member_type=candidate.kind.value,
            family_member_id=candidate.ref_id,
            relationship=candidate.kind.value,
            **candidate.personal_fields(),
        )
        self._commit_new(beneficiary, "family beneficiary insert")

        logger.info(f"[ROSTER] Added {candidate.kind.value} {candidate.key} as beneficiary {beneficiary.id}")
        self._after_write(profile_id)
        return beneficiary

    def add_manual_beneficiary(self, profile_id: str, data: dict) -> Beneficiary:
        """Store a beneficiary typed in by the user."""
        get_profile(self.db, profile_id)
        fields = self._manual_fields(data)
        missing = [name for name in ("first_names", "last_name") if not fields.get(name)]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}", fields=missing)

        beneficiary = Beneficiary(profile_id=profile_id, is_family_member=False, **fields)
        self._commit_new(beneficiary, "manual beneficiary insert")

        logger.info(f"[ROSTER] Added manual beneficiary {beneficiary.id} to {profile_id}")
        self._after_write(profile_id)
        return beneficiary

    def update_manual_beneficiary(self, profile_id: str, beneficiary_id: str, data: dict) -> Beneficiary:
        """Edit a manual beneficiary. Family-derived rows are frozen copies and are not editable here."""
        beneficiary = self._get_manual(profile_id, beneficiary_id)
        fields = self._manual_fields(data)
        for name in ("first_names", "last_name"):
            if name in fields and not fields[name]:
                raise ValidationError(f"{name} cannot be empty", fields=[name])

        for name, value in fields.items():
            setattr(beneficiary, name, value)

        try:
            with store_errors("manual beneficiary update"):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(beneficiary)

        logger.info(f"[ROSTER] Updated manual beneficiary {beneficiary_id}")
        self._after_write(profile_id)
        return beneficiary

    def remove_family_member(self, profile_id: str, kind, ref_id: Optional[str] = None) -> str:
        """
        Remove an elected family member and every allocation that names them.

        Returns:
            The deleted beneficiary id
        """
        try:
            kind = FamilyKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown family member type '{kind}'", kind=kind)
        if kind == FamilyKind.CHILD and not ref_id:
            raise ValidationError("Removing a child beneficiary requires the child id")

        record = self.find_family_record(profile_id, kind, ref_id)
        if record is None:
            raise BeneficiaryNotFoundError(
                f"No {kind.value} beneficiary on profile {profile_id}",
                profile_id=profile_id,
                kind=kind.value,
                ref_id=ref_id,
            )
        return self._delete_cascade(profile_id, record.id)

    def remove_manual_beneficiary(self, profile_id: str, beneficiary_id: str) -> str:
        """Remove a manual beneficiary and every allocation that names them."""
        record = self._get_manual(profile_id, beneficiary_id)
        return self._delete_cascade(profile_id, record.id)

    def invalidate(self, profile_id: str) -> None:
        self.cache.invalidate(roster_cache_key(profile_id))

    # ---------------------------------------------------------------- helpers

    def _get_manual(self, profile_id: str, beneficiary_id: str) -> Beneficiary:
        with store_errors("manual beneficiary lookup"):
            record = self.db.query(Beneficiary).filter(
                Beneficiary.id == beneficiary_id,
                Beneficiary.profile_id == profile_id,
                Beneficiary.is_family_member.is_(False),
            ).first()
        if record is None:
            raise BeneficiaryNotFoundError(
                f"Beneficiary {beneficiary_id} not found",
                profile_id=profile_id,
                beneficiary_id=beneficiary_id,
            )
        return record

    @staticmethod
    def _manual_fields(data: dict) -> dict:
        return {name: data[name] for name in MANUAL_FIELDS if name in data}

    def _commit_new(self, beneficiary: Beneficiary, operation: str) -> None:
        self.db.add(beneficiary)
        try:
            with store_errors(operation):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(beneficiary)

    def _delete_cascade(self, profile_id: str, beneficiary_id: str) -> str:
        """Asset allocations, then residue allocations, then the row. One transaction."""
        try:
            with store_errors("beneficiary removal"):
                asset_rows = self.db.query(AssetAllocation).filter(
                    AssetAllocation.beneficiary_id == beneficiary_id
                ).delete(synchronize_session=False)
                residue_rows = self.db.query(ResidueAllocation).filter(
                    ResidueAllocation.beneficiary_id == beneficiary_id
                ).delete(synchronize_session=False)
                self.db.query(Beneficiary).filter(
                    Beneficiary.id == beneficiary_id
                ).delete(synchronize_session=False)
                self.db.commit()
        except Exception as e:
            logger.error(f"[ROSTER] Removing beneficiary {beneficiary_id} failed, rolled back: {e}")
            self.db.rollback()
            raise

        # Bulk deletes bypass the identity map
        self.db.expire_all()
        logger.info(
            f"[ROSTER] Removed beneficiary {beneficiary_id} "
            f"({asset_rows} asset allocations, {residue_rows} residue allocations)"
        )
        self._after_write(profile_id)
        return beneficiary_id

    def _after_write(self, profile_id: str) -> None:
        self.invalidate(profile_id)
        if self.notifier is not None:
            self.notifier.on_mutated(profile_id)
