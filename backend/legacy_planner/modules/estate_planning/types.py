"""
Value types shared by the estate planning services.

None of these are persisted directly; they are built from profile,
children and beneficiaries rows.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class FamilyKind(str, Enum):
    """Family relation a candidate beneficiary is derived from."""
    SPOUSE = "spouse"
    PARTNER = "partner"
    CHILD = "child"


class MaritalStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class PropertyRegime(str, Enum):
    IN_COMMUNITY = "in_community"
    OUT_OF_COMMUNITY = "out_of_community"
    ACCRUAL = "accrual"


# Fields copied from a candidate into a beneficiary row
PERSONAL_FIELDS = ("title", "first_names", "last_name", "id_number", "phone", "email")


@dataclass(frozen=True)
class FamilyCandidate:
    """A spouse, partner or child who could be elected as a beneficiary."""
    key: str  # 'spouse' / 'partner', or the child row id
    kind: FamilyKind
    ref_id: Optional[str] = None  # child id, or the profile's spouse/partner uuid
    title: str = ""
    first_names: str = ""
    last_name: str = ""
    id_number: str = ""
    phone: str = ""
    email: str = ""

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_names, self.last_name) if part)

    def personal_fields(self) -> dict:
        return {name: getattr(self, name) for name in PERSONAL_FIELDS}


@dataclass(frozen=True)
class FamilyOrigin:
    """Beneficiary row elected from family data."""
    kind: FamilyKind
    ref_id: Optional[str] = None


@dataclass(frozen=True)
class ManualOrigin:
    """Beneficiary row typed in by the user."""
    relationship: Optional[str] = None


BeneficiaryOrigin = Union[FamilyOrigin, ManualOrigin]


@dataclass
class Roster:
    """Result of BeneficiaryRosterService.build_roster."""
    candidates: List[FamilyCandidate] = field(default_factory=list)
    selected: List[FamilyCandidate] = field(default_factory=list)
    manual: List[dict] = field(default_factory=list)

    @property
    def beneficiary_keys(self) -> List[str]:
        """Every key an allocation may currently reference."""
        return [c.key for c in self.selected] + [m["id"] for m in self.manual]

    def to_dict(self) -> dict:
        def candidate_dict(c: FamilyCandidate) -> dict:
            return {
                "key": c.key,
                "kind": c.kind.value,
                "ref_id": c.ref_id,
                "display_name": c.display_name,
                **c.personal_fields(),
            }

        return {
            "candidates": [candidate_dict(c) for c in self.candidates],
            "selected": [candidate_dict(c) for c in self.selected],
            "manual": list(self.manual),
        }


@dataclass(frozen=True)
class CompletionFlags:
    """Allocation milestones maintained by the surrounding workflow."""
    has_beneficiaries: bool = False
    assets_fully_allocated: bool = False
    residue_fully_allocated: bool = False


@dataclass(frozen=True)
class MilestoneFlags:
    """The seven workflow steps, in order."""
    profile_setup: bool = False
    assets_added: bool = False
    beneficiaries_chosen: bool = False
    last_wishes_documented: bool = False
    executor_chosen: bool = False
    will_reviewed: bool = False
    will_downloaded: bool = False


@dataclass(frozen=True)
class MinimumShare:
    """Forced share the law reserves for the surviving spouse."""
    spouse_min_percent: float
    reason: str = ""
