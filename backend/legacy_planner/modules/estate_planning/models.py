"""
Estate planning module database models.
"""

from sqlalchemy import Column, String, Numeric, Boolean, ForeignKey, Index, Text
from sqlalchemy.orm import relationship

from legacy_planner.shared.models.base import BaseModel
from legacy_planner.modules.estate_planning.types import (
    BeneficiaryOrigin,
    FamilyKind,
    FamilyOrigin,
    ManualOrigin,
)


class Beneficiary(BaseModel):
    """Any beneficiary of the estate, elected from family data or entered manually."""

    __tablename__ = "beneficiaries"

    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)

    is_family_member = Column(Boolean, default=False, nullable=False)
    family_member_type = Column(String(20), nullable=True)  # 'spouse', 'partner', 'child'
    family_member_id = Column(String(36), nullable=True)  # child id, or spouse/partner uuid

    # Personal details are copied when the beneficiary is elected
    title = Column(String(20), nullable=True)
    first_names = Column(String(200), nullable=False)
    last_name = Column(String(200), nullable=False)
    id_number = Column(String(50), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(200), nullable=True)
    relationship = Column(String(100), nullable=True)  # 'spouse', 'child', 'sibling', 'friend', 'charity', etc.

    notes = Column(Text, nullable=True)

    __table_args__ = (
        Index('idx_beneficiaries_profile', 'profile_id'),
        Index('idx_beneficiaries_family', 'profile_id', 'family_member_type', 'family_member_id'),
    )

    @property
    def origin(self) -> BeneficiaryOrigin:
        if self.is_family_member:
            return FamilyOrigin(kind=FamilyKind(self.family_member_type), ref_id=self.family_member_id)
        return ManualOrigin(relationship=self.relationship)

    @property
    def allocation_key(self) -> str:
        """Key used for this beneficiary in in-memory allocation maps."""
        if self.is_family_member:
            if self.family_member_type == FamilyKind.CHILD.value:
                return self.family_member_id
            return self.family_member_type
        return self.id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "is_family_member": self.is_family_member,
            "family_member_type": self.family_member_type,
            "family_member_id": self.family_member_id,
            "title": self.title,
            "first_names": self.first_names,
            "last_name": self.last_name,
            "id_number": self.id_number,
            "phone": self.phone,
            "email": self.email,
            "relationship": self.relationship,
        }


class Asset(BaseModel):
    """Assets recorded in the estate plan."""

    __tablename__ = "assets"

    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)

    name = Column(String(200), nullable=False)
    asset_type = Column(String(50), nullable=False)  # 'vehicle', 'property', 'electronics', 'bank', 'business', 'other'
    estimated_value = Column(Numeric(18, 2), nullable=True)

    # Encumbrance (vehicles and property only)
    is_fully_paid = Column(Boolean, nullable=True)
    debt_handling_method = Column(String(50), nullable=True)

    notes = Column(Text, nullable=True)

    # Relationships
    allocations = relationship("AssetAllocation", back_populates="asset")

    __table_args__ = (
        Index('idx_assets_profile', 'profile_id'),
    )


class AssetAllocation(BaseModel):
    """Percentage of one asset left to one beneficiary."""

    __tablename__ = "asset_allocations"

    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    asset_id = Column(String(36), ForeignKey("assets.id"), nullable=False)
    beneficiary_id = Column(String(36), ForeignKey("beneficiaries.id"), nullable=False)

    allocation_percentage = Column(Numeric(5, 2), nullable=False)

    # Relationships
    asset = relationship("Asset", back_populates="allocations")

    __table_args__ = (
        Index('idx_asset_allocations_asset', 'asset_id'),
        Index('idx_asset_allocations_beneficiary', 'beneficiary_id'),
    )


class ResidueAllocation(BaseModel):
    """Percentage of the residual estate left to one beneficiary."""

    __tablename__ = "residue_allocations"

    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    beneficiary_id = Column(String(36), ForeignKey("beneficiaries.id"), nullable=False)

    allocation_percentage = Column(Numeric(5, 2), nullable=False)

    __table_args__ = (
        Index('idx_residue_allocations_profile', 'profile_id'),
        Index('idx_residue_allocations_beneficiary', 'beneficiary_id'),
    )
