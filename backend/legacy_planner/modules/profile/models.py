"""
Profile module database models.
"""

from sqlalchemy import Column, String, Date, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship

from legacy_planner.shared.models.base import BaseModel


class Profile(BaseModel):
    """The person whose estate plan is being recorded."""

    __tablename__ = "profiles"

    full_name = Column(String(200), nullable=True)
    title = Column(String(20), nullable=True)
    id_number = Column(String(50), nullable=True)
    email = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)

    marital_status = Column(String(20), nullable=True)  # 'single', 'married', 'divorced', 'widowed'
    marriage_property_regime = Column(String(30), nullable=True)  # 'in_community', 'out_of_community', 'accrual'
    has_life_partner = Column(Boolean, default=False, nullable=False)

    # Spouse (only meaningful when married)
    spouse_uuid = Column(String(36), nullable=True)
    spouse_title = Column(String(20), nullable=True)
    spouse_first_name = Column(String(200), nullable=True)
    spouse_last_name = Column(String(200), nullable=True)
    spouse_id_number = Column(String(50), nullable=True)
    spouse_phone = Column(String(50), nullable=True)
    spouse_email = Column(String(200), nullable=True)

    # Life partner (only meaningful when has_life_partner)
    partner_uuid = Column(String(36), nullable=True)
    partner_title = Column(String(20), nullable=True)
    partner_first_name = Column(String(200), nullable=True)
    partner_last_name = Column(String(200), nullable=True)
    partner_id_number = Column(String(50), nullable=True)
    partner_phone = Column(String(50), nullable=True)
    partner_email = Column(String(200), nullable=True)

    # Workflow milestones (written by the surrounding workflow)
    profile_setup_complete = Column(Boolean, default=False, nullable=False)
    assets_added = Column(Boolean, default=False, nullable=False)
    beneficiaries_chosen = Column(Boolean, default=False, nullable=False)
    last_wishes_documented = Column(Boolean, default=False, nullable=False)
    executor_chosen = Column(Boolean, default=False, nullable=False)
    will_reviewed = Column(Boolean, default=False, nullable=False)
    will_downloaded = Column(Boolean, default=False, nullable=False)

    # Allocation completion signals
    has_beneficiaries = Column(Boolean, default=False, nullable=False)
    assets_fully_allocated = Column(Boolean, default=False, nullable=False)
    residue_fully_allocated = Column(Boolean, default=False, nullable=False)

    # Relationships
    children = relationship("Child", back_populates="profile")


class Child(BaseModel):
    """Children of the profile owner."""

    __tablename__ = "children"

    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)

    title = Column(String(20), nullable=True)
    first_names = Column(String(200), nullable=False)
    last_name = Column(String(200), nullable=False)
    id_number = Column(String(50), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(200), nullable=True)
    date_of_birth = Column(Date, nullable=True)

    # Relationships
    profile = relationship("Profile", back_populates="children")

    __table_args__ = (
        Index('idx_children_profile', 'profile_id'),
    )
