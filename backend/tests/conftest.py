"""
Shared fixtures for the estate allocation tests.

Every test gets a fresh in-memory SQLite database.

Run with: pytest backend/tests -v
"""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from legacy_planner.core.cache import TTLCache
from legacy_planner.core.database import Base
from legacy_planner.core.events import MutationNotifier
from legacy_planner.modules.profile.models import Profile, Child
from legacy_planner.modules.estate_planning.models import (
    Asset,
    AssetAllocation,
    Beneficiary,
    ResidueAllocation,
)


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# Collaborators
# =============================================================================

class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=300, clock=clock)


@pytest.fixture
def notifier():
    return MutationNotifier()


@pytest.fixture
def mutations(notifier):
    """Profile ids reported through the notifier, in order."""
    seen = []
    notifier.subscribe(seen.append)
    return seen


# =============================================================================
# Data builders
# =============================================================================

@pytest.fixture
def make_profile(db):
    def _make(**fields) -> Profile:
        defaults = {"full_name": "Thandi Mokoena", "marital_status": "single"}
        defaults.update(fields)
        profile = Profile(**defaults)
        db.add(profile)
        db.commit()
        return profile
    return _make


@pytest.fixture
def married_profile(make_profile):
    return make_profile(
        marital_status="married",
        marriage_property_regime="out_of_community",
        spouse_uuid="9b8f7c52-5c1e-4b8a-9f55-2f0b1a3c4d5e",
        spouse_title="Mr",
        spouse_first_name="Sipho",
        spouse_last_name="Mokoena",
        spouse_id_number="8001015009087",
        spouse_phone="+27 82 555 0101",
    )


@pytest.fixture
def make_child(db):
    def _make(profile: Profile, first_names: str, last_name: str = "Mokoena", **fields) -> Child:
        child = Child(profile_id=profile.id, first_names=first_names, last_name=last_name, **fields)
        db.add(child)
        db.commit()
        return child
    return _make


@pytest.fixture
def make_asset(db):
    def _make(profile: Profile, name: str = "Family home", asset_type: str = "property", **fields) -> Asset:
        asset = Asset(
            profile_id=profile.id,
            name=name,
            asset_type=asset_type,
            estimated_value=Decimal(fields.pop("estimated_value", "1500000")),
            **fields,
        )
        db.add(asset)
        db.commit()
        return asset
    return _make


@pytest.fixture
def make_manual_beneficiary(db):
    def _make(profile: Profile, first_names: str = "Lerato", last_name: str = "Dlamini",
              relationship: str = "friend") -> Beneficiary:
        beneficiary = Beneficiary(
            profile_id=profile.id,
            is_family_member=False,
            first_names=first_names,
            last_name=last_name,
            relationship=relationship,
        )
        db.add(beneficiary)
        db.commit()
        return beneficiary
    return _make


def asset_rows(db, asset_id):
    return db.query(AssetAllocation).filter(AssetAllocation.asset_id == asset_id).all()


def residue_rows(db, profile_id):
    return db.query(ResidueAllocation).filter(ResidueAllocation.profile_id == profile_id).all()
