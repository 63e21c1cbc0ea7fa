"""
API tests for the estate planning routes.

Run with: pytest tests/test_router.py -v
"""

import pytest
from fastapi.testclient import TestClient

from legacy_planner.core.database import get_db
from legacy_planner.core.events import get_notifier
from legacy_planner.main import create_app

PREFIX = "/api/v1/estate-planning"


@pytest.fixture
def client(session_factory, notifier):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    return TestClient(app)


def test_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}


class TestBeneficiaryRoutes:

    def test_roster_lists_candidates(self, client, married_profile, make_child):
        child = make_child(married_profile, "Amahle")

        response = client.get(f"{PREFIX}/profiles/{married_profile.id}/roster")

        assert response.status_code == 200
        keys = [c["key"] for c in response.json()["candidates"]]
        assert keys == ["spouse", child.id]

    def test_elect_and_remove_family_member(self, client, married_profile, mutations):
        url = f"{PREFIX}/profiles/{married_profile.id}"

        created = client.post(f"{url}/beneficiaries/family", json={"candidate_key": "spouse"})
        assert created.status_code == 200
        assert created.json()["beneficiary"]["first_names"] == "Sipho"

        duplicate = client.post(f"{url}/beneficiaries/family", json={"candidate_key": "spouse"})
        assert duplicate.status_code == 409

        removed = client.delete(f"{url}/beneficiaries/family/spouse")
        assert removed.status_code == 200
        assert client.get(f"{url}/roster").json()["selected"] == []
        assert mutations == [married_profile.id, married_profile.id]

    def test_unknown_candidate_is_404(self, client, married_profile):
        response = client.post(
            f"{PREFIX}/profiles/{married_profile.id}/beneficiaries/family",
            json={"candidate_key": "partner"},
        )
        assert response.status_code == 404

    def test_manual_beneficiary_lifecycle(self, client, married_profile):
        url = f"{PREFIX}/profiles/{married_profile.id}/beneficiaries/manual"

        created = client.post(url, json={"first_names": "Lerato", "last_name": "Dlamini", "relationship": "friend"})
        beneficiary_id = created.json()["beneficiary"]["id"]

        updated = client.put(f"{url}/{beneficiary_id}", json={"phone": "+27 83 555 0199"})
        assert updated.json()["beneficiary"]["phone"] == "+27 83 555 0199"
        assert updated.json()["beneficiary"]["last_name"] == "Dlamini"

        assert client.delete(f"{url}/{beneficiary_id}").status_code == 200
        assert client.delete(f"{url}/{beneficiary_id}").status_code == 404

    def test_missing_profile(self, client):
        response = client.get(f"{PREFIX}/profiles/nobody/roster")

        assert response.status_code == 404
        assert response.json()["error"] == "profile_not_found"


class TestAllocationRoutes:

    def test_save_and_read_allocations(self, client, married_profile, make_asset, make_child):
        child = make_child(married_profile, "Amahle")
        home = make_asset(married_profile)
        url = f"{PREFIX}/profiles/{married_profile.id}"
        client.post(f"{url}/beneficiaries/family", json={"candidate_key": "spouse"})
        client.post(f"{url}/beneficiaries/family", json={"candidate_key": child.id})

        saved = client.put(f"{url}/allocations/{home.id}", json={"allocations": {"spouse": 60, child.id: 40}})
        assert saved.json()["rows_written"] == 2

        client.put(f"{url}/residue", json={"allocations": {child.id: 100}})

        body = client.get(f"{url}/allocations").json()
        assert body["assets"] == {home.id: {"spouse": 60.0, child.id: 40.0}}
        assert body["residue"] == {child.id: 100.0}
        assert body["residue_total"] == 100.0
        # Out of community: no forced share
        assert body["spouse_residue_shortfall"] is None

    def test_over_hundred_is_422(self, client, married_profile, make_asset, make_child):
        child = make_child(married_profile, "Amahle")
        home = make_asset(married_profile)
        url = f"{PREFIX}/profiles/{married_profile.id}"
        client.post(f"{url}/beneficiaries/family", json={"candidate_key": "spouse"})
        client.post(f"{url}/beneficiaries/family", json={"candidate_key": child.id})

        response = client.put(f"{url}/allocations/{home.id}", json={"allocations": {"spouse": 70, child.id: 40}})

        assert response.status_code == 422
        assert response.json()["error"] == "allocation_exceeded"
        assert client.get(f"{url}/allocations").json()["assets"] == {}

    def test_legal_requirements(self, client, make_profile):
        in_community = make_profile(marital_status="married", marriage_property_regime="in_community")

        body = client.get(f"{PREFIX}/profiles/{in_community.id}/legal-requirements").json()

        assert body["minimum_share"]["spouse_min_percent"] == 50.0


class TestDebtRoutes:

    def test_list_methods(self, client):
        methods = client.get(f"{PREFIX}/debt-handling-methods").json()["methods"]
        assert len(methods) == 5

    def test_set_and_clear_method(self, client, married_profile, make_asset):
        car = make_asset(married_profile, name="Hilux", asset_type="vehicle")

        set_response = client.put(f"{PREFIX}/assets/{car.id}/debt-handling", json={"method": "hybrid_approach"})
        assert set_response.json()["is_fully_paid"] is False

        paid = client.put(f"{PREFIX}/assets/{car.id}/debt-status", json={"is_fully_paid": True})
        assert paid.json()["debt_handling_method"] is None

    def test_invalid_method_is_422(self, client, married_profile, make_asset):
        car = make_asset(married_profile, asset_type="vehicle")
        response = client.put(f"{PREFIX}/assets/{car.id}/debt-handling", json={"method": "ignore_it"})
        assert response.status_code == 422


class TestWorkflowRoutes:

    def test_flags_drive_completion_and_score(self, client, married_profile):
        url = f"{PREFIX}/profiles/{married_profile.id}"
        assert client.get(f"{url}/completion").json()["is_complete"] is False

        response = client.patch(f"{url}/flags", json={
            "has_beneficiaries": True,
            "assets_fully_allocated": True,
            "residue_fully_allocated": True,
            "profile_setup_complete": True,
            "assets_added": True,
        })

        assert response.json() == {"success": True, "is_complete": True, "score": 40}
        assert client.get(f"{url}/completion").json()["is_complete"] is True
        assert client.get(f"{url}/score").json()["score"] == 40
