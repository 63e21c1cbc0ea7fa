"""
Tests for the cache, mutation notifier, profile flag service and store
error translation.

Run with: pytest tests/test_core.py -v
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from legacy_planner.core.cache import TTLCache
from legacy_planner.core.events import MutationNotifier
from legacy_planner.core.exceptions import (
    ProfileNotFoundError,
    TransientIOError,
    ValidationError,
)
from legacy_planner.modules.estate_planning.roster_service import BeneficiaryRosterService
from legacy_planner.modules.profile import services as profile_services


class TestTTLCache:

    def test_set_get_expire(self, cache, clock):
        cache.set("k", {"v": 1})
        assert cache.get("k") == {"v": 1}

        clock.advance(299)
        assert cache.get("k") == {"v": 1}

        clock.advance(2)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_invalidate_single_and_all(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.invalidate("a") == 1
        assert cache.invalidate("a") == 0
        assert cache.get("b") == 2
        assert cache.invalidate() == 1
        assert cache.get("b") is None

    def test_stats(self, cache, clock):
        cache.set("short", 1, ttl=10)
        cache.set("long", 2)
        clock.advance(20)

        stats = cache.get_stats()
        assert stats["total_entries"] == 2
        assert stats["active_entries"] == 1
        assert stats["expired_entries"] == 1


class TestMutationNotifier:

    def test_subscribers_called_in_order(self):
        notifier = MutationNotifier()
        calls = []
        notifier.subscribe(lambda pid: calls.append(("first", pid)))
        notifier.subscribe(lambda pid: calls.append(("second", pid)))

        notifier.on_mutated("p1")

        assert calls == [("first", "p1"), ("second", "p1")]

    def test_unsubscribe_inside_callback(self):
        notifier = MutationNotifier()
        calls = []

        def once(pid):
            calls.append(pid)
            unsubscribe()

        unsubscribe = notifier.subscribe(once)
        notifier.on_mutated("p1")
        notifier.on_mutated("p2")

        assert calls == ["p1"]

    def test_failing_subscriber_is_isolated(self, caplog):
        notifier = MutationNotifier()
        calls = []

        def broken(pid):
            raise RuntimeError("listener bug")

        notifier.subscribe(broken)
        notifier.subscribe(calls.append)

        with caplog.at_level("ERROR", logger="legacy_planner.core.events"):
            notifier.on_mutated("p1")

        assert calls == ["p1"]
        assert "failed for profile p1" in caplog.text


class TestProfileFlags:

    def test_unknown_flag_rejected(self, db, married_profile):
        with pytest.raises(ValidationError):
            profile_services.update_profile_flags(db, married_profile.id, is_wealthy=True)

    def test_missing_profile(self, db):
        with pytest.raises(ProfileNotFoundError):
            profile_services.update_profile_flags(db, "missing", assets_added=True)

    def test_update_notifies(self, db, married_profile, notifier, mutations):
        profile_services.update_profile_flags(
            db, married_profile.id, notifier=notifier, has_beneficiaries=True
        )

        assert profile_services.get_completion_flags(db, married_profile.id).has_beneficiaries is True
        assert mutations == [married_profile.id]


class TestStoreErrors:

    def test_unreachable_store_raises_transient_error(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT 1", {}, Exception("could not connect to server"))
        roster = BeneficiaryRosterService(db, cache=TTLCache())

        with pytest.raises(TransientIOError) as exc_info:
            roster.get_roster("p1")

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert db.query.call_count == 1
