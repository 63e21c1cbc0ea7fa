"""
Completion gate for the beneficiaries step.

The three input flags are maintained by the surrounding workflow through
profile.services.update_profile_flags; this module never derives them
from allocation rows. CompletionMonitor re-reads them whenever a profile
is reported as mutated.
"""

import logging
from typing import Callable, Dict, List

from legacy_planner.core.events import MutationNotifier
from legacy_planner.modules.estate_planning.types import CompletionFlags

logger = logging.getLogger(__name__)

CompletionListener = Callable[[str, bool], None]


def is_allocation_complete(flags: CompletionFlags) -> bool:
    """True only when beneficiaries exist and both assets and residue are fully allocated."""
    return bool(
        flags.has_beneficiaries
        and flags.assets_fully_allocated
        and flags.residue_fully_allocated
    )


class CompletionMonitor:
    """
    Keeps the completion state of profiles current.

    Args:
        notifier: Source of on_mutated(profile_id) events
        flags_loader: profile_id -> CompletionFlags, typically reading the profile row
    """

    def __init__(self, notifier: MutationNotifier, flags_loader: Callable[[str], CompletionFlags]):
        self._flags_loader = flags_loader
        self._state: Dict[str, bool] = {}
        self._listeners: List[CompletionListener] = []
        self._unsubscribe = notifier.subscribe(self._on_mutated)

    def add_listener(self, listener: CompletionListener) -> None:
        """listener(profile_id, is_complete) runs after every re-evaluation."""
        self._listeners.append(listener)

    def evaluate(self, profile_id: str) -> bool:
        """Reload the flags for a profile and cache the result."""
        complete = is_allocation_complete(self._flags_loader(profile_id))
        previous = self._state.get(profile_id)
        self._state[profile_id] = complete
        if previous is not None and previous != complete:
            logger.info(f"[COMPLETION] Profile {profile_id} complete: {previous} -> {complete}")
        return complete

    def forget(self, profile_id: str) -> None:
        """Drop the cached state of one profile, e.g. once it is deleted."""
        self._state.pop(profile_id, None)

    @property
    def tracked_profiles(self) -> int:
        return len(self._state)

    def is_complete(self, profile_id: str) -> bool:
        if profile_id not in self._state:
            return self.evaluate(profile_id)
        return self._state[profile_id]

    def close(self) -> None:
        """Stop listening for mutations and drop the cached per-profile state."""
        self._unsubscribe()
        self._state.clear()
        self._listeners.clear()

    def _on_mutated(self, profile_id: str) -> None:
        complete = self.evaluate(profile_id)
        for listener in list(self._listeners):
            listener(profile_id, complete)
