"""
Profile mutation notifications.

Services that change beneficiary, allocation or profile-flag data call
on_mutated(profile_id); anything that derives state from those rows
(for example the completion monitor) subscribes and re-reads.
"""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

MutationCallback = Callable[[str], None]


class MutationNotifier:
    """Synchronous observer list keyed on nothing but the profile id."""

    def __init__(self):
        self._subscribers: List[MutationCallback] = []

    def subscribe(self, callback: MutationCallback) -> Callable[[], None]:
        """
        Register a callback.

        Returns:
            A function that removes the subscription when called.
        """
        self._subscribers.append(callback)
        logger.debug(f"Subscriber registered: {getattr(callback, '__qualname__', callback)}")

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def on_mutated(self, profile_id: str) -> None:
        """
        Tell every subscriber the profile's data changed.

        Runs after the writer has committed, so a failing subscriber is
        logged and skipped; it never fails the write that triggered it.
        """
        logger.debug(f"Profile {profile_id} mutated, notifying {len(self._subscribers)} subscriber(s)")
        # Copy so a callback may unsubscribe itself
        for callback in list(self._subscribers):
            try:
                callback(profile_id)
            except Exception:
                logger.exception(
                    f"Subscriber {getattr(callback, '__qualname__', callback)} failed for profile {profile_id}"
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


# Application-wide notifier
mutation_notifier = MutationNotifier()


def get_notifier() -> MutationNotifier:
    """
    Dependency that provides the application notifier.
    Tests override it to observe or isolate mutation events.
    """
    return mutation_notifier
