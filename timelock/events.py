"""
Withdrawal records and the best-effort channel that publishes them
"""

import logging
from dataclasses import dataclass, asdict
from typing import Callable, List

logger = logging.getLogger("timelock.events")

@dataclass(frozen=True)
class WithdrawalEvent:
    """Emitted once per vault, on its successful withdrawal"""
    vault_id: str
    amount: int
    when: int

    def as_tuple(self) -> tuple:
        return (self.amount, self.when)

    def to_dict(self) -> dict:
        return asdict(self)

Subscriber = Callable[[WithdrawalEvent], None]

class EventLog:
    """Records withdrawal events and notifies subscribers"""

    def __init__(self):
        self._events: List[WithdrawalEvent] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, event: WithdrawalEvent) -> None:
        """Record event; a failing subscriber is logged and skipped"""
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.warning("Subscriber %r failed on event for vault %s",
                               subscriber, event.vault_id[:16], exc_info=True)

    def events_for(self, vault_id: str) -> List[WithdrawalEvent]:
        return [e for e in self._events if e.vault_id == vault_id]

    def all_events(self) -> List[WithdrawalEvent]:
        return list(self._events)
