"""
Raffle Event Log
Notifications emitted by the engine once a state change has committed
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

RAFFLE_ENTER = "raffle_enter"
REQUESTED_RAFFLE_WINNER = "requested_raffle_winner"
WINNER_PICKED = "raffle_winner_picked"



@dataclass
class RaffleEvent:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    seq: int = 0
    round_number: int = 0
    emitted_at: float = 0.0


class EventLog:
    """In-memory event log with listeners and an optional Redis publisher.

    Listeners registered with ``subscribe`` fire for every matching event;
    ``once`` listeners are removed after their first call. Listener errors
    are logged and do not affect the engine, whose state change has already
    been committed when an event is emitted.
    """

    def __init__(self, publisher=None):
        self.publisher = publisher
        self._mem: List[RaffleEvent] = []
        self._listeners: List[tuple] = []

    def subscribe(self, callback: Callable[[RaffleEvent], None], event_name: Optional[str] = None,
                  once: bool = False) -> Callable[[], None]:
        """Register a listener. Returns a function that removes it."""
        entry = (event_name, callback, once)
        self._listeners.append(entry)

        def unsubscribe():
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def once(self, event_name: str, callback: Callable[[RaffleEvent], None]) -> Callable[[], None]:
        return self.subscribe(callback, event_name=event_name, once=True)

    def emit(self, event: RaffleEvent, raffle_address: Optional[str] = None) -> None:
        self._mem.append(event)

        for entry in list(self._listeners):
            event_name, callback, once = entry
            if event_name is not None and event_name != event.name:
                continue
            if once and entry in self._listeners:
                self._listeners.remove(entry)
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event listener failed for {event.name} #{event.seq}: {e}", exc_info=True)

        if self.publisher is not None and self.publisher.enabled:
            self.publisher.publish_raffle_event(raffle_address, event)

    def filter(self, event_name: Optional[str] = None) -> List[RaffleEvent]:
        if event_name is None:
            return list(self._mem)
        return [e for e in self._mem if e.name == event_name]

    def last(self, event_name: Optional[str] = None) -> Optional[RaffleEvent]:
        events = self.filter(event_name)
        return events[-1] if events else None

    def __len__(self) -> int:
        return len(self._mem)

    def __iter__(self) -> Iterator[RaffleEvent]:
        return iter(self._mem)

    def __getitem__(self, index):
        return self._mem[index]
