"""
Raffle Round State
The single mutable record owned by a raffle engine
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Optional


class RaffleState(IntEnum):
    """Phase of the current round"""
    OPEN = 0
    AWAITING_RANDOMNESS = 1


@dataclass
class RoundState:
    """State of the current raffle round"""
    raffle_state: RaffleState = RaffleState.OPEN
    players: List[str] = field(default_factory=list)
    balance: int = 0
    last_timestamp: float = 0.0
    pending_request_id: Optional[int] = None
    recent_winner: Optional[str] = None
    round_number: int = 1

    def copy(self) -> "RoundState":
        return replace(self, players=list(self.players))

    def validate(self):
        """Raise ValueError if the round violates a state invariant"""
        if self.balance < 0:
            raise ValueError(f"Negative balance: {self.balance}")
        if not self.players and self.balance != 0:
            raise ValueError(f"Balance {self.balance} held with no players")
        awaiting = self.raffle_state == RaffleState.AWAITING_RANDOMNESS
        if awaiting != (self.pending_request_id is not None):
            raise ValueError(
                f"State {self.raffle_state.name} inconsistent with pending request {self.pending_request_id}"
            )

