"""
Raffle Engine
Entry fee custody, upkeep-gated round closing and VRF-based winner payout
"""

import logging
import threading
import time

from . import config
from .errors import (
    InsufficientPayment,
    LedgerError,
    PayoutTransferFailed,
    RoundNotOpen,
    UnauthorizedCaller,
    UnknownRequest,
    UpkeepNotNeeded,
)
from .events import (
    RAFFLE_ENTER,
    REQUESTED_RAFFLE_WINNER,
    WINNER_PICKED,
    EventLog,
    RaffleEvent,
)
from .state import RaffleState, RoundState

logger = logging.getLogger(__name__)


class Raffle:
    """
    A lottery that pays its whole balance to one randomly drawn entrant per round.

    Rounds cycle OPEN -> AWAITING_RANDOMNESS -> OPEN:

    * ``enter_raffle`` takes entries while OPEN
    * ``perform_upkeep`` (anyone, once ``check_upkeep`` holds) closes entries
      and requests randomness from the VRF coordinator
    * ``fulfill_random_words`` (coordinator only) picks the winner, pays
      out and opens the next round

    Every entry point runs under one lock and commits all of its changes or
    none of them. With a store, the changes and the emitted events are
    written in a single transaction.
    """

    def __init__(self, vrf_coordinator, entrance_fee, gas_lane, subscription_id, callback_gas_limit,
                 interval, ledger, store=None, event_log=None, clock=None, address=None):
        """
        Args:
            vrf_coordinator: Coordinator handle (``address``, ``request_random_words``)
            entrance_fee: Minimum payment for one ticket
            gas_lane: VRF key hash
            subscription_id: VRF subscription funding the requests
            callback_gas_limit: Gas limit for the fulfillment callback
            interval: Minimum seconds between round start and upkeep
            ledger: Ledger holding the raffle's custody account
            store: RaffleStore for persistence (optional)
            event_log: EventLog receiving emitted events (optional)
            clock: Callable returning the current time in seconds (default: time.time)
            address: Existing raffle address to resume from the store (optional)
        """
        if entrance_fee <= 0:
            raise ValueError(f"entrance_fee must be positive, got {entrance_fee}")
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")

        self.vrf_coordinator = vrf_coordinator
        self.entrance_fee = entrance_fee
        self.gas_lane = gas_lane
        self.subscription_id = subscription_id
        self.callback_gas_limit = callback_gas_limit
        self.interval = interval
        self.ledger = ledger
        self.store = store
        self.events = event_log if event_log is not None else EventLog()
        self.clock = clock or time.time

        self._lock = threading.RLock()
        self.address = address or ledger.create_account()

        stored = store.load_round(self.address) if store else None
        if stored is not None:
            self._round = stored
            self._event_seq = store.count_events(self.address)
            logger.info(f"♻️ Resumed raffle {self.address} at round #{stored.round_number} "
                        f"({stored.raffle_state.name}, {len(stored.players)} players)")
        else:
            self._round = RoundState(last_timestamp=self.clock())
            self._event_seq = 0
            if store:
                with store.begin() as conn:
                    store.save_round(conn, self.address, self._round)
            logger.info(f"🎟️ Raffle deployed at {self.address} "
                        f"(entrance fee: {entrance_fee}, interval: {interval}s)")

    # Entry points

    def enter_raffle(self, sender, value):
        """
        Buy one ticket for the current round

        Args:
            sender: Address of the entrant
            value: Payment, moved into the raffle's custody

        Raises:
            InsufficientPayment: value below the entrance fee
            RoundNotOpen: the round is awaiting randomness
        """
        with self._lock:
            if value < self.entrance_fee:
                raise InsufficientPayment(value, self.entrance_fee)
            if self._round.raffle_state != RaffleState.OPEN:
                raise RoundNotOpen(self._round.raffle_state)

            new_round = self._round.copy()
            new_round.players.append(sender)
            new_round.balance += value

            self._commit(new_round, [(RAFFLE_ENTER, {'player': sender})], transfer=(sender, self.address, value))

        logger.info(f"🎫 {sender} entered round #{new_round.round_number} "
                    f"({len(new_round.players)} tickets, balance: {new_round.balance})")

    def check_upkeep(self, check_data=b""):
        """
        Check whether the round should be closed now

        True only when the round is OPEN, the interval has passed since the
        round started, and there is at least one player and a positive balance.

        Returns:
            tuple: (upkeep_needed, perform_data)
        """
        with self._lock:
            return self._upkeep_needed(), b""

    def perform_upkeep(self, perform_data=b"", caller=None):
        """
        Close entries and request randomness for the winner

        Anyone may call this; the upkeep conditions are re-checked here.

        Returns:
            int: The randomness request ID

        Raises:
            UpkeepNotNeeded: check_upkeep does not hold
        """
        with self._lock:
            if not self._upkeep_needed():
                raise UpkeepNotNeeded(self._round.balance, len(self._round.players), self._round.raffle_state)

            request_id = self.vrf_coordinator.request_random_words(
                self.gas_lane,
                self.subscription_id,
                config.REQUEST_CONFIRMATIONS,
                self.callback_gas_limit,
                config.NUM_WORDS,
                sender=self.address,
            )

            new_round = self._round.copy()
            new_round.raffle_state = RaffleState.AWAITING_RANDOMNESS
            new_round.pending_request_id = request_id

            self._commit(new_round, [(REQUESTED_RAFFLE_WINNER, {'request_id': request_id})])

        logger.info(f"🔒 Round #{new_round.round_number} closed by {caller or 'keeper'}, "
                    f"requested randomness (request #{request_id})")
        return request_id

    def fulfill_random_words(self, caller, request_id, random_words):
        """
        Pick the winner with the delivered randomness and pay out the pot

        Args:
            caller: Address of the caller, must be the VRF coordinator
            request_id: Request being fulfilled, must be the pending one
            random_words: Random values; the first one selects the winner

        Returns:
            str: Winner address

        Raises:
            UnauthorizedCaller: caller is not the VRF coordinator
            UnknownRequest: request_id is not the pending request
            PayoutTransferFailed: the winner cannot receive the pot
        """
        with self._lock:
            if caller != self.vrf_coordinator.address:
                logger.warning(f"🚨 Unauthorized fulfillment attempt from {caller} (request #{request_id})")
                raise UnauthorizedCaller(caller, self.vrf_coordinator.address)

            pending = self._round.pending_request_id
            if pending is None or request_id != pending:
                logger.warning(f"Ignoring fulfillment for unknown request #{request_id} (pending: {pending})")
                raise UnknownRequest(request_id, pending)

            if not random_words:
                raise ValueError("random_words must contain at least one value")

            players = self._round.players
            index_of_winner = random_words[0] % len(players)
            winner = players[index_of_winner]
            amount = self._round.balance
            closed_round = self._round.round_number

            new_round = RoundState(
                raffle_state=RaffleState.OPEN,
                players=[],
                balance=0,
                last_timestamp=self.clock(),
                pending_request_id=None,
                recent_winner=winner,
                round_number=closed_round + 1,
            )

            event_args = {'winner': winner, 'amount': amount, 'round_number': closed_round}
            try:
                self._commit(new_round, [(WINNER_PICKED, event_args)], transfer=(self.address, winner, amount))
            except LedgerError as e:
                logger.critical(f"💥 Payout of {amount} to {winner} failed for round #{closed_round}, "
                                f"raffle stuck awaiting randomness: {e}")
                raise PayoutTransferFailed(winner, amount, reason=str(e)) from e

        logger.info(f"🎉 Winner of round #{closed_round}: {winner} "
                    f"(ticket #{index_of_winner} of {len(players)}, paid {amount})")
        return winner

    def _commit(self, new_round, events, transfer=None):
        """
        Move value, store the round and make ``new_round`` current, all or nothing.

        ``transfer`` is a ``(sender, recipient, amount)`` ledger move. With a
        store, the round and its events are written in one transaction and the
        transfer runs inside it: a failing transfer rolls the transaction
        back, and a failing commit reverses the transfer. Either way the
        in-memory round stays untouched. Events are emitted only after the
        commit.
        """
        new_round.validate()

        emitted_at = self.clock()
        records = []
        for name, args in events:
            records.append(RaffleEvent(
                name=name,
                args=args,
                seq=self._event_seq + len(records),
                round_number=self._round.round_number,
                emitted_at=emitted_at,
            ))

        if self.store:
            transferred = False
            try:
                with self.store.begin() as conn:
                    self.store.save_round(conn, self.address, new_round, previous=self._round)
                    for record in records:
                        self.store.append_event(conn, self.address, record)
                    if transfer:
                        self.ledger.transfer(*transfer)
                        transferred = True
            except Exception as e:
                if transferred:
                    self._reverse_transfer(transfer, e)
                raise
        elif transfer:
            self.ledger.transfer(*transfer)

        self._round = new_round
        self._event_seq += len(records)
        for record in records:
            self.events.emit(record, raffle_address=self.address)

    def _reverse_transfer(self, transfer, error):
        """Send a transfer back after the store failed to commit its round"""
        sender, recipient, amount = transfer
        logger.error(f"⚠️ Store commit failed, reversing transfer of {amount} from {sender} to {recipient}: {error}")
        try:
            self.ledger.transfer(recipient, sender, amount)
        except LedgerError as e:
            # The commit error is re-raised by the caller
            logger.critical(f"💥 Could not reverse transfer of {amount} from {sender} to {recipient}, "
                            f"ledger and store disagree: {e}")

    def _upkeep_needed(self):
        round_state = self._round
        is_open = round_state.raffle_state == RaffleState.OPEN
        time_passed = (self.clock() - round_state.last_timestamp) >= self.interval
        has_players = len(round_state.players) > 0
        has_balance = round_state.balance > 0
        return is_open and time_passed and has_players and has_balance

    # Getters

    def get_entrance_fee(self):
        return self.entrance_fee

    def get_interval(self):
        return self.interval

    def get_raffle_state(self):
        return self._round.raffle_state

    def get_player(self, index):
        """Raises IndexError when no such ticket exists"""
        players = self._round.players
        if index < 0 or index >= len(players):
            raise IndexError(f"No player at index {index} ({len(players)} players)")
        return players[index]

    def get_players(self):
        return list(self._round.players)

    def get_number_of_players(self):
        return len(self._round.players)

    def get_recent_winner(self):
        return self._round.recent_winner

    def get_latest_timestamp(self):
        return self._round.last_timestamp

    def get_balance(self):
        return self._round.balance

    def get_pending_request_id(self):
        return self._round.pending_request_id

    def get_round_number(self):
        return self._round.round_number

    def get_num_words(self):
        return config.NUM_WORDS

    def get_request_confirmations(self):
        return config.REQUEST_CONFIRMATIONS

    def get_round_state(self):
        """Snapshot of the current round"""
        with self._lock:
            return self._round.copy()

    def get_event_history(self, event_name=None):
        """Emitted events, from the store when one is configured"""
        if self.store:
            return self.store.get_events(self.address, event_name)
        return self.events.filter(event_name)
