"""
Value Ledger
Holds account balances and moves value between them (entry fees, payouts)
"""

import hashlib
import itertools
import logging
import secrets
import threading

from .errors import InsufficientFunds, TransferRejected

logger = logging.getLogger(__name__)


def make_address(label):
    """Derive a deterministic 20-byte hex address from a label"""
    return "0x" + hashlib.sha256(str(label).encode()).hexdigest()[:40]


class Ledger:
    """Manages balances for all accounts"""

    def __init__(self):
        self._balances = {}
        self._rejecting = set()
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def create_account(self, label=None, balance=0):
        """
        Create a new account

        Args:
            label: Optional label the address is derived from (random address if None)
            balance: Starting balance

        Returns:
            str: The new account address
        """
        with self._lock:
            if label is None:
                address = "0x" + secrets.token_hex(20)
            else:
                address = make_address(label)
            if address in self._balances:
                # Same label twice gets a fresh address
                address = make_address(f"{label}-{next(self._counter)}")
            self._balances[address] = balance
        logger.debug(f"Created account {address} (label: {label}, balance: {balance})")
        return address

    def set_balance(self, address, balance):
        if balance < 0:
            raise ValueError(f"Balance must be >= 0, got {balance}")
        with self._lock:
            self._balances[address] = balance

    def balance_of(self, address):
        return self._balances.get(address, 0)

    def reject_incoming(self, address):
        """Make an account unable to receive funds"""
        with self._lock:
            self._rejecting.add(address)

    def accept_incoming(self, address):
        with self._lock:
            self._rejecting.discard(address)

    def transfer(self, sender, recipient, amount):
        """
        Move value from one account to another (all or nothing)

        Raises:
            ValueError: Negative amount
            InsufficientFunds: Sender balance below amount
            TransferRejected: Recipient cannot receive funds
        """
        if amount < 0:
            raise ValueError(f"Transfer amount must be >= 0, got {amount}")

        with self._lock:
            balance = self._balances.get(sender, 0)
            if balance < amount:
                raise InsufficientFunds(sender, balance, amount)
            if recipient in self._rejecting:
                raise TransferRejected(recipient)

            self._balances[sender] = balance - amount
            self._balances[recipient] = self._balances.get(recipient, 0) + amount

        logger.debug(f"Transferred {amount} from {sender} to {recipient}")
