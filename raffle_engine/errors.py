"""
Raffle Engine Errors
Every failure is raised synchronously to the failing call and leaves state untouched
"""


class RaffleError(Exception):
    """Base class for errors raised by the raffle engine"""


class InsufficientPayment(RaffleError):
    def __init__(self, value, entrance_fee):
        self.value = value
        self.entrance_fee = entrance_fee
        super().__init__(f"Payment of {value} is below the entrance fee of {entrance_fee}")


class RoundNotOpen(RaffleError):
    def __init__(self, raffle_state):
        self.raffle_state = raffle_state
        super().__init__(f"Raffle is not open (state: {raffle_state.name})")


class UpkeepNotNeeded(RaffleError):
    """Raised by perform_upkeep when the upkeep conditions do not hold"""

    def __init__(self, balance, num_players, raffle_state):
        self.balance = balance
        self.num_players = num_players
        self.raffle_state = raffle_state
        super().__init__(
            f"Upkeep not needed (balance: {balance}, players: {num_players}, state: {raffle_state.name})"
        )


class UnauthorizedCaller(RaffleError):
    def __init__(self, caller, expected):
        self.caller = caller
        self.expected = expected
        super().__init__(f"Only the VRF coordinator {expected} can fulfill, got {caller}")


class UnknownRequest(RaffleError):
    def __init__(self, request_id, pending_request_id):
        self.request_id = request_id
        self.pending_request_id = pending_request_id
        super().__init__(f"Request {request_id} does not match pending request {pending_request_id}")


class PayoutTransferFailed(RaffleError):
    """
    The winner could not receive the pot.

    The round stays in AWAITING_RANDOMNESS with its players and balance
    intact; an operator has to intervene.
    """

    def __init__(self, winner, amount, reason=None):
        self.winner = winner
        self.amount = amount
        self.reason = reason
        super().__init__(f"Transfer of {amount} to winner {winner} failed: {reason}")


# Ledger errors

class LedgerError(Exception):
    """Base class for value transfer failures"""


class InsufficientFunds(LedgerError):
    def __init__(self, address, balance, amount):
        self.address = address
        self.balance = balance
        self.amount = amount
        super().__init__(f"Account {address} holds {balance}, cannot send {amount}")


class TransferRejected(LedgerError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Account {address} cannot receive funds")


# VRF coordinator errors

class VRFCoordinatorError(Exception):
    """Base class for errors raised by the mock VRF coordinator"""


class InvalidSubscription(VRFCoordinatorError):
    def __init__(self, subscription_id):
        self.subscription_id = subscription_id
        super().__init__(f"Invalid subscription {subscription_id}")


class InvalidConsumer(VRFCoordinatorError):
    def __init__(self, subscription_id, consumer):
        self.subscription_id = subscription_id
        self.consumer = consumer
        super().__init__(f"{consumer} is not a consumer of subscription {subscription_id}")


class NonexistentRequest(VRFCoordinatorError):
    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__("nonexistent request")


class InvalidRandomWords(VRFCoordinatorError):
    def __init__(self, expected, got):
        self.expected = expected
        self.got = got
        super().__init__(f"Expected {expected} random words, got {got}")


class InsufficientBalance(VRFCoordinatorError):
    def __init__(self, subscription_id, balance, payment):
        self.subscription_id = subscription_id
        self.balance = balance
        self.payment = payment
        super().__init__(f"Subscription {subscription_id} holds {balance}, fulfillment costs {payment}")
