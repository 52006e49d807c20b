"""
Mock VRF Coordinator
Local randomness oracle for development networks and tests
"""

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from utils.provably_fair import derive_random_words, generate_server_seed

from . import config
from .errors import (
    InsufficientBalance,
    InvalidConsumer,
    InvalidRandomWords,
    InvalidSubscription,
    NonexistentRequest,
    RaffleError,
)
from .ledger import make_address

logger = logging.getLogger(__name__)


@dataclass
class Subscription:
    subscription_id: int
    owner: Optional[str] = None
    balance: int = 0
    consumers: Set[str] = field(default_factory=set)


@dataclass
class RandomnessRequest:
    request_id: int
    subscription_id: int
    key_hash: str
    request_confirmations: int
    callback_gas_limit: int
    num_words: int
    sender: str


class VRFCoordinatorMock:
    """
    Accepts randomness requests and fulfills them on demand.

    Random words are derived from the coordinator's server seed so every
    fulfillment can be re-verified with ``utils.provably_fair``.
    """

    def __init__(self, base_fee=config.BASE_FEE, gas_price_link=config.GAS_PRICE_LINK,
                 server_seed=None, address=None):
        self.base_fee = base_fee
        self.gas_price_link = gas_price_link
        self.server_seed = server_seed or generate_server_seed()
        self.address = address or make_address("vrf-coordinator-mock")

        self._subscriptions: Dict[int, Subscription] = {}
        self._requests: Dict[int, RandomnessRequest] = {}
        self._subscription_ids = itertools.count(1)
        self._request_ids = itertools.count(1)
        self._lock = threading.Lock()

        logger.info(f"🎲 Mock VRF coordinator deployed at {self.address} "
                    f"(base fee: {base_fee}, gas price link: {gas_price_link})")

    # Subscriptions

    def create_subscription(self, owner=None):
        with self._lock:
            subscription_id = next(self._subscription_ids)
            self._subscriptions[subscription_id] = Subscription(subscription_id, owner=owner)
        logger.info(f"Created VRF subscription #{subscription_id}")
        return subscription_id

    def fund_subscription(self, subscription_id, amount):
        if amount <= 0:
            raise ValueError(f"Funding amount must be positive, got {amount}")
        with self._lock:
            subscription = self._get_subscription(subscription_id)
            subscription.balance += amount
        logger.info(f"Funded VRF subscription #{subscription_id} with {amount}")

    def add_consumer(self, subscription_id, consumer):
        with self._lock:
            self._get_subscription(subscription_id).consumers.add(consumer)
        logger.info(f"Added consumer {consumer} to VRF subscription #{subscription_id}")

    def remove_consumer(self, subscription_id, consumer):
        with self._lock:
            subscription = self._get_subscription(subscription_id)
            if consumer not in subscription.consumers:
                raise InvalidConsumer(subscription_id, consumer)
            subscription.consumers.remove(consumer)

    def get_subscription(self, subscription_id):
        """
        Returns:
            dict: balance, owner and consumers of the subscription
        """
        subscription = self._get_subscription(subscription_id)
        return {
            'subscription_id': subscription.subscription_id,
            'owner': subscription.owner,
            'balance': subscription.balance,
            'consumers': sorted(subscription.consumers),
        }

    def _get_subscription(self, subscription_id):
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            raise InvalidSubscription(subscription_id)
        return subscription

    # Requests

    def request_random_words(self, key_hash, subscription_id, request_confirmations,
                             callback_gas_limit, num_words, sender):
        """
        Record a randomness request

        Returns:
            int: Request ID (1, 2, ...)
        """
        with self._lock:
            subscription = self._get_subscription(subscription_id)
            if sender not in subscription.consumers:
                raise InvalidConsumer(subscription_id, sender)

            request_id = next(self._request_ids)
            self._requests[request_id] = RandomnessRequest(
                request_id=request_id,
                subscription_id=subscription_id,
                key_hash=key_hash,
                request_confirmations=request_confirmations,
                callback_gas_limit=callback_gas_limit,
                num_words=num_words,
                sender=sender,
            )

        logger.info(f"📨 Random words requested: request #{request_id} from {sender} ({num_words} words)")
        return request_id

    def pending_request_ids(self) -> List[int]:
        return sorted(self._requests)

    def fulfill_random_words(self, request_id, consumer, random_words=None):
        """
        Deliver random words for a pending request to its consumer

        Args:
            request_id: Pending request ID
            consumer: Consumer object exposing ``address`` and ``fulfill_random_words``
            random_words: Override words (default: derived from the server seed)

        Returns:
            bool: True if the consumer accepted the words
        """
        with self._lock:
            request = self._requests.get(request_id)
            if request is None:
                raise NonexistentRequest(request_id)

            if random_words is None:
                random_words = derive_random_words(self.server_seed, request_id, request.num_words)
            elif len(random_words) != request.num_words:
                raise InvalidRandomWords(request.num_words, len(random_words))

            subscription = self._get_subscription(request.subscription_id)
            payment = self.base_fee + self.gas_price_link * request.callback_gas_limit
            if subscription.balance < payment:
                raise InsufficientBalance(request.subscription_id, subscription.balance, payment)

            subscription.balance -= payment
            del self._requests[request_id]

        try:
            consumer.fulfill_random_words(self.address, request_id, list(random_words))
            success = True
        except RaffleError as e:
            # The request is consumed either way
            logger.error(f"❌ Consumer {consumer.address} rejected request #{request_id}: {e}")
            success = False

        logger.info(f"✅ Random words fulfilled: request #{request_id} "
                    f"(payment: {payment}, success: {success})")
        return success

    def fulfill_pending(self, consumers):
        """
        Fulfill every pending request whose sender is among ``consumers``

        Returns:
            dict: request_id -> success
        """
        by_address = {consumer.address: consumer for consumer in consumers}
        results = {}
        for request_id in self.pending_request_ids():
            request = self._requests.get(request_id)
            if request is None or request.sender not in by_address:
                continue
            results[request_id] = self.fulfill_random_words(request_id, by_address[request.sender])
        return results
