"""
Tests for the mock VRF coordinator
"""

import pytest

from raffle_engine import config
from raffle_engine.errors import (
    InsufficientBalance,
    InvalidConsumer,
    InvalidRandomWords,
    InvalidSubscription,
    NonexistentRequest,
)
from raffle_engine.vrf_coordinator import VRFCoordinatorMock
from utils.provably_fair import verify_random_words


class RecordingConsumer:
    def __init__(self, address):
        self.address = address
        self.fulfilled = []

    def fulfill_random_words(self, caller, request_id, random_words):
        self.fulfilled.append((caller, request_id, random_words))


@pytest.fixture
def mock():
    return VRFCoordinatorMock(server_seed="seed")


@pytest.fixture
def consumer():
    return RecordingConsumer("0xconsumer")


@pytest.fixture
def subscription_id(mock, consumer):
    subscription_id = mock.create_subscription(owner="0xowner")
    mock.fund_subscription(subscription_id, config.SUBSCRIPTION_FUND_AMOUNT)
    mock.add_consumer(subscription_id, consumer.address)
    return subscription_id


def request(mock, subscription_id, sender, num_words=1, callback_gas_limit=500000):
    return mock.request_random_words("0xlane", subscription_id, 3, callback_gas_limit, num_words, sender=sender)


class TestSubscriptions:
    def test_ids_are_sequential(self, mock):
        assert mock.create_subscription() == 1
        assert mock.create_subscription() == 2

    def test_fund_and_describe(self, mock, subscription_id, consumer):
        info = mock.get_subscription(subscription_id)
        assert info['balance'] == config.SUBSCRIPTION_FUND_AMOUNT
        assert info['owner'] == "0xowner"
        assert info['consumers'] == [consumer.address]

    def test_unknown_subscription(self, mock):
        with pytest.raises(InvalidSubscription):
            mock.fund_subscription(42, 1)
        with pytest.raises(InvalidSubscription):
            mock.get_subscription(42)

    def test_funding_must_be_positive(self, mock, subscription_id):
        with pytest.raises(ValueError):
            mock.fund_subscription(subscription_id, 0)

    def test_remove_unknown_consumer(self, mock, subscription_id):
        with pytest.raises(InvalidConsumer):
            mock.remove_consumer(subscription_id, "0xstranger")


class TestRequests:
    def test_request_ids_start_at_one(self, mock, subscription_id, consumer):
        assert request(mock, subscription_id, consumer.address) == 1
        assert request(mock, subscription_id, consumer.address) == 2
        assert mock.pending_request_ids() == [1, 2]

    def test_only_registered_consumers_can_request(self, mock, subscription_id):
        with pytest.raises(InvalidConsumer):
            request(mock, subscription_id, "0xstranger")

    def test_request_needs_subscription(self, mock, consumer):
        with pytest.raises(InvalidSubscription):
            request(mock, 7, consumer.address)


class TestFulfillment:
    def test_delivers_verifiable_words_and_charges_subscription(self, mock, subscription_id, consumer):
        request_id = request(mock, subscription_id, consumer.address, num_words=2)

        assert mock.fulfill_random_words(request_id, consumer) is True

        caller, fulfilled_id, words = consumer.fulfilled[0]
        assert caller == mock.address
        assert fulfilled_id == request_id
        assert len(words) == 2
        assert verify_random_words("seed", request_id, words)
        expected_payment = config.BASE_FEE + config.GAS_PRICE_LINK * 500000
        assert mock.get_subscription(subscription_id)['balance'] == config.SUBSCRIPTION_FUND_AMOUNT - expected_payment
        assert mock.pending_request_ids() == []

    def test_override_words(self, mock, subscription_id, consumer):
        request_id = request(mock, subscription_id, consumer.address)
        mock.fulfill_random_words(request_id, consumer, [7])
        assert consumer.fulfilled[0][2] == [7]

    def test_override_length_must_match(self, mock, subscription_id, consumer):
        request_id = request(mock, subscription_id, consumer.address)
        with pytest.raises(InvalidRandomWords):
            mock.fulfill_random_words(request_id, consumer, [1, 2])
        assert mock.pending_request_ids() == [request_id]

    def test_nonexistent_request(self, mock, consumer):
        with pytest.raises(NonexistentRequest, match="nonexistent request"):
            mock.fulfill_random_words(1, consumer)

    def test_request_fulfilled_only_once(self, mock, subscription_id, consumer):
        request_id = request(mock, subscription_id, consumer.address)
        mock.fulfill_random_words(request_id, consumer)
        with pytest.raises(NonexistentRequest):
            mock.fulfill_random_words(request_id, consumer)
        assert len(consumer.fulfilled) == 1

    def test_underfunded_subscription(self, consumer):
        mock = VRFCoordinatorMock(server_seed="seed")
        subscription_id = mock.create_subscription()
        mock.fund_subscription(subscription_id, config.BASE_FEE)
        mock.add_consumer(subscription_id, consumer.address)
        request_id = request(mock, subscription_id, consumer.address)

        with pytest.raises(InsufficientBalance):
            mock.fulfill_random_words(request_id, consumer)

        assert consumer.fulfilled == []
        assert mock.pending_request_ids() == [request_id]

    def test_fulfill_pending_only_for_known_consumers(self, mock, subscription_id, consumer):
        other = RecordingConsumer("0xother")
        mock.add_consumer(subscription_id, other.address)
        first = request(mock, subscription_id, consumer.address)
        second = request(mock, subscription_id, other.address)

        results = mock.fulfill_pending([consumer])

        assert results == {first: True}
        assert mock.pending_request_ids() == [second]
        assert other.fulfilled == []
