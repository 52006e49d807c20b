"""
Shared fixtures for raffle engine tests
"""

import pytest
from sqlalchemy import create_engine

from raffle_engine.database import RaffleStore, setup_raffle_database
from raffle_engine.deploy import deploy_mocks, deploy_raffle
from raffle_engine.events import EventLog
from raffle_engine.ledger import Ledger
from raffle_engine.networks import get_network_config

PLAYER_FUNDING = 10 ** 18

NETWORK_ENV_OVERRIDES = [
    "RAFFLE_NETWORK",
    "RAFFLE_ENTRANCE_FEE",
    "RAFFLE_INTERVAL",
    "RAFFLE_SUBSCRIPTION_ID",
    "RAFFLE_CALLBACK_GAS_LIMIT",
    "RAFFLE_GAS_LANE",
    "RAFFLE_VRF_COORDINATOR",
]


class FakeClock:
    """Manually advanced time source"""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_network_env(monkeypatch):
    for name in NETWORK_ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def network():
    return get_network_config(name="hardhat")


@pytest.fixture
def coordinator(network):
    return deploy_mocks(network, server_seed="test-seed")


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def db_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'raffle.db'}")
    setup_raffle_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine):
    return RaffleStore(db_engine)


@pytest.fixture
def raffle(ledger, network, coordinator, event_log, clock):
    return deploy_raffle(ledger, network, vrf_coordinator=coordinator, event_log=event_log, clock=clock)


@pytest.fixture
def stored_raffle(ledger, network, coordinator, store, clock):
    return deploy_raffle(ledger, network, vrf_coordinator=coordinator, store=store, clock=clock)


@pytest.fixture
def players(ledger):
    return [ledger.create_account(f"player-{i}", balance=PLAYER_FUNDING) for i in range(5)]


def open_round_ready_for_upkeep(raffle, clock, entrants):
    """Enter each address once and let the interval pass"""
    for entrant in entrants:
        raffle.enter_raffle(entrant, raffle.get_entrance_fee())
    clock.advance(raffle.get_interval() + 1)
