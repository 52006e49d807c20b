"""
Local Raffle Runner
Deploys a raffle on a development network and keeps it cycling:
demo players enter, the keeper closes rounds, the mock oracle fulfills them
"""

import asyncio
import logging
import sys

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from utils.logging_config import log_error, setup_logging
from utils.redis_publisher import RaffleRedisPublisher

from . import config
from .database import RaffleStore, setup_raffle_database
from .deploy import deploy_mocks, deploy_raffle
from .errors import LedgerError, RaffleError, VRFCoordinatorError
from .events import WINNER_PICKED, EventLog
from .keeper import UpkeepKeeper
from .ledger import Ledger
from .networks import get_network_config
from .state import RaffleState

logger = logging.getLogger(__name__)


class LocalRaffle:
    """Everything wired together for a development network"""

    def __init__(self, raffle, coordinator, ledger, players):
        self.raffle = raffle
        self.coordinator = coordinator
        self.ledger = ledger
        self.players = players

    def enter_players(self):
        """Enter every demo player who can still afford a ticket"""
        entered = 0
        if self.raffle.get_raffle_state() != RaffleState.OPEN:
            return entered
        fee = self.raffle.get_entrance_fee()
        for player in self.players:
            if self.ledger.balance_of(player) < fee:
                continue
            try:
                self.raffle.enter_raffle(player, fee)
                entered += 1
            except (RaffleError, LedgerError) as e:
                logger.warning(f"Player {player} could not enter: {e}")
        return entered

    def fulfill_pending(self):
        return self.coordinator.fulfill_pending([self.raffle])


def build_local_raffle(network_name="hardhat", db_engine=None, publisher=None, clock=None,
                       player_count=config.LOCAL_PLAYER_COUNT, server_seed=None):
    """
    Deploy a raffle with a mock coordinator and funded demo players

    Args:
        network_name: Development network name
        db_engine: SQLAlchemy engine for persistence (optional)
        publisher: RaffleRedisPublisher for events (optional)
        clock: Time source (optional)
        player_count: Number of funded demo players
        server_seed: Mock coordinator seed (optional)

    Returns:
        LocalRaffle
    """
    network = get_network_config(name=network_name)
    if not network.is_development:
        raise ValueError(f"{network.name} is not a development network")

    store = None
    if db_engine is not None:
        setup_raffle_database(db_engine)
        store = RaffleStore(db_engine)

    ledger = Ledger()
    deployer = ledger.create_account("deployer")
    coordinator = deploy_mocks(network, server_seed=server_seed)
    raffle = deploy_raffle(
        ledger,
        network,
        vrf_coordinator=coordinator,
        store=store,
        event_log=EventLog(publisher=publisher),
        clock=clock,
        deployer=deployer,
    )

    players = [
        ledger.create_account(f"player-{i}", balance=config.LOCAL_PLAYER_FUNDING)
        for i in range(player_count)
    ]
    return LocalRaffle(raffle, coordinator, ledger, players)


async def run_local_raffle(local, keeper_interval=config.KEEPER_CHECK_INTERVAL,
                           oracle_interval=config.ORACLE_POLL_INTERVAL, max_rounds=None):
    """
    Cycle rounds until ``max_rounds`` winners were paid (forever if None)

    Returns:
        int: Number of rounds paid out
    """
    paid = []
    local.raffle.events.subscribe(paid.append, event_name=WINNER_PICKED)

    keeper = UpkeepKeeper(local.raffle, check_interval=keeper_interval)
    keeper.start()
    try:
        while max_rounds is None or len(paid) < max_rounds:
            local.enter_players()
            local.fulfill_pending()
            await asyncio.sleep(oracle_interval)
    finally:
        await keeper.stop()
    return len(paid)


def main():
    """Console entry point"""
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)

    logger.info("🚀 Starting local raffle...")
    logger.info(f"📊 Using database: {config.DATABASE_URL.split('@')[-1]}")

    try:
        db_engine = create_engine(config.DATABASE_URL, pool_pre_ping=True)
        local = build_local_raffle(
            network_name=config.RAFFLE_NETWORK,
            db_engine=db_engine,
            publisher=RaffleRedisPublisher(config.REDIS_URL, channel=config.RAFFLE_EVENTS_CHANNEL),
        )
        local.raffle.events.subscribe(
            lambda event: logger.info(f"🏆 Round #{event.round_number} winner: {event.args['winner']}"),
            event_name=WINNER_PICKED,
        )
        asyncio.run(run_local_raffle(local))
    except KeyboardInterrupt:
        logger.info("👋 Shutting down")
    except (RaffleError, LedgerError, VRFCoordinatorError, SQLAlchemyError, ValueError, KeyError) as e:
        log_error(logger, e, "Local raffle failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
