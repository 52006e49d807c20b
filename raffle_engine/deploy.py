"""
Raffle Deployment
Deploys the mock VRF coordinator on development chains and the raffle itself
"""

import logging

from . import config
from .raffle import Raffle
from .vrf_coordinator import VRFCoordinatorMock

logger = logging.getLogger(__name__)


def deploy_mocks(network, server_seed=None):
    """
    Deploy a mock VRF coordinator when running on a development chain

    Args:
        network: NetworkConfig
        server_seed: Seed for the mock's random words (optional)

    Returns:
        VRFCoordinatorMock or None on live networks
    """
    if not network.is_development:
        return None

    logger.info(f"DEPLOY-MOCKS: local network {network.name} detected, deploying mocks")
    coordinator = VRFCoordinatorMock(
        base_fee=config.BASE_FEE,
        gas_price_link=config.GAS_PRICE_LINK,
        server_seed=server_seed,
    )
    logger.info("DEPLOY-MOCKS: mocks deployed successfully!")
    return coordinator


def deploy_raffle(ledger, network, vrf_coordinator=None, store=None, event_log=None, clock=None,
                  fund_amount=config.SUBSCRIPTION_FUND_AMOUNT, deployer=None):
    """
    Deploy a raffle with the network's constructor parameters

    On development chains a subscription is created on the mock coordinator,
    funded and given the raffle as consumer. Live networks use the configured
    subscription, funded and registered out of band.

    Args:
        ledger: Ledger for fee custody and payouts
        network: NetworkConfig
        vrf_coordinator: Coordinator handle (deployed as a mock on development chains if None)
        store: RaffleStore (optional)
        event_log: EventLog (optional)
        clock: Time source (optional)
        fund_amount: LINK funding for a new development subscription
        deployer: Address owning the subscription (optional)

    Returns:
        Raffle
    """
    if vrf_coordinator is None:
        if not network.is_development:
            raise ValueError(f"A VRF coordinator handle for {network.vrf_coordinator} "
                             f"is required to deploy on {network.name}")
        vrf_coordinator = deploy_mocks(network)

    if network.is_development:
        subscription_id = vrf_coordinator.create_subscription(owner=deployer)
        vrf_coordinator.fund_subscription(subscription_id, fund_amount)
    else:
        subscription_id = network.subscription_id

    logger.info(f"DEPLOY-RAFFLE: chain ID is {network.chain_id}")
    raffle = Raffle(
        vrf_coordinator=vrf_coordinator,
        entrance_fee=network.entrance_fee,
        gas_lane=network.gas_lane,
        subscription_id=subscription_id,
        callback_gas_limit=network.callback_gas_limit,
        interval=network.interval,
        ledger=ledger,
        store=store,
        event_log=event_log,
        clock=clock,
    )

    if network.is_development:
        vrf_coordinator.add_consumer(subscription_id, raffle.address)

    logger.info(f"DEPLOY-RAFFLE: raffle deployed at {raffle.address} (subscription #{subscription_id})")
    return raffle
