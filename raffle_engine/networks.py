"""
Network Configuration
Constructor parameters for the raffle on each supported network
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .config import ETHER

logger = logging.getLogger(__name__)

DEVELOPMENT_CHAINS = ["hardhat", "localhost"]

# Key hash of the 150 gwei lane on goerli
DEFAULT_GAS_LANE = "0x79d3d8832d904592c0bf9818b621522c988bb8b0c05cdc3b15aea1b6e8db0c15"


@dataclass(frozen=True)
class NetworkConfig:
    """Raffle deployment parameters for a single network"""
    name: str
    chain_id: int
    entrance_fee: int
    gas_lane: str
    subscription_id: int
    callback_gas_limit: int
    interval: int
    vrf_coordinator: Optional[str] = None  # None on development chains (mock is deployed)

    def __post_init__(self):
        """Validate configuration"""
        if not self.name:
            raise ValueError("name cannot be empty")
        if self.entrance_fee <= 0:
            raise ValueError("entrance_fee must be positive")
        if self.callback_gas_limit <= 0:
            raise ValueError("callback_gas_limit must be positive")
        if self.interval < 0:
            raise ValueError("interval must be >= 0")
        if not self.gas_lane.startswith("0x"):
            raise ValueError("gas_lane must be a 0x-prefixed key hash")
        if not self.is_development and not self.vrf_coordinator:
            raise ValueError(f"vrf_coordinator is required on live network {self.name}")

    @property
    def is_development(self):
        return self.name in DEVELOPMENT_CHAINS


NETWORK_CONFIG: Dict[int, NetworkConfig] = {
    5: NetworkConfig(
        name="goerli",
        chain_id=5,
        vrf_coordinator="0x2Ca8E0C643bDe4C2E08ab1fA0da3401AdAD7734D",
        entrance_fee=ETHER // 100,
        gas_lane=DEFAULT_GAS_LANE,
        subscription_id=0,
        callback_gas_limit=500000,
        interval=30,
    ),
    31337: NetworkConfig(
        name="hardhat",
        chain_id=31337,
        entrance_fee=ETHER // 100,
        gas_lane=DEFAULT_GAS_LANE,
        subscription_id=0,
        callback_gas_limit=500000,
        interval=30,
    ),
}


def is_development_chain(name):
    return name.lower() in DEVELOPMENT_CHAINS


def get_network_config(name=None, chain_id=None) -> NetworkConfig:
    """
    Get the raffle parameters for a network

    Args:
        name: Network name (default: RAFFLE_NETWORK env, then "hardhat")
        chain_id: Chain ID, takes precedence over name

    Environment overrides:
        RAFFLE_ENTRANCE_FEE, RAFFLE_INTERVAL, RAFFLE_SUBSCRIPTION_ID,
        RAFFLE_CALLBACK_GAS_LIMIT, RAFFLE_GAS_LANE, RAFFLE_VRF_COORDINATOR

    Raises:
        KeyError: Unknown network
    """
    if chain_id is not None:
        if chain_id not in NETWORK_CONFIG:
            raise KeyError(f"No raffle configuration for chain {chain_id}")
        network = NETWORK_CONFIG[chain_id]
    else:
        name = (name or os.getenv("RAFFLE_NETWORK", "hardhat")).lower()
        if name == "localhost":
            # Local node shares the hardhat chain id and parameters
            network = replace(NETWORK_CONFIG[31337], name="localhost")
        else:
            matches = [n for n in NETWORK_CONFIG.values() if n.name == name]
            if not matches:
                raise KeyError(f"No raffle configuration for network {name}")
            network = matches[0]

    overrides = {}
    env_fields = {
        "RAFFLE_ENTRANCE_FEE": ("entrance_fee", int),
        "RAFFLE_INTERVAL": ("interval", int),
        "RAFFLE_SUBSCRIPTION_ID": ("subscription_id", int),
        "RAFFLE_CALLBACK_GAS_LIMIT": ("callback_gas_limit", int),
        "RAFFLE_GAS_LANE": ("gas_lane", str),
        "RAFFLE_VRF_COORDINATOR": ("vrf_coordinator", str),
    }
    for env_name, (field_name, cast) in env_fields.items():
        value = os.getenv(env_name)
        if value:
            overrides[field_name] = cast(value)

    if overrides:
        logger.info(f"⚙️ Applying environment overrides to {network.name}: {sorted(overrides)}")
        network = replace(network, **overrides)

    logger.debug(f"Using network {network.name} (chain {network.chain_id})")
    return network
