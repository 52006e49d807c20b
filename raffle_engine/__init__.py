"""
Raffle Engine Package
Fixed-fee lottery rounds closed by an upkeep keeper and settled with VRF randomness
"""

__version__ = "1.0.0"

# Export main components
from .raffle import Raffle
from .state import RaffleState, RoundState
from .ledger import Ledger
from .events import EventLog, RaffleEvent
from .vrf_coordinator import VRFCoordinatorMock
from .keeper import UpkeepKeeper, setup_upkeep_keeper
from .deploy import deploy_mocks, deploy_raffle
from .networks import NetworkConfig, get_network_config

__all__ = [
    'Raffle',
    'RaffleState',
    'RoundState',
    'Ledger',
    'EventLog',
    'RaffleEvent',
    'VRFCoordinatorMock',
    'UpkeepKeeper',
    'setup_upkeep_keeper',
    'deploy_mocks',
    'deploy_raffle',
    'NetworkConfig',
    'get_network_config',
]
