"""
Raffle Upkeep Keeper
Periodically checks the raffle and closes the round when upkeep is needed
"""

import asyncio
import logging

from . import config
from .errors import UpkeepNotNeeded

logger = logging.getLogger(__name__)


class UpkeepKeeper:
    """Drives a raffle's check_upkeep / perform_upkeep cycle"""

    def __init__(self, raffle, check_interval=config.KEEPER_CHECK_INTERVAL, name="keeper"):
        """
        Initialize upkeep keeper

        Args:
            raffle: Raffle to keep
            check_interval: Seconds between upkeep checks
            name: Caller name reported to the raffle
        """
        if check_interval <= 0:
            raise ValueError(f"check_interval must be positive, got {check_interval}")

        self.raffle = raffle
        self.check_interval = check_interval
        self.name = name
        self.performed = 0
        self._task = None
        self._stopping = None

        logger.info(f"⏱️ Upkeep keeper initialized for {raffle.address} (every {check_interval}s)")

    def check_and_perform(self):
        """
        Run one upkeep cycle

        Returns:
            dict: Upkeep info or None if no upkeep was performed
        """
        upkeep_needed, perform_data = self.raffle.check_upkeep(b"")
        if not upkeep_needed:
            logger.debug(f"No upkeep needed for {self.raffle.address}")
            return None

        round_number = self.raffle.get_round_number()
        try:
            request_id = self.raffle.perform_upkeep(perform_data, caller=self.name)
        except UpkeepNotNeeded as e:
            # Another caller closed the round between check and perform
            logger.info(f"Upkeep already performed by someone else: {e}")
            return None

        self.performed += 1
        return {
            'raffle_address': self.raffle.address,
            'round_number': round_number,
            'request_id': request_id,
            'players': self.raffle.get_number_of_players(),
            'balance': self.raffle.get_balance(),
        }

    async def run(self):
        """Check for upkeep every ``check_interval`` seconds until stopped"""
        if self._stopping is None:
            self._stopping = asyncio.Event()
        logger.info("✅ Upkeep keeper loop started")
        while not self._stopping.is_set():
            try:
                info = self.check_and_perform()
            except Exception as e:
                logger.error(f"❌ Upkeep check failed for {self.raffle.address}: {e}", exc_info=True)
                info = None
            if info:
                logger.info(f"🔔 Upkeep performed for round #{info['round_number']} "
                            f"(request #{info['request_id']}, {info['players']} players)")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.check_interval)
            except asyncio.TimeoutError:
                pass
        logger.info("🛑 Upkeep keeper loop stopped")

    def start(self):
        """Start the keeper loop as a task on the running event loop"""
        if self._task is None or self._task.done():
            self._stopping = asyncio.Event()
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self):
        if self._stopping is not None:
            self._stopping.set()
        if self._task is not None:
            await self._task
            self._task = None
        self._stopping = None


async def setup_upkeep_keeper(raffle, check_interval=config.KEEPER_CHECK_INTERVAL):
    """
    Setup automatic upkeep for a raffle as a background task

    Args:
        raffle: Raffle to keep
        check_interval: Seconds between checks

    Returns:
        UpkeepKeeper instance (already started)
    """
    keeper = UpkeepKeeper(raffle, check_interval=check_interval)
    keeper.start()
    return keeper
