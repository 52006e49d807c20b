"""
Raffle Engine Configuration
All configurable parameters for the raffle engine and its local tooling
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Network selection (see networks.py for the per-network constructor parameters)
RAFFLE_NETWORK = os.getenv("RAFFLE_NETWORK", "hardhat").lower()

# Database (round state + event history)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///raffle.db")
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Event notifications (disabled when unset)
REDIS_URL = os.getenv("REDIS_URL", "")
RAFFLE_EVENTS_CHANNEL = os.getenv("RAFFLE_EVENTS_CHANNEL", "raffle:events")

# Randomness request parameters fixed by the engine
REQUEST_CONFIRMATIONS = 3
NUM_WORDS = 1

# Mock VRF coordinator (development networks only)
LINK = 10 ** 18
BASE_FEE = LINK // 4                 # 0.25 LINK charged per fulfilled request
GAS_PRICE_LINK = 10 ** 9             # LINK per gas unit of the callback
SUBSCRIPTION_FUND_AMOUNT = 30 * LINK

# Currency unit used for entrance fees and payouts
ETHER = 10 ** 18

# Update intervals (in seconds)
KEEPER_CHECK_INTERVAL = float(os.getenv("KEEPER_CHECK_INTERVAL", "5"))
ORACLE_POLL_INTERVAL = float(os.getenv("ORACLE_POLL_INTERVAL", "2"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE") or None

# Local runner: funded demo players entering every round
LOCAL_PLAYER_COUNT = int(os.getenv("LOCAL_PLAYER_COUNT", "3"))
LOCAL_PLAYER_FUNDING = 10 * ETHER
