"""
Database Schema and Store for the Raffle Engine
Persists the round state fields and the emitted event history
"""

import json
import logging

from sqlalchemy import inspect, text

from .events import RaffleEvent
from .state import RaffleState, RoundState

logger = logging.getLogger(__name__)

# Amounts are stored as TEXT: pots exceed the BIGINT range
RAFFLE_SCHEMA_SQL = """
-- ============================================
-- RAFFLE ENGINE DATABASE SCHEMA
-- ============================================

-- Current round, one row per deployed raffle
CREATE TABLE IF NOT EXISTS raffle_rounds (
    raffle_address VARCHAR(42) PRIMARY KEY,
    round_number INTEGER NOT NULL,
    raffle_state INTEGER NOT NULL,
    balance TEXT NOT NULL,
    last_timestamp DOUBLE PRECISION NOT NULL,
    pending_request_id TEXT,
    recent_winner VARCHAR(42),
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Entrants of the current round, one row per ticket
CREATE TABLE IF NOT EXISTS raffle_entrants (
    raffle_address VARCHAR(42) NOT NULL,
    ticket_index INTEGER NOT NULL,
    player VARCHAR(42) NOT NULL,
    PRIMARY KEY (raffle_address, ticket_index)
);

-- Emitted events (the only history beyond the current round)
CREATE TABLE IF NOT EXISTS raffle_events (
    raffle_address VARCHAR(42) NOT NULL,
    seq INTEGER NOT NULL,
    round_number INTEGER NOT NULL,
    event_name VARCHAR(50) NOT NULL,
    args TEXT NOT NULL,
    emitted_at DOUBLE PRECISION NOT NULL,
    PRIMARY KEY (raffle_address, seq)
);

-- ============================================
-- INDICES FOR PERFORMANCE
-- ============================================

CREATE INDEX IF NOT EXISTS idx_raffle_events_name ON raffle_events(raffle_address, event_name);
"""

REQUIRED_TABLES = ['raffle_rounds', 'raffle_entrants', 'raffle_events']


def setup_raffle_database(engine):
    """
    Create all raffle engine tables and indices

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Setting up raffle engine database schema...")

    with engine.begin() as conn:
        # SQLite can only execute one statement at a time
        statements = []
        current_statement = []

        for line in RAFFLE_SCHEMA_SQL.split('\n'):
            stripped = line.strip()
            if not stripped or stripped.startswith('--'):
                continue

            current_statement.append(line)

            if stripped.endswith(';'):
                statements.append('\n'.join(current_statement))
                current_statement = []

        for statement in statements:
            conn.execute(text(statement))

    logger.info("✅ Raffle engine database schema created successfully")


def verify_raffle_schema(engine):
    """
    Verify that all required tables exist

    Args:
        engine: SQLAlchemy engine instance

    Returns:
        dict: Status of each table (True/False)
    """
    existing = set(inspect(engine).get_table_names())
    return {table: table in existing for table in REQUIRED_TABLES}


class RaffleStore:
    """Reads and writes raffle rounds and events"""

    def __init__(self, engine):
        self.engine = engine

    def begin(self):
        """Open a transaction; commits on success, rolls back on error"""
        return self.engine.begin()

    def load_round(self, raffle_address):
        """
        Load the stored round of a raffle

        Returns:
            RoundState or None if the raffle has no stored round
        """
        with self.engine.connect() as conn:
            row = conn.execute(text("""
                SELECT round_number, raffle_state, balance, last_timestamp,
                       pending_request_id, recent_winner
                FROM raffle_rounds
                WHERE raffle_address = :address
            """), {'address': raffle_address}).fetchone()

            if not row:
                return None

            players = [r[0] for r in conn.execute(text("""
                SELECT player FROM raffle_entrants
                WHERE raffle_address = :address
                ORDER BY ticket_index
            """), {'address': raffle_address})]

        return RoundState(
            raffle_state=RaffleState(row[1]),
            players=players,
            balance=int(row[2]),
            last_timestamp=float(row[3]),
            pending_request_id=int(row[4]) if row[4] is not None else None,
            recent_winner=row[5],
            round_number=row[0],
        )

    def save_round(self, conn, raffle_address, round_state, previous=None):
        """
        Write a round inside an open transaction

        Only entrants beyond ``previous`` are inserted when the new player
        list extends the previous one; otherwise the entrant rows are rewritten.
        """
        params = {
            'address': raffle_address,
            'round_number': round_state.round_number,
            'raffle_state': int(round_state.raffle_state),
            'balance': str(round_state.balance),
            'last_timestamp': round_state.last_timestamp,
            'pending_request_id': (
                str(round_state.pending_request_id) if round_state.pending_request_id is not None else None
            ),
            'recent_winner': round_state.recent_winner,
        }
        updated = conn.execute(text("""
            UPDATE raffle_rounds
            SET round_number = :round_number,
                raffle_state = :raffle_state,
                balance = :balance,
                last_timestamp = :last_timestamp,
                pending_request_id = :pending_request_id,
                recent_winner = :recent_winner,
                updated_at = CURRENT_TIMESTAMP
            WHERE raffle_address = :address
        """), params).rowcount
        if not updated:
            conn.execute(text("""
                INSERT INTO raffle_rounds
                    (raffle_address, round_number, raffle_state, balance, last_timestamp,
                     pending_request_id, recent_winner)
                VALUES
                    (:address, :round_number, :raffle_state, :balance, :last_timestamp,
                     :pending_request_id, :recent_winner)
            """), params)

        start = 0
        if previous is not None and round_state.players[:len(previous.players)] == previous.players:
            start = len(previous.players)
        else:
            conn.execute(text("DELETE FROM raffle_entrants WHERE raffle_address = :address"),
                         {'address': raffle_address})

        for ticket_index in range(start, len(round_state.players)):
            conn.execute(text("""
                INSERT INTO raffle_entrants (raffle_address, ticket_index, player)
                VALUES (:address, :ticket_index, :player)
            """), {'address': raffle_address, 'ticket_index': ticket_index, 'player': round_state.players[ticket_index]})

    def append_event(self, conn, raffle_address, event):
        conn.execute(text("""
            INSERT INTO raffle_events
                (raffle_address, seq, round_number, event_name, args, emitted_at)
            VALUES
                (:address, :seq, :round_number, :event_name, :args, :emitted_at)
        """), {
            'address': raffle_address,
            'seq': event.seq,
            'round_number': event.round_number,
            'event_name': event.name,
            'args': json.dumps(event.args),
            'emitted_at': event.emitted_at,
        })

    def get_events(self, raffle_address, event_name=None):
        """
        Get the event history of a raffle in emission order

        Args:
            raffle_address: Raffle address
            event_name: Only return events with this name (optional)

        Returns:
            list: RaffleEvent objects
        """
        query = """
            SELECT seq, round_number, event_name, args, emitted_at
            FROM raffle_events
            WHERE raffle_address = :address
        """
        params = {'address': raffle_address}
        if event_name:
            query += " AND event_name = :event_name"
            params['event_name'] = event_name
        query += " ORDER BY seq"

        with self.engine.connect() as conn:
            return [
                RaffleEvent(name=row[2], args=json.loads(row[3]), seq=row[0],
                            round_number=row[1], emitted_at=row[4])
                for row in conn.execute(text(query), params)
            ]

    def count_events(self, raffle_address):
        with self.engine.connect() as conn:
            return conn.execute(text("""
                SELECT COUNT(*) FROM raffle_events WHERE raffle_address = :address
            """), {'address': raffle_address}).scalar()
