"""
Provably Fair Utilities for Randomness Fulfillment
Implements SHA-256 based provably fair random word generation
"""

import secrets
import hashlib
from typing import List


def generate_server_seed() -> str:
    """Generate a cryptographically secure server seed (64 char hex string)"""
    return secrets.token_hex(32)


def derive_random_word(server_seed: str, request_id: int, index: int) -> int:
    """
    Derive one random word for a randomness request.

    Algorithm:
    1. Concatenate: "server_seed:request_id:index"
    2. Compute SHA-256 hash
    3. Convert the full hex digest to an integer (0 to 2**256 - 1)

    Args:
        server_seed: Secret seed of the randomness provider
        request_id: Identifier of the randomness request (acts as nonce)
        index: Position of the word within the request

    Returns:
        256-bit unsigned integer
    """
    combined = f"{server_seed}:{request_id}:{index}"
    proof_hash = hashlib.sha256(combined.encode()).hexdigest()
    return int(proof_hash, 16)


def derive_random_words(server_seed: str, request_id: int, num_words: int) -> List[int]:
    """Derive ``num_words`` random words for a request"""
    if num_words <= 0:
        raise ValueError(f"num_words must be positive, got {num_words}")
    return [derive_random_word(server_seed, request_id, i) for i in range(num_words)]


def verify_random_words(server_seed: str, request_id: int, random_words: List[int]) -> bool:
    """
    Verify random words by recomputing them from the revealed seed.

    Args:
        server_seed: Revealed server seed
        request_id: Original request identifier
        random_words: Words delivered to the consumer

    Returns:
        True if verification succeeds, False otherwise
    """
    if not random_words:
        return False
    try:
        return derive_random_words(server_seed, request_id, len(random_words)) == list(random_words)
    except (TypeError, ValueError):
        return False
