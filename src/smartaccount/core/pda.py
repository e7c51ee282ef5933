"""
Address derivation for smart accounts.

A smart account lives at the program-derived address of the seeds
[b"smart", owner] under the smart account program. Derivation goes through
solders' find_program_address, which is Solana's own routine (bump searched
from 255 downward, first off-curve hash wins).
"""

from typing import Any, List, Tuple, Union

from solders.pubkey import Pubkey

from ..constants import SMART_ACCOUNT_SEED
from ..errors import DerivationError, InvalidPublicKeyError


MAX_SEEDS = 16
MAX_SEED_LEN = 32

PubkeyLike = Union[Pubkey, str, bytes]


def to_pubkey(value: Any) -> Pubkey:
    """Coerce a Pubkey, base58 string or 32 raw bytes into a Pubkey."""
    if isinstance(value, Pubkey):
        return value
    if isinstance(value, str):
        try:
            return Pubkey.from_string(value)
        except ValueError as e:
            raise InvalidPublicKeyError(value, str(e))
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise InvalidPublicKeyError(value, f"expected 32 bytes, got {len(value)}")
        return Pubkey.from_bytes(bytes(value))
    raise InvalidPublicKeyError(value, f"unsupported type {type(value).__name__}")


def find_program_address(seeds: List[bytes], program_id: Pubkey) -> Tuple[Pubkey, int]:
    """Derive a program address and its canonical bump.

    Raises:
        DerivationError: If the seeds are invalid or no bump yields an
            off-curve address
    """
    if len(seeds) > MAX_SEEDS - 1:  # one slot is reserved for the bump
        raise DerivationError(f"Too many seeds: {len(seeds)} (max {MAX_SEEDS - 1})")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise DerivationError(f"Seed longer than {MAX_SEED_LEN} bytes: {seed!r}")

    try:
        address, bump = Pubkey.find_program_address(seeds, program_id)
    except Exception as e:
        raise DerivationError(f"Unable to find a viable program address bump seed: {e}") from e
    return address, bump


def find_smart_account_address(owner: PubkeyLike, program_id: PubkeyLike) -> Tuple[Pubkey, int]:
    """
    Find the smart account PDA for an owner.

    Args:
        owner: Owner of the smart account
        program_id: Smart account program id

    Returns:
        Tuple of (smart account address, bump seed)
    """
    owner = to_pubkey(owner)
    program_id = to_pubkey(program_id)
    return find_program_address([SMART_ACCOUNT_SEED, bytes(owner)], program_id)
