"""SOL / lamport conversion."""

from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmountError


LAMPORTS_PER_SOL = 1_000_000_000


def sol_to_lamports(sol: Union[int, float, str, Decimal]) -> int:
    """Convert a SOL amount to lamports.

    Floats go through their shortest repr so that 0.1 becomes
    100_000_000 rather than 99_999_999. Amounts that do not land on a
    whole lamport, or are negative, are rejected.
    """
    if isinstance(sol, bool):
        raise InvalidAmountError(sol, "expected a number of SOL")
    try:
        value = Decimal(str(sol)) if isinstance(sol, float) else Decimal(sol)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(sol, "expected a number of SOL")

    if not value.is_finite() or value < 0:
        raise InvalidAmountError(sol, "must be a non-negative finite number")

    lamports = value * LAMPORTS_PER_SOL
    if lamports != lamports.to_integral_value():
        raise InvalidAmountError(sol, "more precise than one lamport")
    return int(lamports)


def lamports_to_sol(lamports: int) -> float:
    """Convert lamports to SOL."""
    return lamports / LAMPORTS_PER_SOL
