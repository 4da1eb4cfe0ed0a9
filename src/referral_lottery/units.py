from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from .errors import InvalidArgument
from .project_constants import LAMPORTS_PER_SOL, U64_MAX

SolAmount = Union[str, int, float, Decimal]

# Largest amount whose lamport value still fits a u64.
MAX_SOL = Decimal(U64_MAX) / Decimal(LAMPORTS_PER_SOL)


def to_sol(lamports: int) -> Decimal:
    # Decimal keeps every u64 exact; float would drift past 2**53.
    return Decimal(int(lamports)) / Decimal(LAMPORTS_PER_SOL)


def format_sol(lamports: int, places: int = 2) -> str:
    quantum = Decimal(1).scaleb(-places)
    value = to_sol(lamports).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{value} SOL"


def sol_to_lamports(value: SolAmount) -> int:
    """Convert a SOL amount typed by a user into whole lamports (half-up)."""
    if isinstance(value, bool):
        raise InvalidArgument(f"Not a SOL amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidArgument(f"Not a SOL amount: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidArgument(f"Not a SOL amount: {value!r}")
    if amount < 0:
        raise InvalidArgument(f"SOL amount must not be negative: {value!r}")
    if amount > MAX_SOL:
        raise InvalidArgument(f"SOL amount too large: {value!r}")
    lamports = (amount * LAMPORTS_PER_SOL).to_integral_value(rounding=ROUND_HALF_UP)
    return int(lamports)
