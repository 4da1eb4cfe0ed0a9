from __future__ import annotations

from typing import Sequence, Tuple

from solders.pubkey import Pubkey

from .errors import InvalidArgument, NoValidAddress
from .project_constants import LOTTERY_SEED, USER_REFERRAL_SEED, USER_TICKET_SEED

MAX_SEEDS = 16
MAX_SEED_LEN = 32


def _check_seeds(seeds: Sequence[bytes]) -> None:
    # The bump takes the last seed slot.
    if len(seeds) > MAX_SEEDS - 1:
        raise InvalidArgument(f"Too many seeds: {len(seeds)} (max {MAX_SEEDS - 1})")
    for seed in seeds:
        if not isinstance(seed, (bytes, bytearray)):
            raise InvalidArgument(f"Seed must be bytes, got {type(seed).__name__}")
        if len(seed) > MAX_SEED_LEN:
            raise InvalidArgument(f"Seed longer than {MAX_SEED_LEN} bytes: {len(seed)}")


def derive(program_id: Pubkey, seeds: Sequence[bytes]) -> Tuple[Pubkey, int]:
    """
    Find the program-derived address for `seeds`.

    Bumps are tried from 255 down to 0. The first one whose address lies off
    the ed25519 curve wins, so no private key can ever sign for the address.
    """
    _check_seeds(seeds)
    base = [bytes(s) for s in seeds]
    for bump in range(255, -1, -1):
        try:
            address = Pubkey.create_program_address(base + [bytes([bump])], program_id)
        except Exception:  # noqa: BLE001
            # On-curve candidate; try the next bump.
            continue
        return address, bump
    raise NoValidAddress(f"No off-curve address for program {program_id}")


def lottery_state_address(program_id: Pubkey) -> Tuple[Pubkey, int]:
    return derive(program_id, [LOTTERY_SEED])


def user_ticket_address(program_id: Pubkey, owner: Pubkey) -> Tuple[Pubkey, int]:
    return derive(program_id, [USER_TICKET_SEED, bytes(owner)])


def user_referral_address(program_id: Pubkey, owner: Pubkey) -> Tuple[Pubkey, int]:
    return derive(program_id, [USER_REFERRAL_SEED, bytes(owner)])
