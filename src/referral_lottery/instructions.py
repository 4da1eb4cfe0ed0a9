"""
Instruction payloads and account lists for the lottery program.

Every payload is a one-byte discriminant followed by fixed-width little-endian
arguments. The account order is part of the wire contract: the program reads
accounts by position, so a reordered list can move funds to the wrong party.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .errors import InvalidArgument
from .pda import lottery_state_address, user_referral_address, user_ticket_address
from .project_constants import MIN_TICKET_PRICE, SYSTEM_PROGRAM_ID, U64_MAX
from .referral import MAX_REFERRAL_DEPTH, ReferralChain

DRAW_WINNERS = 3


class InstructionKind(IntEnum):
    BUY_TICKETS = 1
    DRAW = 2
    WITHDRAW = 3
    SET_TICKET_PRICE = 4


@dataclass(frozen=True)
class BuyTicketsAccounts:
    state: Pubkey
    ticket_account: Pubkey
    referral_account: Pubkey
    payer: Pubkey
    referral_chain: ReferralChain = ()


@dataclass(frozen=True)
class DrawAccounts:
    state: Pubkey
    authority: Pubkey
    winners: Tuple[Pubkey, ...]


@dataclass(frozen=True)
class AuthorityAccounts:
    state: Pubkey
    authority: Pubkey


InstructionAccounts = Union[BuyTicketsAccounts, DrawAccounts, AuthorityAccounts]

# kind -> (argument name, minimum value); None when the instruction takes no argument
_ARGUMENTS: Dict[InstructionKind, Optional[Tuple[str, int]]] = {
    InstructionKind.BUY_TICKETS: ("count", 1),
    InstructionKind.DRAW: None,
    InstructionKind.WITHDRAW: ("amount", 1),
    InstructionKind.SET_TICKET_PRICE: ("price", MIN_TICKET_PRICE),
}

_ACCOUNT_TYPES = {
    InstructionKind.BUY_TICKETS: BuyTicketsAccounts,
    InstructionKind.DRAW: DrawAccounts,
    InstructionKind.WITHDRAW: AuthorityAccounts,
    InstructionKind.SET_TICKET_PRICE: AuthorityAccounts,
}


def _writable(pubkey: Pubkey, signer: bool = False) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=signer, is_writable=True)


def _readonly(pubkey: Pubkey, signer: bool = False) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=signer, is_writable=False)


def encode_args(kind: InstructionKind, args: Mapping[str, Any]) -> bytes:
    spec = _ARGUMENTS[kind]
    expected = set() if spec is None else {spec[0]}
    if set(args) != expected:
        raise InvalidArgument(
            f"{kind.name} takes arguments {sorted(expected)}, got {sorted(args)}"
        )
    if spec is None:
        return b""

    name, minimum = spec
    value = args[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{kind.name}.{name} must be an integer, got {value!r}")
    if value < minimum or value > U64_MAX:
        raise InvalidArgument(
            f"{kind.name}.{name} must be between {minimum} and {U64_MAX}, got {value}"
        )
    return struct.pack("<Q", value)


def _buy_tickets_roles(accounts: BuyTicketsAccounts) -> List[AccountMeta]:
    chain = accounts.referral_chain
    if len(chain) > MAX_REFERRAL_DEPTH:
        raise InvalidArgument(f"Referral chain deeper than {MAX_REFERRAL_DEPTH}: {len(chain)}")

    roles = [
        _writable(accounts.state),
        _writable(accounts.ticket_account),
        _writable(accounts.referral_account),
        _writable(accounts.payer, signer=True),
        _readonly(SYSTEM_PROGRAM_ID),
    ]
    if len(chain) >= 1:
        l1 = chain[0]
        roles.append(_readonly(l1.referrer))
        roles.append(_writable(l1.referral_account))
    if len(chain) == 2:
        # Level 2 lists its referral account before the wallet.
        l2 = chain[1]
        roles.append(_writable(l2.referral_account))
        roles.append(_writable(l2.referrer))
    return roles


def _draw_roles(accounts: DrawAccounts) -> List[AccountMeta]:
    if len(accounts.winners) != DRAW_WINNERS:
        raise InvalidArgument(
            f"Draw needs exactly {DRAW_WINNERS} winners, got {len(accounts.winners)}"
        )
    return [
        _writable(accounts.state),
        _readonly(accounts.authority, signer=True),
        *(_writable(w) for w in accounts.winners),
        _readonly(SYSTEM_PROGRAM_ID),
    ]


def _withdraw_roles(accounts: AuthorityAccounts) -> List[AccountMeta]:
    return [
        _writable(accounts.state),
        _writable(accounts.authority, signer=True),
    ]


def _set_ticket_price_roles(accounts: AuthorityAccounts) -> List[AccountMeta]:
    return [
        _writable(accounts.state),
        _readonly(accounts.authority, signer=True),
    ]


_ROLE_BUILDERS = {
    InstructionKind.BUY_TICKETS: _buy_tickets_roles,
    InstructionKind.DRAW: _draw_roles,
    InstructionKind.WITHDRAW: _withdraw_roles,
    InstructionKind.SET_TICKET_PRICE: _set_ticket_price_roles,
}


def build(
    kind: Union[InstructionKind, int],
    args: Mapping[str, Any],
    accounts: InstructionAccounts,
) -> Tuple[bytes, List[AccountMeta]]:
    try:
        kind = InstructionKind(kind)
    except ValueError as exc:
        raise InvalidArgument(f"Unknown instruction kind: {kind!r}") from exc

    data = encode_args(kind, args)
    expected_type = _ACCOUNT_TYPES[kind]
    if not isinstance(accounts, expected_type):
        raise InvalidArgument(
            f"{kind.name} expects {expected_type.__name__}, got {type(accounts).__name__}"
        )
    roles = _ROLE_BUILDERS[kind](accounts)
    return bytes([kind]) + data, roles


def to_instruction(
    program_id: Pubkey, payload: bytes, roles: Sequence[AccountMeta]
) -> Instruction:
    return Instruction(program_id, payload, list(roles))


def build_buy_tickets_ix(
    program_id: Pubkey,
    payer: Pubkey,
    count: int,
    referral_chain: ReferralChain = (),
) -> Instruction:
    state, _ = lottery_state_address(program_id)
    ticket_account, _ = user_ticket_address(program_id, payer)
    referral_account, _ = user_referral_address(program_id, payer)
    accounts = BuyTicketsAccounts(
        state=state,
        ticket_account=ticket_account,
        referral_account=referral_account,
        payer=payer,
        referral_chain=tuple(referral_chain),
    )
    payload, roles = build(InstructionKind.BUY_TICKETS, {"count": count}, accounts)
    return to_instruction(program_id, payload, roles)


def build_draw_ix(
    program_id: Pubkey, authority: Pubkey, winners: Sequence[Pubkey]
) -> Instruction:
    state, _ = lottery_state_address(program_id)
    accounts = DrawAccounts(state=state, authority=authority, winners=tuple(winners))
    payload, roles = build(InstructionKind.DRAW, {}, accounts)
    return to_instruction(program_id, payload, roles)


def build_withdraw_ix(program_id: Pubkey, authority: Pubkey, amount: int) -> Instruction:
    state, _ = lottery_state_address(program_id)
    accounts = AuthorityAccounts(state=state, authority=authority)
    payload, roles = build(InstructionKind.WITHDRAW, {"amount": amount}, accounts)
    return to_instruction(program_id, payload, roles)


def build_set_ticket_price_ix(
    program_id: Pubkey, authority: Pubkey, price: int
) -> Instruction:
    state, _ = lottery_state_address(program_id)
    accounts = AuthorityAccounts(state=state, authority=authority)
    payload, roles = build(InstructionKind.SET_TICKET_PRICE, {"price": price}, accounts)
    return to_instruction(program_id, payload, roles)
