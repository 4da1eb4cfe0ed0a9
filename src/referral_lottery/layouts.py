"""
Fixed binary layouts of the lottery program's accounts.

All integers are little-endian with no padding between fields, matching the
program's in-memory structs:

    LotteryState       owner(32) | net_pool u64 | ticket_count u64 |
                       last_draw i64 | processing u8 | ticket_price u64   = 65
    ReferralAccount    parent(32) | l1_count u64 | l2_count u64 |
                       l1_volume u64 | l2_volume u64 | total_earnings u64 = 72
    UserTicketAccount  owner(32) | ticket_count u64                      = 40

Decoding only checks the total length. Trailing bytes are ignored.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from solders.pubkey import Pubkey

from .errors import InvalidArgument, MalformedAccountData
from .project_constants import I64_MAX, I64_MIN, NO_PARENT, U64_MAX

_LOTTERY_STATE = struct.Struct("<32sQQqBQ")
_REFERRAL_ACCOUNT = struct.Struct("<32sQQQQQ")
_USER_TICKET_ACCOUNT = struct.Struct("<32sQ")


def _check_length(kind: str, data: bytes, expected: int) -> None:
    if len(data) < expected:
        raise MalformedAccountData(
            f"{kind}: expected at least {expected} bytes, got {len(data)}"
        )


def _check_u64(kind: str, name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{kind}.{name} must be an int, got {value!r}")
    if value < 0 or value > U64_MAX:
        raise InvalidArgument(f"{kind}.{name} out of u64 range: {value}")


def _check_i64(kind: str, name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{kind}.{name} must be an int, got {value!r}")
    if value < I64_MIN or value > I64_MAX:
        raise InvalidArgument(f"{kind}.{name} out of i64 range: {value}")


@dataclass(frozen=True)
class LotteryState:
    owner: Pubkey
    net_pool: int
    ticket_count: int
    last_draw: int
    processing: bool
    ticket_price: int

    LEN = _LOTTERY_STATE.size

    @classmethod
    def decode(cls, data: bytes) -> "LotteryState":
        _check_length("LotteryState", data, cls.LEN)
        owner, net_pool, ticket_count, last_draw, processing, price = (
            _LOTTERY_STATE.unpack_from(data, 0)
        )
        return cls(
            owner=Pubkey.from_bytes(owner),
            net_pool=net_pool,
            ticket_count=ticket_count,
            last_draw=last_draw,
            processing=processing != 0,
            ticket_price=price,
        )

    def encode(self) -> bytes:
        for name in ("net_pool", "ticket_count", "ticket_price"):
            _check_u64("LotteryState", name, getattr(self, name))
        _check_i64("LotteryState", "last_draw", self.last_draw)
        return _LOTTERY_STATE.pack(
            bytes(self.owner),
            self.net_pool,
            self.ticket_count,
            self.last_draw,
            1 if self.processing else 0,
            self.ticket_price,
        )


@dataclass(frozen=True)
class ReferralAccount:
    parent: Pubkey
    l1_count: int
    l2_count: int
    l1_volume: int
    l2_volume: int
    total_earnings: int

    LEN = _REFERRAL_ACCOUNT.size

    @property
    def has_parent(self) -> bool:
        return self.parent != NO_PARENT

    @classmethod
    def decode(cls, data: bytes) -> "ReferralAccount":
        _check_length("ReferralAccount", data, cls.LEN)
        parent, l1_count, l2_count, l1_volume, l2_volume, earnings = (
            _REFERRAL_ACCOUNT.unpack_from(data, 0)
        )
        return cls(
            parent=Pubkey.from_bytes(parent),
            l1_count=l1_count,
            l2_count=l2_count,
            l1_volume=l1_volume,
            l2_volume=l2_volume,
            total_earnings=earnings,
        )

    def encode(self) -> bytes:
        for name in ("l1_count", "l2_count", "l1_volume", "l2_volume", "total_earnings"):
            _check_u64("ReferralAccount", name, getattr(self, name))
        return _REFERRAL_ACCOUNT.pack(
            bytes(self.parent),
            self.l1_count,
            self.l2_count,
            self.l1_volume,
            self.l2_volume,
            self.total_earnings,
        )


@dataclass(frozen=True)
class UserTicketAccount:
    owner: Pubkey
    ticket_count: int

    LEN = _USER_TICKET_ACCOUNT.size

    @classmethod
    def decode(cls, data: bytes) -> "UserTicketAccount":
        _check_length("UserTicketAccount", data, cls.LEN)
        owner, ticket_count = _USER_TICKET_ACCOUNT.unpack_from(data, 0)
        return cls(owner=Pubkey.from_bytes(owner), ticket_count=ticket_count)

    def encode(self) -> bytes:
        _check_u64("UserTicketAccount", "ticket_count", self.ticket_count)
        return _USER_TICKET_ACCOUNT.pack(bytes(self.owner), self.ticket_count)
