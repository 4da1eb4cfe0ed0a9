import struct
import unittest
from decimal import Decimal

from solders.pubkey import Pubkey

from referral_lottery.errors import InvalidArgument, MalformedAccountData
from referral_lottery.layouts import LotteryState, ReferralAccount, UserTicketAccount
from referral_lottery.project_constants import NO_PARENT
from referral_lottery.units import format_sol, to_sol


def _lottery_bytes(owner: Pubkey, net_pool: int, tickets: int, last_draw: int,
                   processing: int, price: int) -> bytes:
    return (
        bytes(owner)
        + net_pool.to_bytes(8, "little")
        + tickets.to_bytes(8, "little")
        + last_draw.to_bytes(8, "little", signed=True)
        + bytes([processing])
        + price.to_bytes(8, "little")
    )


class LayoutSizeTests(unittest.TestCase):
    def test_fixed_widths(self) -> None:
        self.assertEqual(LotteryState.LEN, 65)
        self.assertEqual(ReferralAccount.LEN, 72)
        self.assertEqual(UserTicketAccount.LEN, 40)


class LotteryStateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.owner = Pubkey.new_unique()

    def test_decode_reads_fields_at_declared_offsets(self) -> None:
        raw = _lottery_bytes(self.owner, 523_250_000_000, 5230, 1_710_460_800, 0, 100_000_000)
        state = LotteryState.decode(raw)
        self.assertEqual(state.owner, self.owner)
        self.assertEqual(state.net_pool, 523_250_000_000)
        self.assertEqual(state.ticket_count, 5230)
        self.assertEqual(state.last_draw, 1_710_460_800)
        self.assertFalse(state.processing)
        self.assertEqual(state.ticket_price, 100_000_000)

    def test_display_values_scale_by_1e9(self) -> None:
        raw = _lottery_bytes(self.owner, 523_250_000_000, 0, 0, 0, 100_000_000)
        state = LotteryState.decode(raw)
        self.assertEqual(to_sol(state.net_pool), Decimal("523.25"))
        self.assertEqual(to_sol(state.ticket_price), Decimal("0.1"))
        self.assertEqual(format_sol(state.net_pool), "523.25 SOL")
        self.assertEqual(format_sol(state.ticket_price), "0.10 SOL")

    def test_negative_last_draw_is_signed(self) -> None:
        raw = _lottery_bytes(self.owner, 0, 0, -1, 1, 0)
        state = LotteryState.decode(raw)
        self.assertEqual(state.last_draw, -1)
        self.assertTrue(state.processing)

    def test_round_trip(self) -> None:
        state = LotteryState(self.owner, 2**64 - 1, 42, -5, True, 1_000_000)
        self.assertEqual(LotteryState.decode(state.encode()), state)
        self.assertEqual(len(state.encode()), LotteryState.LEN)

    def test_short_buffer_is_malformed(self) -> None:
        with self.assertRaises(MalformedAccountData):
            LotteryState.decode(b"\x00" * 64)

    def test_trailing_bytes_are_ignored(self) -> None:
        raw = _lottery_bytes(self.owner, 1, 2, 3, 0, 4) + b"\xff" * 16
        self.assertEqual(LotteryState.decode(raw).ticket_price, 4)

    def test_encode_rejects_out_of_range(self) -> None:
        with self.assertRaises(InvalidArgument):
            LotteryState(self.owner, -1, 0, 0, False, 0).encode()
        with self.assertRaises(InvalidArgument):
            LotteryState(self.owner, 0, 0, 2**63, False, 0).encode()

    def test_encode_rejects_non_integer_last_draw(self) -> None:
        for bad in (1.5, "0", None, True):
            with self.subTest(last_draw=bad):
                with self.assertRaises(InvalidArgument):
                    LotteryState(self.owner, 0, 0, bad, False, 0).encode()


class ReferralAccountTests(unittest.TestCase):
    def test_decode_layout(self) -> None:
        parent = Pubkey.new_unique()
        raw = bytes(parent) + struct.pack("<5Q", 3, 7, 11, 13, 45_230_000_000)
        account = ReferralAccount.decode(raw)
        self.assertEqual(account.parent, parent)
        self.assertEqual(account.l1_count, 3)
        self.assertEqual(account.l2_count, 7)
        self.assertEqual(account.l1_volume, 11)
        self.assertEqual(account.l2_volume, 13)
        self.assertEqual(account.total_earnings, 45_230_000_000)
        self.assertTrue(account.has_parent)

    def test_sentinel_parent(self) -> None:
        account = ReferralAccount.decode(bytes(32) + bytes(40))
        self.assertEqual(account.parent, NO_PARENT)
        self.assertFalse(account.has_parent)

    def test_round_trip(self) -> None:
        account = ReferralAccount(Pubkey.new_unique(), 1, 2, 3, 4, 5)
        self.assertEqual(ReferralAccount.decode(account.encode()), account)

    def test_short_buffer_is_malformed(self) -> None:
        with self.assertRaises(MalformedAccountData):
            ReferralAccount.decode(bytes(71))


class UserTicketAccountTests(unittest.TestCase):
    def test_round_trip(self) -> None:
        account = UserTicketAccount(Pubkey.new_unique(), 12)
        raw = account.encode()
        self.assertEqual(len(raw), 40)
        self.assertEqual(UserTicketAccount.decode(raw), account)

    def test_short_buffer_is_malformed(self) -> None:
        with self.assertRaises(MalformedAccountData):
            UserTicketAccount.decode(b"")


if __name__ == "__main__":
    unittest.main()
