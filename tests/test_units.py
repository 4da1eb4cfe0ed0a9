import unittest
from decimal import Decimal

from referral_lottery.errors import InvalidArgument
from referral_lottery.units import format_sol, sol_to_lamports, to_sol


class UnitsTests(unittest.TestCase):
    def test_to_sol_is_exact_above_float_precision(self) -> None:
        lamports = 2**53 + 1
        self.assertEqual(to_sol(lamports) * 10**9, Decimal(lamports))

    def test_format_rounds_to_two_places(self) -> None:
        self.assertEqual(format_sol(45_234_999_999), "45.23 SOL")
        self.assertEqual(format_sol(0), "0.00 SOL")

    def test_sol_to_lamports_accepts_common_inputs(self) -> None:
        self.assertEqual(sol_to_lamports("0.1"), 100_000_000)
        self.assertEqual(sol_to_lamports(0.001), 1_000_000)
        self.assertEqual(sol_to_lamports(2), 2_000_000_000)
        self.assertEqual(sol_to_lamports(Decimal("1.5")), 1_500_000_000)

    def test_sol_to_lamports_rounds_half_up(self) -> None:
        self.assertEqual(sol_to_lamports("0.0000000005"), 1)
        self.assertEqual(sol_to_lamports("0.0000000004"), 0)

    def test_sol_to_lamports_rejects_garbage(self) -> None:
        for bad in ("abc", "", "-1", "nan", "inf", True):
            with self.subTest(value=bad):
                with self.assertRaises(InvalidArgument):
                    sol_to_lamports(bad)

    def test_sol_to_lamports_rejects_amounts_past_u64(self) -> None:
        self.assertEqual(sol_to_lamports("18446744073.709551615"), 2**64 - 1)
        for big in ("1e999999", "18446744073.709551616", 10**30):
            with self.subTest(value=big):
                with self.assertRaises(InvalidArgument):
                    sol_to_lamports(big)


if __name__ == "__main__":
    unittest.main()
