import unittest

from solders.pubkey import Pubkey

from fakes import FakeRpc
from referral_lottery.errors import MalformedAccountData
from referral_lottery.layouts import ReferralAccount
from referral_lottery.pda import user_referral_address
from referral_lottery.project_constants import NO_PARENT, PROGRAM_ID
from referral_lottery.referral import ReferralEntry, resolve_referral_chain

PROGRAM = Pubkey.from_string(PROGRAM_ID)


def _referral_account_of(owner: Pubkey) -> Pubkey:
    return user_referral_address(PROGRAM, owner)[0]


class ResolveReferralChainTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.rpc = FakeRpc(PROGRAM)

    def _link(self, child: Pubkey, parent: Pubkey) -> None:
        account = ReferralAccount(parent, 0, 0, 0, 0, 0)
        self.rpc.put(_referral_account_of(child), account.encode())

    async def test_no_referrer_is_empty_and_reads_nothing(self) -> None:
        chain = await resolve_referral_chain(self.rpc, PROGRAM, None)
        self.assertEqual(chain, ())
        self.assertEqual(self.rpc.reads, [])

    async def test_absent_level1_account_yields_single_entry(self) -> None:
        l1 = Pubkey.new_unique()
        chain = await resolve_referral_chain(self.rpc, PROGRAM, l1)
        self.assertEqual(chain, (ReferralEntry(l1, _referral_account_of(l1)),))

    async def test_sentinel_parent_stops_at_level1(self) -> None:
        l1 = Pubkey.new_unique()
        self._link(l1, NO_PARENT)
        chain = await resolve_referral_chain(self.rpc, PROGRAM, l1)
        self.assertEqual(len(chain), 1)
        self.assertEqual(chain[0].referrer, l1)

    async def test_parent_adds_level2(self) -> None:
        l1, l2 = Pubkey.new_unique(), Pubkey.new_unique()
        self._link(l1, l2)
        chain = await resolve_referral_chain(self.rpc, PROGRAM, l1)
        self.assertEqual(
            chain,
            (
                ReferralEntry(l1, _referral_account_of(l1)),
                ReferralEntry(l2, _referral_account_of(l2)),
            ),
        )

    async def test_deep_chain_is_capped_at_two_with_one_read(self) -> None:
        wallets = [Pubkey.new_unique() for _ in range(5)]
        for child, parent in zip(wallets, wallets[1:]):
            self._link(child, parent)
        chain = await resolve_referral_chain(self.rpc, PROGRAM, wallets[0])
        self.assertEqual([e.referrer for e in chain], wallets[:2])
        self.assertEqual(len(self.rpc.reads), 1)

    async def test_truncated_account_aborts(self) -> None:
        l1 = Pubkey.new_unique()
        self.rpc.put(_referral_account_of(l1), b"\x01" * 40)
        with self.assertRaises(MalformedAccountData):
            await resolve_referral_chain(self.rpc, PROGRAM, l1)


if __name__ == "__main__":
    unittest.main()
