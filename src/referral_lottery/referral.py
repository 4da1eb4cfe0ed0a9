from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from solders.pubkey import Pubkey

from .layouts import ReferralAccount
from .pda import user_referral_address
from .rpc import RpcClient

log = logging.getLogger(__name__)

# Only the direct referrer and its parent are paid a commission.
MAX_REFERRAL_DEPTH = 2


@dataclass(frozen=True)
class ReferralEntry:
    referrer: Pubkey
    referral_account: Pubkey


ReferralChain = Tuple[ReferralEntry, ...]


def _entry(program_id: Pubkey, referrer: Pubkey) -> ReferralEntry:
    account, _ = user_referral_address(program_id, referrer)
    return ReferralEntry(referrer=referrer, referral_account=account)


async def resolve_referral_chain(
    rpc: RpcClient,
    program_id: Pubkey,
    l1_referrer: Optional[Pubkey],
) -> ReferralChain:
    """
    Build the level-1 / level-2 referral chain for a ticket purchase.

    A missing level-1 referral account is not an error: the referrer simply has
    no parent yet. At most one account is read, whatever the real chain depth.
    """
    if l1_referrer is None:
        return ()

    l1 = _entry(program_id, l1_referrer)
    info = await rpc.get_account_info(l1.referral_account, expected_owner=program_id)
    if info is None:
        log.debug("Referrer %s has no referral account yet", l1_referrer)
        return (l1,)

    account = ReferralAccount.decode(info.data)
    if not account.has_parent:
        return (l1,)

    l2 = _entry(program_id, account.parent)
    log.debug("Referral chain: %s -> %s", l1_referrer, account.parent)
    return (l1, l2)
