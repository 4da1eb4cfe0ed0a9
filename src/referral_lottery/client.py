from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from solders.pubkey import Pubkey

from .config import Settings
from .errors import AccountNotInitialized, SignerUnavailable
from .instructions import (
    InstructionKind,
    build_buy_tickets_ix,
    build_draw_ix,
    build_set_ticket_price_ix,
    build_withdraw_ix,
    encode_args,
)
from .layouts import LotteryState, ReferralAccount, UserTicketAccount
from .pda import lottery_state_address, user_referral_address, user_ticket_address
from .referral import resolve_referral_chain
from .rpc import RpcClient
from .transaction import Signer, TransactionOrchestrator
from .units import SolAmount, format_sol, sol_to_lamports

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    total_participants: int
    active_tickets: int
    total_revenue_display: str
    referral_earnings_display: str
    ticket_price_display: str
    # True while a draw is being processed; the numbers may be mid-update.
    stale: bool


class LotteryClient:
    def __init__(
        self,
        settings: Settings,
        rpc: RpcClient,
        signer: Optional[Signer] = None,
        poll_interval_s: float = 0.5,
    ) -> None:
        self.program_id = settings.program_id
        self.rpc = rpc
        self.signer = signer
        self.orchestrator = TransactionOrchestrator(
            rpc,
            signer,
            commitment=settings.commitment,
            confirm_timeout_s=settings.confirm_timeout_s,
            poll_interval_s=poll_interval_s,
        )

    async def connect(self) -> Pubkey:
        if self.signer is None:
            raise SignerUnavailable("No wallet available. Configure a keypair first.")
        return await self.signer.connect()

    async def _read(self, address: Pubkey) -> Optional[bytes]:
        info = await self.rpc.get_account_info(address, expected_owner=self.program_id)
        return None if info is None else info.data

    async def fetch_lottery_state(self) -> LotteryState:
        address, _ = lottery_state_address(self.program_id)
        data = await self._read(address)
        if data is None:
            raise AccountNotInitialized(
                f"Lottery account {address} not found. Please initialize the lottery."
            )
        state = LotteryState.decode(data)
        if state.processing:
            log.warning("Lottery is processing a draw; state may be stale.")
        return state

    async def fetch_referral_account(self, owner: Pubkey) -> Optional[ReferralAccount]:
        address, _ = user_referral_address(self.program_id, owner)
        data = await self._read(address)
        return None if data is None else ReferralAccount.decode(data)

    async def fetch_user_ticket_account(self, owner: Pubkey) -> Optional[UserTicketAccount]:
        address, _ = user_ticket_address(self.program_id, owner)
        data = await self._read(address)
        return None if data is None else UserTicketAccount.decode(data)

    async def fetch_referral_earnings(self, owner: Pubkey) -> int:
        account = await self.fetch_referral_account(owner)
        return 0 if account is None else account.total_earnings

    async def load_dashboard(self, owner: Pubkey) -> DashboardView:
        state = await self.fetch_lottery_state()
        earnings = await self.fetch_referral_earnings(owner)
        # The program keeps no participant count; tickets stand in for it.
        return DashboardView(
            total_participants=state.ticket_count,
            active_tickets=state.ticket_count,
            total_revenue_display=format_sol(state.net_pool),
            referral_earnings_display=format_sol(earnings),
            ticket_price_display=format_sol(state.ticket_price),
            stale=state.processing,
        )

    async def buy_tickets(self, count: int, referrer: Optional[Pubkey] = None) -> str:
        encode_args(InstructionKind.BUY_TICKETS, {"count": count})
        payer = await self.connect()
        chain = await resolve_referral_chain(self.rpc, self.program_id, referrer)
        log.info("Buying %d tickets for %s (referral levels: %d)", count, payer, len(chain))
        ix = build_buy_tickets_ix(self.program_id, payer, count, chain)
        return await self.orchestrator.submit([ix], payer)

    async def draw(self, winners: Sequence[Pubkey]) -> str:
        authority = await self.connect()
        ix = build_draw_ix(self.program_id, authority, winners)
        return await self.orchestrator.submit([ix], authority)

    async def withdraw(self, amount_sol: SolAmount) -> str:
        amount = sol_to_lamports(amount_sol)
        encode_args(InstructionKind.WITHDRAW, {"amount": amount})
        authority = await self.connect()
        ix = build_withdraw_ix(self.program_id, authority, amount)
        return await self.orchestrator.submit([ix], authority)

    async def set_ticket_price(self, price_sol: SolAmount) -> str:
        price = sol_to_lamports(price_sol)
        encode_args(InstructionKind.SET_TICKET_PRICE, {"price": price})
        authority = await self.connect()
        ix = build_set_ticket_price_ix(self.program_id, authority, price)
        return await self.orchestrator.submit([ix], authority)
