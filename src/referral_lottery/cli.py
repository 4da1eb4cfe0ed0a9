from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx
from solders.pubkey import Pubkey

from .client import LotteryClient
from .config import Settings
from .errors import InvalidArgument, LotteryClientError
from .pda import lottery_state_address, user_referral_address, user_ticket_address
from .referral import resolve_referral_chain
from .rpc import RpcClient
from .transaction import KeypairSigner, load_keypair


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def parse_pubkey(value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as exc:
        raise InvalidArgument(f"Not a valid address: {value!r}") from exc


def _run(
    args: argparse.Namespace,
    action: Callable[[LotteryClient, Settings], Awaitable[int]],
    need_signer: bool = True,
) -> int:
    settings = Settings.from_env(
        rpc_url_override=args.rpc_url,
        program_id_override=args.program_id,
        keypair_override=args.keypair,
    )

    async def runner() -> int:
        async with RpcClient(settings.rpc_url, args.timeout, settings.commitment) as rpc:
            signer = None
            if need_signer:
                signer = KeypairSigner(load_keypair(settings.keypair), rpc)
            client = LotteryClient(settings, rpc, signer)
            return await action(client, settings)

    return asyncio.run(runner())


def _owner_or_wallet(args: argparse.Namespace, settings: Settings) -> Pubkey:
    if args.owner:
        return parse_pubkey(args.owner)
    return load_keypair(settings.keypair).pubkey()


def cmd_addresses(args: argparse.Namespace) -> int:
    settings = Settings.from_env(
        rpc_url_override=args.rpc_url,
        program_id_override=args.program_id,
        keypair_override=args.keypair,
    )
    owner = _owner_or_wallet(args, settings)
    state, state_bump = lottery_state_address(settings.program_id)
    ticket, ticket_bump = user_ticket_address(settings.program_id, owner)
    referral, referral_bump = user_referral_address(settings.program_id, owner)

    print(f"Program       : {settings.program_id}")
    print(f"Owner         : {owner}")
    print(f"Lottery state : {state} (bump {state_bump})")
    print(f"Ticket acct   : {ticket} (bump {ticket_bump})")
    print(f"Referral acct : {referral} (bump {referral_bump})")
    return 0


def cmd_dashboard(args: argparse.Namespace) -> int:
    async def action(client: LotteryClient, settings: Settings) -> int:
        owner = _owner_or_wallet(args, settings)
        view = await client.load_dashboard(owner)
        tickets = await client.fetch_user_ticket_account(owner)

        print("========================================")
        print("🎟  REFERRAL LOTTERY")
        print("========================================")
        print(f"Participants  : {view.total_participants}")
        print(f"Active tickets: {view.active_tickets}")
        print(f"Total revenue : {view.total_revenue_display}")
        print(f"Ticket price  : {view.ticket_price_display}")
        print("----------------------------------------")
        print(f"Wallet        : {owner}")
        print(f"Your tickets  : {0 if tickets is None else tickets.ticket_count}")
        print(f"Ref. earnings : {view.referral_earnings_display}")
        if view.stale:
            print("⚠️  A draw is in progress; figures may be out of date.")
        return 0

    return _run(args, action, need_signer=False)


def cmd_referral_chain(args: argparse.Namespace) -> int:
    referrer = parse_pubkey(args.referrer)

    async def action(client: LotteryClient, settings: Settings) -> int:
        chain = await resolve_referral_chain(client.rpc, settings.program_id, referrer)
        if not chain:
            print("No referrer.")
        for level, entry in enumerate(chain, start=1):
            print(f"L{level} referrer   : {entry.referrer}")
            print(f"L{level} account    : {entry.referral_account}")
        return 0

    return _run(args, action, need_signer=False)


def _print_signature(label: str, signature: str) -> None:
    print(f"✅ {label}")
    print(f"Signature     : {signature}")


def cmd_buy(args: argparse.Namespace) -> int:
    referrer: Optional[Pubkey] = parse_pubkey(args.referrer) if args.referrer else None

    async def action(client: LotteryClient, settings: Settings) -> int:
        signature = await client.buy_tickets(args.count, referrer)
        _print_signature(f"Bought {args.count} tickets", signature)
        return 0

    return _run(args, action)


def cmd_draw(args: argparse.Namespace) -> int:
    winners = [parse_pubkey(w) for w in args.winner]

    async def action(client: LotteryClient, settings: Settings) -> int:
        signature = await client.draw(winners)
        _print_signature("Lottery drawn", signature)
        return 0

    return _run(args, action)


def cmd_withdraw(args: argparse.Namespace) -> int:
    async def action(client: LotteryClient, settings: Settings) -> int:
        signature = await client.withdraw(args.amount)
        _print_signature(f"Withdrew {args.amount} SOL", signature)
        return 0

    return _run(args, action)


def cmd_set_price(args: argparse.Namespace) -> int:
    async def action(client: LotteryClient, settings: Settings) -> int:
        signature = await client.set_ticket_price(args.price)
        _print_signature(f"Ticket price set to {args.price} SOL", signature)
        return 0

    return _run(args, action)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="solana-referral-lottery",
        description="Client for the on-chain referral lottery program.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--program-id", default=None, help="Override the lottery program id.")
    p.add_argument(
        "--keypair",
        default=None,
        help="Keypair file or base58 secret used as the wallet (else LOTTERY_KEYPAIR).",
    )
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    a = sub.add_parser("addresses", help="Print the derived program addresses.")
    a.add_argument("--owner", default=None, help="Wallet address (default: keypair).")
    a.set_defaults(func=cmd_addresses)

    d = sub.add_parser("dashboard", help="Show lottery totals and referral earnings.")
    d.add_argument("--owner", default=None, help="Wallet address (default: keypair).")
    d.set_defaults(func=cmd_dashboard)

    r = sub.add_parser("referral-chain", help="Resolve the referral chain of a referrer.")
    r.add_argument("--referrer", required=True, help="Level-1 referrer address.")
    r.set_defaults(func=cmd_referral_chain)

    b = sub.add_parser("buy", help="Buy tickets.")
    b.add_argument("--count", required=True, type=int, help="Number of tickets.")
    b.add_argument("--referrer", default=None, help="Referrer wallet address.")
    b.set_defaults(func=cmd_buy)

    dr = sub.add_parser("draw", help="Run the draw (authority only).")
    dr.add_argument(
        "--winner",
        action="append",
        required=True,
        help="Winner address; pass exactly three times.",
    )
    dr.set_defaults(func=cmd_draw)

    w = sub.add_parser("withdraw", help="Withdraw from the pool (authority only).")
    w.add_argument("--amount", required=True, help="Amount in SOL.")
    w.set_defaults(func=cmd_withdraw)

    s = sub.add_parser("set-price", help="Set the ticket price (authority only).")
    s.add_argument("--price", required=True, help="Price in SOL (minimum 0.001).")
    s.set_defaults(func=cmd_set_price)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    log = logging.getLogger("lottery")
    try:
        code = args.func(args)
    except (LotteryClientError, httpx.HTTPError) as exc:
        log.error("%s", exc)
        code = 1
    raise SystemExit(code)
