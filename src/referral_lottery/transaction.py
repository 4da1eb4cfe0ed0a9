from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

import base58
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from .config import COMMITMENTS
from .errors import (
    ConfigError,
    ConfirmationTimeout,
    InvalidArgument,
    RpcError,
    SignerUnavailable,
    SubmissionRejected,
)
from .rpc import RpcClient, SignatureStatus

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionBundle:
    message: Message
    recent_blockhash: Hash
    last_valid_block_height: int


class Signer(Protocol):
    async def connect(self) -> Pubkey: ...

    async def sign_and_send(self, bundle: TransactionBundle) -> str: ...


class KeypairSigner:
    """Wallet backed by a local keypair that submits through the RPC node."""

    def __init__(self, keypair: Keypair, rpc: RpcClient) -> None:
        self.keypair = keypair
        self.rpc = rpc

    async def connect(self) -> Pubkey:
        return self.keypair.pubkey()

    async def sign_and_send(self, bundle: TransactionBundle) -> str:
        payer = bundle.message.account_keys[0]
        if payer != self.keypair.pubkey():
            raise SignerUnavailable(
                f"Fee payer {payer} is not this wallet ({self.keypair.pubkey()})"
            )
        tx = Transaction([self.keypair], bundle.message, bundle.recent_blockhash)
        try:
            return await self.rpc.send_transaction(bytes(tx))
        except RpcError as exc:
            raise SubmissionRejected(f"Transaction rejected: {exc.message}") from exc


def load_keypair(source: str) -> Keypair:
    """
    Supports:
    1) Path to a solana-keygen JSON file (array of 64 ints)
    2) Base58-encoded 64-byte secret key
    """
    path = Path(source).expanduser()
    try:
        if path.is_file():
            secret = bytes(json.loads(path.read_text(encoding="utf-8")))
        else:
            secret = base58.b58decode(source.strip())
        return Keypair.from_bytes(secret)
    except (OSError, ValueError, TypeError) as exc:
        raise ConfigError(f"Could not load keypair from {source!r}: {exc}") from exc


class TransactionOrchestrator:
    def __init__(
        self,
        rpc: RpcClient,
        signer: Optional[Signer],
        commitment: str = "confirmed",
        confirm_timeout_s: float = 60.0,
        poll_interval_s: float = 0.5,
    ) -> None:
        if commitment not in COMMITMENTS:
            raise ConfigError(f"Unknown commitment level: {commitment}")
        self.rpc = rpc
        self.signer = signer
        self.commitment = commitment
        self.confirm_timeout_s = confirm_timeout_s
        self.poll_interval_s = poll_interval_s

    async def submit(self, instructions: Sequence[Instruction], fee_payer: Pubkey) -> str:
        if self.signer is None:
            raise SignerUnavailable("No wallet connected.")
        if not instructions:
            raise InvalidArgument("Nothing to submit: no instructions given.")

        blockhash, last_valid = await self.rpc.get_latest_blockhash()
        message = Message.new_with_blockhash(list(instructions), fee_payer, blockhash)
        bundle = TransactionBundle(
            message=message,
            recent_blockhash=blockhash,
            last_valid_block_height=last_valid,
        )

        signature = await self.signer.sign_and_send(bundle)
        log.info("Submitted transaction %s", signature)
        status = await self.wait_for_confirmation(signature)
        log.info("Confirmed transaction %s at slot %d", signature, status.slot)
        return signature

    async def wait_for_confirmation(self, signature: str) -> SignatureStatus:
        try:
            return await asyncio.wait_for(
                self._poll_status(signature), timeout=self.confirm_timeout_s
            )
        except asyncio.TimeoutError as exc:
            raise ConfirmationTimeout(
                f"Transaction {signature} not {self.commitment} after {self.confirm_timeout_s}s"
            ) from exc

    async def _poll_status(self, signature: str) -> SignatureStatus:
        target = COMMITMENTS.index(self.commitment)
        while True:
            status = (await self.rpc.get_signature_statuses([signature]))[0]
            if status is not None:
                if status.err is not None:
                    raise SubmissionRejected(f"Transaction {signature} failed: {status.err}")
                reached = status.confirmation_status
                if reached in COMMITMENTS and COMMITMENTS.index(reached) >= target:
                    return status
            await asyncio.sleep(self.poll_interval_s)
