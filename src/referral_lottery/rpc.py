from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import httpx
from solders.hash import Hash
from solders.pubkey import Pubkey

from .errors import MalformedAccountData, RpcError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountInfo:
    data: bytes
    owner: Pubkey
    lamports: int


@dataclass(frozen=True)
class SignatureStatus:
    slot: int
    confirmation_status: Optional[str]
    err: Optional[Any]


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        commitment: str = "confirmed",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = httpx.AsyncClient(timeout=timeout_s, transport=transport)
        self._next_id = 0

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _call(self, method: str, params: List[Any]) -> Any:
        self._next_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": params,
        }
        resp = await self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            err = data["error"]
            raise RpcError(int(err.get("code", 0)), str(err.get("message", "")), err.get("data"))
        return data.get("result")

    async def get_account_info(
        self,
        address: Pubkey,
        expected_owner: Optional[Pubkey] = None,
    ) -> Optional[AccountInfo]:
        """
        Returns None when the account does not exist.
        Raises MalformedAccountData when `expected_owner` is given and differs.
        """
        result = await self._call(
            "getAccountInfo",
            [str(address), {"encoding": "base64", "commitment": self.commitment}],
        )
        value = (result or {}).get("value")
        if value is None:
            log.debug("Account %s not found", address)
            return None

        # value['data'] is [base64_str, "base64"]
        raw = base64.b64decode(value["data"][0])
        owner = Pubkey.from_string(value["owner"])
        if expected_owner is not None and owner != expected_owner:
            raise MalformedAccountData(
                f"Account {address} is owned by {owner}, expected {expected_owner}"
            )
        log.debug("Account %s: %d bytes, owner %s", address, len(raw), owner)
        return AccountInfo(data=raw, owner=owner, lamports=int(value.get("lamports", 0)))

    async def get_latest_blockhash(self) -> Tuple[Hash, int]:
        result = await self._call("getLatestBlockhash", [{"commitment": self.commitment}])
        value = result["value"]
        return Hash.from_string(value["blockhash"]), int(value["lastValidBlockHeight"])

    async def send_transaction(self, raw_tx: bytes) -> str:
        encoded = base64.b64encode(raw_tx).decode("ascii")
        result = await self._call(
            "sendTransaction",
            [encoded, {"encoding": "base64", "preflightCommitment": self.commitment}],
        )
        return str(result)

    async def get_signature_statuses(
        self, signatures: Sequence[str]
    ) -> List[Optional[SignatureStatus]]:
        result = await self._call(
            "getSignatureStatuses",
            [list(signatures), {"searchTransactionHistory": True}],
        )
        out: List[Optional[SignatureStatus]] = []
        for item in result["value"]:
            if item is None:
                out.append(None)
                continue
            out.append(
                SignatureStatus(
                    slot=int(item.get("slot", 0)),
                    confirmation_status=item.get("confirmationStatus"),
                    err=item.get("err"),
                )
            )
        return out

