from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from .errors import ConfigError
from .project_constants import DEFAULT_RPC_URL, PROGRAM_ID

DEFAULT_KEYPAIR = "~/.config/solana/id.json"
COMMITMENTS = ("processed", "confirmed", "finalized")


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    program_id: Pubkey
    commitment: str = "confirmed"
    confirm_timeout_s: float = 60.0
    keypair: str = DEFAULT_KEYPAIR

    @staticmethod
    def from_env(
        rpc_url_override: str | None = None,
        program_id_override: str | None = None,
        keypair_override: str | None = None,
    ) -> "Settings":
        load_dotenv()
        return Settings(
            rpc_url=_rpc_url(rpc_url_override),
            program_id=_program_id(program_id_override),
            commitment=_commitment(),
            confirm_timeout_s=_confirm_timeout(),
            keypair=keypair_override or os.getenv("LOTTERY_KEYPAIR", "").strip() or DEFAULT_KEYPAIR,
        )


def _rpc_url(override: str | None) -> str:
    # If user provides --rpc-url, trust it.
    if override:
        return override

    env_rpc = os.getenv("RPC_URL", "").strip()
    if env_rpc:
        return env_rpc

    helius_key = os.getenv("HELIUS_API_KEY", "").strip()
    if helius_key:
        return f"https://devnet.helius-rpc.com/?api-key={helius_key}"
    return DEFAULT_RPC_URL


def _program_id(override: str | None) -> Pubkey:
    raw = override or os.getenv("LOTTERY_PROGRAM_ID", "").strip() or PROGRAM_ID
    try:
        return Pubkey.from_string(raw)
    except ValueError as exc:
        raise ConfigError(f"Program id is not a valid pubkey: {raw!r}") from exc


def _commitment() -> str:
    value = os.getenv("LOTTERY_COMMITMENT", "").strip().lower() or "confirmed"
    if value not in COMMITMENTS:
        raise ConfigError(
            f"LOTTERY_COMMITMENT must be one of {', '.join(COMMITMENTS)}, got {value!r}"
        )
    return value


def _confirm_timeout() -> float:
    raw = os.getenv("LOTTERY_CONFIRM_TIMEOUT", "").strip()
    if not raw:
        return 60.0
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"LOTTERY_CONFIRM_TIMEOUT is not a number: {raw!r}") from exc
    if value <= 0:
        raise ConfigError("LOTTERY_CONFIRM_TIMEOUT must be positive.")
    return value
