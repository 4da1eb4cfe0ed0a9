"""
Wire-level constants shared with the on-chain referral lottery program.

Seed prefixes and the program id must match the deployed program byte for byte.
A mismatch does not fail loudly: derivation just lands on a foreign address.
"""

from solders.pubkey import Pubkey

# Deployed program (DEVNET)
PROGRAM_ID = "DfCSQQ6a3CTHf92X9YF7MiitMRbNaZZfbgFZ4yQrbcCd"

DEFAULT_RPC_URL = "https://api.devnet.solana.com"

SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")

# PDA seed prefixes
LOTTERY_SEED = b"lottery"
USER_TICKET_SEED = b"user_ticket"
USER_REFERRAL_SEED = b"user_referral"

# Native SOL uses 9 decimals
LAMPORTS_PER_SOL = 1_000_000_000

# Smallest settable ticket price (0.001 SOL)
MIN_TICKET_PRICE = 1_000_000

# Referral accounts with no parent store the all-zero key
NO_PARENT = Pubkey.default()

U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
