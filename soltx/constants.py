"""
Constants used across the decoder and the fee estimator.
"""
from solders.pubkey import Pubkey

# Program addresses
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
COMPUTE_BUDGET_PROGRAM_ID = "ComputeBudget111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# Raw 32-byte identifiers compared against account table entries
SYSTEM_PROGRAM_BYTES = bytes(Pubkey.from_string(SYSTEM_PROGRAM_ID))
COMPUTE_BUDGET_PROGRAM_BYTES = bytes(Pubkey.from_string(COMPUTE_BUDGET_PROGRAM_ID))
TOKEN_PROGRAM_BYTES = bytes(Pubkey.from_string(TOKEN_PROGRAM_ID))

# Wire format sizes
PUBKEY_LENGTH = 32
SIGNATURE_LENGTH = 64
BLOCKHASH_LENGTH = 32
VERSION_PREFIX_MASK = 0x7F
VERSION_PREFIX_FLAG = 0x80

# Fee model
LAMPORTS_PER_SOL = 1_000_000_000
MICRO_LAMPORTS_PER_LAMPORT = 1_000_000
BASE_FEE_LAMPORTS = 5000  # per signature, fixed by the network
DEFAULT_MIN_PRIORITY_FEE_LAMPORTS = 1000

# Cache TTL constants (in seconds)
NETWORK_FEE_CACHE_TTL = 30
NETWORK_FEE_CACHE_PURPOSE = "network-fee"

# Timeouts (in seconds)
DEFAULT_RPC_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0

# Network health states
NETWORK_HEALTHY = "healthy"
NETWORK_UNHEALTHY = "unhealthy"
