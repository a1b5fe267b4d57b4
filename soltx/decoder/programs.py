"""
Recognition of well-known programs and decoding of their instruction payloads.

Both lookups are table driven: PROGRAM_TABLE maps raw 32-byte program ids to a
RecognizedProgram, and PAYLOAD_DECODERS maps a RecognizedProgram to the
function that interprets its instruction data. Adding a program means adding
one entry to each table.
"""
import logging
from typing import Callable, Dict, Optional, Sequence

from ..constants import (
    COMPUTE_BUDGET_PROGRAM_BYTES,
    SYSTEM_PROGRAM_BYTES,
    TOKEN_PROGRAM_BYTES,
)
from ..errors import PayloadMismatch
from .models import (
    ComputeBudgetLimit,
    ComputeBudgetPrice,
    DecodedPayload,
    RecognizedProgram,
    SystemTransfer,
    TokenClassification,
    TokenOperation,
)
from .reader import read_u32_le, read_u64_le

logger = logging.getLogger(__name__)

PROGRAM_TABLE: Dict[bytes, RecognizedProgram] = {
    SYSTEM_PROGRAM_BYTES: RecognizedProgram.SYSTEM,
    COMPUTE_BUDGET_PROGRAM_BYTES: RecognizedProgram.COMPUTE_BUDGET,
    TOKEN_PROGRAM_BYTES: RecognizedProgram.TOKEN,
}

# System program instruction tags (u32)
SYSTEM_TRANSFER_TAG = 2
SYSTEM_TRANSFER_LENGTH = 12

# Compute budget opcodes (u8)
SET_COMPUTE_UNIT_LIMIT = 2
SET_COMPUTE_UNIT_LIMIT_LENGTH = 5
SET_COMPUTE_UNIT_PRICE = 3
SET_COMPUTE_UNIT_PRICE_LENGTH = 9

TOKEN_OPERATIONS: Dict[int, TokenOperation] = {
    3: TokenOperation.TRANSFER,
    7: TokenOperation.MINT_TO,
    8: TokenOperation.BURN,
}


def recognize_program(program_id: bytes) -> RecognizedProgram:
    """Resolve a program id by exact byte equality against PROGRAM_TABLE."""
    return PROGRAM_TABLE.get(bytes(program_id), RecognizedProgram.UNKNOWN)


def decode_system(data: bytes, account_indexes: Sequence[int]) -> DecodedPayload:
    if len(data) != SYSTEM_TRANSFER_LENGTH:
        raise PayloadMismatch(f"system payload length {len(data)}, expected {SYSTEM_TRANSFER_LENGTH}")
    tag = read_u32_le(data, 0)
    if tag != SYSTEM_TRANSFER_TAG:
        raise PayloadMismatch(f"system instruction tag {tag} is not a transfer")
    return SystemTransfer(lamports=read_u64_le(data, 4))


def decode_compute_budget(data: bytes, account_indexes: Sequence[int]) -> DecodedPayload:
    if not data:
        raise PayloadMismatch("empty compute budget payload")
    opcode = data[0]
    if opcode == SET_COMPUTE_UNIT_PRICE and len(data) == SET_COMPUTE_UNIT_PRICE_LENGTH:
        return ComputeBudgetPrice(micro_lamports=read_u64_le(data, 1))
    if opcode == SET_COMPUTE_UNIT_LIMIT and len(data) == SET_COMPUTE_UNIT_LIMIT_LENGTH:
        return ComputeBudgetLimit(units=read_u32_le(data, 1))
    raise PayloadMismatch(f"compute budget opcode {opcode} with length {len(data)}")


def decode_token(data: bytes, account_indexes: Sequence[int]) -> DecodedPayload:
    if not data:
        raise PayloadMismatch("empty token payload")
    operation = TOKEN_OPERATIONS.get(data[0])
    if operation is None:
        raise PayloadMismatch(f"token opcode {data[0]} is not classified")
    return TokenClassification(operation=operation, account_indexes=tuple(account_indexes))


PAYLOAD_DECODERS: Dict[RecognizedProgram, Callable[[bytes, Sequence[int]], DecodedPayload]] = {
    RecognizedProgram.SYSTEM: decode_system,
    RecognizedProgram.COMPUTE_BUDGET: decode_compute_budget,
    RecognizedProgram.TOKEN: decode_token,
}


def decode_payload(program: RecognizedProgram, data: bytes,
                   account_indexes: Sequence[int]) -> Optional[DecodedPayload]:
    """
    Interpret an instruction payload for a recognized program.

    Returns None when the program is unknown or the payload shape does not
    match a known opcode; that is not an error for the enclosing transaction.
    """
    decoder = PAYLOAD_DECODERS.get(program)
    if decoder is None:
        return None
    try:
        return decoder(bytes(data), account_indexes)
    except PayloadMismatch as e:
        logger.debug(f"{program.value} payload left undecoded: {e}")
        return None
