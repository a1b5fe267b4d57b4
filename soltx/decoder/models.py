"""
Models for representing decoded Solana transactions.
"""
import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..constants import LAMPORTS_PER_SOL


class TransactionFormat(str, Enum):
    """Wire framing of a transaction message."""
    LEGACY = "legacy"
    VERSIONED = "versioned"


class RecognizedProgram(str, Enum):
    """Well-known programs resolved from an instruction's program account."""
    SYSTEM = "SystemProgram"
    COMPUTE_BUDGET = "ComputeBudget"
    TOKEN = "TokenProgram"
    UNKNOWN = "Unknown"


class TokenOperation(str, Enum):
    TRANSFER = "Transfer"
    MINT_TO = "MintTo"
    BURN = "Burn"


def lamports_to_sol(lamports: int) -> float:
    """Convert lamports to a SOL display value."""
    return lamports / LAMPORTS_PER_SOL


@dataclass(frozen=True)
class SystemTransfer:
    """SystemProgram::Transfer payload."""
    lamports: int

    kind = "SystemProgram::Transfer"

    @property
    def sol(self) -> float:
        return lamports_to_sol(self.lamports)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "lamports": self.lamports,
            "sol": self.sol,
        }


@dataclass(frozen=True)
class ComputeBudgetPrice:
    """ComputeBudget::SetComputeUnitPrice payload (micro-lamports per compute unit)."""
    micro_lamports: int

    kind = "ComputeBudget::SetComputeUnitPrice"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "micro_lamports": self.micro_lamports,
        }


@dataclass(frozen=True)
class ComputeBudgetLimit:
    """ComputeBudget::SetComputeUnitLimit payload."""
    units: int

    kind = "ComputeBudget::SetComputeUnitLimit"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "units": self.units,
        }


@dataclass(frozen=True)
class TokenClassification:
    """Token program instruction, classified by opcode only."""
    operation: TokenOperation
    account_indexes: Tuple[int, ...]

    @property
    def kind(self) -> str:
        return f"TokenProgram::{self.operation.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "accounts": list(self.account_indexes),
        }


DecodedPayload = Union[SystemTransfer, ComputeBudgetPrice, ComputeBudgetLimit, TokenClassification]


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed: int
    num_readonly_unsigned: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "num_required_signatures": self.num_required_signatures,
            "num_readonly_signed": self.num_readonly_signed,
            "num_readonly_unsigned": self.num_readonly_unsigned,
        }


@dataclass(frozen=True)
class AddressTableLookup:
    """Address lookup table reference carried by a versioned message."""
    account_key: bytes
    writable_indexes: Tuple[int, ...]
    readonly_indexes: Tuple[int, ...]

    @property
    def loaded_count(self) -> int:
        return len(self.writable_indexes) + len(self.readonly_indexes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_key": str(Pubkey.from_bytes(self.account_key)),
            "writable_indexes": list(self.writable_indexes),
            "readonly_indexes": list(self.readonly_indexes),
        }


@dataclass(frozen=True)
class DecodedInstruction:
    """A compiled instruction with its program resolved and payload interpreted."""
    index: int
    program_index: int
    program_id: bytes
    account_indexes: Tuple[int, ...]
    raw_payload: bytes
    recognized_program: RecognizedProgram = RecognizedProgram.UNKNOWN
    decoded_payload: Optional[DecodedPayload] = None

    @property
    def program_address(self) -> str:
        return str(Pubkey.from_bytes(self.program_id))

    @property
    def program_type(self) -> str:
        if self.decoded_payload is not None:
            return self.decoded_payload.kind
        if self.recognized_program is RecognizedProgram.UNKNOWN:
            return RecognizedProgram.UNKNOWN.value
        return f"{self.recognized_program.value}::Unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "program_index": self.program_index,
            "program_id": self.program_address,
            "program_type": self.program_type,
            "account_indexes": list(self.account_indexes),
            "data_length": len(self.raw_payload),
            "data_hex": self.raw_payload.hex(),
            "decoded": self.decoded_payload.to_dict() if self.decoded_payload is not None else None,
        }


@dataclass(frozen=True)
class SignatureSlot:
    """A 64-byte signature slot; all-zero slots are unsigned placeholders."""
    index: int
    value: bytes

    @property
    def is_empty(self) -> bool:
        return not any(self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "is_empty": self.is_empty,
            "value": None if self.is_empty else str(Signature.from_bytes(self.value)),
        }


@dataclass(frozen=True)
class DecodedTransaction:
    """Structured view of a serialized transaction."""
    format: TransactionFormat
    version: Union[str, int]
    header: MessageHeader
    account_table: Tuple[bytes, ...]
    recent_blockhash: bytes
    instructions: Tuple[DecodedInstruction, ...]
    signatures: Tuple[SignatureSlot, ...]
    address_table_lookups: Tuple[AddressTableLookup, ...] = ()
    raw: bytes = field(default=b"", repr=False)

    @property
    def accounts(self) -> List[str]:
        return [str(Pubkey.from_bytes(key)) for key in self.account_table]

    @property
    def blockhash(self) -> str:
        return str(Hash.from_bytes(self.recent_blockhash))

    @property
    def addressable_account_count(self) -> int:
        """Static accounts plus accounts loaded through lookup tables."""
        return len(self.account_table) + sum(lookup.loaded_count for lookup in self.address_table_lookups)

    def summary(self) -> Dict[str, int]:
        """Count instructions per well-known program."""
        counts = {
            "total_instructions": len(self.instructions),
            "system_program_instructions": 0,
            "compute_budget_instructions": 0,
            "token_program_instructions": 0,
            "other_instructions": 0,
        }
        buckets = {
            RecognizedProgram.SYSTEM: "system_program_instructions",
            RecognizedProgram.COMPUTE_BUDGET: "compute_budget_instructions",
            RecognizedProgram.TOKEN: "token_program_instructions",
        }
        for instruction in self.instructions:
            counts[buckets.get(instruction.recognized_program, "other_instructions")] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "format": self.format.value,
            "version": self.version,
            "header": self.header.to_dict(),
            "accounts": self.accounts,
            "recent_blockhash": self.blockhash,
            "instructions": [instruction.to_dict() for instruction in self.instructions],
            "signatures": [signature.to_dict() for signature in self.signatures],
            "summary": self.summary(),
            "raw": {
                "base64": base64.b64encode(self.raw).decode("ascii"),
                "hex": self.raw.hex(),
                "length": len(self.raw),
            },
        }
        if self.format is TransactionFormat.VERSIONED:
            data["address_table_lookups"] = [lookup.to_dict() for lookup in self.address_table_lookups]
        return data
