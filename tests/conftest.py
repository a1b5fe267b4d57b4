"""
Pytest configuration file for soltx tests
"""

import base64
from typing import Iterable, Optional, Sequence, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.signature import Signature

from soltx.config import NetworkConfig
from soltx.constants import COMPUTE_BUDGET_PROGRAM_BYTES, SYSTEM_PROGRAM_BYTES
from soltx.decoder import TransactionDecoder
from soltx.fees import FeeEstimator, TTLCache

# Unsigned legacy transfer of 2 SOL with compute unit price 150_000_000 and limit 500
SAMPLE_TRANSACTION = (
    "AQAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAB"
    "AAIEef8bsG2Oerd3idSR7gWJg/Lvu2gTN5caLUG2gxsJEGlGbPJTvMRwld1UJI317U53rDCBd1jsy3CZDKkpRjdy"
    "cQAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAwZGb+UhFzL/7K26csOb57yM5bvF9xJrLEObOkAAAAAx"
    "+btTHk1miczZQviXncjLaxu9sn7xw3JMR45wxTErVwMDAAkDgNHwCAAAAAADAAUC9AEAAAICAAEMAgAAAACUNXcA"
    "AAAA"
)

PAYER = bytes(range(1, 33))
RECIPIENT = bytes(range(33, 65))
BLOCKHASH = b"\x11" * 32

CompiledInstruction = Tuple[int, Sequence[int], bytes]
Lookup = Tuple[bytes, Sequence[int], Sequence[int]]


def transaction_result(transaction: str, fee: int = 80_000, err=None) -> dict:
    """getTransaction result for a base64-encoded transaction"""
    return {
        "slot": 250_000_000,
        "blockTime": 1_700_000_000,
        "transaction": [transaction, "base64"],
        "meta": {"err": err, "fee": fee, "computeUnitsConsumed": 450},
        "version": "legacy",
    }


def compact_u16(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


class TransactionBuilder:
    """Assembles wire-format transactions for tests"""

    payer = PAYER
    recipient = RECIPIENT
    blockhash = BLOCKHASH

    @staticmethod
    def compact_u16(value: int) -> bytes:
        return compact_u16(value)

    @staticmethod
    def message(accounts: Sequence[bytes], instructions: Iterable[CompiledInstruction],
                header: Tuple[int, int, int] = (1, 0, 1), blockhash: bytes = BLOCKHASH,
                version: Optional[int] = None, lookups: Iterable[Lookup] = ()) -> bytes:
        instructions = list(instructions)
        out = bytearray()
        if version is not None:
            out.append(0x80 | version)
        out += bytes(header)
        out += compact_u16(len(accounts)) + b"".join(accounts)
        out += blockhash
        out += compact_u16(len(instructions))
        for program_index, account_indexes, data in instructions:
            out.append(program_index)
            out += compact_u16(len(account_indexes)) + bytes(account_indexes)
            out += compact_u16(len(data)) + data
        if version is not None:
            lookups = list(lookups)
            out += compact_u16(len(lookups))
            for key, writable, readonly in lookups:
                out += key
                out += compact_u16(len(writable)) + bytes(writable)
                out += compact_u16(len(readonly)) + bytes(readonly)
        return bytes(out)

    @staticmethod
    def transaction(message: bytes, signatures: Sequence[bytes] = (b"\x00" * 64,)) -> bytes:
        return compact_u16(len(signatures)) + b"".join(signatures) + message

    @staticmethod
    def system_transfer(lamports: int) -> bytes:
        return (2).to_bytes(4, "little") + lamports.to_bytes(8, "little")

    @staticmethod
    def set_compute_unit_price(micro_lamports: int) -> bytes:
        return b"\x03" + micro_lamports.to_bytes(8, "little")

    @staticmethod
    def set_compute_unit_limit(units: int) -> bytes:
        return b"\x02" + units.to_bytes(4, "little")

    def transfer(self, lamports: int, price: Optional[int] = None, limit: Optional[int] = None,
                 version: Optional[int] = None) -> bytes:
        """Payer -> recipient transfer with optional compute budget instructions"""
        accounts = [self.payer, self.recipient, SYSTEM_PROGRAM_BYTES, COMPUTE_BUDGET_PROGRAM_BYTES]
        instructions = []
        if price is not None:
            instructions.append((3, [], self.set_compute_unit_price(price)))
        if limit is not None:
            instructions.append((3, [], self.set_compute_unit_limit(limit)))
        instructions.append((2, [0, 1], self.system_transfer(lamports)))
        message = self.message(accounts, instructions, header=(1, 0, 2), version=version)
        return self.transaction(message)


class FakeClock:
    """Manually advanced clock returning epoch seconds"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def builder():
    return TransactionBuilder()

@pytest.fixture
def decoder():
    return TransactionDecoder()

@pytest.fixture
def sample_transaction():
    return SAMPLE_TRANSACTION

@pytest.fixture
def sample_bytes():
    return base64.b64decode(SAMPLE_TRANSACTION)

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def mock_oracle():
    """Fee oracle returning a healthy probe and three fee samples"""
    oracle = MagicMock()
    oracle.get_latest_blockhash = AsyncMock(return_value={"blockhash": "11111111111111111111111111111111"})
    oracle.get_recent_prioritization_fees = AsyncMock(return_value=[2_000_000, 0, 4_000_000])
    oracle.get_transaction = AsyncMock(return_value=transaction_result(SAMPLE_TRANSACTION))
    return oracle

@pytest.fixture
def estimator(mock_oracle, clock):
    """Estimator wired to the mock oracle for every preset network"""
    return FeeEstimator(
        clients={"mainnet": mock_oracle, "testnet": mock_oracle, "devnet": mock_oracle},
        cache=TTLCache(ttl=30, clock=clock),
        timeout=1.0,
        min_priority_fee_lamports=1000,
    )

@pytest.fixture
def custom_network():
    return NetworkConfig(rpc_url="http://localhost:8899", name="Local Validator", is_testnet=True)

@pytest.fixture
def transaction_signature():
    return str(Signature(bytes([7]) * 64))

@pytest.fixture
def make_transaction_result():
    return transaction_result
