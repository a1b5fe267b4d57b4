"""
Transaction decoding: wire-format parsing, program recognition and payload decoding.
"""
from .models import (
    AddressTableLookup,
    ComputeBudgetLimit,
    ComputeBudgetPrice,
    DecodedInstruction,
    DecodedPayload,
    DecodedTransaction,
    MessageHeader,
    RecognizedProgram,
    SignatureSlot,
    SystemTransfer,
    TokenClassification,
    TokenOperation,
    TransactionFormat,
)
from .transaction import TransactionDecoder, get_decoder

__all__ = [
    'AddressTableLookup',
    'ComputeBudgetLimit',
    'ComputeBudgetPrice',
    'DecodedInstruction',
    'DecodedPayload',
    'DecodedTransaction',
    'MessageHeader',
    'RecognizedProgram',
    'SignatureSlot',
    'SystemTransfer',
    'TokenClassification',
    'TokenOperation',
    'TransactionFormat',
    'TransactionDecoder',
    'get_decoder',
]
