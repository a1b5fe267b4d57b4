"""
Custom error types for transaction decoding and fee estimation.
"""
from typing import Optional


class SoltxError(Exception):
    """Base class for soltx errors."""
    pass


class DecodeError(SoltxError):
    """Structural error that aborts decoding of the whole buffer."""

    def __init__(self, message: str, stage: str = "unknown", offset: Optional[int] = None):
        self.stage = stage
        self.offset = offset
        location = f" at offset {offset}" if offset is not None else ""
        super().__init__(f"[{stage}] {message}{location}")
        self.detail = message

    def to_dict(self):
        return {
            "error": type(self).__name__,
            "stage": self.stage,
            "offset": self.offset,
            "detail": self.detail,
        }


class TruncatedBuffer(DecodeError):
    """Raised when a read runs past the end of the buffer."""
    pass


class IndexOutOfRange(DecodeError):
    """Raised when an instruction references an account outside the account table."""
    pass


class InvalidAccountCount(DecodeError):
    """Raised when the account table size is inconsistent with the message header."""
    pass


class InvalidEncoding(DecodeError):
    """Raised when the text input is not valid base64."""
    pass


class FramingMismatch(DecodeError):
    """Raised when a buffer does not carry the marker of the framing being tried."""
    pass


class UnrecognizedFormat(DecodeError):
    """Raised when neither the versioned nor the legacy framing can parse the buffer."""

    def __init__(self, versioned_error: DecodeError, legacy_error: DecodeError):
        self.versioned_error = versioned_error
        self.legacy_error = legacy_error
        super().__init__(
            f"versioned: {versioned_error}; legacy: {legacy_error}",
            stage="format_detection",
        )

    def to_dict(self):
        data = super().to_dict()
        data["causes"] = {
            "versioned": self.versioned_error.to_dict(),
            "legacy": self.legacy_error.to_dict(),
        }
        return data


class PayloadMismatch(SoltxError):
    """Raised when an instruction payload does not match any known opcode shape."""
    pass


class RPCError(SoltxError):
    """Base class for RPC errors."""
    pass


class RetryableError(RPCError):
    """Base class for errors that can be retried."""
    pass


class RateLimitError(RetryableError):
    """Raised when rate limit is exceeded."""
    pass


class NodeUnhealthyError(RetryableError):
    """Raised when node is unhealthy."""
    pass


class NetworkFeeError(SoltxError):
    """Raised when the fee oracle cannot be reached or times out."""
    pass


class TransactionNotFoundError(SoltxError):
    """Raised when the node has no record of a transaction signature."""
    pass


# Public exports
__all__ = [
    'SoltxError',
    'DecodeError',
    'TruncatedBuffer',
    'IndexOutOfRange',
    'InvalidAccountCount',
    'InvalidEncoding',
    'FramingMismatch',
    'UnrecognizedFormat',
    'PayloadMismatch',
    'RPCError',
    'RetryableError',
    'RateLimitError',
    'NodeUnhealthyError',
    'NetworkFeeError',
    'TransactionNotFoundError',
]
