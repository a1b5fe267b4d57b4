"""
Decoder for serialized Solana transactions (legacy and versioned framing).
"""
import base64
import binascii
import logging
from typing import List, Optional, Tuple, Union

from ..constants import (
    BLOCKHASH_LENGTH,
    PUBKEY_LENGTH,
    SIGNATURE_LENGTH,
    VERSION_PREFIX_FLAG,
    VERSION_PREFIX_MASK,
)
from ..errors import (
    DecodeError,
    FramingMismatch,
    IndexOutOfRange,
    InvalidAccountCount,
    InvalidEncoding,
    TruncatedBuffer,
    UnrecognizedFormat,
)
from .models import (
    AddressTableLookup,
    DecodedInstruction,
    DecodedTransaction,
    MessageHeader,
    SignatureSlot,
    TransactionFormat,
)
from .programs import decode_payload, recognize_program
from .reader import ByteReader

logger = logging.getLogger(__name__)

SUPPORTED_MESSAGE_VERSIONS = (0,)

# (program_index, account_indexes, payload) as read from the wire
CompiledInstruction = Tuple[int, Tuple[int, ...], bytes]


class TransactionDecoder:
    """
    Parses raw transaction bytes into a DecodedTransaction.

    The versioned framing is attempted first and the legacy framing second.
    When one framing rejects the buffer only because its format marker is
    absent, the other framing's error is reported as is. Otherwise an
    UnrecognizedFormat carrying both errors is raised; this includes a
    version prefix other than v0, which neither framing accepts.

    The decoder holds no state between calls and is safe to share.
    """

    def decode(self, raw: Union[bytes, bytearray, memoryview]) -> DecodedTransaction:
        """
        Decode a serialized transaction.

        Args:
            raw: Transaction bytes as sent over the wire

        Returns:
            DecodedTransaction: The structured transaction

        Raises:
            DecodeError: If the buffer is structurally malformed
        """
        data = bytes(raw)
        logger.debug(f"Decoding transaction of {len(data)} bytes")
        try:
            return self._decode_framing(data, TransactionFormat.VERSIONED)
        except DecodeError as versioned_error:
            logger.debug(f"Versioned framing rejected: {versioned_error}")
            try:
                return self._decode_framing(data, TransactionFormat.LEGACY)
            except DecodeError as legacy_error:
                logger.debug(f"Legacy framing rejected: {legacy_error}")
                raise self._select_failure(versioned_error, legacy_error) from None

    def decode_base64(self, text: str) -> DecodedTransaction:
        """Decode a base64-encoded transaction."""
        cleaned = "".join(text.split())
        try:
            data = base64.b64decode(cleaned, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidEncoding(f"input is not valid base64: {e}", stage="base64") from e
        return self.decode(data)

    @staticmethod
    def _select_failure(versioned_error: DecodeError, legacy_error: DecodeError) -> DecodeError:
        versioned_applies = not isinstance(versioned_error, FramingMismatch)
        legacy_applies = not isinstance(legacy_error, FramingMismatch)
        if versioned_applies and not legacy_applies:
            return versioned_error
        if legacy_applies and not versioned_applies:
            return legacy_error
        return UnrecognizedFormat(versioned_error, legacy_error)

    def _decode_framing(self, data: bytes, framing: TransactionFormat) -> DecodedTransaction:
        reader = ByteReader(data)
        signatures = self._read_signatures(reader)
        version = self._read_version(reader, framing)
        header = self._read_header(reader)
        account_table = self._read_account_table(reader, header)
        recent_blockhash = reader.read_bytes(BLOCKHASH_LENGTH, "recent_blockhash")
        compiled = self._read_instructions(reader)

        lookups: Tuple[AddressTableLookup, ...] = ()
        if framing is TransactionFormat.VERSIONED:
            lookups = self._read_address_table_lookups(reader)

        addressable = len(account_table) + sum(lookup.loaded_count for lookup in lookups)
        instructions = tuple(
            self._resolve_instruction(index, entry, account_table, addressable)
            for index, entry in enumerate(compiled)
        )

        if reader.remaining:
            logger.warning(f"Ignoring {reader.remaining} trailing byte(s) after the {framing.value} message")
        if len(signatures) != header.num_required_signatures:
            logger.warning(
                f"Signature table has {len(signatures)} slot(s) but the header requires "
                f"{header.num_required_signatures}"
            )

        return DecodedTransaction(
            format=framing,
            version=version,
            header=header,
            account_table=account_table,
            recent_blockhash=recent_blockhash,
            instructions=instructions,
            signatures=signatures,
            address_table_lookups=lookups,
            raw=data,
        )

    def _read_signatures(self, reader: ByteReader) -> Tuple[SignatureSlot, ...]:
        count = reader.read_compact_u16("signature_count")
        return tuple(
            SignatureSlot(index=index, value=reader.read_bytes(SIGNATURE_LENGTH, "signatures"))
            for index in range(count)
        )

    def _read_version(self, reader: ByteReader, framing: TransactionFormat) -> Union[str, int]:
        prefix = reader.peek_u8("message_prefix")
        is_versioned = bool(prefix & VERSION_PREFIX_FLAG)
        if framing is TransactionFormat.LEGACY:
            if is_versioned:
                raise FramingMismatch("message carries a version prefix", stage="message_prefix",
                                      offset=reader.offset)
            return "legacy"

        if not is_versioned:
            raise FramingMismatch("message has no version prefix", stage="message_prefix",
                                  offset=reader.offset)
        version = reader.read_u8("message_prefix") & VERSION_PREFIX_MASK
        if version not in SUPPORTED_MESSAGE_VERSIONS:
            raise FramingMismatch(f"message version {version} is not supported", stage="message_prefix",
                                  offset=reader.offset - 1)
        return version

    def _read_header(self, reader: ByteReader) -> MessageHeader:
        return MessageHeader(
            num_required_signatures=reader.read_u8("message_header"),
            num_readonly_signed=reader.read_u8("message_header"),
            num_readonly_unsigned=reader.read_u8("message_header"),
        )

    def _read_account_table(self, reader: ByteReader, header: MessageHeader) -> Tuple[bytes, ...]:
        start = reader.offset
        try:
            count = reader.read_compact_u16("account_count")
        except TruncatedBuffer:
            raise
        except DecodeError as e:
            raise InvalidAccountCount(e.detail, stage=e.stage, offset=e.offset) from e
        if count == 0:
            raise InvalidAccountCount("account table is empty", stage="account_count", offset=start)
        if header.num_required_signatures > count:
            raise InvalidAccountCount(
                f"header requires {header.num_required_signatures} signer(s) but only {count} account(s) are listed",
                stage="account_count",
                offset=start,
            )
        if header.num_readonly_signed > header.num_required_signatures:
            raise InvalidAccountCount(
                f"{header.num_readonly_signed} readonly signer(s) exceed "
                f"{header.num_required_signatures} required signer(s)",
                stage="account_count",
                offset=start,
            )
        if header.num_required_signatures + header.num_readonly_unsigned > count:
            raise InvalidAccountCount(
                f"{header.num_readonly_unsigned} readonly unsigned account(s) do not fit in {count} account(s)",
                stage="account_count",
                offset=start,
            )
        if count * PUBKEY_LENGTH > reader.remaining:
            raise InvalidAccountCount(
                f"account count {count} needs {count * PUBKEY_LENGTH} bytes, {reader.remaining} left",
                stage="account_count",
                offset=start,
            )
        return tuple(reader.read_bytes(PUBKEY_LENGTH, "account_table") for _ in range(count))

    def _read_instructions(self, reader: ByteReader) -> List[CompiledInstruction]:
        count = reader.read_compact_u16("instruction_count")
        compiled: List[CompiledInstruction] = []
        for _ in range(count):
            program_index = reader.read_u8("instruction_program_index")
            account_count = reader.read_compact_u16("instruction_account_count")
            account_indexes = tuple(reader.read_bytes(account_count, "instruction_accounts"))
            data_length = reader.read_compact_u16("instruction_data_length")
            payload = reader.read_bytes(data_length, "instruction_data")
            compiled.append((program_index, account_indexes, payload))
        return compiled

    def _read_address_table_lookups(self, reader: ByteReader) -> Tuple[AddressTableLookup, ...]:
        count = reader.read_compact_u16("lookup_count")
        lookups = []
        for _ in range(count):
            account_key = reader.read_bytes(PUBKEY_LENGTH, "lookup_account")
            writable_count = reader.read_compact_u16("lookup_writable_count")
            writable = tuple(reader.read_bytes(writable_count, "lookup_writable_indexes"))
            readonly_count = reader.read_compact_u16("lookup_readonly_count")
            readonly = tuple(reader.read_bytes(readonly_count, "lookup_readonly_indexes"))
            lookups.append(AddressTableLookup(
                account_key=account_key,
                writable_indexes=writable,
                readonly_indexes=readonly,
            ))
        return tuple(lookups)

    def _resolve_instruction(self, index: int, compiled: CompiledInstruction,
                             account_table: Tuple[bytes, ...], addressable: int) -> DecodedInstruction:
        program_index, account_indexes, payload = compiled
        # Programs must be static accounts; instruction accounts may come from lookup tables
        if program_index >= len(account_table):
            raise IndexOutOfRange(
                f"instruction {index} program index {program_index} outside account table of "
                f"{len(account_table)}",
                stage="instruction_program_index",
            )
        for position, account_index in enumerate(account_indexes):
            if account_index >= addressable:
                raise IndexOutOfRange(
                    f"instruction {index} account #{position} index {account_index} outside "
                    f"{addressable} addressable account(s)",
                    stage="instruction_accounts",
                )

        program_id = account_table[program_index]
        program = recognize_program(program_id)
        return DecodedInstruction(
            index=index,
            program_index=program_index,
            program_id=program_id,
            account_indexes=account_indexes,
            raw_payload=payload,
            recognized_program=program,
            decoded_payload=decode_payload(program, payload, account_indexes),
        )


_default_decoder: Optional[TransactionDecoder] = None


def get_decoder() -> TransactionDecoder:
    """Return the shared decoder instance."""
    global _default_decoder
    if _default_decoder is None:
        _default_decoder = TransactionDecoder()
    return _default_decoder
