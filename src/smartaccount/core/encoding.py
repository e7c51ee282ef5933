"""
Instruction Encoder: fixed-layout payloads and Anchor argument encoding.

Two payloads are relayed through the smart account's ``execute`` entry
point as built-ins:

- System Program transfer: [2 (u32 LE), lamports (u64 LE)]  -> 12 bytes
- SPL Token transfer:      [3 (u8),     amount (u64 LE)]    -> 9 bytes

The outer ``execute`` call itself is an Anchor instruction: an 8-byte
discriminator followed by Borsh-encoded arguments.
"""

import hashlib
import struct
from typing import Any, Dict, List

from solders.pubkey import Pubkey

from ..constants import U64_MAX
from ..errors import InvalidAmountError, InvalidInstructionDataError, InvalidPublicKeyError


SYSTEM_TRANSFER_INDEX = 2
TOKEN_TRANSFER_INDEX = 3

NATIVE_TRANSFER_LEN = 12
TOKEN_TRANSFER_LEN = 9

# Borsh layouts for fixed-width integer argument types
_INT_FORMATS = {
    "u8": "<B",
    "u16": "<H",
    "u32": "<I",
    "u64": "<Q",
    "i8": "<b",
    "i16": "<h",
    "i32": "<i",
    "i64": "<q",
}


def to_snake_case(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, c in enumerate(name):
        if c.isupper() and i > 0 and name[i - 1] != "_":
            result.append('_')
        result.append(c.lower())
    return ''.join(result)


def instruction_discriminator(name: str) -> bytes:
    """Anchor instruction discriminator: sha256("global:<snake_case_name>")[:8]."""
    preimage = f"global:{to_snake_case(name)}"
    return hashlib.sha256(preimage.encode()).digest()[:8]


def account_discriminator(name: str) -> bytes:
    """Anchor account discriminator: sha256("account:<TypeName>")[:8]."""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


def validate_u64(amount: Any) -> int:
    """Return ``amount`` if it is an integer in [0, 2**64 - 1], else raise."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount, "expected an integer")
    if amount < 0:
        raise InvalidAmountError(amount, "must not be negative")
    if amount > U64_MAX:
        raise InvalidAmountError(amount, "exceeds the unsigned 64-bit range")
    return amount


def encode_native_transfer(lamports: int) -> bytes:
    """Encode a System Program transfer of ``lamports``."""
    lamports = validate_u64(lamports)
    return struct.pack("<IQ", SYSTEM_TRANSFER_INDEX, lamports)


def encode_token_transfer(amount: int) -> bytes:
    """Encode an SPL Token transfer of ``amount`` base units."""
    amount = validate_u64(amount)
    return struct.pack("<BQ", TOKEN_TRANSFER_INDEX, amount)


def encode_custom(data: Any) -> bytes:
    """Forward a pre-encoded payload verbatim."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidInstructionDataError(
            f"Instruction data must be bytes, got {type(data).__name__}"
        )
    return bytes(data)


def encode_argument(arg_type: str, value: Any) -> bytes:
    """Borsh-encode a single IDL argument value."""
    arg_type = arg_type.lower()

    if arg_type in _INT_FORMATS:
        fmt = _INT_FORMATS[arg_type]
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidAmountError(value, f"expected an integer for {arg_type}")
        try:
            return struct.pack(fmt, value)
        except struct.error:
            raise InvalidAmountError(value, f"out of range for {arg_type}")
    if arg_type == "bool":
        if not isinstance(value, bool):
            raise InvalidInstructionDataError(f"Expected a bool for {arg_type}, got {value!r}")
        return struct.pack("<B", 1 if value else 0)
    if arg_type in ("publickey", "pubkey"):
        if not isinstance(value, Pubkey):
            raise InvalidPublicKeyError(value, "expected a Pubkey")
        return bytes(value)
    if arg_type == "bytes":
        data = encode_custom(value)
        return struct.pack("<I", len(data)) + data
    if arg_type == "string":
        if not isinstance(value, str):
            raise InvalidInstructionDataError(f"Expected a str for {arg_type}, got {value!r}")
        encoded = value.encode()
        return struct.pack("<I", len(encoded)) + encoded

    raise InvalidInstructionDataError(f"Unsupported argument type: {arg_type}")


def encode_arguments(arguments: List[Any], values: Dict[str, Any]) -> bytes:
    """Encode instruction arguments in IDL order.

    ``arguments`` is a list of ArgumentSpec; every argument must be present
    in ``values``.
    """
    data = b""
    for arg in arguments:
        if arg.name not in values:
            raise InvalidInstructionDataError(f"Missing argument: {arg.name}")
        data += encode_argument(arg.arg_type, values[arg.name])
    return data
