"""
On-chain IDL account.

Anchor stores a program's IDL in an account derived from the program id:
base = find_program_address([], program_id), address =
create_with_seed(base, "anchor:idl", program_id). The account holds an
8-byte discriminator, the 32-byte authority, a u32 length and the
zlib-compressed IDL JSON.
"""

import json
import struct
import zlib
from typing import Any, Dict

from solders.pubkey import Pubkey

from ..core.encoding import account_discriminator
from ..errors import AccountNotFoundError, IdlError
from .idl_parser import IDLParser
from .models import ProgramSchema


IDL_SEED = "anchor:idl"
IDL_ACCOUNT_DISCRIMINATOR = account_discriminator("IdlAccount")
_HEADER_LEN = 8 + 32 + 4


def idl_address(program_id: Pubkey) -> Pubkey:
    """Address of the IDL account for ``program_id``."""
    base, _ = Pubkey.find_program_address([], program_id)
    return Pubkey.create_with_seed(base, IDL_SEED, program_id)


def encode_idl_account(idl: Dict[str, Any], authority: Pubkey) -> bytes:
    """Serialize an IDL the way Anchor lays out the IDL account."""
    compressed = zlib.compress(json.dumps(idl).encode())
    return (
        IDL_ACCOUNT_DISCRIMINATOR
        + bytes(authority)
        + struct.pack("<I", len(compressed))
        + compressed
    )


def decode_idl_account(data: bytes) -> Dict[str, Any]:
    """Decode the IDL JSON stored in an IDL account."""
    if len(data) < _HEADER_LEN:
        raise IdlError(f"IDL account too short: {len(data)} bytes")
    if data[:8] != IDL_ACCOUNT_DISCRIMINATOR:
        raise IdlError("Account is not an Anchor IDL account")

    (length,) = struct.unpack_from("<I", data, 40)
    payload = data[_HEADER_LEN:_HEADER_LEN + length]
    if len(payload) != length:
        raise IdlError(f"IDL account truncated: expected {length} bytes, got {len(payload)}")

    try:
        return json.loads(zlib.decompress(payload))
    except (zlib.error, ValueError) as e:
        raise IdlError(f"IDL account payload is not compressed JSON: {e}")


async def fetch_idl(reader, program_id: Pubkey) -> ProgramSchema:
    """Fetch and parse the IDL a program published on chain.

    Args:
        reader: Any AccountReader (see core.rpc)
        program_id: Program whose IDL to resolve

    Raises:
        AccountNotFoundError: If the program never published an IDL
        IdlError: If the account does not hold a valid IDL
    """
    address = idl_address(program_id)
    data = await reader.get_account_data(address)
    if data is None:
        raise AccountNotFoundError(address)

    idl = decode_idl_account(data)
    schema = IDLParser().parse(idl)
    if schema.program_id is None:
        schema.program_id = str(program_id)
    return schema
