"""Smart account record decoding."""

import struct
from dataclasses import dataclass, field
from typing import List, Optional

from solders.pubkey import Pubkey

from ..core.encoding import account_discriminator
from ..errors import AccountDecodeError


SMART_ACCOUNT_DISCRIMINATOR = account_discriminator("SmartAccount")

# discriminator + owner + delegate count + paused flag
MIN_ACCOUNT_LEN = 8 + 32 + 4 + 1


@dataclass
class SmartAccountState:
    owner: Pubkey
    delegates: List[Pubkey] = field(default_factory=list)
    paused: bool = False
    address: Optional[Pubkey] = None

    def is_delegate(self, key: Pubkey) -> bool:
        return key in self.delegates

    def is_authorized(self, key: Pubkey) -> bool:
        """Whether ``key`` may trigger execute (ignores the paused flag)."""
        return key == self.owner or self.is_delegate(key)

    def to_dict(self) -> dict:
        return {
            "address": str(self.address) if self.address else None,
            "owner": str(self.owner),
            "delegates": [str(d) for d in self.delegates],
            "paused": self.paused,
        }


def decode_smart_account(data: bytes, address: Optional[Pubkey] = None) -> SmartAccountState:
    """
    Decode raw SmartAccount bytes.

    Layout: discriminator (8) | owner (32) | delegates (u32 count + 32 each) |
    paused (u8). Anything after the paused flag is unused pre-allocated space.

    Raises:
        AccountDecodeError: If the bytes do not match the layout
    """
    data = bytes(data)
    if len(data) < MIN_ACCOUNT_LEN:
        raise AccountDecodeError(
            f"SmartAccount data too short: {len(data)} bytes (need at least {MIN_ACCOUNT_LEN})"
        )
    if data[:8] != SMART_ACCOUNT_DISCRIMINATOR:
        raise AccountDecodeError(
            f"Account discriminator mismatch: expected {SMART_ACCOUNT_DISCRIMINATOR.hex()}, "
            f"got {data[:8].hex()}"
        )

    offset = 8
    owner = Pubkey.from_bytes(data[offset:offset + 32])
    offset += 32

    (count,) = struct.unpack_from("<I", data, offset)
    offset += 4
    end = offset + count * 32
    if end + 1 > len(data):
        raise AccountDecodeError(
            f"SmartAccount declares {count} delegates but only {len(data)} bytes are present"
        )

    delegates = [
        Pubkey.from_bytes(data[pos:pos + 32])
        for pos in range(offset, end, 32)
    ]

    paused_byte = data[end]
    if paused_byte not in (0, 1):
        raise AccountDecodeError(f"Invalid paused flag: {paused_byte}")

    return SmartAccountState(
        owner=owner,
        delegates=delegates,
        paused=bool(paused_byte),
        address=address,
    )


def encode_smart_account(state: SmartAccountState, space: Optional[int] = None) -> bytes:
    """Serialize a SmartAccountState, zero-padded to ``space`` bytes if given."""
    data = (
        SMART_ACCOUNT_DISCRIMINATOR
        + bytes(state.owner)
        + struct.pack("<I", len(state.delegates))
        + b"".join(bytes(d) for d in state.delegates)
        + struct.pack("<B", 1 if state.paused else 0)
    )
    if space is not None:
        if space < len(data):
            raise ValueError(f"Space {space} too small for {len(data)} bytes")
        data += bytes(space - len(data))
    return data
