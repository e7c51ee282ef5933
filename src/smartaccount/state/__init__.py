"""Smart account state decoding."""

from .account import (
    SmartAccountState,
    SMART_ACCOUNT_DISCRIMINATOR,
    decode_smart_account,
    encode_smart_account,
)
