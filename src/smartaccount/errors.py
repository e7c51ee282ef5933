"""
Error taxonomy for the smart account SDK.

Input problems are raised synchronously, before any network access.
RPC failures surface as RpcError (JSON-RPC error objects) or as the
transport's own exception; nothing here retries.
"""

from typing import Optional


class SmartAccountError(Exception):
    """Base class for all SDK errors."""


class InputValidationError(SmartAccountError, ValueError):
    """A caller-supplied argument is malformed or out of range."""


class InvalidAmountError(InputValidationError):
    """Amount is not an unsigned 64-bit integer."""

    def __init__(self, value, reason: str = "must be an integer in [0, 2**64 - 1]"):
        self.value = value
        super().__init__(f"Invalid amount {value!r}: {reason}")


class InvalidPublicKeyError(InputValidationError):
    """Value cannot be interpreted as a 32-byte public key."""

    def __init__(self, value, reason: Optional[str] = None):
        self.value = value
        message = f"Invalid public key {value!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidInstructionDataError(InputValidationError):
    """Instruction payload is not a byte buffer."""


class DerivationError(SmartAccountError):
    """No valid bump seed was found for a program-derived address."""


class IdlError(SmartAccountError):
    """Program IDL is missing, malformed, or lacks a required entry."""


class AccountNotFoundError(SmartAccountError):
    """The queried account does not exist."""

    def __init__(self, address):
        self.address = address
        super().__init__(f"Account not found: {address}")


class AccountDecodeError(SmartAccountError):
    """Account bytes do not match the expected layout."""


class RpcError(SmartAccountError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, code: int, message: str, data=None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC Error {code}: {message}")
