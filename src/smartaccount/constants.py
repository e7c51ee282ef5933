"""Well-known program ids and fixed seeds."""

from enum import Enum

from solders.pubkey import Pubkey


SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM_ID = Pubkey.from_string("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")

# Address of the deployed smart account program; overridable through config.
DEFAULT_PROGRAM_ID = "Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS"

SMART_ACCOUNT_SEED = b"smart"

U64_MAX = 2**64 - 1


class TokenProgram(Enum):
    """Token program that owns the accounts of a token transfer."""
    TOKEN = "token"
    TOKEN_2022 = "token-2022"

    @property
    def program_id(self) -> Pubkey:
        if self is TokenProgram.TOKEN_2022:
            return TOKEN_2022_PROGRAM_ID
        return TOKEN_PROGRAM_ID


class ProgramErrorCode(Enum):
    """Custom error codes returned by the smart account program.

    Only documented here for callers that inspect submission results;
    the SDK never interprets them.
    """
    UNAUTHORIZED = 6000
    PAUSED = 6001
    INVALID_INSTRUCTION = 6002
    INSUFFICIENT_FUNDS = 6003

    @classmethod
    def from_code(cls, code: int):
        for member in cls:
            if member.value == code:
                return member
        return None
