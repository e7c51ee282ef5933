"""
Smart account SDK: composes unsigned transactions for the smart account program.
"""

from .config import SmartAccountConfig, load_env
from .constants import TokenProgram, ProgramErrorCode
from .core.composer import SmartAccountClient, UnsignedTransaction
from .core.encoding import encode_native_transfer, encode_token_transfer, encode_custom
from .core.pda import find_smart_account_address
from .core.rpc import AccountReader, SolanaRpcClient
from .state import SmartAccountState, decode_smart_account
from .units import LAMPORTS_PER_SOL, sol_to_lamports, lamports_to_sol

__version__ = "0.1.0"

__all__ = [
    "SmartAccountClient",
    "UnsignedTransaction",
    "SmartAccountConfig",
    "SmartAccountState",
    "AccountReader",
    "SolanaRpcClient",
    "TokenProgram",
    "ProgramErrorCode",
    "find_smart_account_address",
    "decode_smart_account",
    "encode_native_transfer",
    "encode_token_transfer",
    "encode_custom",
    "load_env",
    "LAMPORTS_PER_SOL",
    "sol_to_lamports",
    "lamports_to_sol",
]
