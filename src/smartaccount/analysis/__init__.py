"""
Program schema: Anchor IDL parsing and on-chain IDL resolution.
"""

from .models import (
    ProgramSchema,
    InstructionSpec,
    AccountSpec,
    ArgumentSpec,
    AccountTypeSpec,
    FieldSpec,
    ErrorSpec,
)
from .idl_parser import IDLParser, BUNDLED_IDL_PATH
from .idl_account import idl_address, encode_idl_account, decode_idl_account, fetch_idl

__all__ = [
    "ProgramSchema",
    "InstructionSpec",
    "AccountSpec",
    "ArgumentSpec",
    "AccountTypeSpec",
    "FieldSpec",
    "ErrorSpec",
    "IDLParser",
    "BUNDLED_IDL_PATH",
    "idl_address",
    "encode_idl_account",
    "decode_idl_account",
    "fetch_idl",
]
