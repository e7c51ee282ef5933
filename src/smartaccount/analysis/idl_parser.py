"""
IDL Parser for Anchor programs.

Parses Anchor IDL JSON into a ProgramSchema: instruction account order and
flags, argument layouts, discriminators, account types and error codes.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Any, Union

from ..core.encoding import account_discriminator, instruction_discriminator
from ..errors import IdlError
from .models import (
    ProgramSchema,
    InstructionSpec,
    AccountSpec,
    ArgumentSpec,
    AccountTypeSpec,
    FieldSpec,
    ErrorSpec,
)


BUNDLED_IDL_PATH = Path(__file__).resolve().parent.parent / "idl" / "smart_account.json"


class IDLParser:
    """
    Parser for Anchor IDL files.

    Handles both the legacy format (isMut / isSigner, "publicKey") and the
    0.30 format (writable / signer, "pubkey", explicit discriminators).
    """

    def parse_file(self, path: Union[str, Path]) -> ProgramSchema:
        """Parse an IDL file from disk."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"IDL file not found: {path}")

        with open(path, "r") as f:
            try:
                idl_data = json.load(f)
            except json.JSONDecodeError as e:
                raise IdlError(f"IDL file is not valid JSON: {path}: {e}")

        return self.parse(idl_data)

    def load_bundled(self) -> ProgramSchema:
        """Parse the IDL shipped with the package."""
        return self.parse_file(BUNDLED_IDL_PATH)

    def parse(self, idl: Dict) -> ProgramSchema:
        """Parse an IDL dictionary."""
        if not isinstance(idl, dict):
            raise IdlError(f"IDL must be a JSON object, got {type(idl).__name__}")
        if "instructions" not in idl:
            raise IdlError("IDL has no instructions")

        metadata = idl.get("metadata", {})

        schema = ProgramSchema(
            program_id=idl.get("address") or metadata.get("address"),
            name=idl.get("name") or metadata.get("name", "Unknown"),
            version=idl.get("version") or metadata.get("version"),
            raw_idl=idl,
        )

        for ix_data in idl.get("instructions", []):
            schema.instructions.append(self._parse_instruction(ix_data))

        # Account types; 0.30 keeps field layouts under "types"
        types = {t.get("name"): t for t in idl.get("types", [])}
        for acc_data in idl.get("accounts", []):
            schema.accounts.append(self._parse_account_type(acc_data, types))

        for err_data in idl.get("errors", []):
            schema.errors.append(ErrorSpec(
                code=int(err_data["code"]),
                name=err_data.get("name", "Unknown"),
                message=err_data.get("msg"),
            ))

        return schema

    def _parse_instruction(self, ix_data: Dict) -> InstructionSpec:
        """Parse a single instruction from IDL."""
        name = ix_data.get("name")
        if not name:
            raise IdlError("IDL instruction without a name")

        accounts = []
        for acc_data in ix_data.get("accounts", []):
            if "accounts" in acc_data:
                # Composite account group; Anchor flattens these in order
                for nested in acc_data["accounts"]:
                    accounts.append(self._parse_instruction_account(nested))
            else:
                accounts.append(self._parse_instruction_account(acc_data))

        arguments = [self._parse_argument(arg_data) for arg_data in ix_data.get("args", [])]

        discriminator = self._parse_discriminator(ix_data.get("discriminator"))
        if discriminator is None:
            discriminator = instruction_discriminator(name)

        return InstructionSpec(
            name=name,
            discriminator=discriminator,
            accounts=accounts,
            arguments=arguments,
            description=_first_doc(ix_data),
        )

    def _parse_instruction_account(self, acc_data: Dict) -> AccountSpec:
        """Parse an account from an instruction's account list."""
        name = acc_data.get("name", "unknown")

        # Old format: isMut, isSigner
        # New format: writable, signer
        is_writable = acc_data.get("writable", acc_data.get("isMut", False))
        is_signer = acc_data.get("signer", acc_data.get("isSigner", False))
        is_optional = acc_data.get("optional", acc_data.get("isOptional", False))

        pda_seeds = None
        if "pda" in acc_data:
            pda = acc_data["pda"]
            if "seeds" in pda:
                pda_seeds = [_describe_seed(s) for s in pda["seeds"]]

        return AccountSpec(
            name=name,
            is_signer=bool(is_signer),
            is_writable=bool(is_writable),
            is_optional=bool(is_optional),
            pda_seeds=pda_seeds,
            description=_first_doc(acc_data),
        )

    def _parse_argument(self, arg_data: Dict) -> ArgumentSpec:
        """Parse an instruction argument."""
        return ArgumentSpec(
            name=arg_data.get("name", "arg"),
            arg_type=_type_name(arg_data.get("type", "unknown")),
            description=_first_doc(arg_data),
        )

    def _parse_account_type(self, acc_data: Dict, types: Dict[str, Dict]) -> AccountTypeSpec:
        """Parse a global account type definition."""
        name = acc_data.get("name")
        if not name:
            raise IdlError("IDL account type without a name")

        type_def = acc_data.get("type") or types.get(name, {}).get("type", {})
        fields = [
            FieldSpec(name=f.get("name", "field"), field_type=_type_name(f.get("type", "unknown")))
            for f in type_def.get("fields", [])
        ]

        discriminator = self._parse_discriminator(acc_data.get("discriminator"))
        if discriminator is None:
            discriminator = account_discriminator(name)

        return AccountTypeSpec(name=name, discriminator=discriminator, fields=fields)

    def _parse_discriminator(self, disc: Any) -> Optional[bytes]:
        if disc is None:
            return None
        if not isinstance(disc, list) or len(disc) != 8:
            raise IdlError(f"Discriminator must be a list of 8 bytes, got {disc!r}")
        return bytes(disc)


def _type_name(arg_type: Any) -> str:
    # Complex types like {"vec": "publicKey"} keep their JSON form
    if isinstance(arg_type, dict):
        return json.dumps(arg_type, sort_keys=True)
    return str(arg_type)


def _describe_seed(seed: Any) -> str:
    if isinstance(seed, dict):
        if seed.get("kind") == "const":
            return f"const:{seed.get('value')}"
        return f"{seed.get('kind')}:{seed.get('path')}"
    return str(seed)


def _first_doc(data: Dict) -> Optional[str]:
    docs = data.get("docs")
    return docs[0] if docs else None
