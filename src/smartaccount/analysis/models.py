"""
Data models for the program schema.

These models represent the instructions, account types and error codes
of the smart account program as described by its Anchor IDL.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any


@dataclass
class ArgumentSpec:
    """Specification for an instruction argument."""
    name: str
    arg_type: str  # Raw type string from IDL
    description: Optional[str] = None


@dataclass
class AccountSpec:
    """Specification for an account in an instruction."""
    name: str
    is_signer: bool = False
    is_writable: bool = False
    is_optional: bool = False
    description: Optional[str] = None

    # Constraints extracted from IDL
    pda_seeds: Optional[List[str]] = None  # PDA derivation seeds


@dataclass
class FieldSpec:
    """A field of an account type."""
    name: str
    field_type: str


@dataclass
class AccountTypeSpec:
    """An account type stored by the program."""
    name: str
    discriminator: bytes
    fields: List[FieldSpec] = field(default_factory=list)


@dataclass
class ErrorSpec:
    """A custom program error."""
    code: int
    name: str
    message: Optional[str] = None


@dataclass
class InstructionSpec:
    """Specification for a single instruction in the program."""
    name: str
    discriminator: bytes  # 8-byte discriminator for Anchor
    accounts: List[AccountSpec] = field(default_factory=list)
    arguments: List[ArgumentSpec] = field(default_factory=list)
    description: Optional[str] = None

    def get_account(self, name: str) -> Optional[AccountSpec]:
        key = _normalize(name)
        for acc in self.accounts:
            if _normalize(acc.name) == key:
                return acc
        return None


@dataclass
class ProgramSchema:
    """Complete schema of an Anchor program."""
    program_id: Optional[str] = None
    name: str = "Unknown"
    version: Optional[str] = None

    instructions: List[InstructionSpec] = field(default_factory=list)
    accounts: List[AccountTypeSpec] = field(default_factory=list)
    errors: List[ErrorSpec] = field(default_factory=list)

    # Metadata
    raw_idl: Optional[Dict[str, Any]] = None

    def get_instruction(self, name: str) -> Optional[InstructionSpec]:
        """Get instruction by name (camelCase and snake_case both match)."""
        key = _normalize(name)
        for ix in self.instructions:
            if _normalize(ix.name) == key:
                return ix
        return None

    def get_account_type(self, name: str) -> Optional[AccountTypeSpec]:
        key = _normalize(name)
        for acc in self.accounts:
            if _normalize(acc.name) == key:
                return acc
        return None

    def error_for_code(self, code: int) -> Optional[ErrorSpec]:
        for err in self.errors:
            if err.code == code:
                return err
        return None

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            f"Program: {self.name}",
            f"Address: {self.program_id or 'Not specified'}",
            f"Instructions: {len(self.instructions)}",
        ]
        for ix in self.instructions:
            args = ", ".join(f"{a.name}: {a.arg_type}" for a in ix.arguments)
            lines.append(f"  • {ix.name}({args})")
        return "\n".join(lines)


def _normalize(name: str) -> str:
    return name.replace("_", "").lower()
