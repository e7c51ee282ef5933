"""
Transaction Composer: turns smart account operations into unsigned transactions.

Account order, signer/writable flags and argument layouts come from the
program's IDL, so every instruction matches the schema the on-chain program
validates. Fee payer and recent blockhash are left unset; the caller fills
them in, signs and submits.
"""

from base64 import b64encode
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from ..analysis import IDLParser, ProgramSchema, fetch_idl
from ..analysis.models import InstructionSpec
from ..constants import DEFAULT_PROGRAM_ID, SYSTEM_PROGRAM_ID, TokenProgram
from ..errors import AccountNotFoundError, IdlError, InputValidationError
from ..state import SmartAccountState, decode_smart_account
from .encoding import (
    encode_arguments,
    encode_custom,
    encode_native_transfer,
    encode_token_transfer,
)
from .pda import PubkeyLike, find_smart_account_address, to_pubkey
from .rpc import AccountReader, SolanaRpcClient


AccountMetaLike = Union[AccountMeta, Dict[str, Any]]


@dataclass
class UnsignedTransaction:
    """Ordered instructions awaiting a fee payer, a blockhash and signatures."""
    instructions: List[Instruction] = field(default_factory=list)
    fee_payer: Optional[Pubkey] = None
    recent_blockhash: Optional[Hash] = None

    def signers(self) -> List[Pubkey]:
        """Keys that must sign, in first-seen order."""
        seen = []
        for ix in self.instructions:
            for meta in ix.accounts:
                if meta.is_signer and meta.pubkey not in seen:
                    seen.append(meta.pubkey)
        return seen

    def to_message(self, fee_payer: PubkeyLike, recent_blockhash: Union[Hash, str]) -> Message:
        """Compile the instructions into a legacy message."""
        if isinstance(recent_blockhash, str):
            recent_blockhash = Hash.from_string(recent_blockhash)
        return Message.new_with_blockhash(
            self.instructions,
            to_pubkey(fee_payer),
            recent_blockhash,
        )

    def to_transaction(self, fee_payer: PubkeyLike, recent_blockhash: Union[Hash, str]) -> Transaction:
        """Build a solders Transaction with empty signatures."""
        return Transaction.new_unsigned(self.to_message(fee_payer, recent_blockhash))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fee_payer": str(self.fee_payer) if self.fee_payer else None,
            "recent_blockhash": str(self.recent_blockhash) if self.recent_blockhash else None,
            "signers": [str(s) for s in self.signers()],
            "instructions": [
                {
                    "program_id": str(ix.program_id),
                    "accounts": [
                        {
                            "pubkey": str(meta.pubkey),
                            "is_signer": meta.is_signer,
                            "is_writable": meta.is_writable,
                        }
                        for meta in ix.accounts
                    ],
                    "data_base64": b64encode(bytes(ix.data)).decode(),
                }
                for ix in self.instructions
            ],
        }


def to_account_meta(value: AccountMetaLike) -> AccountMeta:
    """Accept an AccountMeta or a {"pubkey", "is_signer", "is_writable"} dict."""
    if isinstance(value, AccountMeta):
        return value
    if isinstance(value, dict):
        if "pubkey" not in value:
            raise InputValidationError(f"Account entry has no pubkey: {value!r}")
        return AccountMeta(
            pubkey=to_pubkey(value["pubkey"]),
            is_signer=_flag(value, "is_signer", "isSigner"),
            is_writable=_flag(value, "is_writable", "isWritable"),
        )
    raise InputValidationError(
        f"Account entry must be an AccountMeta or dict, got {type(value).__name__}"
    )


def _flag(entry: Dict[str, Any], key: str, camel_key: str) -> bool:
    flag = entry.get(key, entry.get(camel_key, False))
    if not isinstance(flag, bool):
        raise InputValidationError(f"Account flag {key} must be a bool, got {flag!r}")
    return flag


class SmartAccountClient:
    """
    Composes unsigned transactions for the smart account program.

    The client only reads from the network through ``connection``; it never
    signs or submits and keeps no state besides what it is constructed with.
    """

    def __init__(
        self,
        connection: Optional[AccountReader],
        user_public_key: PubkeyLike,
        program_id: Optional[PubkeyLike] = None,
        idl: Union[ProgramSchema, Dict[str, Any], None] = None,
    ):
        """
        Initialize the client.

        Args:
            connection: Read-only account reader (only needed for state reads)
            user_public_key: Default owner for owner-signed operations
            program_id: Deployment target (defaults to the IDL address)
            idl: Program schema or raw IDL dict (defaults to the bundled IDL)
        """
        self.connection = connection
        self.user_public_key = to_pubkey(user_public_key)

        if idl is None:
            schema = IDLParser().load_bundled()
        elif isinstance(idl, ProgramSchema):
            schema = idl
        else:
            schema = IDLParser().parse(idl)
        self.schema = schema

        if program_id is None:
            program_id = schema.program_id or DEFAULT_PROGRAM_ID
        self.program_id = to_pubkey(program_id)

    @classmethod
    def from_config(cls, config, user_public_key: PubkeyLike) -> "SmartAccountClient":
        """Client backed by a SolanaRpcClient built from a SmartAccountConfig."""
        return cls(
            SolanaRpcClient.from_config(config),
            user_public_key,
            program_id=config.program_id,
        )

    @classmethod
    async def from_chain(
        cls,
        connection: AccountReader,
        user_public_key: PubkeyLike,
        program_id: PubkeyLike,
    ) -> "SmartAccountClient":
        """Client using the IDL the program published on chain."""
        program_id = to_pubkey(program_id)
        schema = await fetch_idl(connection, program_id)
        return cls(connection, user_public_key, program_id=program_id, idl=schema)

    # ------------------------------------------------------------------ #
    # Addresses and state
    # ------------------------------------------------------------------ #

    def find_smart_account_address(self, owner: PubkeyLike) -> Tuple[Pubkey, int]:
        """Smart account PDA and bump for ``owner`` under this program."""
        return find_smart_account_address(owner, self.program_id)

    async def get_state(self, address: PubkeyLike) -> SmartAccountState:
        """
        Fetch and decode a smart account record.

        Raises:
            AccountNotFoundError: If no account exists at ``address``
            AccountDecodeError: If the account is not a SmartAccount
        """
        address = to_pubkey(address)
        if self.connection is None:
            raise InputValidationError("No connection configured for state reads")

        data = await self.connection.get_account_data(address)
        if data is None:
            raise AccountNotFoundError(address)
        return decode_smart_account(data, address=address)

    async def get_state_for_owner(self, owner: Optional[PubkeyLike] = None) -> SmartAccountState:
        """Derive the owner's smart account and fetch its state."""
        address, _ = self.find_smart_account_address(self._owner(owner))
        return await self.get_state(address)

    # ------------------------------------------------------------------ #
    # Owner operations
    # ------------------------------------------------------------------ #

    def initialize(self, owner: Optional[PubkeyLike] = None) -> UnsignedTransaction:
        """Create the smart account for ``owner``."""
        owner = self._owner(owner)
        smart_account, _ = self.find_smart_account_address(owner)
        return self._compose("initialize", {
            "smartAccount": smart_account,
            "owner": owner,
            "systemProgram": SYSTEM_PROGRAM_ID,
        })

    def add_delegate(self, delegate: PubkeyLike, owner: Optional[PubkeyLike] = None) -> UnsignedTransaction:
        return self._delegate_call("addDelegate", delegate, owner)

    def remove_delegate(self, delegate: PubkeyLike, owner: Optional[PubkeyLike] = None) -> UnsignedTransaction:
        return self._delegate_call("removeDelegate", delegate, owner)

    def pause(self, owner: Optional[PubkeyLike] = None) -> UnsignedTransaction:
        """Block execute calls until unpaused."""
        return self._owner_call("pause", owner)

    def unpause(self, owner: Optional[PubkeyLike] = None) -> UnsignedTransaction:
        return self._owner_call("unpause", owner)

    # ------------------------------------------------------------------ #
    # Execute
    # ------------------------------------------------------------------ #

    def execute_native_transfer(
        self,
        smart_account_owner: PubkeyLike,
        delegate: PubkeyLike,
        recipient: PubkeyLike,
        lamports: int,
    ) -> UnsignedTransaction:
        """Move ``lamports`` from the smart account to ``recipient``."""
        data = encode_native_transfer(lamports)
        recipient = to_pubkey(recipient)
        smart_account, _ = self.find_smart_account_address(smart_account_owner)

        return self._execute(smart_account, delegate, data, [
            AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=smart_account, is_signer=False, is_writable=True),
            AccountMeta(pubkey=recipient, is_signer=False, is_writable=True),
        ])

    def execute_token_transfer(
        self,
        smart_account_owner: PubkeyLike,
        delegate: PubkeyLike,
        from_token_account: PubkeyLike,
        to_token_account: PubkeyLike,
        amount: int,
        token_program: TokenProgram = TokenProgram.TOKEN,
    ) -> UnsignedTransaction:
        """
        Move ``amount`` base units between token accounts.

        The source token account must be owned by the smart account, which
        signs the inner transfer as its authority.
        """
        data = encode_token_transfer(amount)
        if not isinstance(token_program, TokenProgram):
            raise InputValidationError(f"Unknown token program: {token_program!r}")
        source = to_pubkey(from_token_account)
        destination = to_pubkey(to_token_account)
        smart_account, _ = self.find_smart_account_address(smart_account_owner)

        return self._execute(smart_account, delegate, data, [
            AccountMeta(pubkey=token_program.program_id, is_signer=False, is_writable=False),
            AccountMeta(pubkey=source, is_signer=False, is_writable=True),
            AccountMeta(pubkey=destination, is_signer=False, is_writable=True),
            AccountMeta(pubkey=smart_account, is_signer=False, is_writable=False),
        ])

    def execute_custom(
        self,
        smart_account_owner: PubkeyLike,
        delegate: PubkeyLike,
        target_program: PubkeyLike,
        instruction_data: bytes,
        accounts: Iterable[AccountMetaLike] = (),
    ) -> UnsignedTransaction:
        """
        Relay an arbitrary instruction to ``target_program``.

        ``accounts`` are the target instruction's accounts, excluding the
        target program itself; they are forwarded verbatim.
        """
        data = encode_custom(instruction_data)
        target = to_pubkey(target_program)
        extra = [to_account_meta(a) for a in accounts]
        smart_account, _ = self.find_smart_account_address(smart_account_owner)

        return self._execute(smart_account, delegate, data, [
            AccountMeta(pubkey=target, is_signer=False, is_writable=False),
            *extra,
        ])

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _owner(self, owner: Optional[PubkeyLike]) -> Pubkey:
        return self.user_public_key if owner is None else to_pubkey(owner)

    def _owner_call(self, name: str, owner: Optional[PubkeyLike]) -> UnsignedTransaction:
        owner = self._owner(owner)
        smart_account, _ = self.find_smart_account_address(owner)
        return self._compose(name, {"smartAccount": smart_account, "owner": owner})

    def _delegate_call(self, name: str, delegate: PubkeyLike, owner: Optional[PubkeyLike]) -> UnsignedTransaction:
        delegate = to_pubkey(delegate)
        owner = self._owner(owner)
        smart_account, _ = self.find_smart_account_address(owner)
        return self._compose(
            name,
            {"smartAccount": smart_account, "owner": owner},
            args={"delegate": delegate},
        )

    def _execute(
        self,
        smart_account: Pubkey,
        delegate: PubkeyLike,
        data: bytes,
        remaining_accounts: List[AccountMeta],
    ) -> UnsignedTransaction:
        return self._compose(
            "execute",
            {"smartAccount": smart_account, "delegate": to_pubkey(delegate)},
            args={"instructionData": data},
            remaining_accounts=remaining_accounts,
        )

    def _instruction_spec(self, name: str) -> InstructionSpec:
        ix_spec = self.schema.get_instruction(name)
        if ix_spec is None:
            raise IdlError(f"Instruction not found in IDL: {name}")
        return ix_spec

    def _compose(
        self,
        name: str,
        accounts: Dict[str, Pubkey],
        args: Optional[Dict[str, Any]] = None,
        remaining_accounts: Optional[List[AccountMeta]] = None,
    ) -> UnsignedTransaction:
        """Build a one-instruction transaction for IDL instruction ``name``."""
        ix_spec = self._instruction_spec(name)

        # Accounts resolve by IDL name; camelCase and snake_case both match
        provided = {_normalize(k): v for k, v in accounts.items()}
        metas = []
        for acc_spec in ix_spec.accounts:
            pubkey = provided.get(_normalize(acc_spec.name))
            if pubkey is None:
                if acc_spec.is_optional:
                    pubkey = self.program_id  # Anchor's placeholder for an absent optional account
                else:
                    raise IdlError(f"No account supplied for {name}.{acc_spec.name}")
            metas.append(AccountMeta(
                pubkey=pubkey,
                is_signer=acc_spec.is_signer,
                is_writable=acc_spec.is_writable,
            ))
        metas.extend(remaining_accounts or [])

        data = ix_spec.discriminator + encode_arguments(ix_spec.arguments, args or {})

        instruction = Instruction(
            program_id=self.program_id,
            data=data,
            accounts=metas,
        )
        return UnsignedTransaction(instructions=[instruction])


def _normalize(name: str) -> str:
    return name.replace("_", "").lower()
