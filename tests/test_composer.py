"""
Tests for smartaccount.core.composer.SmartAccountClient.

Covers:
  - Account order and flags for every operation
  - Instruction data (discriminator + Borsh args)
  - Owner defaulting and program id overrides
  - Input validation before any network access
  - UnsignedTransaction helpers
"""

import struct

import pytest
from solders.hash import Hash
from solders.instruction import AccountMeta
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from smartaccount.analysis import IDLParser
from smartaccount.constants import (
    SYSTEM_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TokenProgram,
)
from smartaccount.core.composer import SmartAccountClient, UnsignedTransaction, to_account_meta
from smartaccount.core.encoding import instruction_discriminator
from smartaccount.core.pda import find_smart_account_address
from smartaccount.errors import (
    IdlError,
    InputValidationError,
    InvalidAmountError,
    InvalidInstructionDataError,
    InvalidPublicKeyError,
)

from conftest import make_pubkey


def metas(tx):
    assert len(tx.instructions) == 1
    return [(m.pubkey, m.is_signer, m.is_writable) for m in tx.instructions[0].accounts]


def data(tx):
    return bytes(tx.instructions[0].data)


class TestOwnerOperations:

    def test_initialize_accounts(self, client, owner, program_id):
        pda, _ = find_smart_account_address(owner, program_id)
        tx = client.initialize(owner)
        accounts = metas(tx)
        assert [a[0] for a in accounts] == [pda, owner, SYSTEM_PROGRAM_ID]
        assert accounts[0][1:] == (False, True)
        assert accounts[1][1] is True
        assert accounts[2][1:] == (False, False)

    def test_initialize_data(self, client):
        assert data(client.initialize()) == instruction_discriminator("initialize")

    def test_initialize_defaults_to_user(self, client, owner):
        assert metas(client.initialize()) == metas(client.initialize(owner))

    def test_explicit_owner_overrides_user(self, client, delegate, program_id):
        pda, _ = find_smart_account_address(delegate, program_id)
        accounts = metas(client.pause(delegate))
        assert accounts[0][0] == pda
        assert accounts[1][0] == delegate

    def test_targets_program(self, client, program_id):
        assert client.initialize().instructions[0].program_id == program_id

    @pytest.mark.parametrize("method", ["pause", "unpause"])
    def test_pause_unpause(self, client, owner, program_id, method):
        pda, _ = find_smart_account_address(owner, program_id)
        tx = getattr(client, method)()
        assert metas(tx) == [(pda, False, True), (owner, True, False)]
        assert data(tx) == instruction_discriminator(method)

    def test_add_delegate(self, client, owner, delegate, program_id):
        pda, _ = find_smart_account_address(owner, program_id)
        tx = client.add_delegate(delegate)
        assert metas(tx) == [(pda, False, True), (owner, True, False)]
        assert data(tx) == instruction_discriminator("addDelegate") + bytes(delegate)

    def test_remove_delegate(self, client, delegate):
        tx = client.remove_delegate(str(delegate))
        assert data(tx) == instruction_discriminator("removeDelegate") + bytes(delegate)

    def test_bad_delegate_rejected(self, client):
        with pytest.raises(InvalidPublicKeyError):
            client.add_delegate("garbage")


class TestExecute:

    def _inner(self, tx):
        raw = data(tx)
        assert raw[:8] == instruction_discriminator("execute")
        (length,) = struct.unpack_from("<I", raw, 8)
        inner = raw[12:]
        assert len(inner) == length
        return inner

    def test_native_transfer_accounts(self, client, owner, delegate, recipient, program_id):
        pda, _ = find_smart_account_address(owner, program_id)
        tx = client.execute_native_transfer(owner, delegate, recipient, 1_000_000_000)
        accounts = metas(tx)
        assert accounts[0][0] == pda
        assert accounts[1] == (delegate, True, False)
        assert accounts[2:] == [
            (SYSTEM_PROGRAM_ID, False, False),
            (pda, False, True),
            (recipient, False, True),
        ]

    def test_native_transfer_data(self, client, owner, delegate, recipient):
        tx = client.execute_native_transfer(owner, delegate, recipient, 1_000_000_000)
        assert self._inner(tx) == bytes.fromhex("0200000000ca9a3b00000000")

    def test_native_transfer_zero(self, client, owner, delegate, recipient):
        tx = client.execute_native_transfer(owner, delegate, recipient, 0)
        assert self._inner(tx)[4:] == bytes(8)

    def test_native_transfer_overflow(self, client, owner, delegate, recipient, reader):
        with pytest.raises(InvalidAmountError):
            client.execute_native_transfer(owner, delegate, recipient, 2**64)
        assert reader.calls == []

    def test_token_transfer(self, client, owner, delegate, program_id):
        pda, _ = find_smart_account_address(owner, program_id)
        source, destination = make_pubkey(10), make_pubkey(11)
        tx = client.execute_token_transfer(owner, delegate, source, destination, 5_000_000)
        assert metas(tx)[2:] == [
            (TOKEN_PROGRAM_ID, False, False),
            (source, False, True),
            (destination, False, True),
            (pda, False, False),
        ]
        assert self._inner(tx) == bytes.fromhex("03404b4c0000000000")

    def test_token_2022(self, client, owner, delegate):
        tx = client.execute_token_transfer(
            owner, delegate, make_pubkey(10), make_pubkey(11), 1, TokenProgram.TOKEN_2022
        )
        assert metas(tx)[2][0] == TOKEN_2022_PROGRAM_ID

    def test_token_program_must_be_enum(self, client, owner, delegate):
        with pytest.raises(InputValidationError):
            client.execute_token_transfer(owner, delegate, make_pubkey(10), make_pubkey(11), 1, True)

    def test_token_negative_amount(self, client, owner, delegate):
        with pytest.raises(InvalidAmountError):
            client.execute_token_transfer(owner, delegate, make_pubkey(10), make_pubkey(11), -1)

    def test_custom(self, client, owner, delegate):
        target = make_pubkey(20)
        extra = [
            AccountMeta(pubkey=make_pubkey(21), is_signer=False, is_writable=True),
            {"pubkey": str(make_pubkey(22)), "is_signer": True, "is_writable": False},
        ]
        tx = client.execute_custom(owner, delegate, target, b"\xde\xad", extra)
        assert metas(tx)[2:] == [
            (target, False, False),
            (make_pubkey(21), False, True),
            (make_pubkey(22), True, False),
        ]
        assert self._inner(tx) == b"\xde\xad"

    def test_custom_without_accounts(self, client, owner, delegate):
        tx = client.execute_custom(owner, delegate, make_pubkey(20), b"")
        assert len(metas(tx)) == 3

    def test_custom_rejects_non_bytes(self, client, owner, delegate):
        with pytest.raises(InvalidInstructionDataError):
            client.execute_custom(owner, delegate, make_pubkey(20), "dead", [])


class TestAccountMeta:

    def test_camel_case_keys(self):
        meta = to_account_meta({"pubkey": make_pubkey(5), "isSigner": True, "isWritable": True})
        assert (meta.is_signer, meta.is_writable) == (True, True)

    def test_defaults(self):
        meta = to_account_meta({"pubkey": make_pubkey(5)})
        assert (meta.is_signer, meta.is_writable) == (False, False)

    @pytest.mark.parametrize("flags", [
        {"is_signer": "false"},
        {"is_writable": "false"},
        {"isSigner": 1},
        {"is_writable": None},
    ])
    def test_non_bool_flags_rejected(self, flags):
        with pytest.raises(InputValidationError):
            to_account_meta(dict(flags, pubkey=make_pubkey(5)))

    def test_custom_rejects_string_flags(self, client, owner, delegate):
        extra = [{"pubkey": make_pubkey(5), "is_signer": "false", "is_writable": "false"}]
        with pytest.raises(InputValidationError):
            client.execute_custom(owner, delegate, make_pubkey(20), b"", extra)

    def test_missing_pubkey(self):
        with pytest.raises(InputValidationError):
            to_account_meta({"is_signer": True})

    def test_bad_type(self):
        with pytest.raises(InputValidationError):
            to_account_meta(make_pubkey(5))


class TestConfiguration:

    def test_program_id_override(self, reader, owner):
        other = make_pubkey(42)
        client = SmartAccountClient(reader, owner, program_id=other)
        pda, _ = find_smart_account_address(owner, other)
        tx = client.initialize()
        assert tx.instructions[0].program_id == other
        assert metas(tx)[0][0] == pda

    def test_account_order_follows_idl(self, reader, owner):
        idl = IDLParser().load_bundled().raw_idl
        idl = dict(idl, instructions=[
            dict(ix, accounts=list(reversed(ix["accounts"]))) if ix["name"] == "pause" else ix
            for ix in idl["instructions"]
        ])
        client = SmartAccountClient(reader, owner, idl=idl)
        assert metas(client.pause())[0][0] == owner

    def test_missing_instruction(self, reader, owner):
        client = SmartAccountClient(reader, owner, idl={"instructions": []})
        with pytest.raises(IdlError):
            client.initialize()

    def test_independent_clients(self, reader, owner, delegate):
        first = SmartAccountClient(reader, owner)
        second = SmartAccountClient(reader, delegate)
        assert metas(first.pause())[1][0] == owner
        assert metas(second.pause())[1][0] == delegate

    def test_from_config(self, owner):
        from smartaccount.config import SmartAccountConfig

        config = SmartAccountConfig(rpc_url="http://localhost:8899", program_id=str(make_pubkey(42)))
        client = SmartAccountClient.from_config(config, owner)
        assert client.program_id == make_pubkey(42)
        assert client.connection.rpc_url == "http://localhost:8899"


class TestUnsignedTransaction:

    def test_fee_payer_and_blockhash_unset(self, client, owner, delegate, recipient):
        for tx in (client.initialize(), client.execute_native_transfer(owner, delegate, recipient, 1)):
            assert tx.fee_payer is None
            assert tx.recent_blockhash is None

    def test_signers(self, client, owner, delegate, recipient):
        assert client.initialize().signers() == [owner]
        assert client.execute_native_transfer(owner, delegate, recipient, 1).signers() == [delegate]

    def test_to_transaction(self, client, owner):
        tx = client.initialize().to_transaction(owner, Hash.default())
        assert isinstance(tx, Transaction)
        assert tx.message.account_keys[0] == owner
        assert not tx.is_signed()

    def test_to_message_accepts_string_blockhash(self, client, owner):
        message = client.initialize().to_message(str(owner), str(Hash.default()))
        assert message.recent_blockhash == Hash.default()

    def test_to_dict(self, client, owner):
        exported = client.initialize().to_dict()
        assert exported["fee_payer"] is None
        assert exported["signers"] == [str(owner)]
        assert len(exported["instructions"][0]["accounts"]) == 3

    def test_empty(self):
        assert UnsignedTransaction().signers() == []
