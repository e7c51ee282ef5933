"""
Shared pytest fixtures for the smart account test suite.
"""

from typing import Dict, Optional

import pytest
from solders.pubkey import Pubkey

from smartaccount.core.composer import SmartAccountClient
from smartaccount.constants import DEFAULT_PROGRAM_ID


class FakeReader:
    """In-memory AccountReader keyed by address."""

    def __init__(self, accounts: Optional[Dict[Pubkey, bytes]] = None):
        self.accounts = dict(accounts or {})
        self.calls = []

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        self.calls.append(address)
        return self.accounts.get(address)


def make_pubkey(n: int) -> Pubkey:
    return Pubkey(bytes([n]) * 32)


@pytest.fixture
def program_id():
    return Pubkey.from_string(DEFAULT_PROGRAM_ID)


@pytest.fixture
def owner():
    return make_pubkey(1)


@pytest.fixture
def delegate():
    return make_pubkey(2)


@pytest.fixture
def recipient():
    return make_pubkey(3)


@pytest.fixture
def reader():
    return FakeReader()


@pytest.fixture
def client(reader, owner):
    """Client on the bundled IDL with an empty fake reader."""
    return SmartAccountClient(reader, owner)
