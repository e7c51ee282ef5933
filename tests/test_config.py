"""
Tests for configuration, .env loading and SOL/lamport conversion.
"""

import os
from decimal import Decimal

import pytest

from smartaccount.config import (
    DEVNET_RPC,
    LOCALNET_RPC,
    MAINNET_RPC,
    SmartAccountConfig,
    load_env,
    rpc_url_for,
)
from smartaccount.constants import DEFAULT_PROGRAM_ID
from smartaccount.errors import InvalidAmountError
from smartaccount.units import LAMPORTS_PER_SOL, lamports_to_sol, sol_to_lamports


class TestConfig:

    def test_defaults(self):
        config = SmartAccountConfig()
        assert config.rpc_url == DEVNET_RPC
        assert config.program_id == DEFAULT_PROGRAM_ID
        assert config.commitment == "confirmed"

    def test_from_empty_env(self):
        assert SmartAccountConfig.from_env({}) == SmartAccountConfig()

    def test_from_env_network(self):
        config = SmartAccountConfig.from_env({"SMART_ACCOUNT_NETWORK": "mainnet"})
        assert config.rpc_url == MAINNET_RPC

    def test_rpc_url_wins_over_network(self):
        config = SmartAccountConfig.from_env({
            "SMART_ACCOUNT_NETWORK": "mainnet",
            "SMART_ACCOUNT_RPC_URL": "http://node:8899",
        })
        assert config.rpc_url == "http://node:8899"

    def test_from_env_all_fields(self):
        config = SmartAccountConfig.from_env({
            "SMART_ACCOUNT_PROGRAM_ID": "11111111111111111111111111111111",
            "SMART_ACCOUNT_COMMITMENT": "finalized",
            "SMART_ACCOUNT_TIMEOUT": "5",
        })
        assert config.program_id == "11111111111111111111111111111111"
        assert config.commitment == "finalized"
        assert config.timeout == 5.0

    def test_invalid_commitment(self):
        with pytest.raises(ValueError):
            SmartAccountConfig(commitment="recent")

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            SmartAccountConfig(timeout=0)

    def test_unknown_network(self):
        with pytest.raises(ValueError):
            SmartAccountConfig.from_env({"SMART_ACCOUNT_NETWORK": "testnet-9"})

    def test_rpc_url_for(self):
        assert rpc_url_for("LOCALNET") == LOCALNET_RPC


class TestLoadEnv:

    def test_loads_from_parent(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text(
            "# comment\nSMART_ACCOUNT_TEST_KEY='from-file'\n\nBROKEN_LINE\n"
        )
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        monkeypatch.delenv("SMART_ACCOUNT_TEST_KEY", raising=False)

        assert load_env(child) == tmp_path / ".env"
        assert os.environ["SMART_ACCOUNT_TEST_KEY"] == "from-file"
        monkeypatch.delenv("SMART_ACCOUNT_TEST_KEY")

    def test_existing_env_wins(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("SMART_ACCOUNT_TEST_KEY=from-file\n")
        monkeypatch.setenv("SMART_ACCOUNT_TEST_KEY", "from-env")
        load_env(tmp_path)
        assert os.environ["SMART_ACCOUNT_TEST_KEY"] == "from-env"


class TestUnits:

    def test_whole_sol(self):
        assert sol_to_lamports(2) == 2 * LAMPORTS_PER_SOL

    def test_float_is_exact(self):
        assert sol_to_lamports(0.1) == 100_000_000

    def test_string_and_decimal(self):
        assert sol_to_lamports("1.5") == 1_500_000_000
        assert sol_to_lamports(Decimal("0.000000001")) == 1

    def test_sub_lamport_rejected(self):
        with pytest.raises(InvalidAmountError):
            sol_to_lamports("0.0000000001")

    @pytest.mark.parametrize("value", [-1, "abc", True, float("nan")])
    def test_invalid(self, value):
        with pytest.raises(InvalidAmountError):
            sol_to_lamports(value)

    def test_lamports_to_sol(self):
        assert lamports_to_sol(250_000_000) == 0.25
