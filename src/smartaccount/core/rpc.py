"""
Read-only Solana RPC access.

The SDK only ever reads from the network, so the provider it depends on is
the AccountReader protocol: fetch raw account bytes by address. Signing and
submission stay with the caller.
"""

import base64
from typing import Any, Dict, List, Optional, Protocol

import aiohttp
from solders.pubkey import Pubkey

from ..errors import RpcError


class AccountReader(Protocol):
    """Read capability the composer needs from a network client."""

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        """Raw account data, or None if the account does not exist."""
        ...


class SolanaRpcClient:
    """
    Simple async Solana JSON-RPC client.

    Exposes read methods only. Each call opens its own session, so an
    instance carries no connection state between calls.
    """

    def __init__(self, rpc_url: str, commitment: str = "confirmed", timeout: float = 30.0):
        """
        Initialize RPC client.

        Args:
            rpc_url: RPC endpoint URL
            commitment: Commitment level for reads
            timeout: Total request timeout in seconds
        """
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.timeout = timeout
        self._request_id = 0

    @classmethod
    def from_config(cls, config) -> "SolanaRpcClient":
        return cls(config.rpc_url, commitment=config.commitment, timeout=config.timeout)

    async def _call(self, method: str, params: list = None) -> Any:
        """Make an RPC call."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self.rpc_url, json=payload) as response:
                response.raise_for_status()
                result = await response.json()
                if "error" in result:
                    error = result["error"]
                    raise RpcError(error.get("code", -1), error.get("message", ""), error.get("data"))
                return result.get("result")

    async def get_account_info(self, pubkey: Pubkey) -> Optional[Dict[str, Any]]:
        """Get account info (base64 data), or None if the account does not exist."""
        result = await self._call(
            "getAccountInfo",
            [str(pubkey), {"encoding": "base64", "commitment": self.commitment}],
        )
        return result.get("value")

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        """Get raw account bytes, or None if the account does not exist."""
        info = await self.get_account_info(address)
        if info is None:
            return None
        return _decode_data(info["data"])

    async def get_multiple_accounts(self, pubkeys: List[Pubkey]) -> List[Optional[bytes]]:
        """Get raw bytes for several accounts in one request."""
        result = await self._call(
            "getMultipleAccounts",
            [[str(p) for p in pubkeys], {"encoding": "base64", "commitment": self.commitment}],
        )
        return [
            _decode_data(info["data"]) if info is not None else None
            for info in result.get("value", [])
        ]

    async def get_latest_blockhash(self) -> Dict[str, Any]:
        """Get latest blockhash and its last valid block height."""
        result = await self._call("getLatestBlockhash", [{"commitment": self.commitment}])
        return result.get("value", {})


def _decode_data(data: Any) -> bytes:
    # RPC returns [<base64>, "base64"] for base64 encoding
    if isinstance(data, list):
        encoded, encoding = data[0], data[1]
        if encoding != "base64":
            raise RpcError(-1, f"Unexpected account data encoding: {encoding}")
        return base64.b64decode(encoded)
    return base64.b64decode(data)
