"""
Configuration for the smart account SDK.

Values come from explicit arguments, then environment variables
(optionally loaded from a .env file), then built-in defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_PROGRAM_ID


# RPC endpoints
DEVNET_RPC = "https://api.devnet.solana.com"
MAINNET_RPC = "https://api.mainnet-beta.solana.com"
LOCALNET_RPC = "http://127.0.0.1:8899"

NETWORKS = {
    "devnet": DEVNET_RPC,
    "mainnet": MAINNET_RPC,
    "localnet": LOCALNET_RPC,
}

COMMITMENTS = ("processed", "confirmed", "finalized")


def load_env(start: Optional[Path] = None) -> Optional[Path]:
    """Load a .env file from the current or a parent directory.

    Existing environment variables win over values in the file.
    Returns the path of the file that was loaded, if any.
    """
    current = Path(start) if start else Path.cwd()
    for _ in range(5):  # Check up to 5 parent dirs
        env_file = current / ".env"
        if env_file.exists():
            with open(env_file) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))
            return env_file
        current = current.parent
    return None


def rpc_url_for(network: str) -> str:
    """Resolve a network name to its public RPC endpoint."""
    try:
        return NETWORKS[network.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown network: {network} (expected one of {', '.join(NETWORKS)})"
        )


@dataclass(frozen=True)
class SmartAccountConfig:
    """Connection settings and deployment target."""
    rpc_url: str = DEVNET_RPC
    program_id: str = DEFAULT_PROGRAM_ID
    commitment: str = "confirmed"
    timeout: float = 30.0

    def __post_init__(self):
        if self.commitment not in COMMITMENTS:
            raise ValueError(
                f"Invalid commitment: {self.commitment} (expected one of {', '.join(COMMITMENTS)})"
            )
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "SmartAccountConfig":
        """Build a config from SMART_ACCOUNT_* environment variables.

        SMART_ACCOUNT_RPC_URL takes precedence over SMART_ACCOUNT_NETWORK.
        """
        env = os.environ if environ is None else environ

        rpc_url = env.get("SMART_ACCOUNT_RPC_URL")
        if not rpc_url:
            rpc_url = rpc_url_for(env.get("SMART_ACCOUNT_NETWORK", "devnet"))

        timeout = env.get("SMART_ACCOUNT_TIMEOUT")
        return cls(
            rpc_url=rpc_url,
            program_id=env.get("SMART_ACCOUNT_PROGRAM_ID") or DEFAULT_PROGRAM_ID,
            commitment=env.get("SMART_ACCOUNT_COMMITMENT", "confirmed"),
            timeout=float(timeout) if timeout else 30.0,
        )
