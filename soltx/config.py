"""
Configuration module for soltx.
Contains environment variables, network presets and fee-model settings.
"""
import os
import logging
from dataclasses import dataclass
from typing import Dict, Union

from dotenv import load_dotenv

from .constants import (
    DEFAULT_MIN_PRIORITY_FEE_LAMPORTS,
    DEFAULT_RPC_TIMEOUT,
    NETWORK_FEE_CACHE_TTL,
)

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

# RPC Configuration
MAINNET_RPC_URL = os.getenv('SOLTX_MAINNET_RPC_URL', 'https://api.mainnet-beta.solana.com')
TESTNET_RPC_URL = os.getenv('SOLTX_TESTNET_RPC_URL', 'https://api.testnet.solana.com')
DEVNET_RPC_URL = os.getenv('SOLTX_DEVNET_RPC_URL', 'https://api.devnet.solana.com')
DEFAULT_NETWORK = os.getenv('SOLTX_DEFAULT_NETWORK', 'mainnet')


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}")
        return default


RPC_TIMEOUT = _env_float('SOLTX_RPC_TIMEOUT', DEFAULT_RPC_TIMEOUT)
FEE_CACHE_TTL = _env_float('SOLTX_FEE_CACHE_TTL', NETWORK_FEE_CACHE_TTL)
# Substituted when every sampled priority fee is zero
MIN_PRIORITY_FEE_LAMPORTS = _env_int('SOLTX_MIN_PRIORITY_FEE', DEFAULT_MIN_PRIORITY_FEE_LAMPORTS)


@dataclass(frozen=True)
class NetworkConfig:
    """Configuration for a Solana cluster endpoint."""
    rpc_url: str
    name: str
    is_testnet: bool
    key: str = "custom"


SOLANA_NETWORKS: Dict[str, NetworkConfig] = {
    'mainnet': NetworkConfig(
        rpc_url=MAINNET_RPC_URL,
        name='Solana Mainnet',
        is_testnet=False,
        key='mainnet',
    ),
    'testnet': NetworkConfig(
        rpc_url=TESTNET_RPC_URL,
        name='Solana Testnet',
        is_testnet=True,
        key='testnet',
    ),
    'devnet': NetworkConfig(
        rpc_url=DEVNET_RPC_URL,
        name='Solana Devnet',
        is_testnet=True,
        key='devnet',
    ),
}


def get_network_config(network: Union[str, NetworkConfig, None] = None) -> NetworkConfig:
    """
    Resolve a network name or custom configuration.

    Unknown names fall back to mainnet.

    Args:
        network: Preset name ("mainnet", "testnet", "devnet"), a NetworkConfig, or None
            for the configured default

    Returns:
        NetworkConfig: The resolved configuration
    """
    if isinstance(network, NetworkConfig):
        return network

    name = (network or DEFAULT_NETWORK).strip().lower()
    if name == 'mainnet-beta':
        name = 'mainnet'
    config = SOLANA_NETWORKS.get(name)
    if config is None:
        logger.warning(f"Unknown network '{network}', falling back to mainnet")
        return SOLANA_NETWORKS['mainnet']
    return config
