"""
Configuration management for the soltx CLI
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from ..constants import DEFAULT_MIN_PRIORITY_FEE_LAMPORTS, DEFAULT_RPC_TIMEOUT

logger = logging.getLogger("soltx")

DEFAULT_CONFIG = {
    "network": "mainnet",
    "format": "table",
    "timeout": DEFAULT_RPC_TIMEOUT,
    "min_priority_fee": DEFAULT_MIN_PRIORITY_FEE_LAMPORTS,
    "color": True,
}

class Config:
    """Configuration manager for the soltx CLI"""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager"""
        if config_path:
            self.config_path = Path(config_path)
        else:
            # Default to ~/.soltx/config.json
            self.config_path = Path.home() / ".soltx" / "config.json"

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        self.config = self._load_config()
        logger.debug(f"Loaded configuration from {self.config_path}")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or create default"""
        if not self.config_path.exists():
            self._save_config(DEFAULT_CONFIG)
            return DEFAULT_CONFIG.copy()
        try:
            with open(self.config_path, 'r') as f:
                config = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Error loading config file: {e}")
            return DEFAULT_CONFIG.copy()
        if not isinstance(config, dict):
            logger.warning(f"Ignoring config file {self.config_path}: expected a JSON object")
            return DEFAULT_CONFIG.copy()
        # Merge with defaults for any missing keys
        return {**DEFAULT_CONFIG, **config}

    def _save_config(self, config: Dict[str, Any]) -> None:
        """Save configuration to file"""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
        except OSError as e:
            logger.error(f"Error saving config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value"""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value"""
        self.config[key] = value
        self._save_config(self.config)

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values"""
        return self.config.copy()

    def reset(self) -> None:
        """Reset configuration to defaults"""
        self.config = DEFAULT_CONFIG.copy()
        self._save_config(self.config)

    @property
    def network(self) -> str:
        """Get the default network"""
        return self.get("network")
