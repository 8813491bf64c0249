"""
Shared utility functions and settings for the wallet.

Contains path helpers and the JSON settings file.
"""

import json
import logging
import sys
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

APP_DIR_NAME = ".etherwallet"


def get_app_dir() -> Path:
    """Get the application data directory."""
    if getattr(sys, 'frozen', False):
        # Running as compiled
        app_dir = Path(sys.executable).parent / "data"
    else:
        app_dir = Path.home() / APP_DIR_NAME

    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_keystore_dir(app_dir: Optional[Path] = None) -> Path:
    """Get the keystore directory (holds key.json)."""
    return (app_dir or get_app_dir()) / "keystore"


def get_secrets_dir(app_dir: Optional[Path] = None) -> Path:
    """Get the secret store directory."""
    return (app_dir or get_app_dir()) / "secrets"


def get_settings_path(app_dir: Optional[Path] = None) -> Path:
    """Get path to settings file."""
    return (app_dir or get_app_dir()) / "settings.json"


@dataclass
class Settings:
    """User-adjustable wallet settings (persisted as settings.json)."""
    chain_id: int = 1
    custom_rpcs: dict[str, str] = field(default_factory=dict)  # str(chain_id) -> RPC URL
    request_timeout: float = 30.0
    keystore_kdf: str = "scrypt"
    keystore_kdf_iterations: Optional[int] = None  # None = library default
    etherscan_url: str = "https://api.etherscan.io/api"
    etherscan_api_key: str = ""
    coingecko_url: str = "https://api.coingecko.com/api/v3/simple/"
    coingecko_api_key: str = ""
    max_workers: int = 4
    log_level: str = "INFO"

    def rpc_url_for(self, chain_id: int) -> Optional[str]:
        """Custom RPC for a chain, or None to use the network default."""
        return self.custom_rpcs.get(str(chain_id)) or None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Build settings, ignoring unknown keys from newer or older files."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from disk, falling back to defaults."""
    settings_path = path or get_settings_path()
    if settings_path.exists():
        try:
            with open(settings_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load settings: {e}")
            return Settings()

        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file holding {type(data).__name__}")
            return Settings()
        return Settings.from_dict(data)
    return Settings()


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    """Save settings to disk."""
    settings_path = path or get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_path, 'w') as f:
        json.dump(settings.to_dict(), f, indent=2)
