# config.py
import json
import logging
import os
from pathlib import Path
from typing import Optional

from errors import ConfigError
from protocol import TokenData

logger = logging.getLogger(__name__)

# --- Constants ---
API_BASE_URL = os.environ.get(
    "WASAL_API_URL", "https://wasalbackend-production.up.railway.app")
REQUEST_TIMEOUT = float(os.environ.get("WASAL_TIMEOUT", "30"))  # seconds
CONFIG_DIR = Path(os.environ.get(
    "WASAL_CONFIG_DIR", Path.home() / ".config" / "chat_app"))
TOKEN_FILE = "token.json"

# Control keys recognised in raw mode
KEY_INTERRUPT = 0x03  # Ctrl+C
KEY_REFRESH = 0x12    # Ctrl+R
KEY_COMPOSE = 0x13    # Ctrl+S


def token_path(config_dir: Optional[Path] = None) -> Path:
    return Path(config_dir or CONFIG_DIR) / TOKEN_FILE


def load_token(config_dir: Optional[Path] = None) -> TokenData:
    """Reads the saved login from the config directory."""
    path = token_path(config_dir)
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise ConfigError(
            f"No saved login at {path}. Run 'login' first.") from None
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to read token file {path}: {e}") from e

    token = TokenData.from_dict(data) if isinstance(data, dict) else None
    if token is None or not token.token:
        raise ConfigError(f"Token file {path} is malformed. Run 'login' again.")
    return token


def save_token(token: TokenData, config_dir: Optional[Path] = None) -> Path:
    """Writes the login to the config directory, readable by the owner only."""
    path = token_path(config_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        json.dump(token.to_dict(), fh, indent=2)
    logger.debug("Saved token for %s to %s", token.username, path)
    return path
