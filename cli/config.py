"""Configuration management for ShardVault CLI."""

import getpass
import json
import os
import shutil
from pathlib import Path

from common.logging_config import get_logger

logger = get_logger(__name__)


def _default_owner() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "anonymous"


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "controller_host": os.environ.get("DFS_CONTROLLER_HOST", "localhost"),
        "controller_port": int(os.environ.get("DFS_CONTROLLER_PORT", "8000")),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "owner_id": os.environ.get("DFS_OWNER_ID", ""),
        "download_dir": "downloads",
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.shardvault/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.shardvault' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Config file unreadable ({e}); using defaults")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except IOError as copy_error:
                    logger.warning(f"Could not back up config file: {copy_error}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError as e:
                logger.warning(f"Could not write default config: {e}")
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config: {e}")

    def get_owner_id(self) -> str:
        """
        Owner recorded on submitted jobs.

        Returns:
            Configured owner_id, falling back to the login name
        """
        return self.data.get('owner_id') or _default_owner()

    def set_owner_id(self, owner_id: str) -> None:
        self.data['owner_id'] = owner_id
        self.save()

    def get_download_dir(self) -> Path:
        return Path(self.data.get('download_dir', 'downloads'))

    def get_base_url(self) -> str:
        """
        Get controller base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        host = self.data.get('controller_host', 'localhost')
        port = self.data.get('controller_port', 8000)
        return f"http://{host}:{port}"

    def get_timeout(self) -> int:
        """
        Get request timeout in seconds.

        Returns:
            Timeout value in seconds
        """
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }
