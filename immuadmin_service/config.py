"""
Configuration for immuadmin-service.

Loads settings from environment variables (and a .env file if present)
with defaults matching a standard immudb installation.
"""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _default_install_dir() -> str:
    if platform.system() == "Darwin":
        return "/usr/local/bin"
    return "/usr/sbin"


@dataclass
class Config:
    """immuadmin configuration."""

    # Canonical process name checked before a detached launch
    app_name: str = field(default_factory=lambda: os.environ.get("IMMUADMIN_APP_NAME", "immuadmin"))

    # Paths
    install_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("IMMUADMIN_INSTALL_DIR", _default_install_dir()))
    )
    config_dir: Path = field(default_factory=lambda: Path(os.environ.get("IMMUADMIN_CONFIG_DIR", "/etc/immudb")))
    data_root: Path = field(default_factory=lambda: Path(os.environ.get("IMMUADMIN_DATA_ROOT", "/var/lib")))
    log_root: Path = field(default_factory=lambda: Path(os.environ.get("IMMUADMIN_LOG_ROOT", "/var/log")))

    # Pause after a detached launch before reporting success
    settle_seconds: float = field(
        default_factory=lambda: float(os.environ.get("IMMUADMIN_SETTLE_SECONDS", "1.0"))
    )

    def __post_init__(self):
        """Coerce path fields passed as strings."""
        self.install_dir = Path(self.install_dir)
        self.config_dir = Path(self.config_dir)
        self.data_root = Path(self.data_root)
        self.log_root = Path(self.log_root)
