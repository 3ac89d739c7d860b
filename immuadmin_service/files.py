"""Install locations and program files of managed services."""

import logging
import os
import shutil
from pathlib import Path

from .config import Config

logger = logging.getLogger(__name__)

PRIMARY_SERVICE = "immudb"

IMMUDB_CONFIG_TEMPLATE = """\
dir = "{data_dir}"
logfile = "{log_dir}/immudb.log"
"""

IMMUGW_CONFIG_TEMPLATE = """\
logfile = "{log_dir}/immugw.log"
"""


class ServiceFiles:
    """Resolves paths and manages files for installed services."""

    def __init__(self, config: Config):
        self.config = config

    def is_admin(self) -> bool:
        """Return True if running with root privileges."""
        geteuid = getattr(os, "geteuid", None)
        if geteuid is None:
            return False
        return geteuid() == 0

    def get_executable(self, local_file: str | None, service: str) -> Path:
        """Find the executable to install for a service.

        Args:
            local_file: Explicit path given by the operator, if any
            service: Service name, used as executable name otherwise

        Returns:
            Absolute path to the executable

        Raises:
            FileNotFoundError: If no executable can be found
        """
        if local_file:
            path = Path(local_file)
            if not path.is_file():
                raise FileNotFoundError(f"Local file not found: {local_file}")
            return path.resolve()

        # Try the current directory first
        candidate = Path.cwd() / service
        if candidate.is_file():
            return candidate.resolve()

        exe = shutil.which(service)
        if exe:
            return Path(exe).resolve()

        raise FileNotFoundError(
            f"Could not find {service} executable. "
            "Place it in the current directory or use --local-file."
        )

    def default_exec_path(self, service: str) -> Path:
        return self.config.install_dir / service

    def default_config_path(self, service: str) -> Path:
        return self.config.config_dir / f"{service}.toml"

    def data_dir(self, service: str) -> Path:
        return self.config.data_root / service

    def log_dir(self, service: str) -> Path:
        return self.config.log_root / service

    def copy_exec_in_os_default(self, local_file: Path, service: str) -> Path:
        """Copy an executable into the install directory.

        Returns:
            Path of the installed executable
        """
        target = self.default_exec_path(service)
        target.parent.mkdir(parents=True, exist_ok=True)
        if Path(local_file).resolve() != target.resolve():
            shutil.copy2(local_file, target)
        target.chmod(0o755)
        logger.info(f"Copied {local_file} to {target}")
        return target

    def install_setup(self, service: str) -> None:
        """Create directories and a default config for a service."""
        config_path = self.default_config_path(service)
        log_dir = self.log_dir(service)

        config_path.parent.mkdir(parents=True, exist_ok=True)
        log_dir.mkdir(parents=True, exist_ok=True)

        if service == PRIMARY_SERVICE:
            data_dir = self.data_dir(service)
            data_dir.mkdir(parents=True, exist_ok=True)
            content = IMMUDB_CONFIG_TEMPLATE.format(data_dir=data_dir, log_dir=log_dir)
        else:
            content = IMMUGW_CONFIG_TEMPLATE.format(log_dir=log_dir)

        # Never overwrite an operator's config
        if not config_path.exists():
            config_path.write_text(content)
            config_path.chmod(0o644)
            logger.info(f"Wrote default config {config_path}")

    def erase_data(self, service: str) -> None:
        """Remove the persisted data of a service."""
        data_dir = self.data_dir(service)
        if data_dir.exists():
            shutil.rmtree(data_dir)
            logger.info(f"Removed data directory {data_dir}")

    def remove_program_files(self, service: str, missing_ok: bool = True) -> None:
        """Remove the installed executable.

        Raises:
            FileNotFoundError: If the executable is absent and missing_ok is False
        """
        exec_path = self.default_exec_path(service)
        exec_path.unlink(missing_ok=missing_ok)
        logger.info(f"Removed {exec_path}")

    def uninstall_setup(self, service: str) -> None:
        """Remove the config file and log directory created at install time."""
        config_path = self.default_config_path(service)
        if config_path.exists():
            config_path.unlink()

        log_dir = self.log_dir(service)
        if log_dir.exists():
            shutil.rmtree(log_dir)
