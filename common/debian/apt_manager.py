# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from common.command_utils import (
    CommandResult,
    check_package_installed,
    command_exists,
    compile_noise_patterns,
    log_devsetup,
    run_elevated_command,
    run_filtered_command,
)
from common.file_utils import backup_path_for
from devsetup.config_models import AppSettings

UNATTENDED_APT_OPTIONS: List[str] = [
    "-y",
    "-q",
    "-o",
    "Dpkg::Options::=--force-confdef",
    "-o",
    "Dpkg::Options::=--force-confold",
]


class AptManager:
    """
    A thin wrapper over apt-get that honours the run's interaction mode.

    Unattended runs pass `-y`, keep existing configuration files on conflict
    and set `DEBIAN_FRONTEND=noninteractive`, with output captured and known
    noise removed. Attended runs leave the terminal attached so apt and dpkg
    can prompt.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        interactive: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the AptManager.
        Args:
            app_settings: The application settings.
            interactive: Whether the package manager may prompt the user.
            logger: An optional logging object.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.app_settings = app_settings
        self.interactive = interactive
        self.noise_patterns = compile_noise_patterns(
            app_settings.apt_noise_patterns
        )
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def _env(self) -> Optional[Dict[str, str]]:
        if self.interactive:
            return None
        env = os.environ.copy()
        env["DEBIAN_FRONTEND"] = "noninteractive"
        return env

    def _command(self, *args: str) -> List[str]:
        options = [] if self.interactive else list(UNATTENDED_APT_OPTIONS)
        return ["apt-get", args[0]] + options + list(args[1:])

    def _run(self, command: List[str]) -> CommandResult:
        if self.interactive:
            return run_filtered_command(
                command,
                self.app_settings,
                elevated=True,
                passthrough=True,
                current_logger=self.logger,
            )
        # sudo drops the caller's environment, so the frontend is set via env(1).
        return run_filtered_command(
            ["env", "DEBIAN_FRONTEND=noninteractive"] + command,
            self.app_settings,
            noise_patterns=self.noise_patterns,
            elevated=True,
            current_logger=self.logger,
            env=self._env(),
            non_interactive=True,
        )

    def update(self) -> CommandResult:
        """Refresh the package index via 'apt-get update'."""
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        return self._run(self._command("update"))

    def upgrade(self) -> CommandResult:
        """Upgrade every installed package via 'apt-get upgrade'."""
        self.logger.info("Upgrading installed packages via 'apt-get upgrade'...")
        return self._run(self._command("upgrade"))

    def install(self, packages: Union[List[str], str]) -> CommandResult:
        """
        Installs one or more packages using 'apt-get install'.

        Args:
            packages: A single package name or a list of package names.

        Returns:
            The exit code and filtered output of the apt-get run.
        """
        if not isinstance(packages, list):
            packages = [packages]
        self.logger.info(
            f"Committing installation for: {', '.join(packages)}"
        )
        return self._run(self._command("install", *packages))

    def is_installed(self, package_name: str) -> bool:
        return check_package_installed(
            package_name, self.app_settings, current_logger=self.logger
        )

    def missing_packages(self, packages: List[str]) -> List[str]:
        """Return the subset of `packages` that dpkg does not report as installed."""
        missing = []
        for pkg_name in packages:
            if self.is_installed(pkg_name):
                self.logger.info(
                    f"Package '{pkg_name}' is already installed. Skipping."
                )
            else:
                missing.append(pkg_name)
        return missing

    def write_sources_file(
        self, file_path: str, entries: Dict[str, str]
    ) -> bool:
        """
        Writes a deb822-style .sources file with elevated privileges.

        Args:
            file_path: Destination path under /etc/apt/sources.list.d.
            entries: deb822 fields in output order.

        Returns:
            True if successful, False otherwise.
        """
        deb822_content = "".join(
            f"{key}: {value}\n" for key, value in entries.items()
        )
        fd, temp_path = tempfile.mkstemp(
            prefix="devsetup_sources_", suffix=".sources"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(deb822_content)
            run_elevated_command(
                ["install", "-m", "0644", temp_path, file_path],
                self.app_settings,
                current_logger=self.logger,
                non_interactive=not self.interactive,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            log_devsetup(
                f"Failed to write repository file '{file_path}': {e}",
                "error",
                self.logger,
                self.app_settings,
            )
            return False
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
        self.logger.info(f"Wrote repository file: {file_path}")
        return True

    def disable_source_file(self, file_path: str) -> bool:
        """
        Moves a repository file aside to a timestamped backup so apt stops
        reading it.

        Returns:
            True if the file was moved or did not exist, False otherwise.
        """
        source = Path(file_path)
        if not (source.exists() or source.is_symlink()):
            return True
        backup = backup_path_for(source)
        try:
            run_elevated_command(
                ["mv", "-T", str(source), str(backup)],
                self.app_settings,
                current_logger=self.logger,
                non_interactive=not self.interactive,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            log_devsetup(
                f"Failed to move repository file '{file_path}' aside: {e}",
                "error",
                self.logger,
                self.app_settings,
            )
            return False
        self.logger.info(f"Moved repository file {file_path} to {backup}")
        return True
