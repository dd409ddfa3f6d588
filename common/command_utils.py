# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing shell commands, probing host capabilities and
logging their output.
"""

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Union

from pydantic import BaseModel, ConfigDict

from devsetup.config_models import SYMBOLS_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Outcome of an external tool invocation with noise lines removed."""

    model_config = ConfigDict(frozen=True)

    exit_code: int
    filtered_output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def log_devsetup(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Logs messages to the provisioning logger at a defined logging level. It
    supports the standard levels plus "success" (logged as info) and an
    option to include exception information.

    Args:
        message (str): The log message to be recorded.
        level (str): The severity level of the log message. Defaults to "info". Common options
            include "debug", "info", "success", "warning", "error", and "critical".
        current_logger (Optional[logging.Logger]): A logger instance to use for logging. If not provided,
            a module-level logger will be used.
        app_settings (Optional[AppSettings]): Optional application settings that can influence logging behavior.
        exc_info (bool): Indicator to include exception details in the log. By default, this is set to False.

    Returns:
        None
    """
    effective_logger = current_logger if current_logger else module_logger

    if level == "warning":
        effective_logger.warning(message, exc_info=exc_info)
    elif level == "error":
        effective_logger.error(message, exc_info=exc_info)
    elif level == "critical":
        effective_logger.critical(message, exc_info=exc_info)
    elif level == "debug":
        effective_logger.debug(message, exc_info=exc_info)
    else:
        effective_logger.info(message, exc_info=exc_info)


def _symbols_for(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    return (
        app_settings.symbols
        if app_settings and app_settings.symbols
        else SYMBOLS_DEFAULT
    )


def _get_elevated_command_prefix(non_interactive: bool = False) -> List[str]:
    """
    Determines the command prefix that ensures elevated privileges when required.

    Args:
        non_interactive: Use `sudo -n`, which fails instead of asking for a
            password.

    Returns:
        List[str]: The sudo prefix if the effective user is not root,
        otherwise an empty list.
    """
    if os.geteuid() == 0:
        return []
    return ["sudo", "-n"] if non_interactive else ["sudo"]


def run_command(
    command: Union[List[str], str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    shell: bool = False,
    capture_output: bool = False,
    text: bool = True,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Executes a system command and logs the process details and results, including both
    standard output and error, if specified.

    Args:
        command (Union[List[str], str]): The system command to execute. If shell mode is
            enabled and the input is a list, elements will be joined into a single string.
        app_settings (Optional[AppSettings]): Application settings providing logging symbols.
        check (bool): Whether to raise a CalledProcessError when a non-zero exit code is returned.
        shell (bool): If True, the system command will be executed in a shell.
        capture_output (bool): Whether to capture standard output and standard error.
        text (bool): Indicates if the output streams should be interpreted as text.
        cmd_input (Optional[str]): Input to be passed to the command's standard input.
        current_logger (Optional[logging.Logger]): Logger to use. Defaults to the module logger.
        cwd (Optional[str]): Working directory for the command.
        env (Optional[Dict[str, str]]): Full environment for the command. Inherited when None.

    Returns:
        subprocess.CompletedProcess: The completed process instance.

    Raises:
        subprocess.CalledProcessError: If the process returns a non-zero exit code and
            `check` is True.
        FileNotFoundError: If the executable is not found.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)
    command_to_run: Union[List[str], str]

    if shell:
        command_to_run = (
            " ".join(command) if isinstance(command, list) else command
        )
        command_to_log_str = str(command_to_run)
    elif isinstance(command, str):
        log_devsetup(
            f"{symbols.get('warning', '!')} Running string command '{command}' without shell=True. Consider list format.",
            "warning",
            effective_logger,
            app_settings,
        )
        command_to_run = command.split()
        command_to_log_str = command
    else:
        command_to_run = command
        command_to_log_str = subprocess.list2cmdline(command)

    log_devsetup(
        f"{symbols.get('gear', '⚙️')} Executing: {command_to_log_str} {f'(in {cwd})' if cwd else ''}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command_to_run,
            check=check,
            shell=shell,
            capture_output=capture_output,
            text=text,
            input=cmd_input,
            cwd=cwd,
            env=env,
        )
        if capture_output:
            if result.stdout and result.stdout.strip():
                log_devsetup(
                    f"   stdout: {result.stdout.strip()}",
                    "debug",
                    effective_logger,
                    app_settings,
                )
            if result.stderr and result.stderr.strip():
                log_devsetup(
                    f"   stderr: {result.stderr.strip()}",
                    "debug",
                    effective_logger,
                    app_settings,
                )
        return result
    except subprocess.CalledProcessError as e:
        cmd_executed_str = (
            subprocess.list2cmdline(e.cmd)
            if isinstance(e.cmd, list)
            else str(e.cmd)
        )
        log_devsetup(
            f"{symbols.get('error', '❌')} Command `{cmd_executed_str}` failed (rc {e.returncode}).",
            "error",
            effective_logger,
            app_settings,
        )
        if e.stderr and hasattr(e.stderr, "strip") and e.stderr.strip():
            log_devsetup(
                f"   stderr: {e.stderr.strip()}",
                "error",
                effective_logger,
                app_settings,
            )
        raise
    except FileNotFoundError as e:
        log_devsetup(
            f"{symbols.get('error', '❌')} Command not found: {e.filename}. Ensure it's installed and in PATH.",
            "error",
            effective_logger,
            app_settings,
        )
        raise


def run_elevated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    non_interactive: bool = False,
) -> subprocess.CompletedProcess:
    """
    Executes a command with elevated permissions, prefixing it with `sudo`
    when the current process is not already root (`sudo -n` with
    `non_interactive`). See `run_command` for the meaning of the remaining
    arguments.
    """
    prefix = _get_elevated_command_prefix(non_interactive)
    return run_command(
        prefix + list(command),
        app_settings,
        check=check,
        shell=False,
        capture_output=capture_output,
        text=True,
        cmd_input=cmd_input,
        current_logger=current_logger,
        cwd=cwd,
        env=env,
    )


def compile_noise_patterns(patterns: Iterable[str]) -> List[Pattern[str]]:
    return [re.compile(p) for p in patterns]


def filter_output_lines(
    output: str, noise_patterns: Sequence[Pattern[str]]
) -> List[str]:
    """Return the lines of `output` that match none of `noise_patterns`."""
    kept = []
    for line in output.splitlines():
        if not line.strip():
            continue
        if any(p.search(line) for p in noise_patterns):
            continue
        kept.append(line)
    return kept


def run_filtered_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    noise_patterns: Sequence[Pattern[str]] = (),
    elevated: bool = False,
    passthrough: bool = False,
    current_logger: Optional[logging.Logger] = None,
    env: Optional[Dict[str, str]] = None,
    non_interactive: bool = False,
) -> CommandResult:
    """
    Runs an external tool and returns its exit code together with its
    captured output minus known-noise lines.

    The exit code is taken from the process itself and is never derived from
    the filtered text, so dropping lines cannot hide a failure. With
    `passthrough` the tool is attached to the terminal (for tools that need
    to prompt) and nothing is captured.

    Args:
        command: The command to execute, as a list.
        app_settings: Application settings used for logging symbols.
        noise_patterns: Compiled regular expressions for lines to drop.
        elevated: Prefix with sudo when not root.
        passthrough: Do not capture output.
        current_logger: Logger to use. Defaults to the module logger.
        env: Full environment for the command.
        non_interactive: Elevate with `sudo -n` so a password prompt fails
            instead of blocking.

    Returns:
        CommandResult: exit code and filtered output. A missing executable is
        reported as exit code 127.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)
    full_command = (
        _get_elevated_command_prefix(non_interactive) + list(command)
        if elevated
        else list(command)
    )
    try:
        completed = run_command(
            full_command,
            app_settings,
            check=False,
            capture_output=not passthrough,
            current_logger=logger_to_use,
            env=env,
        )
    except FileNotFoundError as e:
        return CommandResult(
            exit_code=127, filtered_output=f"command not found: {e.filename}"
        )

    if passthrough:
        return CommandResult(exit_code=completed.returncode)

    kept_lines = filter_output_lines(
        (completed.stdout or "") + "\n" + (completed.stderr or ""),
        noise_patterns,
    )
    level = "info" if completed.returncode == 0 else "warning"
    for line in kept_lines:
        log_devsetup(f"   {line}", level, logger_to_use, app_settings)
    if completed.returncode != 0:
        log_devsetup(
            f"{symbols.get('error', '❌')} `{subprocess.list2cmdline(full_command)}` exited with code {completed.returncode}.",
            "error",
            logger_to_use,
            app_settings,
        )
    return CommandResult(
        exit_code=completed.returncode,
        filtered_output="\n".join(kept_lines),
    )


def command_exists(command_name: str) -> bool:
    """
    Check if a command exists in the system's PATH.

    Parameters:
        command_name (str): The name of the command to check for existence.

    Returns:
        bool: True if the command is found in the system's PATH, False otherwise.
    """
    return shutil.which(command_name) is not None


def path_exists(path: Union[str, Path]) -> bool:
    """True if `path` (after `~` expansion) exists. Broken links count as absent."""
    try:
        return Path(path).expanduser().exists()
    except OSError:
        return False


def elevation_available(non_interactive: bool = True) -> bool:
    """
    True when running as root or when `sudo` actually grants root.

    With `non_interactive` the check is `sudo -n true`, which fails rather
    than waiting for a password. Otherwise `sudo -v` is used and may prompt
    on the terminal.
    """
    if os.geteuid() == 0:
        return True
    if not command_exists("sudo"):
        return False
    check = ["sudo", "-n", "true"] if non_interactive else ["sudo", "-v"]
    try:
        result = subprocess.run(check, check=False)
    except OSError:
        return False
    return result.returncode == 0


def check_package_installed(
    package_name: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Checks if a given package is installed on the system using `dpkg-query`.

    Args:
        package_name (str): The name of the package to check.
        app_settings (Optional[AppSettings]): Application settings for logging symbols.
        current_logger (Optional[logging.Logger]): Logger to use. Defaults to the module logger.

    Returns:
        bool: True if dpkg reports "install ok installed". Any failure to run
        the query is reported as not installed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)
    try:
        result = run_command(
            ["dpkg-query", "-W", "-f=${Status}", package_name],
            app_settings,
            check=False,
            capture_output=True,
            text=True,
            current_logger=logger_to_use,
        )
        return (
            result.returncode == 0 and "install ok installed" in result.stdout
        )
    except FileNotFoundError:
        log_devsetup(
            f"{symbols.get('warning', '!')} dpkg-query command not found. Cannot check package '{package_name}'.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False
    except OSError as e:
        log_devsetup(
            f"{symbols.get('warning', '!')} Error checking if package '{package_name}' is installed: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False
