# devsetup/interaction.py
# -*- coding: utf-8 -*-
"""
Handles user prompts according to the run's interaction mode.

Every operation that could block on standard input goes through this module.
In unattended mode (the default) the prompt functions return their default
without reading stdin; in attended mode they ask on the terminal and fall
back to the default on end-of-file.
"""

import logging
from typing import Optional

from common.command_utils import log_devsetup
from devsetup.context import ExecutionContext

module_logger = logging.getLogger(__name__)


def confirm(
    context: ExecutionContext,
    prompt_message: str,
    default: bool = False,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Ask a yes/no question, or answer it with `default` when unattended.

    Parameters:
    context : ExecutionContext
        The run context; `context.interactive` decides whether stdin is read.
    prompt_message : str
        The question shown to the user.
    default : bool
        Answer used when unattended, on empty input, and on EOF.
    current_logger : Optional[logging.Logger]
        The logger instance to use. Defaults to the module logger.

    Returns:
    bool
        True for "y"/"yes", False for "n"/"no", otherwise `default`.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = context.symbols
    if not context.interactive:
        log_devsetup(
            f"{symbols.get('info', 'ℹ️')} Unattended: '{prompt_message}' -> {'yes' if default else 'no'}",
            "debug",
            logger_to_use,
            context.settings,
        )
        return default

    hint = "(Y/n)" if default else "(y/N)"
    try:
        user_input = (
            input(f"   {symbols.get('info', 'ℹ️')} {prompt_message} {hint}: ")
            .strip()
            .lower()
        )
    except EOFError:
        log_devsetup(
            f"{symbols.get('warning', '!')} No user input (EOF), defaulting to '{'Y' if default else 'N'}' for prompt: '{prompt_message}'",
            "warning",
            logger_to_use,
            context.settings,
        )
        return default

    if user_input in ("y", "yes"):
        return True
    if user_input in ("n", "no"):
        return False
    return default


def ask(
    context: ExecutionContext,
    prompt_message: str,
    default: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Ask for free text. Unattended runs, empty input and EOF return `default`."""
    logger_to_use = current_logger if current_logger else module_logger
    if not context.interactive:
        return default

    suffix = f" [{default}]" if default else ""
    try:
        user_input = input(
            f"   {context.symbols.get('info', 'ℹ️')} {prompt_message}{suffix}: "
        ).strip()
    except EOFError:
        log_devsetup(
            f"{context.symbols.get('warning', '!')} No user input (EOF) for prompt: '{prompt_message}'",
            "warning",
            logger_to_use,
            context.settings,
        )
        return default
    return user_input or default
