# devsetup/main_installer.py
# -*- coding: utf-8 -*-
"""
Command-line entry point: parses the flags, loads configuration, sets up
logging and interrupt handling, runs the pipeline and maps its result to an
exit code.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from common.command_utils import log_devsetup
from common.core_utils import level_from_env, setup_logging
from common.orchestrator import Orchestrator
from devsetup import config
from devsetup.cleanup import CleanupRegistry, install_interrupt_handlers
from devsetup.config_loader import load_app_settings
from devsetup.context import ExecutionContext
from devsetup.pipeline_definitions import build_pipeline
from devsetup.services import ProvisioningServices

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devsetup",
        description="Development environment setup. Installs packages, the editor "
        "and configuration files in an idempotent, re-runnable sequence.",
        epilog="Example: devsetup --interactive",
        add_help=False,
    )
    parser.add_argument(
        "-h",
        "--help",
        action="help",
        default=argparse.SUPPRESS,
        help="Show this help message and exit.",
    )
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Attended mode: prompt for confirmations instead of taking defaults.",
    )
    return parser


def setup_main_logging(log_prefix: Optional[str] = None, symbols=None) -> None:
    setup_logging(
        log_level=level_from_env(),
        log_file=os.environ.get(config.LOG_FILE_ENV_VAR),
        log_prefix=log_prefix or config.LOG_PREFIX_DEFAULT,
        symbols=symbols,
    )


def main_devsetup_entry(args: Optional[List[str]] = None) -> int:
    """
    Run the provisioning pipeline.

    Returns:
        int: 0 when the pipeline completed, 1 when it was aborted or the
        configuration is invalid, 2 for a usage error.
    """
    parser = build_parser()
    try:
        parsed_args = parser.parse_args(args)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 2

    setup_main_logging()
    try:
        app_settings = load_app_settings(current_logger=logger)
    except ValidationError:
        log_devsetup(
            f"{config.SYMBOLS['critical']} Configuration is invalid. Aborting.",
            "critical",
            logger,
        )
        return 1
    setup_main_logging(app_settings.log_prefix, app_settings.symbols)

    registry = CleanupRegistry(logger=logger)
    install_interrupt_handlers(registry, logger)
    context = ExecutionContext(
        interactive=parsed_args.interactive,
        settings=app_settings,
        cleanup=registry,
    )
    log_devsetup(
        f"{config.SYMBOLS['rocket']} devsetup {config.SCRIPT_VERSION} starting "
        f"({'attended' if context.interactive else 'unattended'} mode).",
        "info",
        logger,
        app_settings,
    )

    orchestrator = Orchestrator(context, orchestrator_logger=logger)
    orchestrator.add_steps(build_pipeline(ProvisioningServices(context, logger=logger)))
    try:
        report = orchestrator.run()
    finally:
        registry.cleanup()

    if not report.completed:
        log_devsetup(
            f"{config.SYMBOLS['critical']} Setup aborted at step '{report.failed_step}'.",
            "critical",
            logger,
            app_settings,
        )
        return 1
    log_devsetup(
        f"{config.SYMBOLS['sparkles']} Development environment setup completed"
        f"{f' with {len(report.warnings)} warning(s)' if report.warnings else ''}.",
        "success",
        logger,
        app_settings,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main_devsetup_entry())
