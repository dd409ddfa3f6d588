# devsetup/package_installer.py
# -*- coding: utf-8 -*-
"""
Package installation with bounded retries and mirror-tier failover.

Every package-manager operation of a run goes through `RetryingInstaller`.
A failed attempt moves the mirror registry to the next tier, refreshes the
package index against it, waits a fixed backoff and tries again. When the
attempt budget or the tiers run out, the outcome is returned with
``fatal=True``; deciding what that means is left to the calling step.
"""

import logging
import time
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from common.command_utils import CommandResult, log_devsetup
from common.debian.apt_manager import AptManager
from devsetup.context import ExecutionContext
from devsetup.exceptions import InstallationError
from devsetup.mirrors import MirrorRegistry

module_logger = logging.getLogger(__name__)


class RetryAttempt(BaseModel):
    attempt_number: int
    mirror_tier: str
    succeeded: bool
    exit_code: int


class InstallOutcome(BaseModel):
    description: str
    succeeded: bool
    fatal: bool = False
    attempts: List[RetryAttempt] = Field(default_factory=list)

    def raise_if_fatal(self) -> None:
        if self.fatal:
            last_code = self.attempts[-1].exit_code if self.attempts else None
            raise InstallationError(
                f"{self.description} failed after {len(self.attempts)} attempt(s)"
                f" (last exit code {last_code})."
            )


class RetryingInstaller:
    """
    Runs apt operations against the mirror registry.

    Parameters:
    context : ExecutionContext
        Provides the retry settings and log symbols.
    apt_manager : AptManager
        The package manager wrapper, already configured for the run's
        interaction mode.
    registry : MirrorRegistry
        Shared for the whole run so the cursor never moves backwards.
    sleep : Callable[[float], None]
        Injected for tests.
    """

    def __init__(
        self,
        context: ExecutionContext,
        apt_manager: AptManager,
        registry: MirrorRegistry,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.context = context
        self.apt_manager = apt_manager
        self.registry = registry
        self.sleep = sleep
        self.logger = logger or module_logger

    @property
    def max_attempts(self) -> int:
        return self.context.settings.retry.max_attempts

    @property
    def backoff_seconds(self) -> float:
        return self.context.settings.retry.backoff_seconds

    def install(self, packages: List[str], description: str) -> InstallOutcome:
        """
        Install whichever of `packages` are missing.

        Already-installed packages are filtered out first; if none remain
        the package manager is not invoked at all.
        """
        missing = self.apt_manager.missing_packages(list(packages))
        if not missing:
            log_devsetup(
                f"{self.context.symbols.get('success', '✅')} {description}: all packages already installed.",
                "info",
                self.logger,
                self.context.settings,
            )
            return InstallOutcome(description=description, succeeded=True)
        return self._with_failover(
            lambda: self.apt_manager.install(missing), description
        )

    def refresh_index(self, description: str) -> InstallOutcome:
        return self._with_failover(self.apt_manager.update, description)

    def upgrade(self, description: str) -> InstallOutcome:
        return self._with_failover(self.apt_manager.upgrade, description)

    def _with_failover(
        self, operation: Callable[[], CommandResult], description: str
    ) -> InstallOutcome:
        symbols = self.context.symbols
        settings = self.context.settings
        attempts: List[RetryAttempt] = []

        while True:
            tier_name = self.registry.active_tier().name
            result = operation()
            attempts.append(
                RetryAttempt(
                    attempt_number=len(attempts) + 1,
                    mirror_tier=tier_name,
                    succeeded=result.ok,
                    exit_code=result.exit_code,
                )
            )
            if result.ok:
                log_devsetup(
                    f"{symbols.get('success', '✅')} {description} succeeded (attempt {len(attempts)}, tier '{tier_name}').",
                    "success",
                    self.logger,
                    settings,
                )
                return InstallOutcome(
                    description=description, succeeded=True, attempts=attempts
                )

            log_devsetup(
                f"{symbols.get('warning', '!')} {description} failed with exit code {result.exit_code} "
                f"(attempt {len(attempts)}/{self.max_attempts}, tier '{tier_name}').",
                "warning",
                self.logger,
                settings,
            )
            if len(attempts) >= self.max_attempts or not self.registry.advance():
                log_devsetup(
                    f"{symbols.get('error', '❌')} {description}: retries exhausted.",
                    "error",
                    self.logger,
                    settings,
                )
                return InstallOutcome(
                    description=description,
                    succeeded=False,
                    fatal=True,
                    attempts=attempts,
                )

            if not self.registry.apply(settings, self.apt_manager):
                log_devsetup(
                    f"{symbols.get('warning', '!')} Could not apply mirror tier '{self.registry.active_tier().name}'.",
                    "warning",
                    self.logger,
                    settings,
                )
            self.apt_manager.update()
            if self.backoff_seconds:
                self.logger.info(
                    f"Waiting {self.backoff_seconds:g}s before retrying..."
                )
                self.sleep(self.backoff_seconds)
