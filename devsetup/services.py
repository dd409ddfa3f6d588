# devsetup/services.py
# -*- coding: utf-8 -*-
"""
Run-scoped collaborators shared by the provisioning steps.

Each collaborator is created on first use so that, for example, the mirror
registry (and its cursor) is shared by every step that installs packages,
and the dotfiles location is resolved exactly once.
"""

import logging
from typing import Optional

from common.debian.apt_manager import AptManager
from devsetup.context import ExecutionContext
from devsetup.links import LinkManager
from devsetup.mirrors import MirrorRegistry
from devsetup.package_installer import RetryingInstaller
from devsetup.paths import DotfilesLocation, PathResolver

module_logger = logging.getLogger(__name__)


class ProvisioningServices:
    def __init__(
        self,
        context: ExecutionContext,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
        registry: Optional[MirrorRegistry] = None,
        installer: Optional[RetryingInstaller] = None,
        resolver: Optional[PathResolver] = None,
    ):
        self.context = context
        self.logger = logger or module_logger
        self._apt_manager = apt_manager
        self._registry = registry
        self._installer = installer
        self._resolver = resolver
        self._links: Optional[LinkManager] = None

    @property
    def apt_manager(self) -> AptManager:
        if self._apt_manager is None:
            self._apt_manager = AptManager(
                self.context.settings,
                interactive=self.context.interactive,
                logger=self.logger,
            )
        return self._apt_manager

    @property
    def registry(self) -> MirrorRegistry:
        if self._registry is None:
            self._registry = MirrorRegistry.from_settings(
                self.context.settings.mirrors, logger=self.logger
            )
        return self._registry

    @property
    def installer(self) -> RetryingInstaller:
        if self._installer is None:
            self._installer = RetryingInstaller(
                self.context,
                self.apt_manager,
                self.registry,
                logger=self.logger,
            )
        return self._installer

    @property
    def resolver(self) -> PathResolver:
        if self._resolver is None:
            self._resolver = PathResolver(self.context, logger=self.logger)
        return self._resolver

    def location(self) -> DotfilesLocation:
        return self.resolver.resolve()

    @property
    def links(self) -> LinkManager:
        if self._links is None:
            self._links = LinkManager(
                self.context, self.location(), logger=self.logger
            )
        return self._links
