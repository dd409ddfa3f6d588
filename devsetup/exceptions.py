# devsetup/exceptions.py
# -*- coding: utf-8 -*-
"""
Exception hierarchy for the provisioning run.
"""

from typing import Optional


class DevSetupError(Exception):
    """Base class for errors raised by provisioning steps."""

    def __init__(self, message: str, step_name: Optional[str] = None):
        self.step_name = step_name
        super().__init__(message)


class PreconditionError(DevSetupError):
    """A missing privilege, network or identity. Never retried."""


class InstallationError(DevSetupError):
    """Package installation failed after retries were exhausted."""


class PathResolutionError(DevSetupError):
    """The dotfiles directory could not be created or is not writable."""


class LinkError(DevSetupError):
    """A managed link could not be established."""


class PipelineDefinitionError(DevSetupError):
    """The step table is malformed (for example duplicate step names)."""
