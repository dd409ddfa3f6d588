# devsetup/context.py
# -*- coding: utf-8 -*-
"""
The per-run execution context shared by every step.

The context is built once at startup from the command line and passed
explicitly to each component. Its fields cannot be reassigned; the only
mutation allowed during a run is appending to the warning list.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from devsetup.cleanup import CleanupRegistry
from devsetup.config_models import AppSettings


class ExecutionContext(BaseModel):
    """Interaction mode, settings and accumulated warnings for one run."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    interactive: bool = False
    settings: AppSettings = Field(default_factory=AppSettings)
    cleanup: CleanupRegistry = Field(default_factory=CleanupRegistry)
    warnings: List[str] = Field(default_factory=list)

    @property
    def symbols(self):
        return self.settings.symbols

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)
