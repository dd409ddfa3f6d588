# common/orchestrator.py
# -*- coding: utf-8 -*-
"""
Centralized orchestrator for running the ordered provisioning steps.

Each step is executed at most once, in the order it was added. A step's
failure policy decides whether a failure stops the run (FATAL) or is
recorded as a warning (WARN_AND_CONTINUE). In attended mode a fatal failure
first asks the user whether to continue anyway.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from devsetup.context import ExecutionContext
from devsetup.exceptions import DevSetupError, PipelineDefinitionError
from devsetup.interaction import confirm


class FailurePolicy(str, Enum):
    FATAL = "fatal"
    WARN_AND_CONTINUE = "warn_and_continue"


class StepState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    WARNED = "warned"
    FAILED = "failed"


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    WARNED = "warned"
    FAILED = "failed"


class PipelineState(str, Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"


class StepOutcome(BaseModel):
    """Explicit result a step action may return instead of None."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    message: str = ""

    @classmethod
    def warned(cls, message: str) -> "StepOutcome":
        return cls(status=OutcomeStatus.WARNED, message=message)

    @classmethod
    def failed(cls, message: str) -> "StepOutcome":
        return cls(status=OutcomeStatus.FAILED, message=message)


class Step(BaseModel):
    """
    One named unit of provisioning work.

    Attributes:
        name: Unique within a pipeline.
        description: Human-readable summary for the logs.
        action: Called with the execution context. Returning None means
            success; raising means failure.
        policy: What a failure means for the rest of the run.
        skip_if: Optional guard; when it returns True the action is not run.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    action: Callable[[ExecutionContext], Optional[StepOutcome]]
    policy: FailurePolicy = FailurePolicy.FATAL
    skip_if: Optional[Callable[[ExecutionContext], bool]] = None


class PipelineReport(BaseModel):
    state: PipelineState
    step_states: Dict[str, StepState] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    failed_step: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.state == PipelineState.COMPLETED


class Orchestrator:
    """A centralized orchestrator to run a series of defined steps."""

    def __init__(
        self,
        context: ExecutionContext,
        orchestrator_logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the Orchestrator.

        Args:
            context: The run's execution context, passed to every step.
            orchestrator_logger: An optional logger instance.
        """
        self.context = context
        self.logger = orchestrator_logger or logging.getLogger(__name__)
        self.steps: List[Step] = []

    def add_step(self, step: Step) -> None:
        """
        Adds a step to the execution list.

        Raises:
            PipelineDefinitionError: A step with the same name was already added.
        """
        if any(existing.name == step.name for existing in self.steps):
            raise PipelineDefinitionError(
                f"Duplicate step name '{step.name}'.", step_name=step.name
            )
        self.steps.append(step)
        self.logger.debug(f"Step '{step.name}' added to the queue.")

    def add_steps(self, steps: List[Step]) -> None:
        for step in steps:
            self.add_step(step)

    def run(self) -> PipelineReport:
        """
        Executes all added steps in sequence.

        Returns:
            PipelineReport: COMPLETED when every step finished or was allowed
            to continue, ABORTED when a fatal step failed. Steps after the
            failing one stay PENDING.
        """
        symbols = self.context.symbols
        states: Dict[str, StepState] = {
            step.name: StepState.PENDING for step in self.steps
        }
        total = len(self.steps)
        self.logger.info("Orchestration started.")

        for i, step in enumerate(self.steps):
            self.logger.info(
                f"--- Stage {i + 1}/{total}: {step.name} - {step.description} ---"
            )
            states[step.name] = StepState.RUNNING

            if step.skip_if is not None:
                try:
                    skip = step.skip_if(self.context)
                except Exception as e:
                    self.logger.warning(
                        f"Skip check for '{step.name}' failed ({e}); running the step."
                    )
                    skip = False
                if skip:
                    states[step.name] = StepState.SKIPPED
                    self.logger.info(
                        f"{symbols.get('info', 'ℹ️')} Step '{step.name}' already satisfied. Skipping."
                    )
                    continue

            outcome = self._run_action(step)

            if outcome.status == OutcomeStatus.SUCCEEDED:
                states[step.name] = StepState.SUCCEEDED
                self.logger.info(
                    f"{symbols.get('success', '✅')} Step '{step.name}' completed successfully."
                )
                continue

            warning_text = f"{step.name}: {outcome.message}"
            if outcome.status == OutcomeStatus.WARNED:
                states[step.name] = StepState.WARNED
                self.context.add_warning(warning_text)
                self.logger.warning(
                    f"{symbols.get('warning', '!')} Step '{step.name}' finished with a warning: {outcome.message}"
                )
                continue

            states[step.name] = StepState.FAILED
            self.logger.error(
                f"{symbols.get('error', '❌')} Step '{step.name}' failed: {outcome.message}"
            )
            if step.policy == FailurePolicy.WARN_AND_CONTINUE:
                self.context.add_warning(warning_text)
                self.logger.warning(
                    f"Step '{step.name}' is non-fatal. Continuing orchestration."
                )
                continue

            if self.context.interactive and confirm(
                self.context,
                f"Step '{step.name}' failed. Continue anyway?",
                default=False,
                current_logger=self.logger,
            ):
                self.context.add_warning(
                    f"{warning_text} (continued at user request)"
                )
                continue

            self.logger.error(
                "A fatal error occurred. Halting orchestration."
            )
            return PipelineReport(
                state=PipelineState.ABORTED,
                step_states=states,
                warnings=list(self.context.warnings),
                failed_step=step.name,
            )

        if self.context.warnings:
            self.logger.warning(
                f"{symbols.get('warning', '!')} Completed with {len(self.context.warnings)} warning(s):"
            )
            for warning in self.context.warnings:
                self.logger.warning(f"   - {warning}")
        self.logger.info(
            f"{symbols.get('sparkles', '✨')} Orchestration finished successfully."
        )
        return PipelineReport(
            state=PipelineState.COMPLETED,
            step_states=states,
            warnings=list(self.context.warnings),
        )

    def _run_action(self, step: Step) -> StepOutcome:
        try:
            result = step.action(self.context)
        except DevSetupError as e:
            return StepOutcome.failed(str(e))
        except Exception as e:
            self.logger.critical(
                f"🔥 Step '{step.name}' raised an unexpected error: {e}",
                exc_info=True,
            )
            return StepOutcome.failed(f"{type(e).__name__}: {e}")
        if isinstance(result, StepOutcome):
            return result
        return StepOutcome(status=OutcomeStatus.SUCCEEDED)
