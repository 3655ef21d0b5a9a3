"""Setup run state models.

This module defines the per-delivery record of a repository setup run:
- SetupStage: Enum of run stages
- StepOutcome: Result of a single setup step
- StepResult: Record of one step with timestamp and details
- SetupRun: The complete record of one webhook delivery

Stage Flow:
    received → authenticated → secrets_provisioned → files_created
    → completed | completed_with_errors

    received → rejected (signature verification failed; nothing else runs)

Failed steps do not change the flow. They are recorded in step_results
and turn the final stage into completed_with_errors.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from src.setup_app.webhook.models import RepositoryRef


class SetupStage(str, Enum):
    """Stages of a setup run.

    Attributes:
        RECEIVED: Delivery received, not yet authenticated.
        AUTHENTICATED: Signature verified; steps may run.
        REJECTED: Signature verification failed. Terminal, no side effects.
        SECRETS_PROVISIONED: All secret steps attempted.
        FILES_CREATED: All template file steps attempted.
        COMPLETED: Every step succeeded.
        COMPLETED_WITH_ERRORS: At least one step failed.
    """

    RECEIVED = "received"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    SECRETS_PROVISIONED = "secrets_provisioned"
    FILES_CREATED = "files_created"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


TERMINAL_STAGES = frozenset(
    {SetupStage.REJECTED, SetupStage.COMPLETED, SetupStage.COMPLETED_WITH_ERRORS}
)


class StepOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StepResult(BaseModel):
    """Outcome of one setup step.

    Attributes:
        step_name: Step identifier, e.g. "secret:APP_ID" or "file:LICENSE".
        outcome: Whether the step succeeded.
        detail: Error message or note (e.g. "already exists").
        timestamp: When the step finished (UTC).
    """

    step_name: str = Field(..., min_length=1)
    outcome: StepOutcome
    detail: Optional[str] = None
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class SetupRun(BaseModel):
    """Record of a single webhook delivery and the setup it triggered.

    A run is created when a delivery arrives and discarded once it
    finishes. Runs are never shared between deliveries.

    Attributes:
        run_id: Unique identifier for log correlation.
        repository: Target repository, set once the payload is parsed.
        stage: Current stage.
        step_results: Ordered results of the steps executed so far.
        started_at: When the delivery was received (UTC).
        finished_at: When the run reached a terminal stage (UTC).
    """

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    repository: Optional[RepositoryRef] = None
    stage: SetupStage = SetupStage.RECEIVED
    step_results: List[StepResult] = Field(default_factory=list)
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    finished_at: Optional[datetime] = None

    def record_success(self, step_name: str, detail: Optional[str] = None) -> StepResult:
        result = StepResult(
            step_name=step_name, outcome=StepOutcome.SUCCEEDED, detail=detail
        )
        self.step_results.append(result)
        return result

    def record_failure(self, step_name: str, error: str) -> StepResult:
        result = StepResult(
            step_name=step_name, outcome=StepOutcome.FAILED, detail=error
        )
        self.step_results.append(result)
        return result

    @property
    def failed_steps(self) -> List[str]:
        return [
            r.step_name for r in self.step_results if r.outcome == StepOutcome.FAILED
        ]

    @property
    def has_errors(self) -> bool:
        return bool(self.failed_steps)

    @property
    def is_finished(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def finish(self) -> SetupStage:
        """Move to the terminal stage matching the recorded outcomes."""
        self.stage = (
            SetupStage.COMPLETED_WITH_ERRORS if self.has_errors else SetupStage.COMPLETED
        )
        self.finished_at = datetime.now(timezone.utc)
        return self.stage

    def reject(self) -> None:
        self.stage = SetupStage.REJECTED
        self.finished_at = datetime.now(timezone.utc)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
