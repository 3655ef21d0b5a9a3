"""Per-delivery setup run records."""

from src.setup_app.state.models import (
    TERMINAL_STAGES,
    SetupRun,
    SetupStage,
    StepOutcome,
    StepResult,
)

__all__ = [
    "TERMINAL_STAGES",
    "SetupRun",
    "SetupStage",
    "StepOutcome",
    "StepResult",
]
