"""Default label taxonomy applied to new repositories."""

from typing import List

from src.setup_app.github.models import Label


def default_labels() -> List[Label]:
    return [
        Label(name="bug", color="d73a4a", description="Bug report"),
        Label(name="enhancement", color="a2eeef", description="New feature"),
        Label(name="documentation", color="0075ca", description="Documentation improvement"),
        Label(name="refactor", color="fbca04", description="Refactoring"),
        Label(name="performance", color="5319e7", description="Performance improvement"),
        Label(name="dependencies", color="0366d6", description="Dependency update"),
    ]
