"""GitHub webhook event models for the repository setup app.

Only ``repository`` events are acted upon, and only the ``created`` action
triggers setup. Every other action is acknowledged and ignored.

The models use Pydantic for validation, consistent with the app's
configuration approach in config.py.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

REPOSITORY_EVENT = "repository"


class RepositoryAction(str, Enum):
    """GitHub ``repository`` event actions.

    Attributes:
        CREATED: A repository was created. Triggers setup.
        DELETED: A repository was deleted. Ignored.
        ARCHIVED: A repository was archived. Ignored.
        UNARCHIVED: A repository was unarchived. Ignored.
        EDITED: Repository settings changed. Ignored.
        RENAMED: A repository was renamed. Ignored.
        TRANSFERRED: A repository was transferred. Ignored.
        PUBLICIZED: A repository was made public. Ignored.
        PRIVATIZED: A repository was made private. Ignored.
    """

    CREATED = "created"
    DELETED = "deleted"
    ARCHIVED = "archived"
    UNARCHIVED = "unarchived"
    EDITED = "edited"
    RENAMED = "renamed"
    TRANSFERRED = "transferred"
    PUBLICIZED = "publicized"
    PRIVATIZED = "privatized"


class RepositoryRef(BaseModel):
    """Identifies a target repository and its installation scope.

    The installation ID selects which GitHub App installation token is used
    for API calls, which limits the repositories the app may act upon.

    Attributes:
        owner: The repository owner (user or organization).
        name: The repository name without owner prefix.
        installation_id: The GitHub App installation that received the event.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(
        ...,
        min_length=1,
        description="The repository owner (user or organization)",
    )

    name: str = Field(
        ...,
        min_length=1,
        description="The repository name without owner prefix",
    )

    installation_id: int = Field(
        ...,
        gt=0,
        description="The GitHub App installation ID scoping API access",
    )

    @property
    def full_name(self) -> str:
        """Repository path in format "{owner}/{name}"."""
        return f"{self.owner}/{self.name}"
