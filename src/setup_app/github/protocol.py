"""Forge capability interface consumed by the setup core.

The orchestrator and the secret provisioner depend only on this protocol,
never on GitHubClient directly, so tests can substitute an in-memory fake.
"""

from typing import List, Protocol, runtime_checkable

from src.setup_app.github.models import Label, RepositoryPublicKey
from src.setup_app.webhook.models import RepositoryRef


@runtime_checkable
class ForgeClient(Protocol):
    """Operations the setup core needs from the forge API.

    Implementations raise GitHubAPIError (or a subclass) for every failed
    call, including timeouts.
    """

    async def get_public_key(self, repo: RepositoryRef) -> RepositoryPublicKey:
        """Return the repository's current secrets public key and its ID."""
        ...

    async def create_secret(
        self,
        repo: RepositoryRef,
        name: str,
        encrypted_value: str,
        key_id: str,
    ) -> None:
        """Create or replace a secret; repeated calls converge."""
        ...

    async def create_file(
        self,
        repo: RepositoryRef,
        path: str,
        content: str,
        message: str,
    ) -> bool:
        """Create a file from base64 content; False if it already existed."""
        ...

    async def get_file_sha(self, repo: RepositoryRef, path: str) -> str:
        """Return the blob SHA of an existing file."""
        ...

    async def delete_file(
        self,
        repo: RepositoryRef,
        path: str,
        sha: str,
        message: str = ...,
    ) -> None:
        """Delete a file identified by path and blob SHA."""
        ...

    async def list_labels(self, repo: RepositoryRef) -> List[Label]:
        """Return every label of the repository."""
        ...

    async def create_label(self, repo: RepositoryRef, label: Label) -> bool:
        """Create a label; False if it already existed."""
        ...

    async def delete_label(self, repo: RepositoryRef, name: str) -> None:
        """Delete a label; a missing label is not an error."""
        ...
