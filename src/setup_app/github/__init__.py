"""GitHub API access for the repository setup app.

This module provides:
- GitHubAppAuth: installation token minting for a GitHub App
- GitHubClient: secrets, contents and labels endpoints
- ForgeClient: the protocol the setup core depends on

Requests are not retried; failures surface as GitHubAPIError.
"""

from src.setup_app.github.auth import GitHubAppAuth, GitHubAuthError
from src.setup_app.github.client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
)
from src.setup_app.github.models import EncryptedSecret, Label, RepositoryPublicKey
from src.setup_app.github.protocol import ForgeClient

__all__ = [
    "EncryptedSecret",
    "ForgeClient",
    "GitHubAPIError",
    "GitHubAppAuth",
    "GitHubAuthError",
    "GitHubClient",
    "Label",
    "RateLimitError",
    "RepositoryPublicKey",
]
