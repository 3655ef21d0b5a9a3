"""Encrypted secret provisioning for new repositories.

Writes GitHub Actions secrets into a repository:
1. Fetch the repository's current public key and key ID.
2. Seal the secret value to that key.
3. Base64-encode the sealed message.
4. Upsert the secret under its name with the fetched key ID.

The public key is fetched on every call. GitHub can rotate it, and a value
sealed to a stale key is accepted by the API but can never be opened.

Provisioning is idempotent: repeating a call re-seals with a fresh
ephemeral key (different ciphertext, same plaintext) and the upsert
replaces the existing secret.
"""

import base64
import logging
from typing import Optional

from src.setup_app.crypto.sealed_box import SealedBoxError, seal
from src.setup_app.github.client import GitHubAPIError
from src.setup_app.github.protocol import ForgeClient
from src.setup_app.webhook.models import RepositoryRef

logger = logging.getLogger(__name__)


class ProvisionError(Exception):
    """Raised when a secret could not be provisioned.

    Attributes:
        secret_name: The secret that failed.
        repository: Repository path in format "{owner}/{name}".
        original_error: The underlying crypto or API error.
    """

    def __init__(
        self,
        secret_name: str,
        repository: str,
        original_error: Optional[Exception] = None,
    ):
        self.secret_name = secret_name
        self.repository = repository
        self.original_error = original_error
        message = f"Failed to provision secret {secret_name} for {repository}"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(message)


class SecretProvisioner:
    """Seals and upserts secrets through a ForgeClient.

    Attributes:
        client: The forge API client.
    """

    def __init__(self, client: ForgeClient):
        self.client = client

    async def provision(
        self,
        repo: RepositoryRef,
        secret_name: str,
        secret_value: str,
    ) -> None:
        """Encrypt and upsert one secret into a repository.

        Args:
            repo: Target repository.
            secret_name: Name of the Actions secret.
            secret_value: Plaintext value; never logged.

        Raises:
            ProvisionError: If fetching the key, sealing or the upsert fails.
        """
        try:
            public_key = await self.client.get_public_key(repo)
            sealed = seal(secret_value.encode("utf-8"), public_key.key)
            encrypted_value = base64.b64encode(sealed).decode("ascii")
            await self.client.create_secret(
                repo,
                secret_name,
                encrypted_value,
                public_key.key_id,
            )
        except (SealedBoxError, GitHubAPIError) as exc:
            raise ProvisionError(secret_name, repo.full_name, exc) from exc

        logger.info(
            "Secret provisioned",
            extra={
                "repository": repo.full_name,
                "secret_name": secret_name,
                "key_id": public_key.key_id,
                "sealed_length": len(sealed),
            },
        )
