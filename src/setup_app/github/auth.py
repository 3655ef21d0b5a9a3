"""GitHub App installation authentication.

A GitHub App authenticates in two steps:
1. Sign a short-lived JWT (RS256) with the App's private key.
2. Exchange it at ``POST /app/installations/{id}/access_tokens`` for an
   installation token scoped to the repositories of that installation.

Installation tokens live for one hour. They are cached per installation
and re-minted shortly before expiry.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx
import jwt

from src.setup_app.github.client import GitHubAPIError


logger = logging.getLogger(__name__)


# GitHub rejects JWTs whose lifetime exceeds 10 minutes
JWT_LIFETIME_SECONDS = 540

# Backdate iat to tolerate clock drift between us and GitHub
JWT_CLOCK_SKEW_SECONDS = 60

# Re-mint installation tokens this long before they expire
TOKEN_REFRESH_MARGIN_SECONDS = 60


class GitHubAuthError(GitHubAPIError):
    """Raised when an installation token cannot be obtained."""


class GitHubAppAuth:
    """Mints and caches installation tokens for a GitHub App.

    Attributes:
        app_id: The GitHub App ID (JWT issuer).
        private_key: PEM-encoded RSA private key of the App.
        base_url: Base URL for GitHub API.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        app_id: int,
        private_key: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ):
        self.app_id = app_id
        self.private_key = private_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None
        self._tokens: Dict[int, Tuple[str, float]] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and forget cached tokens."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
        self._tokens.clear()

    def create_jwt(self, now: Optional[float] = None) -> str:
        """Create the App JWT used to request installation tokens.

        Args:
            now: Current Unix time; defaults to ``time.time()``.

        Returns:
            The encoded JWT.

        Raises:
            GitHubAuthError: If the private key cannot sign the token.
        """
        issued_at = int(now if now is not None else time.time())
        claims = {
            "iat": issued_at - JWT_CLOCK_SKEW_SECONDS,
            "exp": issued_at + JWT_LIFETIME_SECONDS,
            "iss": str(self.app_id),
        }
        try:
            return jwt.encode(claims, self.private_key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise GitHubAuthError(f"Failed to sign GitHub App JWT: {e}") from e

    async def get_installation_token(self, installation_id: int) -> str:
        """Return a valid installation token, minting one if needed.

        Args:
            installation_id: The installation to act as.

        Returns:
            The installation access token.

        Raises:
            GitHubAuthError: If GitHub rejects the exchange or is unreachable.
        """
        cached = self._tokens.get(installation_id)
        if cached is not None:
            token, expires_at = cached
            if time.time() < expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
                return token

        token, expires_at = await self._mint_installation_token(installation_id)
        self._tokens[installation_id] = (token, expires_at)
        return token

    async def _mint_installation_token(
        self,
        installation_id: int,
    ) -> Tuple[str, float]:
        path = f"/app/installations/{installation_id}/access_tokens"
        headers = {
            "Authorization": f"Bearer {self.create_jwt()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        logger.info(
            "Minting installation token",
            extra={"installation_id": installation_id, "app_id": self.app_id},
        )

        try:
            response = await self.client.post(path, headers=headers)
        except httpx.HTTPError as e:
            raise GitHubAuthError(
                f"Installation token request failed: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e

        if response.status_code != 201:
            raise GitHubAuthError(
                f"Installation token request failed: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
                request_url=str(response.url),
            )

        try:
            data: Dict[str, Any] = response.json()
            token = data["token"]
            if not isinstance(token, str) or not token:
                raise ValueError("token is not a non-empty string")
            return token, _parse_expiry(data.get("expires_at"))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise GitHubAuthError(
                f"Malformed installation token response: {e!r}",
                status_code=response.status_code,
                request_url=str(response.url),
            ) from e


def _parse_expiry(value: Optional[str]) -> float:
    """Parse GitHub's ``expires_at`` timestamp into Unix time.

    Falls back to one hour from now when the field is missing.

    Raises:
        ValueError: If the value is not an ISO 8601 timestamp.
    """
    if not value:
        return time.time() + 3600
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()
