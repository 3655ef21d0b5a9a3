"""GitHub API client for repository setup.

This module provides an async wrapper around the GitHub REST API for:
- Reading the Actions secrets public key and upserting secrets
- Creating and deleting repository files
- Listing, creating and deleting labels

Every call is made with an installation token for the repository's
GitHub App installation. Requests are never retried: a failed call raises
GitHubAPIError once and the caller decides what to do with it.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from src.setup_app.github.models import EncryptedSecret, Label, RepositoryPublicKey
from src.setup_app.webhook.models import RepositoryRef

if TYPE_CHECKING:
    from src.setup_app.github.auth import GitHubAppAuth


logger = logging.getLogger(__name__)


# Page size for paginated list endpoints (GitHub maximum)
PER_PAGE = 100


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails.

    Covers transport errors and timeouts as well as 4xx/5xx responses.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response.
        response_body: Response body from GitHub API.
        request_url: The URL that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded."""


class GitHubClient:
    """Async GitHub API client scoped by App installation.

    Implements the ForgeClient protocol used by the setup orchestrator.

    Attributes:
        auth: Mints installation tokens for each repository's installation.
        base_url: Base URL for GitHub API (default: https://api.github.com).
        timeout: Request timeout in seconds.

    Example:
        >>> client = GitHubClient(auth=GitHubAppAuth(app_id, pem))
        >>> async with client:
        ...     key = await client.get_public_key(repo)
    """

    def __init__(
        self,
        auth: "GitHubAppAuth",
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ):
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "repository-setup-app/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
        await self.auth.close()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        """A 429, or a 403 with no remaining requests in the window."""
        if response.status_code == 429:
            return True
        return (
            response.status_code == 403
            and response.headers.get("x-ratelimit-remaining") == "0"
        )

    def _decode_json(self, response: httpx.Response) -> Any:
        """Decode a successful response body.

        Raises:
            GitHubAPIError: If the body is not JSON.
        """
        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                message=f"Malformed GitHub API response: {e}",
                status_code=response.status_code,
                response_body=response.text[:500],
                request_url=str(response.url),
            ) from e

    def _malformed(
        self,
        response: httpx.Response,
        error: Exception,
    ) -> GitHubAPIError:
        logger.error(
            "Unexpected GitHub API response shape",
            extra={"url": str(response.url), "error": str(error)},
        )
        return GitHubAPIError(
            message=f"Malformed GitHub API response: {error!r}",
            status_code=response.status_code,
            response_body=response.text[:500],
            request_url=str(response.url),
        )

    async def _request(
        self,
        repo: RepositoryRef,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a single installation-authenticated HTTP request.

        Args:
            repo: Repository whose installation token authorizes the call.
            method: HTTP method (GET, POST, PUT, DELETE, PATCH).
            path: API path (e.g., /repos/owner/repo/labels).
            json_data: Optional JSON body for the request.
            params: Optional query parameters.

        Returns:
            The HTTP response from GitHub.

        Raises:
            GitHubAPIError: On transport errors, timeouts or 4xx/5xx.
            RateLimitError: If rate limit is exceeded.
        """
        token = await self.auth.get_installation_token(repo.installation_id)

        try:
            response = await self.client.request(
                method=method,
                url=path,
                json=json_data,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TimeoutException as e:
            logger.error(
                "GitHub API request timed out",
                extra={"path": path, "method": method},
            )
            raise GitHubAPIError(
                message=f"Request timed out: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e
        except httpx.RequestError as e:
            logger.error(
                "GitHub API request failed",
                extra={"path": path, "method": method, "error": str(e)},
            )
            raise GitHubAPIError(
                message=f"Request failed: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e

        if self._is_rate_limited(response):
            logger.warning(
                "GitHub API rate limit exceeded",
                extra={"path": path, "method": method},
            )
            raise RateLimitError(
                message="GitHub API rate limit exceeded",
                status_code=response.status_code,
                response_body=response.text,
                request_url=str(response.url),
            )

        if response.status_code >= 400:
            error_body = response.text
            logger.error(
                "GitHub API error",
                extra={
                    "status_code": response.status_code,
                    "path": path,
                    "method": method,
                    "response_body": error_body[:500],
                },
            )
            raise GitHubAPIError(
                message=f"GitHub API error: {response.status_code}",
                status_code=response.status_code,
                response_body=error_body,
                request_url=str(response.url),
            )

        return response

    # ------------------------------------------------------------------
    # Actions secrets
    # ------------------------------------------------------------------

    async def get_public_key(self, repo: RepositoryRef) -> RepositoryPublicKey:
        """Fetch the repository's current Actions secrets public key.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{repo.owner}/{repo.name}/actions/secrets/public-key"
        response = await self._request(repo, "GET", path)
        try:
            key = RepositoryPublicKey.from_github_response(self._decode_json(response))
        except (ValueError, KeyError, TypeError) as e:
            raise self._malformed(response, e) from e

        logger.debug(
            "Fetched repository public key",
            extra={"repository": repo.full_name, "key_id": key.key_id},
        )
        return key

    async def create_secret(
        self,
        repo: RepositoryRef,
        name: str,
        encrypted_value: str,
        key_id: str,
    ) -> None:
        """Create or replace an Actions secret.

        Args:
            repo: Target repository.
            name: Secret name.
            encrypted_value: Base64 of the sealed secret value.
            key_id: ID of the public key the value was sealed to.

        Raises:
            GitHubAPIError: If the request fails.
        """
        secret = EncryptedSecret(
            name=name, key_id=key_id, encrypted_value=encrypted_value
        )
        path = f"/repos/{repo.owner}/{repo.name}/actions/secrets/{quote(name, safe='')}"

        logger.info(
            "Upserting repository secret",
            extra={
                "repository": repo.full_name,
                "secret_name": name,
                "key_id": key_id,
            },
        )

        await self._request(repo, "PUT", path, json_data=secret.request_body())

    # ------------------------------------------------------------------
    # Contents
    # ------------------------------------------------------------------

    async def create_file(
        self,
        repo: RepositoryRef,
        path: str,
        content: str,
        message: str,
    ) -> bool:
        """Create a file on the default branch.

        Args:
            repo: Target repository.
            path: File path inside the repository.
            content: Base64-encoded file content.
            message: Commit message.

        Returns:
            True if the file was created, False if it already existed.

        Raises:
            GitHubAPIError: If the request fails for another reason.
        """
        api_path = f"/repos/{repo.owner}/{repo.name}/contents/{quote(path)}"

        logger.info(
            "Creating file",
            extra={"repository": repo.full_name, "path": path},
        )

        try:
            await self._request(
                repo,
                "PUT",
                api_path,
                json_data={"message": message, "content": content},
            )
        except GitHubAPIError as e:
            # 422 without a sha means the file is already there
            if e.status_code == 422:
                logger.info(
                    "File already exists",
                    extra={"repository": repo.full_name, "path": path},
                )
                return False
            raise

        return True

    async def get_file_sha(self, repo: RepositoryRef, path: str) -> str:
        """Return the blob SHA of a file on the default branch.

        Raises:
            GitHubAPIError: If the request fails (404 if the file is absent).
        """
        api_path = f"/repos/{repo.owner}/{repo.name}/contents/{quote(path)}"
        response = await self._request(repo, "GET", api_path)
        data = self._decode_json(response)
        # A directory path returns a list, not a file object
        if not isinstance(data, dict) or not isinstance(data.get("sha"), str):
            raise self._malformed(response, KeyError("sha"))
        return data["sha"]

    async def delete_file(
        self,
        repo: RepositoryRef,
        path: str,
        sha: str,
        message: str = "Remove file",
    ) -> None:
        """Delete a file from the default branch.

        Raises:
            GitHubAPIError: If the request fails.
        """
        api_path = f"/repos/{repo.owner}/{repo.name}/contents/{quote(path)}"

        logger.info(
            "Deleting file",
            extra={"repository": repo.full_name, "path": path},
        )

        await self._request(
            repo,
            "DELETE",
            api_path,
            json_data={"message": message, "sha": sha},
        )

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    async def list_labels(self, repo: RepositoryRef) -> List[Label]:
        """List all labels of a repository, following pagination.

        Raises:
            GitHubAPIError: If any page request fails.
        """
        path = f"/repos/{repo.owner}/{repo.name}/labels"
        labels: List[Label] = []
        page = 1

        while True:
            response = await self._request(
                repo,
                "GET",
                path,
                params={"per_page": PER_PAGE, "page": page},
            )
            batch = self._decode_json(response)
            try:
                labels.extend(Label.from_github_response(item) for item in batch)
            except (ValueError, KeyError, TypeError) as e:
                raise self._malformed(response, e) from e
            if len(batch) < PER_PAGE:
                break
            page += 1

        return labels

    async def create_label(self, repo: RepositoryRef, label: Label) -> bool:
        """Create a label.

        Returns:
            True if created, False if a label with that name already existed.

        Raises:
            GitHubAPIError: If the request fails for another reason.
        """
        path = f"/repos/{repo.owner}/{repo.name}/labels"

        try:
            await self._request(
                repo,
                "POST",
                path,
                json_data={
                    "name": label.name,
                    "color": label.color,
                    "description": label.description,
                },
            )
        except GitHubAPIError as e:
            if e.status_code == 422:
                logger.debug(
                    "Label already exists",
                    extra={"repository": repo.full_name, "label": label.name},
                )
                return False
            raise

        logger.info(
            "Label created",
            extra={"repository": repo.full_name, "label": label.name},
        )
        return True

    async def delete_label(self, repo: RepositoryRef, name: str) -> None:
        """Delete a label.

        Raises:
            GitHubAPIError: If the request fails (except 404 which is ignored).
        """
        path = f"/repos/{repo.owner}/{repo.name}/labels/{quote(name, safe='')}"

        try:
            await self._request(repo, "DELETE", path)
            logger.info(
                "Label deleted",
                extra={"repository": repo.full_name, "label": name},
            )
        except GitHubAPIError as e:
            # 404 means the label is already gone
            if e.status_code == 404:
                logger.debug(
                    "Label not found (already removed)",
                    extra={"repository": repo.full_name, "label": name},
                )
                return
            raise
