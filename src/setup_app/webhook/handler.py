"""GitHub webhook payload parsing for the repository setup app.

This module provides the WebhookHandler class for decoding and parsing
GitHub ``repository`` webhook deliveries. Signature verification is done
separately (see signature.py) and must pass before anything here runs.

GitHub Webhook Payload Structure (repository event):
{
  "action": "created",
  "repository": {
    "name": "repo-name",
    "owner": {"login": "owner-name"}
  },
  "installation": {"id": 12345}
}
"""

import json
import logging
from typing import Any, Dict, Optional

from .models import RepositoryAction, RepositoryRef

logger = logging.getLogger(__name__)


class WebhookHandler:
    """Decoder and parser for GitHub ``repository`` webhook payloads.

    All methods are defensive: malformed input is logged and reported as
    None rather than raised, so the caller decides how to respond.
    """

    def decode_payload(self, raw_body: bytes) -> Optional[Dict[str, Any]]:
        """Decode a raw request body into a JSON object.

        Args:
            raw_body: The request body bytes.

        Returns:
            The decoded dictionary, or None if the body is not a JSON object.
        """
        try:
            payload = json.loads(raw_body)
        except (UnicodeDecodeError, ValueError) as e:
            logger.warning("Invalid webhook body: %s", e)
            return None

        if not isinstance(payload, dict):
            logger.warning("Invalid payload: expected dict, got %s", type(payload))
            return None

        return payload

    def parse_action(self, payload: Dict[str, Any]) -> Optional[RepositoryAction]:
        """Parse the action string into a RepositoryAction enum.

        Args:
            payload: The decoded webhook payload.

        Returns:
            RepositoryAction if known, None otherwise.
        """
        action_str = payload.get("action")
        if not isinstance(action_str, str):
            return None

        try:
            return RepositoryAction(action_str)
        except ValueError:
            logger.debug("Unknown repository action: %s", action_str)
            return None

    def is_created_event(self, payload: Dict[str, Any]) -> bool:
        """Return True if the payload describes a newly created repository."""
        return self.parse_action(payload) == RepositoryAction.CREATED

    def parse_repository(self, payload: Dict[str, Any]) -> Optional[RepositoryRef]:
        """Extract the target repository from a webhook payload.

        Args:
            payload: The decoded webhook payload.

        Returns:
            RepositoryRef if parsing succeeds, None otherwise. Returns None
            for:
            - Missing or invalid ``repository`` object
            - Missing repository name or owner login
            - Missing or non-positive installation ID
        """
        repo_data = payload.get("repository")
        if not isinstance(repo_data, dict):
            logger.warning(
                "Missing or invalid 'repository' field in payload: %s",
                type(repo_data),
            )
            return None

        name = repo_data.get("name")
        if not isinstance(name, str) or not name.strip():
            logger.warning("Invalid or empty repository name: %s", name)
            return None

        owner = self._extract_login(repo_data.get("owner"))
        if owner is None:
            return None

        installation_id = self._extract_installation_id(payload.get("installation"))
        if installation_id is None:
            return None

        repository = RepositoryRef(
            owner=owner,
            name=name.strip(),
            installation_id=installation_id,
        )

        logger.info(
            "Parsed repository event: repository=%s installation=%s",
            repository.full_name,
            installation_id,
        )

        return repository

    def _extract_login(self, owner_data: Any) -> Optional[str]:
        if not isinstance(owner_data, dict):
            logger.warning(
                "Missing or invalid repository owner data: %s",
                type(owner_data),
            )
            return None

        login = owner_data.get("login")
        if not isinstance(login, str) or not login.strip():
            logger.warning("Invalid or empty repository owner login: %s", login)
            return None

        return login.strip()

    def _extract_installation_id(self, installation_data: Any) -> Optional[int]:
        if not isinstance(installation_data, dict):
            logger.warning(
                "Missing or invalid 'installation' field in payload: %s",
                type(installation_data),
            )
            return None

        installation_id = installation_data.get("id")
        # bool is an int subclass; reject it explicitly
        if (
            not isinstance(installation_id, int)
            or isinstance(installation_id, bool)
            or installation_id <= 0
        ):
            logger.warning("Invalid installation id: %s", installation_id)
            return None

        return installation_id
