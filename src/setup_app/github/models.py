"""GitHub API data models used by the repository setup app."""

import base64
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class RepositoryPublicKey(BaseModel):
    """A repository's Actions secrets public key.

    GitHub may rotate this key, so it is fetched fresh for every secret
    write and never cached.

    Attributes:
        key: The raw 32-byte X25519 public key.
        key_id: GitHub's identifier for the key, echoed back on upsert.
    """

    model_config = ConfigDict(frozen=True)

    key: bytes = Field(..., description="Raw X25519 public key bytes")
    key_id: str = Field(..., min_length=1, description="GitHub key identifier")

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "RepositoryPublicKey":
        """Build from the ``/actions/secrets/public-key`` response body.

        The API returns the key base64-encoded; it is decoded here.
        """
        return cls(
            key=base64.b64decode(data["key"], validate=True),
            key_id=str(data["key_id"]),
        )


class EncryptedSecret(BaseModel):
    """An Actions secret ready to be upserted.

    Attributes:
        name: Secret name; travels in the request path.
        key_id: Identifier of the public key used to seal the value.
        encrypted_value: Base64 of the sealed message.
    """

    name: str = Field(..., min_length=1)
    key_id: str = Field(..., min_length=1)
    encrypted_value: str = Field(..., min_length=1)

    def request_body(self) -> Dict[str, str]:
        """JSON body for ``PUT /repos/{owner}/{repo}/actions/secrets/{name}``."""
        return {"encrypted_value": self.encrypted_value, "key_id": self.key_id}


class Label(BaseModel):
    """A repository issue label.

    Attributes:
        name: Label name.
        color: Six hex characters, without a leading ``#``.
        description: Short description shown in the GitHub UI.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    color: str = Field(default="ededed", pattern=r"^[0-9a-fA-F]{6}$")
    description: str = Field(default="")

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "Label":
        return cls(
            name=data["name"],
            color=data.get("color") or "ededed",
            description=data.get("description") or "",
        )
