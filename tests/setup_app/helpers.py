"""Shared helpers for setup app tests.

FakeForgeClient is a stateful in-memory stand-in for the GitHub API. It
holds a real X25519 key pair so secrets written through it can be opened
and checked, and it logs every call in order.
"""

import asyncio
import base64
import hashlib
import json
from typing import Dict, List, Optional, Set, Tuple

from nacl.public import PrivateKey

from src.setup_app.crypto.sealed_box import open_sealed
from src.setup_app.github.client import GitHubAPIError
from src.setup_app.github.models import Label, RepositoryPublicKey
from src.setup_app.webhook.models import RepositoryRef
from src.setup_app.webhook.signature import compute_signature


WEBHOOK_SECRET = "test-webhook-secret"


def run_async(coro):
    return asyncio.run(coro)


class FakeForgeClient:
    """In-memory forge with upsert secrets, files and labels."""

    def __init__(self):
        self.private_key = PrivateKey.generate()
        self.key_id = "key-1"
        self.calls: List[Tuple[str, ...]] = []
        self.secrets: Dict[Tuple[str, str], Tuple[str, str]] = {}
        self.files: Dict[Tuple[str, str], Tuple[str, str]] = {}
        self.labels: Dict[str, Dict[str, Label]] = {}
        self.fail_secrets: Set[str] = set()
        self.fail_files: Set[str] = set()
        self.fail_public_key = False
        self.closed = False

    @property
    def public_key(self) -> bytes:
        return bytes(self.private_key.public_key)

    def _fail(self, what: str) -> None:
        raise GitHubAPIError(f"simulated failure: {what}", status_code=500)

    async def get_public_key(self, repo: RepositoryRef) -> RepositoryPublicKey:
        self.calls.append(("get_public_key", repo.full_name))
        if self.fail_public_key:
            self._fail("public key")
        return RepositoryPublicKey(key=self.public_key, key_id=self.key_id)

    async def create_secret(self, repo, name, encrypted_value, key_id) -> None:
        self.calls.append(("create_secret", repo.full_name, name))
        if name in self.fail_secrets:
            self._fail(f"secret {name}")
        self.secrets[(repo.full_name, name)] = (encrypted_value, key_id)

    async def create_file(self, repo, path, content, message) -> bool:
        self.calls.append(("create_file", repo.full_name, path))
        if path in self.fail_files:
            self._fail(f"file {path}")
        key = (repo.full_name, path)
        if key in self.files:
            return False
        self.files[key] = (content, message)
        return True

    async def get_file_sha(self, repo, path) -> str:
        self.calls.append(("get_file_sha", repo.full_name, path))
        key = (repo.full_name, path)
        if key not in self.files:
            raise GitHubAPIError("Not Found", status_code=404)
        return hashlib.sha1(self.files[key][0].encode()).hexdigest()

    async def delete_file(self, repo, path, sha, message="Remove file") -> None:
        self.calls.append(("delete_file", repo.full_name, path, sha))
        self.files.pop((repo.full_name, path), None)

    async def list_labels(self, repo) -> List[Label]:
        self.calls.append(("list_labels", repo.full_name))
        return list(self.labels.get(repo.full_name, {}).values())

    async def create_label(self, repo, label) -> bool:
        self.calls.append(("create_label", repo.full_name, label.name))
        existing = self.labels.setdefault(repo.full_name, {})
        if label.name in existing:
            return False
        existing[label.name] = label
        return True

    async def delete_label(self, repo, name) -> None:
        self.calls.append(("delete_label", repo.full_name, name))
        self.labels.get(repo.full_name, {}).pop(name, None)

    async def close(self) -> None:
        self.closed = True

    # Test helpers -----------------------------------------------------

    def decrypt_secret(self, repo: RepositoryRef, name: str) -> str:
        encrypted_value, _ = self.secrets[(repo.full_name, name)]
        sealed = base64.b64decode(encrypted_value)
        return open_sealed(sealed, bytes(self.private_key)).decode("utf-8")

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def mutating_calls(self) -> List[Tuple[str, ...]]:
        return [
            call for call in self.calls
            if call[0] in {"create_secret", "create_file", "delete_file",
                           "create_label", "delete_label"}
        ]


def make_repository_payload(
    action: str = "created",
    owner: str = "acme",
    name: str = "widgets",
    installation_id: Optional[int] = 4242,
) -> dict:
    payload = {
        "action": action,
        "repository": {
            "name": name,
            "full_name": f"{owner}/{name}",
            "owner": {"login": owner},
        },
        "sender": {"login": owner},
    }
    if installation_id is not None:
        payload["installation"] = {"id": installation_id}
    return payload


def encode_payload(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return compute_signature(body, secret)
