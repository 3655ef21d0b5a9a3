"""Unit tests for webhook payload parsing."""

import pytest
from pydantic import ValidationError

from src.setup_app.webhook.handler import WebhookHandler
from src.setup_app.webhook.models import RepositoryAction, RepositoryRef
from tests.setup_app.helpers import encode_payload, make_repository_payload


@pytest.fixture
def handler():
    return WebhookHandler()


class TestDecodePayload:

    def test_decodes_json_object(self, handler):
        payload = make_repository_payload()
        assert handler.decode_payload(encode_payload(payload)) == payload

    @pytest.mark.parametrize(
        "body",
        [b"", b"not json", b"{", b"\xff\xfe\x00", b"[1, 2, 3]", b'"created"', b"null"],
    )
    def test_rejects_non_object_bodies(self, handler, body):
        assert handler.decode_payload(body) is None


class TestParseAction:

    def test_created(self, handler):
        payload = make_repository_payload(action="created")
        assert handler.parse_action(payload) == RepositoryAction.CREATED
        assert handler.is_created_event(payload)

    @pytest.mark.parametrize("action", ["deleted", "archived", "renamed", "edited"])
    def test_other_known_actions_are_not_created(self, handler, action):
        payload = make_repository_payload(action=action)
        assert handler.parse_action(payload) == RepositoryAction(action)
        assert not handler.is_created_event(payload)

    @pytest.mark.parametrize("action", [None, 7, "", "Created", "made-up"])
    def test_unknown_actions_parse_as_none(self, handler, action):
        payload = make_repository_payload()
        payload["action"] = action
        assert handler.parse_action(payload) is None
        assert not handler.is_created_event(payload)

    def test_missing_action(self, handler):
        payload = make_repository_payload()
        del payload["action"]
        assert handler.parse_action(payload) is None


class TestParseRepository:

    def test_valid_payload(self, handler):
        repo = handler.parse_repository(make_repository_payload())
        assert repo == RepositoryRef(owner="acme", name="widgets", installation_id=4242)
        assert repo.full_name == "acme/widgets"

    def test_strips_whitespace(self, handler):
        payload = make_repository_payload(owner=" acme ", name=" widgets ")
        repo = handler.parse_repository(payload)
        assert repo.owner == "acme"
        assert repo.name == "widgets"

    def test_missing_repository(self, handler):
        payload = make_repository_payload()
        del payload["repository"]
        assert handler.parse_repository(payload) is None

    def test_repository_not_a_dict(self, handler):
        payload = make_repository_payload()
        payload["repository"] = "acme/widgets"
        assert handler.parse_repository(payload) is None

    @pytest.mark.parametrize("name", [None, "", "   ", 42])
    def test_invalid_name(self, handler, name):
        payload = make_repository_payload()
        payload["repository"]["name"] = name
        assert handler.parse_repository(payload) is None

    def test_missing_owner(self, handler):
        payload = make_repository_payload()
        del payload["repository"]["owner"]
        assert handler.parse_repository(payload) is None

    @pytest.mark.parametrize("login", [None, "", "  ", 99])
    def test_invalid_owner_login(self, handler, login):
        payload = make_repository_payload()
        payload["repository"]["owner"]["login"] = login
        assert handler.parse_repository(payload) is None

    def test_missing_installation(self, handler):
        payload = make_repository_payload(installation_id=None)
        assert handler.parse_repository(payload) is None

    @pytest.mark.parametrize("installation_id", [0, -5, "4242", True, 1.5, None])
    def test_invalid_installation_id(self, handler, installation_id):
        payload = make_repository_payload()
        payload["installation"]["id"] = installation_id
        assert handler.parse_repository(payload) is None


class TestRepositoryRef:

    def test_is_frozen(self):
        repo = RepositoryRef(owner="acme", name="widgets", installation_id=1)
        with pytest.raises(ValidationError):
            repo.name = "other"

    def test_rejects_empty_owner(self):
        with pytest.raises(ValidationError):
            RepositoryRef(owner="", name="widgets", installation_id=1)

    def test_rejects_non_positive_installation(self):
        with pytest.raises(ValidationError):
            RepositoryRef(owner="acme", name="widgets", installation_id=0)
