"""Tests for the API authentication module."""

import logging
from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from keyward.api.auth import (
    APIKeyMiddleware,
    AuthDecision,
    AuthOutcome,
    authenticate,
    describe_auth_status,
    get_api_key_info,
    get_auth_status,
    is_public_path,
    log_auth_status,
)
from keyward.auth.keys import APIKeyStore, generate_api_key
from keyward.auth.models import KeyInfo


@pytest.fixture
def store(tmp_path):
    """Create a store backed by a temporary document."""
    return APIKeyStore(store_path=tmp_path / "api-keys.json")


def _make_app(store: APIKeyStore, skip_auth: bool = False) -> FastAPI:
    app = FastAPI()
    app.add_middleware(APIKeyMiddleware, store=store, skip_auth=skip_auth)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/v1/models")
    async def models(key_info: KeyInfo | None = Depends(get_api_key_info)):
        return {"key_id": key_info.id if key_info else None}

    return app


class TestIsPublicPath:
    """Tests for public path matching."""

    def test_exact_match(self):
        assert is_public_path("/health")

    def test_sub_path_match(self):
        assert is_public_path("/health/live")

    def test_similar_prefix_not_public(self):
        """Test that /healthz is not treated as /health."""
        assert not is_public_path("/healthz")
        assert not is_public_path("/v1/health")


class TestAuthenticate:
    """Tests for the authenticate decision function."""

    def test_public_path_skips_store(self):
        """Test that public paths never consult the store."""
        store = MagicMock()
        decision = authenticate("/health", None, store)

        assert decision.outcome == AuthOutcome.ACCEPTED
        store.has_keys.assert_not_called()
        store.validate_key.assert_not_called()

    def test_override_accepts_without_store(self):
        """Test that the override accepts even with no keys."""
        store = MagicMock()
        decision = authenticate("/v1/messages", None, store, skip_auth=True)

        assert decision.accepted
        assert decision.key_info is None
        store.has_keys.assert_not_called()

    def test_empty_store_is_configuration_error(self, store):
        """Test that an empty store rejects protected paths with 503."""
        decision = authenticate("/v1/messages", generate_api_key(), store)

        assert decision.outcome == AuthOutcome.CONFIGURATION_ERROR
        assert decision.status_code == 503
        assert decision.error_type == "configuration_error"

    def test_missing_key(self, store):
        """Test that a missing header is rejected with 401."""
        store.add_key("k")
        decision = authenticate("/v1/messages", None, store)

        assert decision.outcome == AuthOutcome.MISSING_KEY
        assert decision.status_code == 401

    def test_empty_header_is_missing(self, store):
        store.add_key("k")
        assert authenticate("/v1/messages", "", store).outcome == AuthOutcome.MISSING_KEY

    @pytest.mark.parametrize("candidate", ["wrong", "sk-ant-short"])
    def test_invalid_key(self, store, candidate):
        """Test that malformed keys are rejected."""
        store.add_key("k")
        decision = authenticate("/v1/messages", candidate, store)

        assert decision.outcome == AuthOutcome.INVALID_KEY
        assert decision.key_info is None

    def test_unknown_key(self, store):
        store.add_key("k")
        decision = authenticate("/v1/messages", generate_api_key(), store)
        assert decision.outcome == AuthOutcome.INVALID_KEY

    def test_disabled_key(self, store):
        """Test that a disabled key is distinguishable from an unknown one."""
        record, raw_key = store.add_key("k")
        store.disable_key(record.id)

        decision = authenticate("/v1/messages", raw_key, store)

        assert decision.outcome == AuthOutcome.DISABLED_KEY
        assert decision.status_code == 401
        assert decision.key_info.id == record.id

    def test_accepted(self, store):
        """Test that an enabled key is accepted with its KeyInfo."""
        record, raw_key = store.add_key("k")

        decision = authenticate("/v1/messages", raw_key, store)

        assert decision.accepted
        assert decision.status_code == 200
        assert decision.error_type is None
        assert decision.key_info.id == record.id
        assert decision.key_info.name == "k"

    def test_disabled_only_store_is_not_configuration_error(self, store):
        """Test that a store with only disabled keys still counts as configured."""
        record, _ = store.add_key("k")
        store.disable_key(record.id)

        decision = authenticate("/v1/messages", None, store)
        assert decision.outcome == AuthOutcome.MISSING_KEY


class TestAuthDecision:
    """Tests for AuthDecision error bodies."""

    @pytest.mark.parametrize(
        "outcome,error_type,status_code",
        [
            (AuthOutcome.CONFIGURATION_ERROR, "configuration_error", 503),
            (AuthOutcome.MISSING_KEY, "authentication_error", 401),
            (AuthOutcome.INVALID_KEY, "authentication_error", 401),
            (AuthOutcome.DISABLED_KEY, "authentication_error", 401),
        ],
    )
    def test_error_body(self, outcome, error_type, status_code):
        decision = AuthDecision(outcome)
        body = decision.to_error_body()

        assert decision.status_code == status_code
        assert body["error"]["type"] == error_type
        assert body["error"]["code"] == outcome.value
        assert body["error"]["message"]


class TestAPIKeyMiddleware:
    """Tests for the middleware through a test client."""

    def test_empty_store_returns_503(self, store):
        client = TestClient(_make_app(store))
        response = client.get("/v1/models")

        assert response.status_code == 503
        assert response.json()["error"]["type"] == "configuration_error"

    def test_health_public_regardless_of_store(self, store):
        """Test that /health needs no header, with or without keys."""
        client = TestClient(_make_app(store))
        assert client.get("/health").status_code == 200

        store.add_key("k")
        assert client.get("/health").status_code == 200

    def test_valid_key_accepted_with_context(self, store):
        """Test that the KeyInfo reaches the route handler."""
        record, raw_key = store.add_key("k")
        client = TestClient(_make_app(store))

        response = client.get("/v1/models", headers={"x-api-key": raw_key})

        assert response.status_code == 200
        assert response.json() == {"key_id": record.id}

    def test_header_name_case_insensitive(self, store):
        record, raw_key = store.add_key("k")
        client = TestClient(_make_app(store))

        response = client.get("/v1/models", headers={"X-API-Key": raw_key})
        assert response.json() == {"key_id": record.id}

    def test_disabled_key_returns_401(self, store):
        record, raw_key = store.add_key("k")
        store.disable_key(record.id)
        client = TestClient(_make_app(store))

        response = client.get("/v1/models", headers={"x-api-key": raw_key})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "disabled_api_key"

    def test_missing_key_returns_401(self, store):
        store.add_key("k")
        client = TestClient(_make_app(store))

        response = client.get("/v1/models")

        assert response.status_code == 401
        assert response.json()["error"] == {
            "type": "authentication_error",
            "code": "missing_api_key",
            "message": "Missing API key. Please provide x-api-key header.",
        }

    def test_invalid_key_returns_401(self, store):
        store.add_key("k")
        client = TestClient(_make_app(store))

        response = client.get("/v1/models", headers={"x-api-key": generate_api_key()})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "invalid_api_key"

    def test_override_accepts_and_warns(self, store, caplog):
        """Test that the override is accepted and announced."""
        with caplog.at_level(logging.WARNING, logger="keyward.api.auth"):
            client = TestClient(_make_app(store, skip_auth=True))
            response = client.get("/v1/models")

        assert response.status_code == 200
        assert response.json() == {"key_id": None}
        assert "DISABLED" in caplog.text

    def test_rejection_logged_without_secret(self, store, caplog):
        record, raw_key = store.add_key("k")
        store.disable_key(record.id)
        client = TestClient(_make_app(store))

        with caplog.at_level(logging.WARNING, logger="keyward.api.auth"):
            client.get("/v1/models", headers={"x-api-key": raw_key})

        assert "disabled_api_key" in caplog.text
        assert record.id in caplog.text
        assert raw_key not in caplog.text


class TestAuthStatus:
    """Tests for the auth status summary."""

    def test_override_disabled(self):
        status = describe_auth_status(skip_auth=True, key_count=3)

        assert status.is_disabled is True
        assert status.enabled is False
        assert status.message == "API Key Auth: DISABLED (SKIP_API_KEY_AUTH=true)"

    def test_enabled_with_keys(self):
        status = describe_auth_status(skip_auth=False, key_count=2)

        assert status.enabled is True
        assert status.message == "API Key Auth: Enabled (2 active keys)"

    def test_enabled_singular(self):
        status = describe_auth_status(skip_auth=False, key_count=1)
        assert status.message == "API Key Auth: Enabled (1 active key)"

    def test_no_keys(self):
        status = describe_auth_status(skip_auth=False, key_count=0)

        assert status.enabled is False
        assert status.is_disabled is False
        assert status.message == "API Key Auth: No keys configured!"

    def test_get_auth_status_counts_enabled_only(self, store):
        first, _ = store.add_key("a")
        store.add_key("b")
        store.disable_key(first.id)

        status = get_auth_status(store)
        assert status.key_count == 1
        assert status.enabled is True

    def test_log_auth_status_levels(self, caplog):
        with caplog.at_level(logging.INFO, logger="keyward.api.auth"):
            log_auth_status(describe_auth_status(True, 0))
            log_auth_status(describe_auth_status(False, 0))
            log_auth_status(describe_auth_status(False, 2))

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.WARNING, logging.WARNING, logging.INFO]
