import pytest
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from src.auth.oauth_flow import AuthorizationFlow
from src.scheduler.errors import AuthExchangeError, ConfigError


def _query(url):
    return parse_qs(urlparse(url).query)


def test_consent_url_requests_offline_access_with_forced_consent(config):
    url = AuthorizationFlow(config).build_consent_url("user-1")
    params = _query(url)

    assert url.startswith(config.GOOGLE_AUTH_URI)
    assert params["state"] == ["user-1"]
    assert params["access_type"] == ["offline"]
    assert params["prompt"] == ["consent"]
    assert params["client_id"] == [config.GOOGLE_CLIENT_ID]
    assert params["redirect_uri"] == [config.GOOGLE_REDIRECT_URI]
    assert params["scope"] == [" ".join(config.SCOPES)]
    assert "code_challenge" not in params


def test_consent_url_is_deterministic(config):
    flow = AuthorizationFlow(config)

    assert flow.build_consent_url("user-1") == flow.build_consent_url("user-1")
    assert AuthorizationFlow(config).build_consent_url("user-1") == flow.build_consent_url("user-1")


def test_consent_url_uses_requested_scopes(config):
    scopes = ["https://www.googleapis.com/auth/calendar.events"]

    params = _query(AuthorizationFlow(config).build_consent_url("user-1", scopes))

    assert params["scope"] == scopes


def test_consent_url_requires_client_credentials(config):
    config.GOOGLE_CLIENT_SECRET = None

    with pytest.raises(ConfigError):
        AuthorizationFlow(config).build_consent_url("user-1")


def test_exchange_requires_code(config):
    with pytest.raises(AuthExchangeError):
        AuthorizationFlow(config).exchange_code("", "user-1")


def test_exchange_code_returns_credential(config):
    expiry = datetime(2025, 1, 14, 11, 0, 0)
    with patch("src.auth.oauth_flow.Flow") as flow_cls:
        flow = flow_cls.from_client_config.return_value
        flow.credentials = SimpleNamespace(
            token="ya29.fresh",
            refresh_token="1//refresh",
            expiry=expiry,
            scopes=["https://www.googleapis.com/auth/calendar"],
            token_uri="https://oauth2.googleapis.com/token",
        )

        credential = AuthorizationFlow(config).exchange_code("4/auth-code", "user-1")

    flow.fetch_token.assert_called_once_with(code="4/auth-code", timeout=config.OAUTH_TIMEOUT)
    assert credential.user_id == "user-1"
    assert credential.access_token == "ya29.fresh"
    assert credential.refresh_token == "1//refresh"
    assert credential.expiry == expiry


def test_exchange_code_wraps_provider_failure(config):
    with patch("src.auth.oauth_flow.Flow") as flow_cls:
        flow_cls.from_client_config.return_value.fetch_token.side_effect = ValueError("invalid_grant")

        with pytest.raises(AuthExchangeError) as excinfo:
            AuthorizationFlow(config).exchange_code("4/used-code", "user-1")

    assert "invalid_grant" in str(excinfo.value)


def test_authorized_client_binds_credential(config, credential):
    creds = AuthorizationFlow(config).authorized_client(credential)

    assert creds.token == credential.access_token
    assert creds.refresh_token == credential.refresh_token
    assert creds.client_id == config.GOOGLE_CLIENT_ID
    assert creds.token_uri == credential.token_uri
    assert creds.expiry == credential.expiry


def test_authorized_client_does_not_touch_store(config, credential, store):
    store.put("user-1", credential)

    AuthorizationFlow(config).authorized_client(credential)

    assert store.get("user-1") is credential
