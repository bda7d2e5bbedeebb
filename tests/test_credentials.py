"""Unit tests for the two credential provider variants."""

from unittest.mock import MagicMock

import google.auth

from handoff import credentials, metadata
from handoff.credentials import AmbientCredentials, IdentityTokenCredentials


def test_identity_token_session_carries_bearer_header():
    fetch = MagicMock(return_value="tok-123")
    provider = IdentityTokenCredentials(fetch_token=fetch)

    session = provider.session("https://myapp-abcd.run.app")

    fetch.assert_called_once_with("https://myapp-abcd.run.app")
    assert session.headers["Authorization"] == "Bearer tok-123"
    session.close()


def test_identity_token_defaults_to_metadata_server(monkeypatch):
    get = MagicMock(return_value="tok-meta")
    monkeypatch.setattr(metadata, "get", get)

    session = IdentityTokenCredentials().session("https://svc.example")

    assert session.headers["Authorization"] == "Bearer tok-meta"
    assert get.call_args.kwargs["params"]["audience"] == "https://svc.example"
    session.close()


def test_ambient_credentials_use_application_default(monkeypatch):
    creds = object()
    default = MagicMock(return_value=(creds, "my-project"))
    authorized = MagicMock()
    monkeypatch.setattr(google.auth, "default", default)
    monkeypatch.setattr(credentials, "AuthorizedSession", authorized)

    provider = AmbientCredentials()
    provider.session("https://europe-west1-run.googleapis.com/x")
    provider.session("https://europe-west1-run.googleapis.com/y")

    default.assert_called_once_with(scopes=["https://www.googleapis.com/auth/cloud-platform"])
    assert authorized.call_count == 2
    authorized.assert_called_with(creds)


def test_ambient_credentials_singleton():
    credentials.reset_ambient_credentials()
    try:
        assert credentials.get_ambient_credentials() is credentials.get_ambient_credentials()
    finally:
        credentials.reset_ambient_credentials()
