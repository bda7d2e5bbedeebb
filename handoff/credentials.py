"""Credential providers: hand out an authorized requests.Session for a given audience.

Two mechanisms sit behind the same call:

- ``AmbientCredentials``: Application Default Credentials (the instance's
  service account on the platform), used for Google APIs.
- ``IdentityTokenCredentials``: an audience-scoped identity token from the
  metadata server, used for service-to-service calls.
"""

from typing import Callable, Optional, Sequence

import google.auth
import requests
from google.auth.transport.requests import AuthorizedSession

from config import CLOUD_PLATFORM_SCOPE

from . import metadata


class CredentialProvider:
    """Something that can authorize requests to `audience`."""

    def session(self, audience: str) -> requests.Session:
        raise NotImplementedError


class AmbientCredentials(CredentialProvider):
    def __init__(self, scopes: Sequence[str] = (CLOUD_PLATFORM_SCOPE,)):
        self._scopes = list(scopes)
        self._credentials = None

    def session(self, audience: str) -> requests.Session:
        # ADC tokens are not audience-bound; the scope decides what they can reach.
        if self._credentials is None:
            self._credentials, _ = google.auth.default(scopes=self._scopes)
        return AuthorizedSession(self._credentials)


class IdentityTokenCredentials(CredentialProvider):
    def __init__(self, fetch_token: Optional[Callable[[str], str]] = None):
        self._fetch_token = fetch_token or metadata.get_identity_token

    def session(self, audience: str) -> requests.Session:
        token = self._fetch_token(audience)
        session = requests.Session()
        session.headers["Authorization"] = f"Bearer {token}"
        return session


_ambient: Optional[AmbientCredentials] = None


def get_ambient_credentials() -> AmbientCredentials:
    """Lazy singleton ambient credential provider."""
    global _ambient
    if _ambient is None:
        _ambient = AmbientCredentials()
    return _ambient


def reset_ambient_credentials() -> None:
    global _ambient
    _ambient = None
