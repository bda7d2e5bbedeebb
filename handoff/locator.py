"""Service locator: ask the Cloud Run Admin API for the public URL of a service."""

from typing import Any, Optional

import google.auth.exceptions
import requests

from config import HTTP_TIMEOUT_S, RUN_API_HOST
from utils.logging_config import get_logger

from .credentials import CredentialProvider, get_ambient_credentials
from .errors import EndpointResolutionFailure

_log = get_logger(__name__)


def build_service_api_url(region: str, project_number: str, service: str) -> str:
    """Regional Knative-style endpoint of the Admin API for one service."""
    return (
        f"https://{region}-{RUN_API_HOST}/apis/serving.knative.dev/v1"
        f"/namespaces/{project_number}/services/{service}"
    )


def extract_service_url(document: Any) -> str:
    """Return status.url from a service document; everything else is ignored."""
    status = document.get("status") if isinstance(document, dict) else None
    url = status.get("url") if isinstance(status, dict) else None
    if not isinstance(url, str) or not url.strip():
        raise EndpointResolutionFailure("service document has no status.url")
    return url.strip()


def get_cloud_run_url(
    region: str,
    project_number: str,
    service: str,
    credentials: Optional[CredentialProvider] = None,
    timeout: float = HTTP_TIMEOUT_S,
) -> str:
    """Resolve the externally reachable base URL of `service`."""
    credentials = credentials or get_ambient_credentials()
    api_url = build_service_api_url(region, project_number, service)
    try:
        session = credentials.session(api_url)
        with session:
            resp = session.get(api_url, timeout=timeout)
            resp.raise_for_status()
            document = resp.json()
    except requests.JSONDecodeError as e:
        # also a RequestException, so it must come first
        _log.error("service_lookup_bad_body", extra={"api_url": api_url, "error": str(e)})
        raise EndpointResolutionFailure(f"Cloud Run API returned a non-JSON body: {e}") from e
    except (requests.RequestException, google.auth.exceptions.GoogleAuthError) as e:
        _log.error("service_lookup_failed", extra={"api_url": api_url, "error": str(e)})
        raise EndpointResolutionFailure(f"Cloud Run API call {api_url} failed: {e}") from e
    url = extract_service_url(document)
    _log.info("service_url_resolved", extra={"service": service, "url": url})
    return url
