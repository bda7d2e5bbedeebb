"""Metadata server access: instance placement and audience-scoped identity tokens.

The metadata server is only reachable from inside the instance and requires
the ``Metadata-Flavor: Google`` header on every request.
"""

from typing import NamedTuple, Optional

import requests

from config import METADATA_HOST, METADATA_TIMEOUT_S
from utils.logging_config import get_logger

from .errors import MetadataUnavailable, PlacementParseError

_log = get_logger(__name__)

METADATA_HEADERS = {"Metadata-Flavor": "Google"}
REGION_PATH = "/instance/region"
IDENTITY_PATH = "/instance/service-accounts/default/identity"

_session: Optional[requests.Session] = None


class InstancePlacement(NamedTuple):
    project_number: str
    region: str


def metadata_url(path: str) -> str:
    return f"http://{METADATA_HOST}/computeMetadata/v1{path}"


def get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = requests.Session()
        _session.headers.update(METADATA_HEADERS)
    return _session


def close_session() -> None:
    """Release the metadata session (e.g. on graceful shutdown). Next get_session() will create a new one."""
    global _session
    if _session is not None:
        _session.close()
    _session = None


def get(path: str, params: Optional[dict] = None, timeout: float = METADATA_TIMEOUT_S) -> str:
    """GET a metadata path and return the body as text; any failure is MetadataUnavailable."""
    url = metadata_url(path)
    try:
        resp = get_session().get(url, params=params, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise MetadataUnavailable(f"metadata query {path} failed: {e}") from e
    return resp.text.strip()


def parse_placement(raw: str) -> InstancePlacement:
    """Parse projects/<projectNumber>/regions/<region>; trailing segments are ignored."""
    parts = raw.strip().split("/")
    if len(parts) < 4 or parts[0] != "projects" or parts[2] != "regions":
        raise PlacementParseError(raw)
    project_number, region = parts[1], parts[3]
    if not project_number or not region:
        raise PlacementParseError(raw)
    return InstancePlacement(project_number=project_number, region=region)


def get_project_and_region() -> InstancePlacement:
    """Return (project_number, region) of the running instance."""
    placement = parse_placement(get(REGION_PATH))
    _log.info(
        "placement_resolved",
        extra={"project_number": placement.project_number, "region": placement.region},
    )
    return placement


def get_identity_token(audience: str) -> str:
    """Mint an identity token for the default service account, valid only for `audience`."""
    token = get(IDENTITY_PATH, params={"audience": audience, "format": "standard"})
    if not token:
        raise MetadataUnavailable(f"empty identity token for audience {audience}")
    return token
