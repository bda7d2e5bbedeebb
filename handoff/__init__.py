"""Warm hand-off: on termination, call our own public URL so the platform starts a replacement."""

from .errors import (
    EndpointResolutionFailure,
    HandoffError,
    MetadataUnavailable,
    MissingServiceIdentity,
    PlacementParseError,
)

__all__ = [
    "HandoffError",
    "MetadataUnavailable",
    "PlacementParseError",
    "MissingServiceIdentity",
    "EndpointResolutionFailure",
    "InstancePlacement",
    "get_project_and_region",
    "get_identity_token",
    "AmbientCredentials",
    "IdentityTokenCredentials",
    "get_cloud_run_url",
    "call_until_success",
    "SelfCallResult",
    "ShutdownOrchestrator",
]

_METADATA_ATTRS = {"InstancePlacement", "get_project_and_region", "get_identity_token"}
_CREDENTIALS_ATTRS = {"AmbientCredentials", "IdentityTokenCredentials"}
_LOCATOR_ATTRS = {"get_cloud_run_url"}
_SELFCALL_ATTRS = {"call_until_success", "SelfCallResult"}
_ORCHESTRATOR_ATTRS = {"ShutdownOrchestrator"}


def __getattr__(name: str):
    if name in _METADATA_ATTRS:
        from . import metadata
        return getattr(metadata, name)
    if name in _CREDENTIALS_ATTRS:
        from . import credentials
        return getattr(credentials, name)
    if name in _LOCATOR_ATTRS:
        from . import locator
        return getattr(locator, name)
    if name in _SELFCALL_ATTRS:
        from . import selfcall
        return getattr(selfcall, name)
    if name in _ORCHESTRATOR_ATTRS:
        from . import orchestrator
        return getattr(orchestrator, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
