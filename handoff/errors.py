"""Failures of the warm hand-off sequence. The orchestrator decides what each one means for the process."""


class HandoffError(Exception):
    """Base class: the hand-off sequence cannot continue."""


class MetadataUnavailable(HandoffError):
    """The local metadata server could not be queried, or answered with an error."""


class PlacementParseError(MetadataUnavailable):
    """The region document from the metadata server is not projects/<n>/regions/<r>."""

    def __init__(self, raw: str):
        super().__init__(f"unexpected instance region format: {raw!r}")
        self.raw = raw


class MissingServiceIdentity(HandoffError):
    """The platform did not tell us which service we are."""


class EndpointResolutionFailure(HandoffError):
    """The control plane did not give us a usable public URL for the service."""
