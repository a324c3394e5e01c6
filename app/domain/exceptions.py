"""
Domain exceptions for zone health scoring.

Only a fusion failure aborts a calculation. Ontology lookup failures are
absorbed by the scorer that made the call.
"""


class ZoneHealthError(Exception):
    """Base class for zone health scoring errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FusionFailure(ZoneHealthError):
    """The data fusion provider could not produce a bundle for the zone."""
    pass


class ProviderLookupFailure(ZoneHealthError):
    """A crop ontology lookup failed, timed out or was cancelled."""
    pass
