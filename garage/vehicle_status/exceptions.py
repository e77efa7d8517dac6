"""
Exception hierarchy for the vehicle status pipeline.

Duplicates are never raised; they are returned as data on MatchResult.
"""

from typing import Iterable, Optional


class VehicleStatusError(Exception):
    """Base class for every error raised by this package."""


class InputError(VehicleStatusError):
    """Malformed request input: empty or oversized name, bad status token."""


class UnknownStatusError(InputError):
    """Status text that matches no synonym."""

    def __init__(self, raw_status, allowed: Iterable[str]):
        self.raw_status = raw_status
        self.allowed = list(allowed)
        super().__init__(
            f'Unknown status: "{raw_status}". Allowed values: {", ".join(self.allowed)}'
        )


class VehicleNotFoundError(VehicleStatusError):
    """No registry row cleared the fuzzy threshold."""

    def __init__(self, name: str, suggestions: Optional[list[str]] = None):
        self.name = name
        self.suggestions = suggestions or []
        super().__init__(f'Vehicle "{name}" not found')


class TransitionError(VehicleStatusError):
    """Status change rejected by policy. Reserved: every transition is allowed today."""


class RegistryError(VehicleStatusError):
    """Registry read or write failed."""
