from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class GenesisError(Exception):
    """Base error for every fatal genesis failure."""

    field: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.field}: {self.reason}"
        return f"{self.field}: {self.reason} ({self.details})"


class ConfigurationError(GenesisError):
    """Missing or invalid configuration value."""


class AddressFormatError(ConfigurationError):
    """Address is not 20 bytes of hex."""


class SupplyOverflowError(GenesisError):
    """Explicit allocations exceed the total supply."""


class VerificationError(GenesisError):
    """A genesis document does not match what its configuration produces."""
