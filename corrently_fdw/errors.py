# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Error types raised by the Corrently connector.

Every error is terminal for the lifecycle step that raised it.  The host
engine surfaces ``str(exc)`` verbatim, so messages name the option, field,
row index or column involved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

__all__ = [
    "CorrentlyFdwError",
    "ConfigError",
    "PredicateError",
    "TransportError",
    "DecodeError",
    "FieldValidationError",
    "UnknownColumnError",
    "RowOutOfBoundsError",
    "ScanStateError",
    "UnsupportedOperationError",
]


class CorrentlyFdwError(Exception):
    """Base class for every connector failure."""


class ConfigError(CorrentlyFdwError, ValueError):
    """A required server option is missing or malformed."""


class PredicateError(CorrentlyFdwError, ValueError):
    """The query is missing a required filter or carries an invalid one."""


_BODY_SNIPPET = 400


@dataclass
class TransportError(CorrentlyFdwError):
    """Raised when the upstream request fails or answers with a non-2xx status."""

    message: str
    status: Optional[int] = None
    body: str = ""
    kind: str = "error"
    diagnostics: Dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        snippet = self.body[:_BODY_SNIPPET]
        return f"{self.message} (status={self.status}, body={snippet!r})"


class DecodeError(CorrentlyFdwError, ValueError):
    """The response body is not JSON or lacks the forecast array."""


class FieldValidationError(CorrentlyFdwError, ValueError):
    """A forecast element is missing a field or carries the wrong type."""

    def __init__(self, index: int, field_name: str, reason: str) -> None:
        self.index = index
        self.field = field_name
        self.reason = reason
        super().__init__(
            f"forecast[{index}]: field '{field_name}' {reason}"
        )


class UnknownColumnError(CorrentlyFdwError, KeyError):
    """A requested column is not part of the declared schema."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(column)

    def __str__(self) -> str:
        return f"unknown column '{self.column}' requested from gsi_prediction"


class RowOutOfBoundsError(CorrentlyFdwError, IndexError):
    """A cell lookup addressed a row beyond the cached forecast."""


class ScanStateError(CorrentlyFdwError, RuntimeError):
    """A lifecycle call arrived in a state that does not allow it."""


class UnsupportedOperationError(CorrentlyFdwError, NotImplementedError):
    """Mutations against the virtual table are never supported."""
