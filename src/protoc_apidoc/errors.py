from __future__ import annotations

from typing import Sequence


class ApiDocError(Exception):
    """Base class for failures while generating an API document."""


class RecursiveSchemaError(ApiDocError):
    """Raised when a message type re-enters its own active containment chain."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(f"Recursive schema: {' -> '.join(self.cycle)}")


class ExampleEncodingError(ApiDocError):
    """Raised when an example payload cannot be serialized to JSON."""
