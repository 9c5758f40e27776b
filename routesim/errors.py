from __future__ import annotations

from typing import Iterable, List


class RoutesimError(ValueError):
    """Base class for errors surfaced to callers of the engine."""


class StateImportError(RoutesimError):
    """A persisted state payload failed validation.

    ``problems`` keeps every individual finding; ``str(err)`` joins them into
    the single message shown to the user.
    """

    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = [str(p) for p in problems] or ["Invalid state payload."]
        super().__init__("Failed to import network state: " + "; ".join(self.problems))
