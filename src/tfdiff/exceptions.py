"""Exception hierarchy for plan and state loading errors."""

from __future__ import annotations


class TfdiffError(Exception):
    """Base exception for plan/state input errors.

    The rendering engine itself never raises; these errors come from the
    layers that read plan documents and state snapshots.

    Attributes:
        message: Human-readable error message
        path: The file or blob the error relates to, if any
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __repr__(self) -> str:
        parts = [repr(self.message)]
        if self.path:
            parts.append(f"path={self.path!r}")
        return f"{self.__class__.__name__}({', '.join(parts)})"


class PlanFormatError(TfdiffError):
    """Plan document could not be read or is not a JSON/YAML object."""

    pass


class StateNotFoundError(TfdiffError):
    """No state snapshot exists at the configured location."""

    pass


class StateFormatError(TfdiffError):
    """State snapshot exists but is not a JSON object."""

    pass


class StateReadError(TfdiffError):
    """State location exists but could not be read (permissions, auth, network)."""

    pass
