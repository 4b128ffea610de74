"""Error taxonomy for the focus engine.

Two families:
 - Integration misuse (``RegistrationError``, ``ScopeError``) is raised
   synchronously so it surfaces during development.
 - Runtime conditions (``ValidationError``, ``NavigationError``,
   ``ActivationError``) are never raised out of public operations. The engine
   reports them through a boolean result, logs them and keeps a short
   ``ErrorRecord`` history for inspection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = [
    "FocusError",
    "RegistrationError",
    "ScopeError",
    "ValidationError",
    "NavigationError",
    "ActivationError",
    "ErrorRecord",
]


class FocusError(Exception):
    """Base class for all focus engine errors."""


class RegistrationError(FocusError):
    """Duplicate registration or illegal descriptor change."""


class ScopeError(FocusError):
    """Unbalanced scope pop, duplicate push, or reference to a scope that is not open."""


class ValidationError(FocusError):
    """A can_leave/can_receive predicate raised or its awaitable failed."""

    def __init__(self, element_id: str, predicate: str, cause: BaseException) -> None:
        super().__init__(f"{predicate} on '{element_id}' failed: {cause!r}")
        self.element_id = element_id
        self.predicate = predicate
        self.cause = cause


class NavigationError(FocusError):
    """No eligible candidate, or a request dropped/discarded by the in-flight guard."""


class ActivationError(FocusError):
    """Activation callback raised, or the target vanished before a deferred activation."""

    def __init__(self, element_id: str, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"activation of '{element_id}' failed: {message}")
        self.element_id = element_id
        self.cause = cause


@dataclass(frozen=True)
class ErrorRecord:
    """Structured capture of a non-fatal runtime condition."""

    error: FocusError
    timestamp: float
    element_id: Optional[str] = None

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    def summary(self, max_len: int = 160) -> str:
        msg = f"{self.kind}: {self.error}"
        return msg if len(msg) <= max_len else msg[: max_len - 3] + "..."
