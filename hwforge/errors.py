"""Exception types shared across the orchestrator, tools and clients."""

from __future__ import annotations


class HwforgeError(Exception):
    """Base class for every error raised by hwforge."""


class OrchestratorError(HwforgeError):
    """Fatal control error: the run cannot continue."""


class ModelCallError(HwforgeError):
    """A model request failed after the client gave up retrying."""

    def __init__(self, message: str, status_code: int | None = None,
                 retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class FeasibilityParseError(HwforgeError):
    """The feasibility response carried no JSON object."""


class StageTransitionError(HwforgeError):
    """A stage status was asked to move backwards."""


class CatalogError(HwforgeError):
    """The block catalog could not be read."""
