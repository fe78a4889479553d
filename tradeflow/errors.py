"""Exception types raised by tradeflow components."""

from __future__ import annotations

from typing import Any, Dict, Optional


class TradeflowError(Exception):
    """Base class for tradeflow errors."""


class DefinitionError(TradeflowError):
    """A workflow definition violates its structural invariants."""


class WorkflowClosedError(TradeflowError, RuntimeError):
    """Raised when a completed or terminated workflow is driven again."""


class BackendError(TradeflowError):
    """Failure reported by an external collaborator."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class EligibilityCheckError(BackendError):
    """The eligibility service could not be reached or answered garbage."""


class AssetUploadError(BackendError):
    """Uploading an optional asset failed."""


class PersistenceError(BackendError):
    """The record store rejected or failed to store a submission."""
