# File: backend/app/core/errors.py
# Version: v0.1.0
"""
Error taxonomy shared by the service layer and routers.

Upstream transport failures never surface as these types: clients convert them
to empty reads or failed results at their own boundary. What remains here are
the conditions a caller has to act on.
"""
from __future__ import annotations


class ReplicaError(Exception):
    """Base class for application errors."""


class ConfigurationError(ReplicaError):
    """A required credential or setting is missing; raised before any remote call."""


class ResolutionError(ReplicaError):
    """No workflow run could be matched within the resolution budget."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts
