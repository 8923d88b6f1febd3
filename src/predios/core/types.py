"""Core type definitions shared across Predios modules."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class OperationState(BaseModel):
    """Loading/error state of one user-facing operation.

    Failures never propagate to the rendering layer; they land here as a
    message scoped to the panel that issued the request.
    """

    loading: bool = False
    error: str | None = None

    def start(self) -> None:
        self.loading = True
        self.error = None

    def succeed(self) -> None:
        self.loading = False
        self.error = None

    def fail(self, message: str) -> None:
        self.loading = False
        self.error = message


class HealthStatus(BaseModel):
    """Health check response for any service."""

    service: str
    healthy: bool
    latency_ms: float | None = None
    details: dict[str, Any] = Field(default_factory=dict)
