"""Error taxonomy shared by adapters, jobs and the invocation surfaces."""

from __future__ import annotations


class FleetSyncError(Exception):
    """Base class for errors raised by fleetsync itself."""


class ProviderError(FleetSyncError):
    """An upstream catalog or feed answered badly: transport failure, non-2xx, bad shape."""

    def __init__(self, provider: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class LockContentionError(FleetSyncError):
    """Another invocation of the same job holds a live lock."""

    def __init__(self, job_name: str) -> None:
        super().__init__(f"{job_name} is already running")
        self.job_name = job_name


class StoreError(FleetSyncError):
    """Reading from or writing to the relational store failed."""


class ValidationError(FleetSyncError):
    """A request was malformed and was rejected before any side effect."""
