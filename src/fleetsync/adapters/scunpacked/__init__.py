"""SCUnpacked datamine adapter."""

from __future__ import annotations

from .client import ManifestVehicle, ScUnpackedSource, manifest_candidate

__all__ = ["ManifestVehicle", "ScUnpackedSource", "manifest_candidate"]
