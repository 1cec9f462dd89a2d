"""Public interface for the FleetYards adapter."""

from __future__ import annotations

from .client import (
    FleetYardsCatalog,
    FleetYardsClient,
    FleetYardsProbe,
    FleetYardsRumorSource,
    FleetYardsShipSource,
)
from .translator import map_hardpoints, quality_score, translate_model

__all__ = [
    "FleetYardsCatalog",
    "FleetYardsClient",
    "FleetYardsProbe",
    "FleetYardsRumorSource",
    "FleetYardsShipSource",
    "map_hardpoints",
    "quality_score",
    "translate_model",
]
