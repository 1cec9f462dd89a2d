"""Datamined vehicle manifest published by the SCUnpacked project."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from fleetsync.adapters.http_resilience import ResilientClient
from fleetsync.config.providers import ScUnpackedConfig, get_scunpacked_config
from fleetsync.domain.clock import utcnow
from fleetsync.domain.errors import ProviderError
from fleetsync.domain.model import EvidenceItem, RumorCandidate, RumorSourceType
from fleetsync.domain.ports.fetching import RumorSource

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from fleetsync.config.http_resilience import ResilienceConfig
    from fleetsync.domain.clock import Clock

log = getLogger(__name__)

PROVIDER_NAME = "scunpacked"


class ManifestManufacturer(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    code: str | None = Field(default=None, alias="Code")
    name: str | None = Field(default=None, alias="Name")


class ManifestVehicle(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    class_name: str = Field(alias="ClassName")
    name: str | None = Field(default=None, alias="Name")
    manufacturer: ManifestManufacturer | None = Field(default=None, alias="Manufacturer")

    @property
    def display_name(self) -> str | None:
        """The vehicle name without the manufacturer prefix the manifest carries."""

        if not self.name:
            return None
        words = self.name.split()
        maker = self.manufacturer.name if self.manufacturer and self.manufacturer.name else ""
        if len(words) > 1 and maker and words[0].lower() == maker.split()[0].lower():
            words = words[1:]
        return " ".join(words)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _manifest_entries(payload: object) -> list[Mapping[str, Any]]:
    if isinstance(payload, Mapping):
        payload = list(cast(Mapping[str, object], payload).values())
    if not isinstance(payload, list):
        raise ProviderError(PROVIDER_NAME, "manifest is neither a list nor an object")
    items = cast(list[object], payload)
    return [cast(Mapping[str, Any], item) for item in items if isinstance(item, Mapping)]


def manifest_candidate(
    vehicle: ManifestVehicle,
    *,
    source_url: str,
    now: datetime,
) -> RumorCandidate | None:
    name = vehicle.display_name
    if not name:
        return None
    manufacturer = vehicle.manufacturer.name if vehicle.manufacturer else None
    return RumorCandidate(
        codename=name,
        possible_name=name,
        possible_manufacturer=manufacturer,
        source_type=RumorSourceType.DATAMINE,
        source_url=source_url,
        source_date=now,
        evidence=EvidenceItem(
            source=source_url,
            excerpt=f"Found in game data as {vehicle.class_name}",
            date=now,
            url=source_url,
        ),
    )


@dataclass(slots=True)
class ScUnpackedSource:
    """Every named manifest vehicle becomes a candidate; known ships are filtered later."""

    config: ScUnpackedConfig = field(default_factory=get_scunpacked_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    clock: Clock = utcnow
    name: str = field(default="scunpacked", init=False)

    async def collect(self) -> list[RumorCandidate]:
        async with self.client_factory(self.config.resilience) as client:
            payload = await client.get_json(self.config.ships_url)
        entries = _manifest_entries(payload)
        log.info(f"SCUnpacked manifest lists {len(entries)} vehicles")

        now = self.clock()
        candidates: list[RumorCandidate] = []
        for entry in entries:
            try:
                vehicle = ManifestVehicle.model_validate(entry)
            except PydanticValidationError:
                continue
            candidate = manifest_candidate(vehicle, source_url=self.config.ships_url, now=now)
            if candidate is not None:
                candidates.append(candidate)
        return candidates


if TYPE_CHECKING:
    _rumor_check: RumorSource = ScUnpackedSource()
