"""Pydantic models describing the FleetYards API payloads.

Model payloads are validated leniently: the translator reads them through
field-rule chains, so only the shape we depend on for routing is modelled here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FleetYardsBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ErrorPayload(FleetYardsBaseModel):
    code: str | int
    message: str | None = None


class ManufacturerPayload(FleetYardsBaseModel):
    name: str | None = None
    code: str | None = None


class ModelPayload(FleetYardsBaseModel):
    name: str
    slug: str | None = None
    manufacturer: ManufacturerPayload | None = None
    focus: str | None = None
    production_status: str | None = Field(default=None, alias="productionStatus")

    def raw(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ComponentPayload(FleetYardsBaseModel):
    name: str | None = None
    component_class: str | None = Field(default=None, alias="componentClass")

    @field_validator("component_class", mode="before")
    @classmethod
    def _lower_class(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


class HardpointPayload(FleetYardsBaseModel):
    name: str | None = None
    category: str | None = None
    type: str | None = None
    size: str | int | None = None
    component: ComponentPayload | None = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> HardpointPayload:
        data = dict(raw)
        component = data.get("component")
        # Older responses use snake_case for the component class.
        if isinstance(component, Mapping):
            component_map = dict(cast(Mapping[str, Any], component))
            if "component_class" in component_map and "componentClass" not in component_map:
                component_map["componentClass"] = component_map.pop("component_class")
            data["component"] = component_map
        return cls.model_validate(data)

    @property
    def item_name(self) -> str:
        base = (self.component.name if self.component else None) or self.name or "Unknown"
        return f"S{self.size} {base}" if self.size not in (None, "", 0) else base
