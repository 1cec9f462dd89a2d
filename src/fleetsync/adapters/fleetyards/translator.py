"""Translate FleetYards models and hardpoints into ship payloads and rumor candidates."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from fleetsync.adapters.field_rules import (
    MediaCollector,
    Rule,
    as_float,
    as_int,
    as_text,
    extract,
    first_of,
    key,
    path,
)
from fleetsync.domain.model import (
    DevelopmentStage,
    EvidenceItem,
    Provider,
    RumorCandidate,
    RumorSourceType,
    ShipPayload,
)
from fleetsync.domain.slugs import slugify

from .schema import HardpointPayload, ModelPayload

if TYPE_CHECKING:
    from datetime import datetime

log = getLogger(__name__)

SITE_URL = "https://fleetyards.net/ships/{slug}"
IN_DEVELOPMENT_STATUSES: Final[tuple[str, ...]] = ("in-concept", "in-production")


def _prices(model: Mapping[str, Any]) -> object | None:
    price_rule = first_of(key("pledgePrice"), key("price"), key("lastPledgePrice"), coerce=as_float)
    amount = price_rule(model)
    if not isinstance(amount, float) or amount <= 0:
        return None
    value = int(amount) if amount.is_integer() else amount
    return [{"amount": value, "currency": "USD"}]


MODEL_RULES: Final[dict[str, Rule[Mapping[str, Any]]]] = {
    "manufacturer": first_of(
        path("manufacturer", "name"), key("manufacturerName"), coerce=as_text
    ),
    "role": first_of(
        key("focus"), key("classificationLabel"), key("classification"), coerce=as_text
    ),
    "size": first_of(key("sizeLabel"), key("size"), path("metrics", "size"), coerce=as_text),
    "crew_min": first_of(
        key("minCrew"), path("crew", "min"), path("metrics", "minCrew"), coerce=as_int
    ),
    "crew_max": first_of(
        key("maxCrew"), path("crew", "max"), path("metrics", "maxCrew"), coerce=as_int
    ),
    "cargo_scu": first_of(key("cargo"), path("metrics", "cargo"), coerce=as_float),
    "length_m": first_of(key("length"), path("metrics", "length"), coerce=as_float),
    "beam_m": first_of(key("beam"), path("metrics", "beam"), coerce=as_float),
    "height_m": first_of(key("height"), path("metrics", "height"), coerce=as_float),
    "scm_speed": first_of(key("scmSpeed"), path("speeds", "scmSpeed"), coerce=as_float),
    "max_speed": first_of(
        key("maxSpeed"),
        key("afterburnerSpeed"),
        path("speeds", "maxSpeed"),
        coerce=as_float,
    ),
    "prices": _prices,
    "production_status": first_of(
        key("productionStatus"), path("productionStatus", "name"), coerce=as_text
    ),
    "patch": first_of(key("lastPatch"), key("patch"), coerce=as_text),
}


def _empty_armament() -> dict[str, list[str]]:
    return {"weapons": [], "turrets": [], "missiles": [], "utility": [], "countermeasures": []}


def _empty_systems() -> dict[str, dict[str, list[str]]]:
    return {
        "avionics": {"radar": [], "computer": [], "ping": [], "scanner": []},
        "propulsion": {
            "fuel_intakes": [],
            "fuel_tanks": [],
            "quantum_drives": [],
            "quantum_fuel_tanks": [],
            "jump_modules": [],
        },
        "thrusters": {"main": [], "maneuvering": [], "retro": []},
        "power": {"power_plants": [], "coolers": [], "shield_generators": []},
    }


# Component-class fragments checked in order; the first match wins.
_SYSTEM_SLOTS: Final[tuple[tuple[str, str, str], ...]] = (
    ("power_plant", "power", "power_plants"),
    ("shield", "power", "shield_generators"),
    ("cooler", "power", "coolers"),
    ("quantum", "propulsion", "quantum_drives"),
    ("radar", "avionics", "radar"),
    ("computer", "avionics", "computer"),
    ("scanner", "avionics", "scanner"),
    ("fuel_intake", "propulsion", "fuel_intakes"),
    ("fuel_tank", "propulsion", "fuel_tanks"),
)


def _place_system(hardpoint: HardpointPayload, systems: dict[str, dict[str, list[str]]]) -> None:
    component_class = (hardpoint.component.component_class if hardpoint.component else None) or ""
    for fragment, group, slot in _SYSTEM_SLOTS:
        if fragment in component_class:
            systems[group][slot].append(hardpoint.item_name)
            return
    if "thruster" in (hardpoint.type or "").lower():
        name = (hardpoint.name or "").lower()
        slot = "main" if "main" in name else "retro" if "retro" in name else "maneuvering"
        systems["thrusters"][slot].append(hardpoint.item_name)


def map_hardpoints(raw_hardpoints: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Sort hardpoints into the armament and system trees by category, type and class."""

    armament = _empty_armament()
    systems = _empty_systems()
    for raw in raw_hardpoints:
        hardpoint = HardpointPayload.from_raw(raw)
        category = (hardpoint.category or "").lower()
        kind = (hardpoint.type or "").lower()
        component_class = (
            hardpoint.component.component_class if hardpoint.component else None
        ) or ""
        if category == "weapons":
            if "turret" in kind:
                armament["turrets"].append(hardpoint.item_name)
            elif "missile" in kind:
                armament["missiles"].append(hardpoint.item_name)
            else:
                armament["weapons"].append(hardpoint.item_name)
        elif category in ("turrets", "missiles", "utility"):
            armament[category].append(hardpoint.item_name)
        elif category == "systems":
            _place_system(hardpoint, systems)
        elif category == "propulsion":
            if "quantum" in component_class:
                systems["propulsion"]["quantum_drives"].append(hardpoint.item_name)
            elif "thruster" in component_class:
                systems["thrusters"]["maneuvering"].append(hardpoint.item_name)

    trees: dict[str, Any] = {}
    armament_present = {name: items for name, items in armament.items() if items}
    systems_present = {
        group: {slot: items for slot, items in slots.items() if items}
        for group, slots in systems.items()
    }
    systems_present = {group: slots for group, slots in systems_present.items() if slots}
    if armament_present:
        trees["armament"] = armament_present
    if systems_present:
        trees["systems"] = systems_present
    return trees


def _media(model: Mapping[str, Any]) -> MediaCollector:
    media = MediaCollector()
    store = model.get("media")
    if isinstance(store, Mapping):
        store_image = store.get("storeImage")
        if isinstance(store_image, Mapping):
            media.add(store_image.get("large"), "store", "large")
            media.add(store_image.get("source"), "store")
    media.add(model.get("storeImageLarge"), "store", "large")
    media.add(model.get("storeImage"), "store")
    media.add(model.get("fleetchartImage"), "fleetchart")
    media.add(model.get("angledView"))
    media.add(model.get("holo"), "holo")
    return media


def model_slug(model: Mapping[str, Any]) -> str:
    raw_slug = model.get("slug")
    if isinstance(raw_slug, str) and raw_slug.strip():
        return raw_slug.strip().lower()
    return slugify(str(model.get("name") or ""))


def translate_model(
    model: Mapping[str, Any],
    hardpoints: Sequence[Mapping[str, Any]] = (),
    *,
    slug: str | None = None,
) -> ShipPayload:
    """Build a FleetYards payload keyed by ``slug`` (the canonical key) when given."""

    validated = ModelPayload.model_validate(model)
    specs = extract(model, MODEL_RULES)
    specs.update(map_hardpoints(hardpoints))
    media = _media(model)
    provider_slug = model_slug(model)
    return ShipPayload(
        provider=Provider.FLEETYARDS,
        slug=slug or provider_slug,
        name=validated.name,
        specs=specs,
        image_url=media.image(),
        model_url=media.model(),
        source_url=SITE_URL.format(slug=provider_slug),
    )


def quality_score(model: Mapping[str, Any]) -> dict[str, Any]:
    def has_items(name: str) -> bool:
        value = model.get(name)
        return isinstance(value, list) and bool(value)

    flags = {
        "has_hardpoints": has_items("hardpoints"),
        "has_components": has_items("components"),
        "has_images": bool(model.get("storeImage") or model.get("fleetchartImage")),
        "has_description": bool(model.get("description")),
        "has_specs": bool(model.get("length") or model.get("beam") or model.get("height")),
    }
    completeness = sum(flags.values()) / len(flags) * 100
    return {**flags, "completeness": completeness}


def in_development_candidate(
    model: Mapping[str, Any],
    *,
    queried_status: str,
    api_url: str,
    now: datetime,
) -> RumorCandidate | None:
    """A roadmap rumor for a model that is not flight-ready, else ``None``."""

    validated = ModelPayload.model_validate(model)
    status = validated.production_status or queried_status
    if status == "flight-ready":
        log.debug(f"Skipping flight-ready model {validated.name!r}")
        return None
    stage = DevelopmentStage.CONCEPTING
    if queried_status == "in-production":
        stage = DevelopmentStage.GREYBOX
    slug = model_slug(model)
    manufacturer = validated.manufacturer.name if validated.manufacturer else None
    return RumorCandidate(
        codename=validated.name,
        possible_name=validated.name,
        possible_manufacturer=manufacturer,
        stage=stage,
        source_type=RumorSourceType.ROADMAP,
        source_url=SITE_URL.format(slug=slug),
        source_date=now,
        evidence=EvidenceItem(
            source=f"{api_url.rstrip('/')}/models/{slug}",
            excerpt=f"Production status: {status}",
            date=now,
            url=SITE_URL.format(slug=slug),
        ),
        notes=f"From FleetYards API - {validated.focus or 'Unknown role'}",
    )
