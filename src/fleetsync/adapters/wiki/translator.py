"""Translate wiki pages (wikitext plus rendered HTML) into ship payloads."""

from __future__ import annotations

import html
import re
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from fleetsync.adapters.field_rules import (
    MediaCollector,
    Rule,
    as_float,
    as_int,
    extract,
    first_of,
    regex,
    regex_all,
)
from fleetsync.domain.model import Provider, ShipPayload
from fleetsync.domain.slugs import slugify

if TYPE_CHECKING:
    from .schema import WikiPage

log = getLogger(__name__)

EXCLUDED_TITLE_KEYWORDS: Final[tuple[str, ...]] = (
    "WIP",
    "Work in progress",
    "Concept",
    "Weapon",
    "Gun",
    "Missile",
    "Torpedo",
    "Component",
    "Engine",
    "Shield",
    "Power Plant",
    "Thruster",
    "Cooler",
    "Quantum Drive",
    "Module",
    "Turret",
    "Mount",
    "File:",
    "Template:",
    "Category:",
    "/Specifications",
    "/Gallery",
    "/History",
    "List of",
    "Comparison",
)

_EMPTY_MARKERS: Final = frozenset({"n/a", "none", "-", "?", ""})


def is_ship_title(title: str) -> bool:
    lowered = title.lower()
    if any(keyword.lower() in lowered for keyword in EXCLUDED_TITLE_KEYWORDS):
        return False
    return "/" not in title and ":" not in title


def clean_value(value: str) -> str | None:
    """Strip links, templates, tags and comments from a wikitext value."""

    text = re.sub(r"\[\[([^\]|]+)\|([^\]]+)\]\]", r"\2", value)
    text = re.sub(r"\[\[([^\]]+)\]\]", r"\1", text)
    text = re.sub(r"\{\{[^}]+\}\}", "", text)
    text = re.sub(r"<!--.*?-->", "", text, flags=re.DOTALL)
    text = re.sub(r"<[^>]+>", "", text)
    text = " ".join(text.split())
    if text.lower() in _EMPTY_MARKERS:
        return None
    return text


def _clean_scalar(value: object) -> str | None:
    return clean_value(value) if isinstance(value, str) else None


def _clean_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    cleaned = (clean_value(item) for item in value if isinstance(item, str))
    return [item for item in cleaned if item]


def _text(*patterns: str) -> Rule[str]:
    return first_of(*(regex(pattern) for pattern in patterns), coerce=_clean_scalar)


def _number(*patterns: str, integer: bool = False) -> Rule[str]:
    coerce = as_int if integer else as_float
    return first_of(*(regex(pattern) for pattern in patterns), coerce=coerce)


def _price(wikitext: str) -> object | None:
    amount = first_of(
        regex(r"\|\s*(?:price|pledge[\s_-]?price|msrp)\s*=\s*\$?\s*([\d,]+)"),
        regex(r"\$\s*([\d,]+)\s*USD"),
        coerce=as_int,
    )(wikitext)
    if not isinstance(amount, int) or amount <= 0:
        return None
    return [{"amount": amount, "currency": "USD"}]


SCALAR_RULES: Final[dict[str, Rule[str]]] = {
    "manufacturer": _text(
        r"\|\s*manufacturer\s*=\s*\[\[([^\]|]+)(?:\|[^\]]+)?\]\]",
        r"\|\s*manufacturer\s*=\s*([^\n|{]+)",
        r"manufacturer\s*=\s*\[\[([^\]|]+)",
    ),
    "role": _text(
        r"\|\s*(?:focus|role|career|classification|type)\s*=\s*([^\n|{]+)",
        r"role\s*=\s*\[\[([^\]|]+)",
    ),
    "size": _text(
        r"\|\s*size\s*=\s*([^\n|{]+)",
        r"\|\s*(?:vehicle[\s_-]size|ship[\s_-]size)\s*=\s*([^\n|{]+)",
    ),
    "crew_min": _number(
        r"\|\s*(?:min[\s_-]?crew|crew[\s_-]?min)\s*=\s*(\d+)",
        r"\|\s*crew\s*=\s*(\d+)",
        integer=True,
    ),
    "crew_max": _number(
        r"\|\s*(?:max[\s_-]?crew|crew[\s_-]?max)\s*=\s*(\d+)",
        r"\|\s*crew\s*=\s*\d+\s*[-–—]\s*(\d+)",
        integer=True,
    ),
    "cargo_scu": _number(
        r"\|\s*cargo[\s_-]?(?:capacity)?\s*=\s*([\d.,]+)",
        r"\|\s*scu\s*=\s*([\d.,]+)",
    ),
    "length_m": _number(r"\|\s*length\s*=\s*([\d.,]+)"),
    "beam_m": _number(r"\|\s*(?:beam|width)\s*=\s*([\d.,]+)"),
    "height_m": _number(r"\|\s*height\s*=\s*([\d.,]+)"),
    "scm_speed": _number(r"\|\s*(?:scm[\s_-]?speed|speed[\s_-]?scm)\s*=\s*([\d.,]+)"),
    "max_speed": _number(
        r"\|\s*(?:max[\s_-]?speed|afterburner[\s_-]?speed|speed[\s_-]?max)\s*=\s*([\d.,]+)"
    ),
    "prices": _price,
    "production_status": _text(
        r"\|\s*(?:production[\s_-]?status|status|availability)\s*=\s*([^\n|{]+)",
        r"status\s*=\s*\[\[([^\]|]+)",
    ),
    "patch": _text(r"\|\s*(?:patch|version|release)\s*=\s*([^\n|{]+)"),
}


def _listing(field: str) -> Rule[str]:
    return regex_all(rf"\|\s*{field}\s*=\s*([^\n|]+)")


ARMAMENT_RULES: Final[dict[str, Rule[str]]] = {
    "weapons": _listing(r"weapons?"),
    "turrets": _listing(r"turrets?"),
    "missiles": _listing(r"missiles?"),
    "utility": _listing(r"utility[\s_-]?items?"),
    "countermeasures": _listing(r"countermeasures?"),
}

SYSTEM_RULES: Final[dict[str, dict[str, Rule[str]]]] = {
    "avionics": {
        "radar": _listing(r"(?:radar|avionics)"),
        "computer": _listing(r"computer"),
        "ping": _listing(r"ping"),
        "scanner": _listing(r"scanner"),
    },
    "propulsion": {
        "fuel_intakes": _listing(r"fuel[\s_-]?intakes?"),
        "fuel_tanks": _listing(r"fuel[\s_-]?tanks?"),
        "quantum_drives": _listing(r"quantum[\s_-]?drives?"),
        "quantum_fuel_tanks": _listing(r"quantum[\s_-]?fuel[\s_-]?tanks?"),
        "jump_modules": _listing(r"jump[\s_-]?modules?"),
    },
    "thrusters": {
        "main": _listing(r"main[\s_-]?thrusters?"),
        "maneuvering": _listing(r"(?:maneuvering|maneuver)[\s_-]?thrusters?"),
        "retro": _listing(r"retro[\s_-]?thrusters?"),
    },
    "power": {
        "power_plants": _listing(r"power[\s_-]?plants?"),
        "coolers": _listing(r"coolers?"),
        "shield_generators": _listing(r"shield[\s_-]?generators?"),
    },
    "modular": {
        "cargo_modules": _listing(r"cargo[\s_-]?modules?"),
        "hab_modules": _listing(r"hab(?:itation)?[\s_-]?modules?"),
        "weapon_modules": _listing(r"weapon[\s_-]?modules?"),
        "utility_modules": _listing(r"utility[\s_-]?modules?"),
    },
}

# Header patterns of the rendered hardpoints table.
ARMAMENT_HEADERS: Final[dict[str, str]] = {
    "weapons": "Weapons",
    "turrets": "Turrets",
    "missiles": "Missiles",
    "utility": "Utility",
    "countermeasures": "Countermeasures",
}

SYSTEM_HEADERS: Final[dict[str, dict[str, str]]] = {
    "avionics": {"radar": "Radar", "computer": "Computers?", "scanner": "Scanners?"},
    "propulsion": {
        "quantum_drives": "Quantum [Dd]rives?",
        "quantum_fuel_tanks": "Quantum [Ff]uel [Tt]anks?",
        "jump_modules": "Jump [Mm]odules?",
        "fuel_intakes": "Fuel [Ii]ntakes?",
        "fuel_tanks": "Fuel [Tt]anks?",
    },
    "thrusters": {
        "main": "Main [Tt]hrusters?",
        "maneuvering": "Maneuvering [Tt]hrusters?",
        "retro": "Retro [Tt]hrusters?",
    },
    "power": {
        "power_plants": "Power [Pp]lants?",
        "coolers": "Coolers?",
        "shield_generators": "Shield [Gg]enerators?",
    },
}


def _prune_tree(tree: dict[str, Any]) -> dict[str, Any]:
    pruned: dict[str, Any] = {}
    for name, value in tree.items():
        if isinstance(value, dict):
            nested = _prune_tree(value)
            if nested:
                pruned[name] = nested
        elif value:
            pruned[name] = value
    return pruned


def parse_wikitext(wikitext: str) -> dict[str, Any]:
    """Best-effort canonical fields from an infobox; absent fields are omitted."""

    specs = extract(wikitext, SCALAR_RULES)
    armament = {name: _clean_list(rule(wikitext)) for name, rule in ARMAMENT_RULES.items()}
    systems = {
        group: {name: _clean_list(rule(wikitext)) for name, rule in rules.items()}
        for group, rules in SYSTEM_RULES.items()
    }
    if pruned := _prune_tree(armament):
        specs["armament"] = pruned
    if pruned := _prune_tree(systems):
        specs["systems"] = pruned
    return specs


def _table_cells(document: str, header: str) -> list[str]:
    pattern = re.compile(
        rf"<tr[^>]*>\s*<th[^>]*>\s*{header}\s*</th>\s*<td[^>]*>([\s\S]*?)</td>\s*</tr>",
        re.IGNORECASE,
    )
    items: list[str] = []
    for match in pattern.finditer(document):
        text = html.unescape(re.sub(r"<[^>]+>", " ", match.group(1)))
        text = " ".join(text.split())
        if text.lower() in _EMPTY_MARKERS:
            continue
        items.extend(part.strip() for part in text.split(",") if part.strip())
    return items


def parse_hardpoints_html(document: str) -> dict[str, Any]:
    """Armament and system trees from the rendered hardpoints table."""

    if not document:
        return {}
    armament = {name: _table_cells(document, header) for name, header in ARMAMENT_HEADERS.items()}
    systems = {
        group: {name: _table_cells(document, header) for name, header in headers.items()}
        for group, headers in SYSTEM_HEADERS.items()
    }
    trees: dict[str, Any] = {}
    if pruned := _prune_tree(armament):
        trees["armament"] = pruned
    if pruned := _prune_tree(systems):
        trees["systems"] = pruned
    return trees


def page_url(page: WikiPage, page_base_url: str) -> str:
    if page.fullurl:
        return page.fullurl
    return f"{page_base_url.rstrip('/')}/{page.title.replace(' ', '_')}"


def translate_page(
    page: WikiPage,
    rendered_html: str | None,
    *,
    page_base_url: str,
) -> ShipPayload | None:
    """Build a wiki ship payload, or ``None`` when the page is not a ship."""

    wikitext = page.wikitext
    specs = parse_wikitext(wikitext)
    if "manufacturer" not in specs and "manufacturer" not in wikitext.lower():
        log.debug(f"Skipping wiki page {page.title!r}: no manufacturer")
        return None

    # The rendered table is more complete than infobox lists whenever it has data.
    specs.update(parse_hardpoints_html(rendered_html or ""))

    media = MediaCollector()
    if page.original is not None:
        media.add(page.original.source, "source")
    if page.thumbnail is not None:
        media.add(page.thumbnail.source, "thumbnail")

    return ShipPayload(
        provider=Provider.WIKI,
        slug=slugify(page.title),
        name=page.title,
        specs=specs,
        image_url=media.image(),
        model_url=media.model(),
        source_url=page_url(page, page_base_url),
    )
