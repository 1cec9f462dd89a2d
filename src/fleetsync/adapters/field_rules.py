"""Declarative field extraction shared by the provider translators.

A rule is a small pure function from a raw provider value (a JSON mapping or a
blob of wikitext) to an optional value. Rules are composed per canonical field
with :func:`first_of` so schema drift in one provider key falls through to the
next candidate instead of failing the record.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Final, cast

type Rule[S] = Callable[[S], object | None]
type Coercer = Callable[[object], object | None]

MODEL_FORMATS: Final[frozenset[str]] = frozenset({"glb", "gltf", "obj", "fbx", "stl"})
HIGH_RES_TAGS: Final[tuple[str, ...]] = ("store", "storefront", "high", "hires", "large", "source")


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return bool(value)
    return True


def key(name: str) -> Rule[Mapping[str, Any]]:
    def rule(source: Mapping[str, Any]) -> object | None:
        return source.get(name)

    return rule


def path(*parts: str) -> Rule[Mapping[str, Any]]:
    """Walk nested mappings; any missing step yields ``None``."""

    def rule(source: Mapping[str, Any]) -> object | None:
        current: object = source
        for part in parts:
            if not isinstance(current, Mapping):
                return None
            current = cast(Mapping[str, Any], current).get(part)
        return current

    return rule


def regex(pattern: str, *, group: int = 1, flags: int = re.IGNORECASE) -> Rule[str]:
    compiled = re.compile(pattern, flags)

    def rule(source: str) -> object | None:
        match = compiled.search(source)
        return match.group(group) if match else None

    return rule


def regex_all(pattern: str, *, group: int = 1, flags: int = re.IGNORECASE) -> Rule[str]:
    compiled = re.compile(pattern, flags)

    def rule(source: str) -> object | None:
        return [match.group(group) for match in compiled.finditer(source)]

    return rule


def first_of[S](*rules: Rule[S], coerce: Coercer | None = None) -> Rule[S]:
    """The first rule producing a present (and coercible) value wins."""

    def rule(source: S) -> object | None:
        for candidate in rules:
            value = candidate(source)
            if coerce is not None and value is not None:
                value = coerce(value)
            if _present(value):
                return value
        return None

    return rule


def extract[S](source: S, rules: Mapping[str, Rule[S]]) -> dict[str, Any]:
    """Apply each field's rule, keeping only present values."""

    values: dict[str, Any] = {}
    for name, rule in rules.items():
        value = rule(source)
        if _present(value):
            values[name] = value
    return values


def _number_text(value: object) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        match = re.search(r"-?\d+(?:\.\d+)?", cleaned)
        return match.group(0) if match else None
    return None


def as_int(value: object) -> int | None:
    text = _number_text(value)
    if text is None:
        return None
    return int(float(text))


def as_float(value: object) -> float | None:
    text = _number_text(value)
    if text is None:
        return None
    return float(text)


def as_text(value: object) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = " ".join(str(value).split())
    return text or None


@dataclass(frozen=True, slots=True)
class MediaEntry:
    url: str
    tags: tuple[str, ...] = ()
    format: str | None = None


def pick_image(media: Sequence[MediaEntry]) -> str | None:
    """Prefer an entry tagged as high-resolution or storefront, else the first one."""

    for entry in media:
        if any(tag.lower() in HIGH_RES_TAGS for tag in entry.tags):
            return entry.url
    return media[0].url if media else None


def _extension(url: str) -> str:
    tail = url.split("?", 1)[0].rsplit("/", 1)[-1]
    return tail.rsplit(".", 1)[-1].lower() if "." in tail else ""


def pick_model(media: Sequence[MediaEntry]) -> str | None:
    for entry in media:
        declared = (entry.format or "").lower().lstrip(".")
        if declared in MODEL_FORMATS or _extension(entry.url) in MODEL_FORMATS:
            return entry.url
    return None


@dataclass(slots=True)
class MediaCollector:
    """Accumulates media entries from loosely shaped provider fields."""

    entries: list[MediaEntry] = field(default_factory=list)

    def add(self, url: object, *tags: str, format: str | None = None) -> None:  # noqa: A002
        if isinstance(url, str) and url.strip():
            self.entries.append(MediaEntry(url=url.strip(), tags=tags, format=format))

    def image(self) -> str | None:
        images = [entry for entry in self.entries if pick_model([entry]) is None]
        return pick_image(images)

    def model(self) -> str | None:
        return pick_model(self.entries)
