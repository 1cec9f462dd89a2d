"""Field-level merge of provider payloads."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from fleetsync.domain.model import MERGEABLE_FIELDS, Provider

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fleetsync.config.sync import PrecedenceConfig
    from fleetsync.domain.model import ShipPayload, SourcePreference

log = getLogger(__name__)


def is_blank(value: object) -> bool:
    """``None``, empty strings and containers holding nothing but blanks."""

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Mapping):
        return all(is_blank(item) for item in cast(Mapping[Any, Any], value).values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return all(is_blank(item) for item in cast("Iterable[Any]", value))
    return False


def provider_order(names: Iterable[str]) -> tuple[Provider, ...]:
    """Resolve configured provider names; unknown names are ignored, missing ones appended."""

    ordered: list[Provider] = []
    for name in names:
        try:
            provider = Provider(name)
        except ValueError:
            log.warning("Ignoring unknown provider %r in precedence configuration", name)
            continue
        if provider not in ordered:
            ordered.append(provider)
    ordered.extend(provider for provider in Provider if provider not in ordered)
    return tuple(ordered)


@dataclass(frozen=True, slots=True)
class MergeResult:
    name: str
    specs: dict[str, Any]
    contributors: tuple[Provider, ...]
    source_url: str | None
    pinned: Provider | None = None


def merge_payloads(
    slug: str,
    payloads: Mapping[Provider, ShipPayload],
    *,
    precedence: PrecedenceConfig,
    preference: SourcePreference | None = None,
) -> MergeResult:
    pinned = preference.preferred_source.provider if preference is not None else None
    if pinned is not None:
        if pinned in payloads:
            return _pinned_merge(payloads[pinned])
        log.info(
            "Preferred source %s has no payload for %s; using default precedence", pinned, slug
        )

    chosen: dict[str, Any] = {}
    used: set[Provider] = set()
    for field_name in MERGEABLE_FIELDS:
        order = provider_order(precedence.order_for(field_name))
        fallback: tuple[Provider, Any] | None = None
        for provider in order:
            payload = payloads.get(provider)
            if payload is None:
                continue
            value = payload.value(field_name)
            if not is_blank(value):
                chosen[field_name] = value
                used.add(provider)
                break
            if value is not None and fallback is None:
                fallback = (provider, value)
        else:
            if fallback is not None:
                chosen[field_name] = fallback[1]

    default_order = provider_order(precedence.default)
    contributors = tuple(provider for provider in default_order if provider in used)
    name = chosen.pop("name", None)
    source_url = next(
        (
            payloads[provider].source_url
            for provider in (*contributors, *default_order)
            if provider in payloads and payloads[provider].source_url
        ),
        None,
    )
    return MergeResult(
        name=str(name) if name else slug,
        specs=chosen,
        contributors=contributors,
        source_url=source_url,
    )


def _pinned_merge(payload: ShipPayload) -> MergeResult:
    specs = {
        field_name: payload.specs[field_name]
        for field_name in MERGEABLE_FIELDS
        if field_name != "name" and payload.specs.get(field_name) is not None
    }
    return MergeResult(
        name=payload.name or payload.slug,
        specs=specs,
        contributors=(payload.provider,),
        source_url=payload.source_url,
        pinned=payload.provider,
    )
