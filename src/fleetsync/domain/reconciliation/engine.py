"""Reconciliation of provider payloads into canonical ship records."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from fleetsync.config.sync import PrecedenceConfig
from fleetsync.domain.model import (
    CanonicalShip,
    ChangeFlags,
    Provenance,
    Provider,
    ReconcileAction,
    is_flight_ready,
)

from .hashing import content_hash
from .merge import MergeResult, merge_payloads, provider_order

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from fleetsync.domain.model import ShipPayload, SourcePreference

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileDecision:
    slug: str
    action: ReconcileAction
    merged: MergeResult
    content_hash: str
    changes: ChangeFlags
    fresh_image_url: str | None = None
    fresh_model_url: str | None = None

    @property
    def should_write(self) -> bool:
        return self.action is not ReconcileAction.SKIP


@dataclass(slots=True)
class ReconciliationEngine:
    """Merge, hash and decide; the only writer of canonical ship state."""

    precedence: PrecedenceConfig = field(default_factory=PrecedenceConfig)

    def reconcile(
        self,
        slug: str,
        fresh: Mapping[Provider, ShipPayload],
        current: CanonicalShip | None,
        *,
        preference: SourcePreference | None = None,
        force: bool = False,
    ) -> ReconcileDecision:
        available: dict[Provider, ShipPayload] = current.stored_payloads() if current else {}
        available.update(fresh)

        merged = merge_payloads(
            slug, available, precedence=self.precedence, preference=preference
        )
        new_hash = content_hash(slug, merged.name, merged.specs)

        fresh_image = self._fresh_media(fresh, "image_url", pinned=merged.pinned)
        fresh_model = self._fresh_media(fresh, "model_url", pinned=merged.pinned)

        data_changed = force or current is None or current.content_hash != new_hash
        image_changed = force or (
            fresh_image is not None and (current is None or current.image_url != fresh_image)
        )
        model_changed = force or (
            fresh_model is not None and (current is None or current.model_url != fresh_model)
        )
        changes = ChangeFlags(data=data_changed, image=image_changed, model=model_changed)

        if current is None:
            action = ReconcileAction.CREATE
        elif changes.any:
            action = ReconcileAction.UPDATE
        else:
            action = ReconcileAction.SKIP

        return ReconcileDecision(
            slug=slug,
            action=action,
            merged=merged,
            content_hash=new_hash,
            changes=changes,
            fresh_image_url=fresh_image,
            fresh_model_url=fresh_model,
        )

    def apply(
        self,
        decision: ReconcileDecision,
        current: CanonicalShip | None,
        fresh: Mapping[Provider, ShipPayload],
        *,
        now: datetime,
    ) -> CanonicalShip:
        """Write a decision onto ``current`` (or a new record) and return it.

        Raw payloads are refreshed for every provider that answered, even when the
        canonical state is unchanged; that bookkeeping never touches ``updated_at``.
        """

        ship = current or CanonicalShip(slug=decision.slug, name=decision.merged.name)
        for provider, payload in fresh.items():
            ship.set_raw_payload(provider, payload.to_raw())

        if not decision.should_write:
            return ship

        previous_status = current.production_status if current else None
        ship.name = decision.merged.name
        ship.specs = dict(decision.merged.specs)
        ship.content_hash = decision.content_hash
        if decision.fresh_image_url is not None:
            ship.image_url = decision.fresh_image_url
        if decision.fresh_model_url is not None:
            ship.model_url = decision.fresh_model_url
        if is_flight_ready(ship.production_status) and not is_flight_ready(previous_status):
            if ship.flight_ready_since is None:
                ship.flight_ready_since = now
        ship.provenance = Provenance(
            sources=tuple(provider.value for provider in decision.merged.contributors),
            recorded_at=now,
            source_url=decision.merged.source_url,
            changes=decision.changes,
        )
        ship.updated_at = now
        return ship

    def _fresh_media(
        self,
        fresh: Mapping[Provider, ShipPayload],
        attribute: str,
        *,
        pinned: Provider | None,
    ) -> str | None:
        order = provider_order(self.precedence.order_for(attribute))
        if pinned is not None:
            order = (pinned, *(provider for provider in order if provider is not pinned))
        for provider in order:
            payload = fresh.get(provider)
            if payload is None:
                continue
            value = getattr(payload, attribute)
            if value:
                return value
        return None
