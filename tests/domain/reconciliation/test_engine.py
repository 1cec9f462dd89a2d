from __future__ import annotations

from datetime import timedelta

from fleetsync.domain.model import Provider, ReconcileAction, ShipPayload
from fleetsync.domain.reconciliation import ReconciliationEngine
from tests.helpers.fleet import T0, make_payload


def _fresh(**specs: object) -> dict[Provider, ShipPayload]:
    return {
        Provider.WIKI: make_payload(
            "cutlass-black",
            name="Cutlass Black",
            image_url="https://img.example/cutlass.jpg",
            manufacturer="Drake Interplanetary",
            **specs,
        )
    }


def test_new_ship_is_created_with_provenance() -> None:
    engine = ReconciliationEngine()
    fresh = _fresh(production_status="Flight Ready")

    decision = engine.reconcile("cutlass-black", fresh, None)
    ship = engine.apply(decision, None, fresh, now=T0)

    assert decision.action is ReconcileAction.CREATE
    assert ship.content_hash == decision.content_hash
    assert ship.image_url == "https://img.example/cutlass.jpg"
    assert ship.flight_ready_since == T0
    assert ship.updated_at == T0
    assert ship.raw_wiki is not None
    assert ship.raw_wiki["name"] == "Cutlass Black"
    assert ship.provenance is not None
    assert ship.provenance.sources == ("wiki",)
    assert ship.provenance.changes.data
    assert ship.provenance.changes.image


def test_unchanged_input_is_skipped() -> None:
    engine = ReconciliationEngine()
    fresh = _fresh(crew_max=2)
    ship = engine.apply(engine.reconcile("cutlass-black", fresh, None), None, fresh, now=T0)

    decision = engine.reconcile("cutlass-black", fresh, ship)
    engine.apply(decision, ship, fresh, now=T0 + timedelta(hours=1))

    assert decision.action is ReconcileAction.SKIP
    assert not decision.should_write
    assert ship.updated_at == T0


def test_changed_field_updates_hash() -> None:
    engine = ReconciliationEngine()
    first = _fresh(crew_max=2)
    ship = engine.apply(engine.reconcile("cutlass-black", first, None), None, first, now=T0)
    old_hash = ship.content_hash

    second = _fresh(crew_max=3)
    decision = engine.reconcile("cutlass-black", second, ship)
    engine.apply(decision, ship, second, now=T0 + timedelta(hours=1))

    assert decision.action is ReconcileAction.UPDATE
    assert decision.changes.data
    assert ship.content_hash != old_hash
    assert ship.specs["crew_max"] == 3
    assert ship.updated_at == T0 + timedelta(hours=1)


def test_stored_media_is_carried_forward_when_fresh_payload_has_none() -> None:
    engine = ReconciliationEngine()
    first = _fresh(crew_max=2)
    ship = engine.apply(engine.reconcile("cutlass-black", first, None), None, first, now=T0)

    without_image = {
        Provider.WIKI: make_payload(
            "cutlass-black",
            name="Cutlass Black",
            manufacturer="Drake Interplanetary",
            crew_max=3,
        )
    }
    decision = engine.reconcile("cutlass-black", without_image, ship)
    engine.apply(decision, ship, without_image, now=T0 + timedelta(hours=1))

    assert decision.action is ReconcileAction.UPDATE
    assert not decision.changes.image
    assert ship.image_url == "https://img.example/cutlass.jpg"


def test_new_media_link_alone_triggers_update() -> None:
    engine = ReconciliationEngine()
    first = _fresh(crew_max=2)
    ship = engine.apply(engine.reconcile("cutlass-black", first, None), None, first, now=T0)

    relinked = {
        Provider.WIKI: make_payload(
            "cutlass-black",
            name="Cutlass Black",
            image_url="https://img.example/cutlass-v2.jpg",
            manufacturer="Drake Interplanetary",
            crew_max=2,
        )
    }
    decision = engine.reconcile("cutlass-black", relinked, ship)
    engine.apply(decision, ship, relinked, now=T0 + timedelta(hours=1))

    assert decision.action is ReconcileAction.UPDATE
    assert not decision.changes.data
    assert decision.changes.image
    assert ship.image_url == "https://img.example/cutlass-v2.jpg"


def test_force_rewrites_unchanged_ship() -> None:
    engine = ReconciliationEngine()
    fresh = _fresh(crew_max=2)
    ship = engine.apply(engine.reconcile("cutlass-black", fresh, None), None, fresh, now=T0)

    decision = engine.reconcile("cutlass-black", fresh, ship, force=True)

    assert decision.action is ReconcileAction.UPDATE


def test_stored_payloads_fill_in_for_silent_providers() -> None:
    engine = ReconciliationEngine()
    both = {
        **_fresh(crew_max=2),
        Provider.FLEETYARDS: make_payload(
            "cutlass-black", provider=Provider.FLEETYARDS, name="Cutlass Black", cargo_scu=46.0
        ),
    }
    ship = engine.apply(engine.reconcile("cutlass-black", both, None), None, both, now=T0)

    wiki_only = _fresh(crew_max=2)
    decision = engine.reconcile("cutlass-black", wiki_only, ship)

    assert decision.action is ReconcileAction.SKIP
    assert decision.merged.specs["cargo_scu"] == 46.0


def test_flight_ready_since_is_set_once() -> None:
    engine = ReconciliationEngine()
    concept = _fresh(production_status="In Concept")
    ship = engine.apply(engine.reconcile("cutlass-black", concept, None), None, concept, now=T0)
    assert ship.flight_ready_since is None

    released = _fresh(production_status="Flight Ready")
    later = T0 + timedelta(days=2)
    engine.apply(engine.reconcile("cutlass-black", released, ship), ship, released, now=later)

    assert ship.flight_ready_since == later
