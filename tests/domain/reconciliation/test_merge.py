from __future__ import annotations

from fleetsync.config.sync import PrecedenceConfig
from fleetsync.domain.model import PreferredSource, Provider, ShipPayload, SourcePreference
from fleetsync.domain.reconciliation import is_blank, merge_payloads, provider_order
from tests.helpers.fleet import make_payload


def _payloads() -> dict[Provider, ShipPayload]:
    wiki = make_payload(
        "freelancer",
        name="Freelancer",
        manufacturer="MISC",
        role="",
        cargo_scu=66.0,
        armament={"weapons": ["S3 Wiki Gun"]},
    )
    fleetyards = make_payload(
        "freelancer",
        provider=Provider.FLEETYARDS,
        name="Freelancer (FY)",
        manufacturer="Musashi Industrial",
        role="Medium Freight",
        armament={"weapons": ["S3 FY Gun"], "turrets": ["S2 Turret"]},
    )
    return {Provider.WIKI: wiki, Provider.FLEETYARDS: fleetyards}


def test_default_precedence_prefers_wiki_and_fills_gaps() -> None:
    merged = merge_payloads("freelancer", _payloads(), precedence=PrecedenceConfig())

    assert merged.name == "Freelancer"
    assert merged.specs["manufacturer"] == "MISC"
    # Blank wiki value falls through to the next provider.
    assert merged.specs["role"] == "Medium Freight"
    assert merged.specs["cargo_scu"] == 66.0
    assert merged.contributors == (Provider.WIKI, Provider.FLEETYARDS)
    assert merged.source_url == "https://wiki.example/freelancer"
    assert merged.pinned is None


def test_field_precedence_overrides_default_order() -> None:
    merged = merge_payloads("freelancer", _payloads(), precedence=PrecedenceConfig())

    assert merged.specs["armament"] == {"weapons": ["S3 FY Gun"], "turrets": ["S2 Turret"]}


def test_custom_default_order() -> None:
    precedence = PrecedenceConfig(default=("fleetyards", "wiki"), fields={})

    merged = merge_payloads("freelancer", _payloads(), precedence=precedence)

    assert merged.name == "Freelancer (FY)"
    assert merged.specs["manufacturer"] == "Musashi Industrial"
    assert merged.contributors == (Provider.FLEETYARDS, Provider.WIKI)


def test_pinned_source_is_taken_verbatim() -> None:
    preference = SourcePreference(slug="freelancer", preferred_source=PreferredSource.FLEETYARDS)

    merged = merge_payloads(
        "freelancer", _payloads(), precedence=PrecedenceConfig(), preference=preference
    )

    assert merged.pinned is Provider.FLEETYARDS
    assert merged.name == "Freelancer (FY)"
    assert merged.specs == {
        "manufacturer": "Musashi Industrial",
        "role": "Medium Freight",
        "armament": {"weapons": ["S3 FY Gun"], "turrets": ["S2 Turret"]},
    }
    assert "cargo_scu" not in merged.specs
    assert merged.contributors == (Provider.FLEETYARDS,)


def test_pinned_source_without_payload_falls_back_to_precedence() -> None:
    payloads = _payloads()
    del payloads[Provider.FLEETYARDS]
    preference = SourcePreference(slug="freelancer", preferred_source=PreferredSource.FLEETYARDS)

    merged = merge_payloads(
        "freelancer", payloads, precedence=PrecedenceConfig(), preference=preference
    )

    assert merged.pinned is None
    assert merged.specs["manufacturer"] == "MISC"


def test_auto_preference_merges_normally() -> None:
    preference = SourcePreference(slug="freelancer", preferred_source=PreferredSource.AUTO)

    merged = merge_payloads(
        "freelancer", _payloads(), precedence=PrecedenceConfig(), preference=preference
    )

    assert merged.pinned is None
    assert merged.name == "Freelancer"


def test_provider_order_ignores_unknown_and_appends_missing() -> None:
    assert provider_order(["fleetyards", "nonsense", "fleetyards"]) == (
        Provider.FLEETYARDS,
        Provider.WIKI,
    )


def test_is_blank_recurses_into_containers() -> None:
    assert is_blank(None)
    assert is_blank("   ")
    assert is_blank({"weapons": [], "turrets": [""]})
    assert not is_blank(0)
    assert not is_blank({"weapons": ["S1 Gun"]})
