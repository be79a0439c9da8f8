from __future__ import annotations

from brewmatch.domain.disambiguation import merge_completion, validate_completion
from brewmatch.domain.model import BeerRecord, BreweryRecord
from tests.helpers.catalog import make_beer, make_brewery


def test_merge_prefers_user_values_over_label_hints() -> None:
    entity = make_brewery("Birrificio Viana", website="viana.it", address="Via Roma 1")

    merged = merge_completion(entity, {"name": "  Birrificio Viana S.r.l. ", "address": ""})

    assert merged == {
        "name": "Birrificio Viana S.r.l.",
        "website": "viana.it",
        "address": "Via Roma 1",
    }


def test_merge_ignores_fields_of_the_other_kind() -> None:
    merged = merge_completion(make_beer("Viana IPA"), {"website": "viana.it", "abv": "6,5%"})

    assert merged == {"name": "Viana IPA", "abv": "6,5%"}


def test_merge_starts_from_the_selected_record() -> None:
    record = BeerRecord(id="ipa", name="Viana IPA", beer_type="IPA")

    merged = merge_completion(make_beer("V1ana lPA", abv=6.5), {}, record=record)

    assert merged == {"name": "Viana IPA", "beer_type": "IPA", "abv": "6.5"}


def test_validate_requires_a_name() -> None:
    result = validate_completion(make_brewery(""), {"website": "viana.it"})

    assert not result.is_valid
    assert result.missing_required == ("name",)


def test_validate_reports_recommended_gaps_without_failing() -> None:
    result = validate_completion(make_brewery("Viana"), {})

    assert result.is_valid
    assert result.missing_recommended == ("website", "address")


def test_validate_rejects_short_brewery_names_and_bad_abv() -> None:
    brewery = validate_completion(make_brewery("Viana"), {"name": "V"})
    beer = validate_completion(make_beer("Viana IPA"), {"abv": "strong"})

    assert not brewery.is_valid
    assert not beer.is_valid
    assert beer.issues == ("abv is not a number: 'strong'",)


def test_validate_with_complete_record_has_no_gaps() -> None:
    record = BreweryRecord(id="viana", name="Viana", website="viana.it", address="Via Roma 1")

    result = validate_completion(make_brewery("Vlana"), {}, record=record)

    assert result.is_valid
    assert result.missing_recommended == ()
